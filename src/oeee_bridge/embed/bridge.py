from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
from urllib.parse import urlencode, urlsplit

from oeee_bridge.client.cookies import CookieRecord, SessionStore
from oeee_bridge.protocol.constants import DRAW_MOBILE_PATH, JS_CLEAR_DRAWING_SESSION
from oeee_bridge.protocol.messages import DrawingComplete, decode_bridge_message

from .surface import BrowserSurface

log = logging.getLogger(__name__)

# (post_id, community_id, image_url)
DrawingCompleteCallback = Callable[[str, str, str], None]


class BridgeState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    COMPLETED = "completed"


@dataclass
class DrawRequest:
    width: int = 300
    height: int = 300
    tool: str = "neo"
    community_id: Optional[str] = None
    parent_post_id: Optional[str] = None

    def form_body(self) -> bytes:
        fields: list[tuple[str, str]] = [
            ("width", str(self.width)),
            ("height", str(self.height)),
            ("tool", self.tool),
        ]
        if self.community_id is not None:
            fields.append(("community_id", self.community_id))
        if self.parent_post_id is not None:
            fields.append(("parent_post_id", self.parent_post_id))
        return urlencode(fields).encode("utf-8")


def cookie_string(rec: CookieRecord, host: str) -> str:
    return f"{rec.name}={rec.value}; domain={rec.domain or host}; path={rec.path or '/'}"


class EmbeddedContentBridge:
    """
    Keeps one embedded surface in step with the native session.

    Lifecycle: IDLE -> LOADING (seed cookies, await flush, POST /draw/mobile)
    -> READY (page finished) -> COMPLETED (drawing_complete received), or back
    to IDLE when the user leaves. Nothing here is persisted.
    """

    def __init__(
        self,
        surface: BrowserSurface,
        store: SessionStore,
        base_url: str,
        on_drawing_complete: DrawingCompleteCallback,
    ):
        self.surface = surface
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.host = urlsplit(self.base_url).hostname or "oeee.cafe"
        self.on_drawing_complete = on_drawing_complete
        self.state = BridgeState.IDLE

    # --- cookies ---

    async def seed_cookies(self) -> int:
        """
        Copy the session's cookies into the surface jar and wait for the flush.

        Records are keyed by (name, domain, path), so seeding the same set
        again leaves the surface jar unchanged.
        """
        unique: dict[tuple[str, str, str], CookieRecord] = {}
        for rec in self.store.get(self.base_url):
            unique[rec.key] = rec

        for rec in unique.values():
            self.surface.set_cookie(self.base_url, cookie_string(rec, self.host))
            log.debug("[bridge] seeded cookie %s (domain=%s path=%s)", rec.name, rec.domain, rec.path)

        await self.surface.flush()
        log.info("[bridge] seeded %d cookie(s) for %s", len(unique), self.host)
        return len(unique)

    # --- navigation ---

    async def load(self, request: DrawRequest | None = None) -> None:
        request = request or DrawRequest()
        self.state = BridgeState.LOADING
        await self.seed_cookies()
        url = self.base_url + DRAW_MOBILE_PATH
        log.info("[bridge] POST %s (%dx%d, tool=%s)", url, request.width, request.height, request.tool)
        await self.surface.post_url(url, request.form_body())

    def is_backend_url(self, url: str) -> bool:
        host = urlsplit(url).hostname
        if host is None:
            return True
        # exact match: seeded cookies would follow the page onto any subdomain
        return host.lower() == self.host.lower()

    def should_override_url(self, url: str) -> bool:
        """
        Navigation guard. True means the surface must not load `url`.

        Anything off the backend host goes to the system browser so it never
        runs in-app with the seeded session.
        """
        if self.is_backend_url(url):
            return False
        log.info("[bridge] external navigation handed off: %s", url)
        self.surface.open_external(url)
        return True

    def on_page_started(self, url: str) -> None:
        if self.state is not BridgeState.COMPLETED:
            self.state = BridgeState.LOADING

    def on_page_finished(self, url: str) -> None:
        if self.state is BridgeState.LOADING:
            self.state = BridgeState.READY

    def navigate_back(self) -> None:
        self.state = BridgeState.IDLE

    # --- inbound channel ---

    async def handle_message(self, raw: str | bytes) -> bool:
        """
        Entry point for the single inbound channel.

        Returns True when the message triggered the completion callback.
        Unknown or malformed payloads are dropped with a debug log, as is a
        drawing_complete outside a load (already completed, or the user left).

        The bridge only moves to COMPLETED once the callback returns; if it
        raises, the error propagates and a resent message is handled again.
        """
        msg = decode_bridge_message(raw)
        if not isinstance(msg, DrawingComplete):
            log.debug("[bridge] ignored message type=%s (%s)", msg.type, msg.reason)
            return False
        if self.state not in (BridgeState.LOADING, BridgeState.READY):
            log.debug(
                "[bridge] drawing_complete for post %s ignored in state %s",
                msg.post_id,
                self.state.value,
            )
            return False

        log.info(
            "[bridge] drawing complete: post=%s community=%s image=%s",
            msg.post_id,
            msg.community_id,
            msg.image_url,
        )
        try:
            await self.surface.evaluate_js(JS_CLEAR_DRAWING_SESSION)
        except Exception as e:
            # the page may already be gone; the post exists either way
            log.warning("[bridge] clearSession() failed: %s", e)

        self.on_drawing_complete(msg.post_id, msg.community_id, msg.image_url)
        self.state = BridgeState.COMPLETED
        return True
