from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from http.cookiejar import Cookie, CookieJar, LWPCookieJar
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlsplit

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CookieRecord:
    name: str
    value: str
    domain: Optional[str] = None
    path: str = "/"
    expires: Optional[int] = None  # unix seconds; None = session cookie
    secure: bool = False

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.name, self.domain or "", self.path)


def _host_matches(host: str, domain: str) -> bool:
    # http.cookiejar stores dotless hosts as "<host>.local"
    d = domain.lstrip(".").lower()
    h = host.lower()
    if "." not in h and d == f"{h}.local":
        return True
    return h == d or h.endswith("." + d)


class SessionStore:
    """
    Persistent cookie store shared by the API client and the bridge.

    Wraps an LWP cookie file so session cookies survive restarts. The jar is
    handed to urllib's HTTPCookieProcessor, which reads it before each request
    and writes Set-Cookie back; call `save()` after a response to persist.
    """

    def __init__(self, path: Optional[Path] = None, *, default_host: str = "oeee.cafe"):
        self.path = path
        self.default_host = default_host
        self._save_lock = threading.Lock()
        self.jar: CookieJar = LWPCookieJar(str(path)) if path is not None else CookieJar()
        if path is not None and path.exists():
            try:
                self.jar.load(ignore_discard=True, ignore_expires=True)
            except OSError as e:
                # LoadError is an OSError; a corrupt file just means logged out
                log.warning("[cookies] could not load %s: %s", path, e)
                self.jar.clear()
        log.debug("[cookies] loaded %d cookie(s)", len(self.jar))

    def get(self, origin: str) -> list[CookieRecord]:
        """All cookies whose domain matches the origin's host, expired ones included."""
        host = urlsplit(origin).hostname or origin
        out: list[CookieRecord] = []
        for c in self.jar:
            if not _host_matches(host, c.domain):
                continue
            out.append(
                CookieRecord(
                    name=c.name,
                    value=c.value or "",
                    domain=c.domain,
                    path=c.path or "/",
                    expires=c.expires,
                    secure=bool(c.secure),
                )
            )
        return out

    def merge(self, cookies: Iterable[CookieRecord]) -> None:
        """Insert or replace by (name, domain, path)."""
        for rec in cookies:
            domain = rec.domain or self.default_host
            dotted = domain.startswith(".")
            self.jar.set_cookie(
                Cookie(
                    version=0,
                    name=rec.name,
                    value=rec.value,
                    port=None,
                    port_specified=False,
                    domain=domain,
                    domain_specified=dotted,
                    domain_initial_dot=dotted,
                    path=rec.path or "/",
                    path_specified=True,
                    secure=rec.secure,
                    expires=rec.expires,
                    discard=rec.expires is None,
                    comment=None,
                    comment_url=None,
                    rest={},
                )
            )
        self.save()

    def clear(self) -> None:
        self.jar.clear()
        self.save()
        log.info("[cookies] session cleared")

    def save(self) -> None:
        """Write the jar to disk. Called from worker threads; writes are serialized."""
        if self.path is None or not isinstance(self.jar, LWPCookieJar):
            return
        # the jar's own lock keeps urllib's cookie processor from mutating it mid-write
        with self._save_lock, self.jar._cookies_lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            self.jar.save(str(tmp), ignore_discard=True, ignore_expires=True)
            # readers never see a half-written file
            os.replace(tmp, self.path)

    def __len__(self) -> int:
        return len(self.jar)
