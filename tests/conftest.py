"""
Pytest fixtures for oeee-bridge tests.

HTTP goes through a FakeBackend urllib handler (so the real cookie processor
still runs); the embedded browser is a FakeSurface that records calls.
"""

from __future__ import annotations

import asyncio
import http.client
import io
import json
import urllib.error
import urllib.request
import urllib.response
from dataclasses import dataclass
from urllib.parse import parse_qs, urlsplit

import pytest

from oeee_bridge.client.api import ApiClient
from oeee_bridge.client.config import Settings
from oeee_bridge.client.cookies import SessionStore
from oeee_bridge.embed.bridge import EmbeddedContentBridge

USER = {
    "id": "u-1",
    "login_name": "alice",
    "display_name": "Alice",
    "email": "alice@example.com",
    "email_verified_at": None,
    "banner_id": None,
    "preferred_language": "en",
}


@dataclass
class SeenRequest:
    method: str
    path: str
    query: dict[str, list[str]]
    headers: dict[str, str]
    body: bytes | None

    def json(self):
        return json.loads(self.body or b"null")

    def form(self) -> dict[str, list[str]]:
        return parse_qs((self.body or b"").decode("utf-8"))


class FakeBackend(urllib.request.BaseHandler):
    """Canned responses keyed by (method, path); runs ahead of the real HTTP handlers."""

    handler_order = 100

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, bytes, list[tuple[str, str]]]] = {}
        self.requests: list[SeenRequest] = []
        self.offline = False

    def add(self, method: str, path: str, *, status: int = 200, body=None, headers=()) -> None:
        if isinstance(body, (dict, list)):
            raw = json.dumps(body).encode("utf-8")
        elif isinstance(body, str):
            raw = body.encode("utf-8")
        else:
            raw = body or b""
        self.routes[(method, path)] = (status, raw, list(headers))

    def https_open(self, req: urllib.request.Request):
        parts = urlsplit(req.full_url)
        self.requests.append(
            SeenRequest(
                method=req.get_method(),
                path=parts.path,
                query=parse_qs(parts.query),
                headers=dict(req.header_items()),
                body=req.data,
            )
        )
        if self.offline:
            raise urllib.error.URLError("[Errno -2] Name or service not known")

        status, body, headers = self.routes.get(
            (req.get_method(), parts.path), (404, b'{"error": "Not found"}', [])
        )
        msg = http.client.HTTPMessage()
        msg["Content-Type"] = "application/json"
        for k, v in headers:
            msg[k] = v
        resp = urllib.response.addinfourl(io.BytesIO(body), msg, req.full_url, status)
        resp.msg = http.client.responses.get(status, "")
        return resp

    http_open = https_open


class FakeSurface:
    """Embedded browser stand-in with a (name, domain, path)-keyed jar."""

    def __init__(self) -> None:
        self.jar: dict[tuple[str, str | None, str | None], str] = {}
        self.calls: list[tuple] = []
        self.external: list[str] = []
        self.fail_js = False

    def set_cookie(self, url: str, cookie: str) -> None:
        self.calls.append(("set_cookie", url, cookie))
        first, *rest = [p.strip() for p in cookie.split(";")]
        name, _, value = first.partition("=")
        attrs = dict(p.split("=", 1) for p in rest if "=" in p)
        self.jar[(name, attrs.get("domain"), attrs.get("path"))] = value

    async def flush(self) -> None:
        await asyncio.sleep(0)
        self.calls.append(("flush",))

    async def post_url(self, url: str, body: bytes) -> None:
        self.calls.append(("post_url", url, body))

    async def evaluate_js(self, script: str) -> object:
        self.calls.append(("evaluate_js", script))
        if self.fail_js:
            raise RuntimeError("page is gone")
        return None

    def open_external(self, url: str) -> None:
        self.external.append(url)

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(base_url="https://oeee.cafe", state_dir=tmp_path / "state")


@pytest.fixture
def store(settings: Settings) -> SessionStore:
    return SessionStore(settings.cookie_file, default_host=settings.backend_host)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def api(settings: Settings, store: SessionStore, backend: FakeBackend) -> ApiClient:
    return ApiClient(settings, store, handlers=[backend])


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def completions() -> list[tuple[str, str, str]]:
    return []


@pytest.fixture
def bridge(surface, store, settings, completions) -> EmbeddedContentBridge:
    return EmbeddedContentBridge(
        surface,
        store,
        settings.base_url,
        on_drawing_complete=lambda *args: completions.append(args),
    )
