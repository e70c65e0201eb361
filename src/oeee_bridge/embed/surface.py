from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BrowserSurface(Protocol):
    """
    What the bridge needs from an embedded browser.

    The surface keeps its own cookie jar, separate from the API client's; the
    bridge copies cookies across with `set_cookie` and waits on `flush`.
    """

    def set_cookie(self, url: str, cookie: str) -> None:
        """Store a `name=value; domain=...; path=...` string for `url`."""
        ...

    async def flush(self) -> None:
        """Commit pending cookie writes; returns once they are visible to requests."""
        ...

    async def post_url(self, url: str, body: bytes) -> None:
        """Navigate the surface with a form POST."""
        ...

    async def evaluate_js(self, script: str) -> object:
        ...

    def open_external(self, url: str) -> None:
        """Hand a URL to the system browser instead of loading it in-app."""
        ...
