from __future__ import annotations

from .api import ApiClient
from .auth import AuthService
from .config import Settings, get_settings
from .cookies import CookieRecord, SessionStore
from .errors import OeeeAPIError, OeeeNetworkError, OeeeServerError, OeeeValidationError
from .push import PushTokenService
from .scope import RequestScope

__all__ = [
    "ApiClient",
    "AuthService",
    "CookieRecord",
    "OeeeAPIError",
    "OeeeNetworkError",
    "OeeeServerError",
    "OeeeValidationError",
    "PushTokenService",
    "RequestScope",
    "SessionStore",
    "Settings",
    "get_settings",
]


def open_session(settings: Settings | None = None) -> tuple[Settings, SessionStore, ApiClient]:
    """Build the store and client for a settings object (defaults to the env)."""
    settings = settings or get_settings()
    store = SessionStore(settings.cookie_file, default_host=settings.backend_host)
    return settings, store, ApiClient(settings, store)
