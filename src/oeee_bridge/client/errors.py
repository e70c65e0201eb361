"""
Error taxonomy for backend calls.

Validation errors are raised before anything goes on the wire; server and
network errors wrap a completed (or failed) HTTP exchange. Bridge decode
problems never show up here, see `protocol.messages.Ignored`.
"""

from __future__ import annotations

from typing import Optional


class OeeeAPIError(Exception):
    """Base class for everything the API layer raises."""


class OeeeValidationError(OeeeAPIError):
    """A required field was blank; no request was made."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} is required")


class OeeeServerError(OeeeAPIError):
    """The backend answered with a non-success status (or an unusable body)."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        self.message = message or f"Request failed (Status {status})"
        super().__init__(self.message)


class OeeeNetworkError(OeeeAPIError):
    """DNS, connection, TLS or timeout failure."""

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__("Network error. Please check your connection and try again.")
