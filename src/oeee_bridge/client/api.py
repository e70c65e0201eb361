from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.request
from typing import Any, Iterable, Optional, Sequence, TypeVar
from urllib.parse import quote, urlencode

from pydantic import BaseModel, ValidationError

from oeee_bridge.protocol.constants import PUBLISH_PATH

from .config import Settings
from .cookies import SessionStore
from .errors import (
    OeeeNetworkError,
    OeeeServerError,
    OeeeValidationError,
)
from .models import (
    CurrentUser,
    DeleteAccountResponse,
    DeleteDeviceResponse,
    DeleteNotificationResponse,
    DeletePushTokenResponse,
    DraftPost,
    DraftPostsResponse,
    LoginResponse,
    LogoutResponse,
    MarkAllReadResponse,
    MarkNotificationReadResponse,
    NotificationItem,
    NotificationsResponse,
    RegisterDeviceResponse,
    RegisterPushTokenResponse,
    SearchResponse,
    SignupResponse,
    UnreadCountResponse,
)

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class _NoRedirect(urllib.request.HTTPRedirectHandler):
    """Surface 3xx as HTTPError so the caller sees the redirect status itself."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        return None


def _require(field: str, value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise OeeeValidationError(field)
    return value


def _seg(value: str) -> str:
    return quote(value, safe="")


def _error_message(body: bytes) -> Optional[str]:
    """
    Pull a human-readable error out of a failure body.

    Handles both shapes the backend uses:
      {"success": false, "error": "..."} and {"error": {"code": ..., "message": ...}}
    """
    try:
        obj = json.loads(body)
    except (TypeError, ValueError):
        return None
    if not isinstance(obj, dict):
        return None
    err = obj.get("error")
    if isinstance(err, str) and err:
        return err
    if isinstance(err, dict):
        msg = err.get("message")
        if isinstance(msg, str) and msg:
            return msg
    msg = obj.get("message")
    return msg if isinstance(msg, str) and msg else None


class ApiClient:
    """
    Typed client for the oeee.cafe backend.

    One instance per session context; it owns no global state. Every request
    goes through urllib's cookie processor bound to `store.jar`, so cookies are
    attached on the way out and Set-Cookie lands in the store on the way back.

    Blocking I/O runs in a worker thread (`asyncio.to_thread`); callers await
    the typed coroutine methods. `handlers` lets tests or embedders swap the
    transport underneath without touching cookie handling.
    """

    def __init__(
        self,
        settings: Settings,
        store: SessionStore,
        *,
        handlers: Sequence[urllib.request.BaseHandler] = (),
    ):
        self.settings = settings
        self.store = store
        self._opener = urllib.request.build_opener(
            urllib.request.HTTPCookieProcessor(store.jar), *handlers
        )
        # Form posts land on HTML routes that answer 303; don't chase them.
        self._form_opener = urllib.request.build_opener(
            urllib.request.HTTPCookieProcessor(store.jar), _NoRedirect(), *handlers
        )

    @property
    def base_url(self) -> str:
        return self.settings.base_url

    # --- transport ---

    def _send_sync(
        self,
        method: str,
        path: str,
        *,
        query: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
        form: Optional[Iterable[tuple[str, str]]] = None,
        accept: Iterable[int] = (),
        failure_message: Optional[str] = None,
    ) -> tuple[int, bytes]:
        url = self.base_url + path
        if query:
            params = {k: v for k, v in query.items() if v is not None}
            if params:
                url += "?" + urlencode(params)

        headers = {"Accept": "application/json"}
        data: Optional[bytes] = None
        opener = self._opener
        if json_body is not None:
            data = json.dumps(json_body, separators=(",", ":")).encode("utf-8")
            headers["Content-Type"] = "application/json"
        elif form is not None:
            data = urlencode(list(form)).encode("utf-8")
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            opener = self._form_opener

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        log.debug("[api] --> %s %s", method, url)
        try:
            with opener.open(req, timeout=self.settings.timeout_s) as resp:
                status = resp.getcode()
                body = resp.read()
        except urllib.error.HTTPError as e:
            status = e.code
            try:
                body = e.read()
            except OSError:
                body = b""
            if status not in set(accept):
                log.info("[api] <-- %s %s %s", status, method, path)
                message = _error_message(body)
                if message is None and failure_message:
                    message = failure_message.format(status=status)
                raise OeeeServerError(status, message) from None
        except (urllib.error.URLError, OSError) as e:
            log.warning("[api] transport failure %s %s: %s", method, path, e)
            raise OeeeNetworkError(str(e)) from e
        finally:
            # Persist whatever Set-Cookie the exchange produced, even on failure.
            self.store.save()

        log.debug("[api] <-- %s %s %s", status, method, path)
        if self.settings.debug_log_http:
            log.info("[api] %s %s body=%s", method, path, body[:2048].decode("utf-8", "replace"))
        return status, body

    async def _send(self, method: str, path: str, **kwargs: Any) -> tuple[int, bytes]:
        return await asyncio.to_thread(self._send_sync, method, path, **kwargs)

    async def _call(self, model: type[M], method: str, path: str, **kwargs: Any) -> M:
        status, body = await self._send(method, path, **kwargs)
        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            raise OeeeServerError(status, "Unexpected response from server") from e

    # --- auth ---

    async def login(self, login_name: str, password: str) -> CurrentUser:
        _require("login_name", login_name)
        _require("password", password)
        resp = await self._call(
            LoginResponse,
            "POST",
            "/api/v1/auth/login",
            json_body={"loginName": login_name, "password": password},
            failure_message="Login failed",
        )
        if not resp.success or resp.user is None:
            raise OeeeServerError(200, resp.error or "Login failed")
        log.info("[api] logged in as %s (%d cookie(s))", resp.user.login_name, len(self.store))
        return resp.user

    async def signup(self, login_name: str, password: str, display_name: str) -> CurrentUser:
        _require("login_name", login_name)
        _require("password", password)
        _require("display_name", display_name)
        resp = await self._call(
            SignupResponse,
            "POST",
            "/api/v1/auth/signup",
            json_body={
                "login_name": login_name,
                "password": password,
                "display_name": display_name,
            },
            failure_message="Signup failed",
        )
        if not resp.success or resp.user is None:
            raise OeeeServerError(200, resp.error or "Signup failed")
        return resp.user

    async def logout(self, device_token: Optional[str] = None) -> LogoutResponse:
        return await self._call(
            LogoutResponse,
            "POST",
            "/api/v1/auth/logout",
            json_body={"device_token": device_token},
        )

    async def current_user(self) -> CurrentUser:
        return await self._call(CurrentUser, "GET", "/api/v1/auth/me")

    async def delete_account(self, password: str) -> None:
        _require("password", password)
        resp = await self._call(
            DeleteAccountResponse,
            "DELETE",
            "/api/v1/account",
            json_body={"password": password},
            failure_message="Failed to delete account",
        )
        if not resp.success:
            raise OeeeServerError(200, resp.error or "Failed to delete account")

    # --- search ---

    async def search(self, query: str, limit: Optional[int] = None) -> SearchResponse:
        if not query or not query.strip():
            return SearchResponse()
        return await self._call(
            SearchResponse, "GET", "/api/v1/search", query={"q": query, "limit": limit}
        )

    # --- notifications ---

    async def notifications(self, limit: int = 50, offset: int = 0) -> NotificationsResponse:
        return await self._call(
            NotificationsResponse,
            "GET",
            "/api/v1/notifications",
            query={"limit": limit, "offset": offset},
        )

    async def unread_notification_count(self) -> int:
        resp = await self._call(UnreadCountResponse, "GET", "/api/v1/notifications/unread-count")
        return resp.count

    async def mark_notification_read(self, notification_id: str) -> Optional[NotificationItem]:
        _require("notification_id", notification_id)
        resp = await self._call(
            MarkNotificationReadResponse,
            "POST",
            f"/api/v1/notifications/{_seg(notification_id)}/mark-read",
            failure_message="Failed to mark notification as read",
        )
        return resp.notification

    async def mark_all_notifications_read(self) -> int:
        resp = await self._call(
            MarkAllReadResponse,
            "POST",
            "/api/v1/notifications/mark-all-read",
            failure_message="Failed to mark all notifications as read",
        )
        return resp.count

    async def delete_notification(self, notification_id: str) -> None:
        _require("notification_id", notification_id)
        resp = await self._call(
            DeleteNotificationResponse,
            "DELETE",
            f"/api/v1/notifications/{_seg(notification_id)}",
            failure_message="Failed to delete notification",
        )
        if not resp.success:
            raise OeeeServerError(200, resp.error or "Failed to delete notification")

    # --- devices / push tokens ---

    async def register_device(
        self, device_token: str, platform: Optional[str] = None
    ) -> RegisterDeviceResponse:
        _require("device_token", device_token)
        return await self._call(
            RegisterDeviceResponse,
            "POST",
            "/api/v1/devices",
            json_body={
                "device_token": device_token,
                "platform": platform or self.settings.push_platform,
            },
        )

    async def delete_device(self, device_id: str) -> DeleteDeviceResponse:
        _require("device_id", device_id)
        return await self._call(
            DeleteDeviceResponse, "DELETE", f"/api/v1/devices/{_seg(device_id)}"
        )

    async def register_push_token(
        self, device_token: str, platform: Optional[str] = None
    ) -> RegisterPushTokenResponse:
        _require("device_token", device_token)
        return await self._call(
            RegisterPushTokenResponse,
            "POST",
            "/api/v1/push-tokens",
            json_body={
                "device_token": device_token,
                "platform": platform or self.settings.push_platform,
            },
        )

    async def delete_push_token(self, device_token: str) -> DeletePushTokenResponse:
        _require("device_token", device_token)
        return await self._call(
            DeletePushTokenResponse, "DELETE", f"/api/v1/push-tokens/{_seg(device_token)}"
        )

    # --- drafts ---

    async def drafts(self) -> list[DraftPost]:
        resp = await self._call(DraftPostsResponse, "GET", "/api/v1/posts/drafts")
        return resp.drafts

    async def publish_draft(
        self,
        post_id: str,
        title: str,
        content: str,
        *,
        hashtags: str = "",
        is_sensitive: bool = False,
        allow_relay: bool = False,
        parent_post_id: Optional[str] = None,
    ) -> int:
        """
        Publish a draft through the HTML form route.

        Success is any 2xx or the 303 the route answers with on redirect to the
        new post. Returns the status code.
        """
        _require("post_id", post_id)
        form: list[tuple[str, str]] = [
            ("post_id", post_id),
            ("title", title),
            ("content", content),
        ]
        if hashtags.strip():
            form.append(("hashtags", hashtags))
        if is_sensitive:
            form.append(("is_sensitive", "on"))
        if allow_relay:
            form.append(("allow_relay", "on"))
        if parent_post_id is not None:
            form.append(("parent_post_id", parent_post_id))

        status, _body = await self._send(
            "POST",
            PUBLISH_PATH,
            form=form,
            accept=(303,),
            failure_message="Failed to publish (Status {status})",
        )
        log.info("[api] published draft %s (status %s)", post_id, status)
        return status
