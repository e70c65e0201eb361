from __future__ import annotations

import logging
from typing import Optional

from .api import ApiClient
from .errors import OeeeAPIError, OeeeServerError, OeeeValidationError
from .models import CurrentUser
from .push import PushTokenService

log = logging.getLogger(__name__)


class AuthService:
    """
    Session lifecycle on top of `ApiClient`.

    State only changes after the backend confirms: a failed login leaves the
    previous user in place. Logout is the exception and always clears local
    state, since a dead network must not keep the user signed in.
    """

    def __init__(self, api: ApiClient, push: Optional[PushTokenService] = None):
        self.api = api
        self.push = push
        self.current_user: Optional[CurrentUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def has_stored_session(self) -> bool:
        return bool(self.api.store.get(self.api.base_url))

    async def login(self, login_name: str, password: str) -> CurrentUser:
        user = await self.api.login(login_name, password)
        self.current_user = user
        return user

    async def signup(
        self,
        login_name: str,
        password: str,
        display_name: str,
        password_confirm: Optional[str] = None,
    ) -> CurrentUser:
        if password_confirm is not None and password != password_confirm:
            raise OeeeValidationError("password_confirm", "Passwords do not match")
        # auto-logged-in on success
        user = await self.api.signup(login_name, password, display_name)
        self.current_user = user
        return user

    async def logout(self) -> None:
        device_token = self.push.device_token if self.push else None
        try:
            await self.api.logout(device_token)
        except OeeeAPIError as e:
            log.warning("[auth] logout call failed, clearing local session anyway: %s", e)

        if self.push is not None:
            await self.push.delete()

        self.current_user = None
        self.api.store.clear()

    async def delete_account(self, password: str) -> None:
        await self.api.delete_account(password)
        if self.push is not None:
            await self.push.delete()
        self.current_user = None
        self.api.store.clear()

    async def check_auth_status(self) -> Optional[CurrentUser]:
        """Ask the backend who we are; any failure means signed out."""
        try:
            user = await self.api.current_user()
        except OeeeServerError as e:
            self.current_user = None
            if e.status == 401:
                # stale session cookie
                self.api.store.clear()
            return None
        except OeeeAPIError as e:
            log.info("[auth] could not verify session: %s", e)
            self.current_user = None
            return None
        self.current_user = user
        return user
