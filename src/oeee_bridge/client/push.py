from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .api import ApiClient
from .errors import OeeeAPIError

log = logging.getLogger(__name__)


class PushTokenService:
    """Remembers the registered push token so it is sent once and removed on logout."""

    def __init__(self, api: ApiClient, token_path: Optional[Path] = None):
        self.api = api
        self.token_path = token_path
        self._token: Optional[str] = self._load()

    def _load(self) -> Optional[str]:
        if self.token_path is None or not self.token_path.exists():
            return None
        try:
            obj = json.loads(self.token_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("[push] unreadable token file %s: %s", self.token_path, e)
            return None
        token = obj.get("device_token") if isinstance(obj, dict) else None
        return token if isinstance(token, str) and token else None

    def _store(self, token: Optional[str]) -> None:
        self._token = token
        if self.token_path is None:
            return
        if token is None:
            self.token_path.unlink(missing_ok=True)
            return
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(json.dumps({"device_token": token}), encoding="utf-8")

    @property
    def device_token(self) -> Optional[str]:
        return self._token

    async def register(self, token: str, platform: Optional[str] = None) -> bool:
        """Register with the backend; returns False when this token is already registered."""
        if token == self._token:
            log.debug("[push] token already registered, skipping")
            return False
        resp = await self.api.register_push_token(token, platform)
        log.info("[push] registered push token id=%s", resp.id)
        self._store(token)
        return True

    async def delete(self) -> None:
        """Drop the token server-side if possible; the local copy is always cleared."""
        token = self._token
        if not token:
            log.debug("[push] no device token to delete")
            return
        try:
            await self.api.delete_push_token(token)
            log.info("[push] deleted push token")
        except OeeeAPIError as e:
            log.warning("[push] failed to delete push token: %s", e)
        finally:
            self._store(None)
