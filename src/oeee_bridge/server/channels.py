from __future__ import annotations

import asyncio
from typing import Optional

from oeee_bridge.embed.bridge import EmbeddedContentBridge


class BridgeRegistry:
    """Session id -> bridge, for routing channel frames. One per app instance."""

    def __init__(self) -> None:
        self._bridges: dict[str, EmbeddedContentBridge] = {}
        self._lock = asyncio.Lock()

    async def register(self, session_id: str, bridge: EmbeddedContentBridge) -> None:
        async with self._lock:
            self._bridges[session_id] = bridge

    async def unregister(self, session_id: str) -> None:
        async with self._lock:
            self._bridges.pop(session_id, None)

    async def get(self, session_id: str) -> Optional[EmbeddedContentBridge]:
        async with self._lock:
            return self._bridges.get(session_id)

    def __len__(self) -> int:
        return len(self._bridges)
