from __future__ import annotations

import logging

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import Response

from oeee_bridge.protocol.constants import WS_CLOSE_UNKNOWN_SESSION

from .channels import BridgeRegistry
from .shim import render_bridge_shim_js

log = logging.getLogger(__name__)


def create_app(registry: BridgeRegistry | None = None) -> FastAPI:
    """
    Local channel server for embedded drawing pages.

    The page loads `/bridge/{session_id}/shim.js`, which opens
    `/ws/{session_id}`; every text frame is handed to that session's bridge.
    """
    registry = registry or BridgeRegistry()
    app = FastAPI()
    app.state.registry = registry

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "bridges": len(registry)}

    @app.get("/bridge/{session_id}/shim.js")
    def shim(session_id: str, request: Request):
        proto = "wss" if request.url.scheme == "https" else "ws"
        channel_url = f"{proto}://{request.url.netloc}/ws/{session_id}"
        return Response(
            render_bridge_shim_js(session_id, channel_url),
            media_type="application/javascript",
        )

    @app.websocket("/ws/{session_id}")
    async def ws(session_id: str, ws: WebSocket):
        bridge = await registry.get(session_id)
        if bridge is None:
            log.info("[ws:%s] no bridge registered, closing", session_id)
            await ws.close(code=WS_CLOSE_UNKNOWN_SESSION)
            return

        await ws.accept()
        try:
            while True:
                raw = await ws.receive_text()
                log.debug("[ws:%s] in %d bytes", session_id, len(raw))
                try:
                    await bridge.handle_message(raw)
                except Exception:
                    # one failing frame must not close the channel
                    log.exception("[ws:%s] bridge failed to handle message", session_id)
        except WebSocketDisconnect:
            log.debug("[ws:%s] channel closed", session_id)

    return app
