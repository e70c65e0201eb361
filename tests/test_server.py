"""Tests for the bridge channel server."""

import asyncio
import time

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from oeee_bridge.embed import EmbeddedContentBridge
from oeee_bridge.server.app import WS_CLOSE_UNKNOWN_SESSION, create_app
from oeee_bridge.server.channels import BridgeRegistry

DONE = '{"type":"drawing_complete","postId":"p1","communityId":"c1","imageUrl":"https://x/y.png"}'


def _wait_for(items, n, timeout=5.0):
    # frames are handled on the app's thread
    deadline = time.monotonic() + timeout
    while len(items) < n and time.monotonic() < deadline:
        time.sleep(0.01)
    time.sleep(0.1)


@pytest.fixture
def registry(bridge):
    reg = BridgeRegistry()
    asyncio.run(bridge.load())
    asyncio.run(reg.register("s1", bridge))
    return reg


@pytest.fixture
def client(registry):
    return TestClient(create_app(registry))


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "bridges": 1}


def test_shim_points_at_channel(client):
    r = client.get("/bridge/s1/shim.js")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/javascript")
    assert '"ws://testserver/ws/s1"' in r.text
    assert 'window["OeeeCafe"]' in r.text


def test_shim_stops_reconnecting_for_unknown_session(client):
    """The page gives up once the server says the session does not exist."""
    text = client.get("/bridge/s1/shim.js").text
    assert f"event.code === {WS_CLOSE_UNKNOWN_SESSION}) return;" in text


def test_channel_message_reaches_bridge(client, completions):
    with client.websocket_connect("/ws/s1") as ws:
        ws.send_text("ping")
        ws.send_text(DONE)
        ws.send_text(DONE)
        _wait_for(completions, 1)

        assert completions == [("p1", "c1", "https://x/y.png")]


def test_failing_callback_keeps_channel_open(registry, client, surface, store, settings):
    """An exception while handling one frame does not end the channel."""
    seen = []

    def on_done(*args):
        seen.append(args)
        if len(seen) == 1:
            raise RuntimeError("ui gone")

    flaky = EmbeddedContentBridge(surface, store, settings.base_url, on_done)
    asyncio.run(flaky.load())
    asyncio.run(registry.register("s2", flaky))

    with client.websocket_connect("/ws/s2") as ws:
        ws.send_text(DONE)
        _wait_for(seen, 1)
        ws.send_text(DONE)
        _wait_for(seen, 2)

        assert len(seen) == 2


def test_unknown_session_is_closed(client):
    with pytest.raises(WebSocketDisconnect) as exc:
        with client.websocket_connect("/ws/nope") as ws:
            ws.receive_text()
    assert exc.value.code == WS_CLOSE_UNKNOWN_SESSION


def test_unregister(registry, client):
    asyncio.run(registry.unregister("s1"))
    assert len(registry) == 0
    assert client.get("/healthz").json()["bridges"] == 0
