from __future__ import annotations

import json

from oeee_bridge.protocol.constants import CHANNEL_NAME, WS_CLOSE_UNKNOWN_SESSION


def render_bridge_shim_js(session_id: str, channel_url: str) -> str:
    """
    Page-side shim for the bridge channel.

    Defines `window.OeeeCafe.postMessage(str)` on the drawing page and forwards
    each call as one text frame to `channel_url`. Messages posted before the
    socket opens are queued. The shim reconnects after a drop, except when the
    server closes with the unknown-session code.
    """
    return f"""
(function () {{
  const sessionId = {json.dumps(session_id)};
  const channelUrl = {json.dumps(channel_url)};
  const pending = [];
  let ws = null;

  function connect() {{
    ws = new WebSocket(channelUrl);
    ws.onopen = () => {{
      while (pending.length) ws.send(pending.shift());
    }};
    ws.onclose = (event) => {{
      ws = null;
      if (event.code === {WS_CLOSE_UNKNOWN_SESSION}) return;
      setTimeout(connect, 500);
    }};
    ws.onerror = () => {{
      // onclose will handle reconnect
    }};
  }}

  function postMessage(message) {{
    const data = (typeof message === "string") ? message : JSON.stringify(message);
    if (ws && ws.readyState === WebSocket.OPEN) {{
      ws.send(data);
    }} else {{
      pending.push(data);
    }}
  }}

  window[{json.dumps(CHANNEL_NAME)}] = {{ postMessage, sessionId }};
  connect();
}})();
"""
