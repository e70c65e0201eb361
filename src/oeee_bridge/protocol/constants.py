# Bridge message type constants (stringly-typed protocol; canonical list lives here)

# embedded content -> native
T_DRAWING_COMPLETE = "drawing_complete"

# Name the page sees on `window` (window.OeeeCafe.postMessage(...)).
CHANNEL_NAME = "OeeeCafe"

# Run in the page once a drawing has been handed off to native code.
JS_CLEAR_DRAWING_SESSION = "Neo.painter.clearSession();"

# Paths on the backend that are loaded into the surface, not called as JSON.
DRAW_MOBILE_PATH = "/draw/mobile"
PUBLISH_PATH = "/posts/publish"

# Channel close code for a session with no bridge registered; the shim stops reconnecting.
WS_CLOSE_UNKNOWN_SESSION = 4404
