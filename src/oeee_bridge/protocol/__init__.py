from .constants import (
    CHANNEL_NAME,
    DRAW_MOBILE_PATH,
    JS_CLEAR_DRAWING_SESSION,
    PUBLISH_PATH,
    T_DRAWING_COMPLETE,
    WS_CLOSE_UNKNOWN_SESSION,
)
from .messages import BridgeMessage, DrawingComplete, Ignored, decode_bridge_message

__all__ = [
    "CHANNEL_NAME",
    "DRAW_MOBILE_PATH",
    "JS_CLEAR_DRAWING_SESSION",
    "PUBLISH_PATH",
    "T_DRAWING_COMPLETE",
    "WS_CLOSE_UNKNOWN_SESSION",
    "BridgeMessage",
    "DrawingComplete",
    "Ignored",
    "decode_bridge_message",
]
