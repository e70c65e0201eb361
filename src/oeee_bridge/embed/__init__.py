from .bridge import BridgeState, DrawRequest, EmbeddedContentBridge, cookie_string
from .surface import BrowserSurface

__all__ = [
    "BridgeState",
    "BrowserSurface",
    "DrawRequest",
    "EmbeddedContentBridge",
    "cookie_string",
]
