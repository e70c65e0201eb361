"""
oeee-bridge: session and embedded-content bridge for oeee.cafe clients.
"""

__version__ = "0.1.0"
