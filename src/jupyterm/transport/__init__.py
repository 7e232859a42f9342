"""Transport layer for jupyterm.

Public API:
    Connection -- Abstract bidirectional frame connection
    WebSocketConnection -- ``websockets``-backed implementation
    connect -- Open the terminal WebSocket for a terminal name
"""

from jupyterm.transport.base import Connection

__all__ = ["Connection", "WebSocketConnection", "connect"]


def __getattr__(name: str) -> object:
    """Lazy import for the WebSocket implementation."""
    if name in ("WebSocketConnection", "connect"):
        from jupyterm.transport import websocket
        return getattr(websocket, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
