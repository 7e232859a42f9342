"""WebSocket transport to a Jupyter terminal.

Wraps a ``websockets`` client connection behind the Connection
interface. Reads are owned by whichever task runs the receive loop;
writes go through a lock so the input loop and teardown never interleave
frames.
"""

from __future__ import annotations

import asyncio
import logging
import re

from websockets.asyncio.client import ClientConnection
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from jupyterm.domain.models import Endpoint
from jupyterm.errors import ConnectError, ConnectionClosedError, SendError
from jupyterm.transport.base import Connection

logger = logging.getLogger(__name__)

# Close codes that are part of an orderly shutdown
NORMAL_CLOSURE = 1000
GOING_AWAY = 1001
EXPECTED_CLOSE_CODES = frozenset({NORMAL_CLOSURE, GOING_AWAY})

_TOKEN_RE = re.compile(r"(token=)[^&]+")


def redact_token(url: str) -> str:
    """Mask the token query parameter so URLs are safe to log."""
    return _TOKEN_RE.sub(r"\1***", url)


def build_websocket_url(endpoint: Endpoint, name: str, token: str | None = None) -> str:
    return endpoint.websocket_url(name, token)


class WebSocketConnection(Connection):
    """Connection backed by a ``websockets`` client connection."""

    def __init__(self, ws: ClientConnection, url: str = "") -> None:
        self._ws = ws
        self._url = url
        self._write_lock = asyncio.Lock()
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed and self._ws.state is State.OPEN

    @property
    def url(self) -> str:
        return self._url

    async def send(self, data: bytes | str) -> None:
        """Send one text frame."""
        if self._closed:
            raise SendError("connection is closed")
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8")
        async with self._write_lock:
            try:
                await self._ws.send(data)
            except (ConnectionClosed, OSError) as e:
                raise SendError(f"failed to send frame: {e}") from e

    async def receive(self) -> bytes | str:
        """Return the next frame, text or binary."""
        try:
            return await self._ws.recv()
        except ConnectionClosed as e:
            code = e.rcvd.code if e.rcvd is not None else None
            abnormal = code not in EXPECTED_CLOSE_CODES
            raise ConnectionClosedError(
                f"connection closed: {e}", code=code, abnormal=abnormal
            ) from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._ws.close()
        logger.debug("WebSocket closed")


async def connect(endpoint: Endpoint, name: str, token: str | None = None) -> WebSocketConnection:
    """Open the terminal WebSocket for ``name``.

    No open timeout is applied and failures are not retried.

    Raises:
        ConnectError: If the handshake fails for any reason.
    """
    url = build_websocket_url(endpoint, name, token)
    logger.info("Connecting to: %s", redact_token(url))
    try:
        ws = await ws_connect(url, open_timeout=None)
    except (WebSocketException, OSError) as e:
        raise ConnectError(f"websocket dial error: {e}") from e
    return WebSocketConnection(ws, url=url)
