"""Abstract base class for the terminal transport.

The relay and session only talk to this interface, so tests can drive
them with scripted in-memory connections instead of a real WebSocket.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Connection(ABC):
    """A bidirectional, message-framed connection to one terminal.

    ``send`` and ``receive`` may be awaited concurrently from different
    tasks. Implementations must keep concurrent sends from interleaving
    and must not let a pending receive block a send.

    Example usage::

        async with await connect(endpoint, "1", token) as conn:
            await conn.send(b'["stdin", "ls\\n"]')
            frame = await conn.receive()
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    async def send(self, data: bytes | str) -> None:
        """Write one frame.

        Raises:
            SendError: If the frame cannot be written.
        """
        ...

    @abstractmethod
    async def receive(self) -> bytes | str:
        """Wait for the next frame.

        Raises:
            ConnectionClosedError: Once the connection has closed. The
                ``abnormal`` flag tells an unexpected drop from a clean
                close.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        ...

    async def __aenter__(self) -> Connection:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()
