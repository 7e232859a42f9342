"""Shared test fixtures for the jupyterm test suite.

Provides a scripted in-memory Connection, a fast TimingConfig and
common endpoint fixtures.
"""

from __future__ import annotations

import asyncio
import io
import json
from dataclasses import dataclass
from typing import Any

import pytest

from jupyterm.config.settings import TimingConfig
from jupyterm.domain.models import Endpoint
from jupyterm.errors import ConnectionClosedError, SendError
from jupyterm.transport.base import Connection


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pause:
    """Scripted gap: ``receive()`` sleeps this long before the next frame."""

    seconds: float


class ScriptedConnection(Connection):
    """A Connection that replays a fixed list of inbound frames.

    Each scripted item is a frame (str/bytes/list), a ``Pause`` or an
    exception to raise from ``receive()``. Lists are JSON-encoded. Once the script is
    exhausted, ``receive()`` blocks until ``close()`` and then reports a
    normal closure.
    """

    def __init__(self, frames: list[Any] | None = None, fail_sends: bool = False) -> None:
        self._frames = list(frames or [])
        self._fail_sends = fail_sends
        self._closed = asyncio.Event()
        self.sent: list[Any] = []
        self.receive_count = 0
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        return not self._closed.is_set()

    async def send(self, data: bytes | str) -> None:
        if self._fail_sends:
            raise SendError("broken pipe")
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        self.sent.append(json.loads(data))

    async def receive(self) -> bytes | str:
        self.receive_count += 1
        while self._frames and isinstance(self._frames[0], Pause):
            await asyncio.sleep(self._frames.pop(0).seconds)
        if self._frames:
            item = self._frames.pop(0)
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, list):
                return json.dumps(item)
            return item
        await self._closed.wait()
        raise ConnectionClosedError("connection closed", code=1000, abnormal=False)

    async def close(self) -> None:
        self.close_count += 1
        self._closed.set()


@pytest.fixture
def scripted_connection() -> type[ScriptedConnection]:
    """The ScriptedConnection class, for tests that build their own script."""
    return ScriptedConnection


@pytest.fixture
def pause() -> type[Pause]:
    """The Pause marker, for scripts that need a gap between frames."""
    return Pause


# ---------------------------------------------------------------------------
# Value fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(url="http://localhost:8888/")


@pytest.fixture
def secure_endpoint() -> Endpoint:
    return Endpoint(url="https://hub.example.com/user/alice")


@pytest.fixture
def fast_timing() -> TimingConfig:
    """Timing with every wait shrunk so tests finish quickly."""
    return TimingConfig(
        startup_grace=0.05,
        command_wait=0.05,
        command_max_wait=1.0,
        output_quiet=0.01,
        input_pause=0.0,
        teardown_delay=0.0,
        close_timeout=0.5,
    )


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()
