"""Duplex relay between a terminal connection and the local console.

The relay runs two background tasks:

- the receive loop reads frames from the connection, decodes them and
  hands them to a queue. It stops after a ``disconnect`` frame or when
  the transport closes.
- the output pump drains the queue and performs the side effects:
  writing ``stdout`` text to the local output stream and tracking the
  ``setup`` readiness signal.

Sending runs on the caller's task and only touches the connection's
write path, so it never waits behind a pending receive.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import sys
from typing import TextIO

from jupyterm.domain.models import MessageType, WireMessage
from jupyterm.errors import ConnectionClosedError, ProtocolError
from jupyterm.protocol import codec
from jupyterm.transport.base import Connection

logger = logging.getLogger(__name__)

QUIET_POLL_INTERVAL = 0.05


class RelayState(str, enum.Enum):
    """Lifecycle of the receive loop."""

    IDLE = "idle"
    RUNNING = "running"
    TERMINATED = "terminated"


class DuplexRelay:
    """Relays frames between a Connection and a local text stream."""

    def __init__(self, connection: Connection, output: TextIO | None = None) -> None:
        self._connection = connection
        self._output = output if output is not None else sys.stdout
        self._queue: asyncio.Queue[WireMessage | None] = asyncio.Queue()
        self._state = RelayState.IDLE
        self._ready = asyncio.Event()
        self._terminated = asyncio.Event()
        self._last_output: float | None = None
        self._receive_task: asyncio.Task[None] | None = None
        self._pump_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> RelayState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def is_terminated(self) -> bool:
        return self._terminated.is_set()

    @property
    def last_output(self) -> float | None:
        """Event-loop time of the most recent stdout write, if any."""
        return self._last_output

    # ------------------------------------------------------------------
    # Task management
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Spawn the receive loop and the output pump."""
        if self._receive_task is not None:
            return
        self._receive_task = asyncio.create_task(self.run(), name="relay-receive")
        self._pump_task = asyncio.create_task(self.pump(), name="relay-pump")

    async def wait_closed(self, timeout: float | None = None) -> None:
        """Wait for both tasks to finish, cancelling them after ``timeout``."""
        tasks = [t for t in (self._receive_task, self._pump_task) if t is not None]
        if not tasks:
            return
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.debug("Cancelled %d relay task(s) still running", len(pending))
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error("Relay task %s failed: %s", task.get_name(), task.exception())

    # ------------------------------------------------------------------
    # Receive side
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Receive loop. Returns once the relay is terminated."""
        self._state = RelayState.RUNNING
        try:
            while self._state is RelayState.RUNNING:
                try:
                    frame = await self._connection.receive()
                except ConnectionClosedError as e:
                    if e.abnormal:
                        logger.error("websocket error: %s", e)
                    else:
                        logger.debug("Connection closed (code=%s)", e.code)
                    break
                except OSError as e:
                    logger.error("websocket read error: %s", e)
                    break

                try:
                    message = codec.decode(frame)
                except ProtocolError as e:
                    logger.warning("Dropping frame: %s", e)
                    continue

                if message.type is MessageType.DISCONNECT:
                    self._state = RelayState.TERMINATED
                await self._queue.put(message)
        finally:
            self._state = RelayState.TERMINATED
            self._terminated.set()
            self._queue.put_nowait(None)

    async def pump(self) -> None:
        """Drain decoded messages and dispatch them until the loop ends."""
        while True:
            message = await self._queue.get()
            if message is None:
                break
            self.dispatch(message)

    def dispatch(self, message: WireMessage) -> None:
        """Apply the side effect of one inbound message.

        ``setup`` and ``disconnect`` are signals and need no payload.
        Every other message needs one; bare tags are dropped.
        """
        if message.type is MessageType.SETUP:
            logger.info("Terminal ready")
            self._ready.set()
        elif message.type is MessageType.DISCONNECT:
            logger.info("Terminal disconnected")
        elif message.type is MessageType.STDOUT:
            text = message.text
            if text is None:
                logger.debug("Dropping stdout frame without text payload")
                return
            self._output.write(text)
            self._output.flush()
            self._last_output = asyncio.get_running_loop().time()
        else:
            logger.debug("Ignoring %r message", message.raw_type)

    # ------------------------------------------------------------------
    # Send side
    # ------------------------------------------------------------------

    async def send(self, text: str) -> None:
        """Send a line of input to the remote shell.

        A trailing newline is appended when missing, since the shell
        reads line-buffered input.

        Raises:
            EncodingError: If the text cannot be encoded as a frame.
            SendError: If the connection rejects the write.
        """
        if not text.endswith("\n"):
            text += "\n"
        await self._connection.send(codec.encode(MessageType.STDIN, text))
        logger.debug("Sent input: %r", text[:50])

    # ------------------------------------------------------------------
    # Synchronisation helpers
    # ------------------------------------------------------------------

    async def wait_ready(self, timeout: float) -> bool:
        """Wait for the ``setup`` signal, at most ``timeout`` seconds.

        Returns True if the terminal reported ready.
        """
        waiters = [
            asyncio.ensure_future(self._ready.wait()),
            asyncio.ensure_future(self._terminated.wait()),
        ]
        try:
            await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)
        return self._ready.is_set()

    async def wait_quiet(self, quiet: float, minimum: float, timeout: float) -> None:
        """Wait for command output to settle.

        Never returns before ``minimum`` seconds have passed, so a command
        that is slow to print its first line (after the shell has echoed
        it) is not cut off. After that, returns once no output has arrived
        for ``quiet`` seconds, or at ``timeout`` at the latest. Returns
        immediately when the relay terminates.
        """
        loop = asyncio.get_running_loop()
        start = loop.time()
        earliest = start + minimum
        deadline = start + max(timeout, minimum)
        while not self._terminated.is_set():
            now = loop.time()
            if now >= deadline:
                break
            if now >= earliest:
                last = self._last_output
                if last is None or now - last >= quiet:
                    break
            await asyncio.sleep(min(QUIET_POLL_INTERVAL, deadline - now))
