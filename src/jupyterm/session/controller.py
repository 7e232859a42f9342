"""Top-level orchestration of a terminal session.

Sequence: resolve the terminal (attach or provision) -> connect ->
start the relay -> run the input loop -> teardown.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import Awaitable, Callable, TextIO

from jupyterm.config.settings import TimingConfig
from jupyterm.errors import EncodingError, SendError
from jupyterm.relay.duplex import DuplexRelay
from jupyterm.session.client import ClientSession

logger = logging.getLogger(__name__)

LineReader = Callable[[], Awaitable[str]]

BANNER = (
    "\nJupyter Terminal Shell\n"
    "Type '{exit_keyword}' or press Ctrl+C to quit\n"
    "----------------------------------------\n"
)
PROMPT = "\n$ "


class StdinLineReader:
    """Reads local input lines on a daemon thread that feeds a queue.

    The blocking ``readline`` stays off the loop's default executor,
    which ``asyncio.run`` joins on shutdown. A pending read can therefore
    be cancelled (Ctrl+C) without waiting for the user to press Enter.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdin
        self._queue: asyncio.Queue[str] | None = None
        self._thread: threading.Thread | None = None

    async def __call__(self) -> str:
        """Return the next line, or an empty string at end of input."""
        if self._thread is None:
            self._start(asyncio.get_running_loop())
        return await self._queue.get()

    def _start(self, loop: asyncio.AbstractEventLoop) -> None:
        self._queue = asyncio.Queue()
        self._thread = threading.Thread(
            target=self._pump, args=(loop,), name="stdin-reader", daemon=True
        )
        self._thread.start()

    def _pump(self, loop: asyncio.AbstractEventLoop) -> None:
        while True:
            try:
                line = self._stream.readline()
            except (OSError, ValueError) as e:
                logger.debug("Local input closed: %s", e)
                line = ""
            try:
                loop.call_soon_threadsafe(self._queue.put_nowait, line)
            except RuntimeError:
                return
            if not line:
                return


class SessionController:
    """Drives one ClientSession from startup to teardown.

    Coordinates: resolve terminal -> connect -> relay -> input -> close
    """

    def __init__(
        self,
        session: ClientSession,
        timing: TimingConfig | None = None,
        exit_keyword: str = "exit",
        read_line: LineReader | None = None,
        output: TextIO | None = None,
    ) -> None:
        self._session = session
        self._timing = timing or TimingConfig()
        self._exit_keyword = exit_keyword
        self._read_line = read_line if read_line is not None else StdinLineReader()
        self._output = output if output is not None else sys.stdout

    async def run(self, command: list[str] | None = None, terminal_name: str | None = None) -> int:
        """Run the session and return a process exit code.

        Args:
            command: Trailing command-line words. Non-empty selects
                single-shot mode; empty or None selects interactive mode.
            terminal_name: Existing terminal to attach to. When given the
                provisioner is never called.

        Raises:
            ProvisionError: If a new terminal cannot be created.
            ConnectError: If the WebSocket cannot be opened.
        """
        await self._resolve_terminal(terminal_name)
        relay = await self._session.connect()
        relay.start()

        try:
            if command:
                return await self._single_shot(relay, command)
            return await self._interactive(relay)
        finally:
            await self._session.close()

    async def _resolve_terminal(self, terminal_name: str | None) -> None:
        if terminal_name:
            self._session.attach(terminal_name)
            self._print(f"Using existing terminal: {terminal_name}\n")
        else:
            name = await self._session.provision()
            self._print(f"Created terminal: {name}\n")

    async def _single_shot(self, relay: DuplexRelay, command: list[str]) -> int:
        """Send one command and wait for its output to settle."""
        cmd = " ".join(command)
        try:
            await relay.send(cmd)
        except (SendError, EncodingError) as e:
            logger.error("Failed to send command: %s", e)
            return 1
        await relay.wait_quiet(
            self._timing.output_quiet,
            minimum=self._timing.command_wait,
            timeout=self._timing.command_max_wait,
        )
        return 0

    async def _interactive(self, relay: DuplexRelay) -> int:
        """Read-send loop over local input."""
        if not await relay.wait_ready(self._timing.startup_grace):
            logger.debug("No setup signal within %.1fs, continuing", self._timing.startup_grace)

        self._print(BANNER.format(exit_keyword=self._exit_keyword))

        while True:
            self._print(PROMPT)

            line = await self._read_line()
            if not line:
                break
            cmd = line.rstrip("\r\n")

            if cmd == self._exit_keyword:
                break
            if relay.is_terminated:
                logger.warning("Terminal is gone, not sending input")
                break

            try:
                await relay.send(cmd)
            except EncodingError as e:
                logger.warning("Skipping input that cannot be encoded: %s", e)
                continue
            except SendError as e:
                logger.error("failed to send command: %s", e)
                return 1

            await asyncio.sleep(self._timing.input_pause)

        return 0

    def _print(self, text: str) -> None:
        self._output.write(text)
        self._output.flush()
