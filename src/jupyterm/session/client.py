"""ClientSession -- the aggregate owning one terminal and its connection.

A session is created with an endpoint and an optional token, gets its
terminal name bound exactly once (by provisioning or by attaching), is
connected exactly once, and is torn down exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TextIO

from jupyterm.domain.models import Endpoint
from jupyterm.errors import SessionError, TeardownError
from jupyterm.relay.duplex import DuplexRelay
from jupyterm.terminal.provisioner import TerminalProvisioner
from jupyterm.transport.base import Connection

logger = logging.getLogger(__name__)

Connector = Callable[[Endpoint, str, "str | None"], Awaitable[Connection]]

DEFAULT_TEARDOWN_COMMAND = "exit"
DEFAULT_TEARDOWN_DELAY = 0.5
DEFAULT_CLOSE_TIMEOUT = 1.0


async def _websocket_connector(endpoint: Endpoint, name: str, token: str | None) -> Connection:
    from jupyterm.transport.websocket import connect
    return await connect(endpoint, name, token)


class ClientSession:
    """One terminal on one Jupyter server.

    The connection is owned exclusively by the session; callers talk to
    the terminal through the relay returned by ``connect()``.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        token: str | None = None,
        provisioner: TerminalProvisioner | None = None,
        connector: Connector | None = None,
        output: TextIO | None = None,
        teardown_command: str = DEFAULT_TEARDOWN_COMMAND,
        teardown_delay: float = DEFAULT_TEARDOWN_DELAY,
        close_timeout: float = DEFAULT_CLOSE_TIMEOUT,
    ) -> None:
        self._endpoint = endpoint
        self._token = token or None
        if provisioner is None:
            provisioner = TerminalProvisioner(endpoint, self._token)
        self._provisioner = provisioner
        self._connector = connector if connector is not None else _websocket_connector
        self._output = output
        self._teardown_command = teardown_command
        self._teardown_delay = teardown_delay
        self._close_timeout = close_timeout
        self._terminal_name: str | None = None
        self._connection: Connection | None = None
        self._relay: DuplexRelay | None = None
        self._closed = False

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def terminal_name(self) -> str | None:
        return self._terminal_name

    @property
    def relay(self) -> DuplexRelay | None:
        return self._relay

    @property
    def is_connected(self) -> bool:
        return self._connection is not None and not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    def attach(self, terminal_name: str) -> None:
        """Bind an existing terminal instead of provisioning a new one."""
        if not terminal_name:
            raise SessionError("terminal name must not be empty")
        self._bind(terminal_name)
        logger.info("Using existing terminal %s", terminal_name)

    async def provision(self) -> str:
        """Create a new terminal on the server and bind it.

        Raises:
            SessionError: If a terminal is already bound.
            ProvisionError: If the server refuses.
        """
        if self._terminal_name is not None:
            raise SessionError(f"session already bound to terminal {self._terminal_name}")
        name = await self._provisioner.provision()
        self._bind(name)
        return name

    def _bind(self, terminal_name: str) -> None:
        if self._terminal_name is not None:
            raise SessionError(f"session already bound to terminal {self._terminal_name}")
        self._terminal_name = terminal_name

    async def connect(self) -> DuplexRelay:
        """Open the terminal connection and return its relay.

        The relay is not started; call ``relay.start()`` to begin
        receiving.

        Raises:
            SessionError: If no terminal is bound, or the session was
                already connected or closed.
            ConnectError: If the connection cannot be established.
        """
        if self._terminal_name is None:
            raise SessionError("no terminal bound; provision or attach first")
        if self._connection is not None or self._closed:
            raise SessionError("session already connected")
        self._connection = await self._connector(self._endpoint, self._terminal_name, self._token)
        self._relay = DuplexRelay(self._connection, output=self._output)
        return self._relay

    async def close(self) -> None:
        """Tear the session down.

        Sends the teardown command, gives the remote process a moment to
        react, closes the connection and stops the relay tasks. Calling
        it again, or before ``connect()``, does nothing. Failures are
        logged, never raised.
        """
        if self._closed:
            return
        self._closed = True
        if self._connection is None or self._relay is None:
            return

        if self._connection.is_open:
            try:
                await self._relay.send(self._teardown_command)
                await asyncio.sleep(self._teardown_delay)
            except Exception as e:
                logger.warning("%s", TeardownError(f"failed to send {self._teardown_command!r}: {e}"))

        try:
            await self._connection.close()
        except Exception as e:
            logger.warning("%s", TeardownError(f"failed to close connection: {e}"))

        await self._relay.wait_closed(timeout=self._close_timeout)
        logger.debug("Session for terminal %s closed", self._terminal_name)

    async def __aenter__(self) -> ClientSession:
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()
