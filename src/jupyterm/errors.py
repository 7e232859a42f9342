"""Exception hierarchy for jupyterm.

Startup failures (provisioning, connecting) are fatal to the CLI. Frame
level failures on inbound traffic are dropped by the relay. Teardown
failures are logged and never escalated.
"""

from __future__ import annotations


class JupytermError(Exception):
    """Base class for all jupyterm errors."""


class ProtocolError(JupytermError):
    """Raised when a wire frame or server response violates the protocol."""


class EncodingError(ProtocolError):
    """Raised when an outbound payload cannot round-trip through JSON."""


class ProvisionError(JupytermError):
    """Raised when the server refuses to create a terminal."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MissingIdentifierError(ProvisionError, ProtocolError):
    """Raised when a successful provisioning response carries no terminal name."""


class ConnectError(JupytermError):
    """Raised when the WebSocket connection cannot be established."""


class SendError(JupytermError):
    """Raised when writing a frame to the connection fails."""


class ConnectionClosedError(JupytermError):
    """Raised by ``receive()`` once the connection has closed.

    ``abnormal`` is True when the peer went away without a normal or
    going-away close code.
    """

    def __init__(self, message: str, code: int | None = None, abnormal: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.abnormal = abnormal


class SessionError(JupytermError):
    """Raised when a ClientSession is driven out of lifecycle order."""


class TeardownError(JupytermError):
    """Wraps a failure during session teardown. Logged, never raised to callers."""
