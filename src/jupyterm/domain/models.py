"""Core domain models for jupyterm.

These models represent the values flowing through the client: the
server endpoint, the tagged terminal messages exchanged over the
WebSocket, and the vocabulary of message types.
"""

from __future__ import annotations

import enum
from typing import Any
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class MessageType(str, enum.Enum):
    """Tag carried in the first element of every terminal frame."""

    STDIN = "stdin"  # Keyboard input sent to the shell
    STDOUT = "stdout"  # Process output from the shell
    SETUP = "setup"  # Terminal is ready
    DISCONNECT = "disconnect"  # Terminal went away
    UNRECOGNIZED = "unrecognized"  # Any server-defined tag we don't handle

    @classmethod
    def from_tag(cls, tag: str) -> MessageType:
        """Map a wire tag onto a known type, falling back to UNRECOGNIZED."""
        try:
            member = cls(tag)
        except ValueError:
            return cls.UNRECOGNIZED
        return cls.UNRECOGNIZED if member is cls.UNRECOGNIZED else member


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


class Endpoint(BaseModel):
    """Base address of a Jupyter server.

    The URL is normalized by stripping any trailing ``/`` so paths can be
    appended safely.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Server base URL, e.g. http://localhost:8888")

    @field_validator("url")
    @classmethod
    def _normalize(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https"):
            raise ValueError(f"unsupported scheme {parts.scheme!r}, expected http or https")
        if not parts.netloc:
            raise ValueError(f"missing host in {value!r}")
        return value

    @property
    def terminals_url(self) -> str:
        """REST collection used to create terminals."""
        return f"{self.url}/api/terminals"

    def websocket_url(self, name: str, token: str | None = None) -> str:
        """Build the terminal WebSocket URL for ``name``.

        https maps to wss and http to ws. The token, when present, travels
        as a query parameter since browsers cannot set headers on the
        WebSocket handshake.
        """
        parts = urlsplit(self.url)
        scheme = "wss" if parts.scheme == "https" else "ws"
        path = f"{parts.path}/terminals/websocket/{quote(name, safe='')}"
        query = urlencode({"token": token}) if token else ""
        return urlunsplit((scheme, parts.netloc, path, query, ""))

    def __str__(self) -> str:
        return self.url


# ---------------------------------------------------------------------------
# Wire messages
# ---------------------------------------------------------------------------


class WireMessage(BaseModel):
    """A decoded terminal frame: ``[type, payload...]``."""

    model_config = ConfigDict(frozen=True)

    type: MessageType = Field(description="Known message type or UNRECOGNIZED")
    raw_type: str = Field(description="The tag exactly as it appeared on the wire")
    payload: tuple[Any, ...] = Field(default=(), description="Elements following the tag")

    @property
    def text(self) -> str | None:
        """First payload element when it is a string, else None."""
        if self.payload and isinstance(self.payload[0], str):
            return self.payload[0]
        return None

    def as_list(self) -> list[Any]:
        return [self.raw_type, *self.payload]
