"""JSON codec for Jupyter terminal frames.

Every frame on the terminal WebSocket is a JSON array whose first
element is a string tag and whose remaining elements are the payload::

    ["stdin", "ls\\n"]
    ["stdout", "file1  file2\\r\\n"]
    ["setup", {}]
    ["disconnect", 1]
"""

from __future__ import annotations

import json
import logging
from typing import Any

from jupyterm.domain.models import MessageType, WireMessage
from jupyterm.errors import EncodingError, ProtocolError

logger = logging.getLogger(__name__)


def encode(message_type: MessageType | str, payload: Any) -> bytes:
    """Serialize ``[type, payload]`` as UTF-8 JSON.

    Raises:
        EncodingError: If the payload cannot survive a JSON round trip
            (unserialisable objects, NaN/Infinity, lone surrogates).
    """
    tag = message_type.value if isinstance(message_type, MessageType) else message_type
    if tag == MessageType.UNRECOGNIZED.value:
        raise EncodingError("cannot encode an unrecognized message type")
    try:
        text = json.dumps([tag, payload], ensure_ascii=False, allow_nan=False)
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(f"payload is not valid UTF-8 text: {e}") from e
    except (TypeError, ValueError) as e:
        raise EncodingError(f"payload is not JSON-serialisable: {e}") from e


def decode(data: bytes | str) -> WireMessage:
    """Parse one frame into a WireMessage.

    Short frames never fail: a bare tag decodes with an empty payload
    and an empty array decodes as an UNRECOGNIZED message. The relay
    decides what a short frame means.

    Raises:
        ProtocolError: If the frame is not JSON, not an array, or its
            tag is not a string.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        msg = json.loads(text)
    except ValueError as e:
        raise ProtocolError(f"failed to parse message: {e}") from e

    if not isinstance(msg, list):
        raise ProtocolError(f"expected a JSON array, got {type(msg).__name__}")
    if not msg:
        return WireMessage(type=MessageType.UNRECOGNIZED, raw_type="")

    tag = msg[0]
    if not isinstance(tag, str):
        raise ProtocolError(f"message tag must be a string, got {type(tag).__name__}")

    return WireMessage(
        type=MessageType.from_tag(tag),
        raw_type=tag,
        payload=tuple(msg[1:]),
    )
