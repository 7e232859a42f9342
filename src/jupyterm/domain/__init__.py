"""Domain models for jupyterm.

Value objects shared by every layer: the server endpoint and the tagged
terminal messages. All models use Pydantic v2 for validation.
"""

from jupyterm.domain.models import Endpoint, MessageType, WireMessage

__all__ = ["Endpoint", "MessageType", "WireMessage"]
