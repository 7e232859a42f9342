"""Wire protocol for Jupyter terminal WebSockets."""

from jupyterm.protocol.codec import decode, encode

__all__ = ["decode", "encode"]
