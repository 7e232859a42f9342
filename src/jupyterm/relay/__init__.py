"""Duplex relay between the terminal connection and the local console."""

from jupyterm.relay.duplex import DuplexRelay, RelayState

__all__ = ["DuplexRelay", "RelayState"]
