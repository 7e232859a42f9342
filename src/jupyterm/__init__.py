"""jupyterm -- Command-line client for Jupyter server terminals.

This package provisions (or attaches to) a terminal on a remote Jupyter
server, connects to it over a WebSocket, and relays keyboard input and
process output between the local console and the remote shell.
"""

__version__ = "0.1.0"
