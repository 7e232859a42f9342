"""Session lifecycle: the ClientSession aggregate and its controller.

Public API:
    ClientSession -- Owns one terminal and its connection
    SessionController -- Drives provisioning, relaying and teardown
"""

from jupyterm.session.client import ClientSession
from jupyterm.session.controller import SessionController

__all__ = ["ClientSession", "SessionController"]
