"""Terminal provisioning via the Jupyter REST API."""

from jupyterm.terminal.provisioner import TerminalProvisioner

__all__ = ["TerminalProvisioner"]
