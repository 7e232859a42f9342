"""Command-line interface for jupyterm.

Opens a terminal on a Jupyter server and either runs a single command
(trailing arguments) or drops into an interactive read-send loop.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from jupyterm.errors import ConnectError, ProvisionError, SessionError

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="jupyterm",
        description="Interactive client for Jupyter server terminals",
    )
    parser.add_argument(
        "--url", type=str, default=None,
        help="Jupyter server URL (default: http://localhost:8888)",
    )
    parser.add_argument(
        "--token", type=str, default=None,
        help="Jupyter authentication token (optional)",
    )
    parser.add_argument(
        "--term", type=str, default=None,
        help="Existing terminal ID (optional)",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/jupyterm.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "command", nargs=argparse.REMAINDER,
        help="Command to run once; omit for an interactive shell",
    )
    return parser.parse_args(argv)


async def _run_session(settings, args) -> int:
    """Build the session from settings and drive it to completion."""
    from jupyterm.domain.models import Endpoint
    from jupyterm.session.client import ClientSession
    from jupyterm.session.controller import SessionController

    server = settings.server
    url = args.url if args.url is not None else server.url
    token = args.token if args.token is not None else server.token.get_secret_value()
    terminal = args.term if args.term is not None else server.terminal

    session = ClientSession(
        endpoint=Endpoint(url=url),
        token=token,
        teardown_command=settings.session.teardown_command,
        teardown_delay=settings.timing.teardown_delay,
        close_timeout=settings.timing.close_timeout,
    )
    controller = SessionController(
        session=session,
        timing=settings.timing,
        exit_keyword=settings.session.exit_keyword,
    )
    return await controller.run(command=args.command, terminal_name=terminal or None)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the jupyterm CLI."""
    args = parse_args(argv)

    import yaml
    from pydantic import ValidationError

    from jupyterm.config.settings import load_settings
    from jupyterm.utils.logging import setup_logging

    try:
        settings = load_settings(args.config)
    except (ValidationError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        code = asyncio.run(_run_session(settings, args))
    except ProvisionError as e:
        logger.error("Failed to create terminal: %s", e)
        sys.exit(1)
    except ConnectError as e:
        logger.error("Failed to connect: %s", e)
        sys.exit(1)
    except (SessionError, ValidationError) as e:
        logger.error("Invalid session settings: %s", e)
        sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)

    print("\nGoodbye!")
    sys.exit(code)


if __name__ == "__main__":
    main()
