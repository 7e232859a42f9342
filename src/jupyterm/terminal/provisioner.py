"""Terminal provisioning over the Jupyter REST API.

Creates a new terminal with ``POST /api/terminals`` and returns the
terminal name the server assigned.
"""

from __future__ import annotations

import logging

import httpx

from jupyterm.domain.models import Endpoint
from jupyterm.errors import MissingIdentifierError, ProvisionError

logger = logging.getLogger(__name__)

# Jupyter Server answers 200, older notebook servers answer 201
SUCCESS_STATUSES = frozenset({httpx.codes.OK, httpx.codes.CREATED})


class TerminalProvisioner:
    """Allocates terminals on a Jupyter server."""

    def __init__(
        self,
        endpoint: Endpoint,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._token = token or None
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {"Authorization": f"token {self._token}"}
        return {}

    async def provision(self) -> str:
        """Create a terminal and return its name.

        No timeout is applied; a server that never answers blocks the
        caller.

        Raises:
            ProvisionError: On a non-success status or transport failure.
            MissingIdentifierError: If the response has no ``name`` field.
        """
        url = self._endpoint.terminals_url
        async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
            try:
                resp = await client.post(url, headers=self._headers())
            except httpx.HTTPError as e:
                raise ProvisionError(f"failed to create terminal: {e}") from e

        if resp.status_code not in SUCCESS_STATUSES:
            status = f"{resp.status_code} {resp.reason_phrase}".strip()
            raise ProvisionError(
                f"failed to create terminal: {status} - {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            result = resp.json()
        except ValueError as e:
            raise MissingIdentifierError(
                "terminal ID not found in response",
                status_code=resp.status_code,
                body=resp.text,
            ) from e

        name = result.get("name") if isinstance(result, dict) else None
        if not isinstance(name, str) or not name:
            raise MissingIdentifierError(
                "terminal ID not found in response",
                status_code=resp.status_code,
                body=resp.text,
            )

        logger.info("Created terminal %s on %s", name, self._endpoint)
        return name
