"""Tests for the ClientSession lifecycle."""

from __future__ import annotations

import io
from unittest.mock import AsyncMock

import pytest

from jupyterm.domain.models import Endpoint
from jupyterm.errors import ConnectError, SessionError
from jupyterm.session.client import ClientSession
from jupyterm.terminal.provisioner import TerminalProvisioner


@pytest.fixture
def mock_provisioner() -> AsyncMock:
    prov = AsyncMock(spec=TerminalProvisioner)
    prov.provision.return_value = "9"
    return prov


def _session(endpoint: Endpoint, provisioner, connection=None, **kwargs) -> tuple[ClientSession, AsyncMock]:
    connector = AsyncMock(return_value=connection)
    session = ClientSession(
        endpoint,
        token="tok",
        provisioner=provisioner,
        connector=connector,
        output=io.StringIO(),
        teardown_delay=0.0,
        close_timeout=0.5,
        **kwargs,
    )
    return session, connector


class TestBinding:
    @pytest.mark.asyncio
    async def test_provision_binds_name(self, endpoint: Endpoint, mock_provisioner: AsyncMock) -> None:
        session, _ = _session(endpoint, mock_provisioner)
        assert await session.provision() == "9"
        assert session.terminal_name == "9"

    def test_attach_binds_name(self, endpoint: Endpoint, mock_provisioner: AsyncMock) -> None:
        session, _ = _session(endpoint, mock_provisioner)
        session.attach("4")
        assert session.terminal_name == "4"
        mock_provisioner.provision.assert_not_called()

    def test_attach_empty_name_rejected(self, endpoint: Endpoint, mock_provisioner: AsyncMock) -> None:
        session, _ = _session(endpoint, mock_provisioner)
        with pytest.raises(SessionError):
            session.attach("")

    @pytest.mark.asyncio
    async def test_cannot_rebind(self, endpoint: Endpoint, mock_provisioner: AsyncMock) -> None:
        session, _ = _session(endpoint, mock_provisioner)
        session.attach("4")
        with pytest.raises(SessionError):
            session.attach("5")
        with pytest.raises(SessionError):
            await session.provision()
        mock_provisioner.provision.assert_not_called()


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_requires_name(self, endpoint: Endpoint, mock_provisioner: AsyncMock) -> None:
        session, connector = _session(endpoint, mock_provisioner)
        with pytest.raises(SessionError):
            await session.connect()
        connector.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_passes_token(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        session, connector = _session(endpoint, mock_provisioner, scripted_connection())
        session.attach("4")
        relay = await session.connect()
        connector.assert_awaited_once_with(endpoint, "4", "tok")
        assert session.relay is relay
        assert session.is_connected

    @pytest.mark.asyncio
    async def test_connect_twice_is_an_error(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        session, connector = _session(endpoint, mock_provisioner, scripted_connection())
        session.attach("4")
        await session.connect()
        with pytest.raises(SessionError):
            await session.connect()
        assert connector.await_count == 1

    @pytest.mark.asyncio
    async def test_connect_error_propagates(self, endpoint: Endpoint, mock_provisioner: AsyncMock) -> None:
        session, connector = _session(endpoint, mock_provisioner)
        connector.side_effect = ConnectError("websocket dial error: refused")
        session.attach("4")
        with pytest.raises(ConnectError):
            await session.connect()
        assert not session.is_connected


class TestClose:
    @pytest.mark.asyncio
    async def test_close_before_connect_is_noop(self, endpoint: Endpoint, mock_provisioner: AsyncMock) -> None:
        session, _ = _session(endpoint, mock_provisioner)
        await session.close()
        assert session.is_closed

    @pytest.mark.asyncio
    async def test_close_sends_exit_once(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        conn = scripted_connection()
        session, _ = _session(endpoint, mock_provisioner, conn)
        session.attach("4")
        relay = await session.connect()
        relay.start()

        await session.close()
        await session.close()

        assert conn.sent == [["stdin", "exit\n"]]
        assert conn.close_count == 1
        assert relay.is_terminated

    @pytest.mark.asyncio
    async def test_custom_teardown_command(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        conn = scripted_connection()
        session, _ = _session(endpoint, mock_provisioner, conn, teardown_command="logout")
        session.attach("4")
        await session.connect()
        await session.close()
        assert conn.sent == [["stdin", "logout\n"]]

    @pytest.mark.asyncio
    async def test_close_skips_exit_when_connection_already_closed(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        conn = scripted_connection()
        session, _ = _session(endpoint, mock_provisioner, conn)
        session.attach("4")
        await session.connect()
        await conn.close()
        await session.close()
        assert conn.sent == []

    @pytest.mark.asyncio
    async def test_close_swallows_send_failure(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        conn = scripted_connection(fail_sends=True)
        session, _ = _session(endpoint, mock_provisioner, conn)
        session.attach("4")
        await session.connect()
        await session.close()
        assert conn.close_count == 1

    @pytest.mark.asyncio
    async def test_close_survives_unexpected_send_error(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        conn = scripted_connection()
        conn.send = AsyncMock(side_effect=RuntimeError("writer gone"))
        session, _ = _session(endpoint, mock_provisioner, conn)
        session.attach("4")
        await session.connect()
        await session.close()
        assert conn.close_count == 1
        assert session.is_closed

    @pytest.mark.asyncio
    async def test_connect_after_close_rejected(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        session, connector = _session(endpoint, mock_provisioner, scripted_connection())
        session.attach("4")
        await session.close()
        with pytest.raises(SessionError):
            await session.connect()
        connector.assert_not_called()

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(
        self, endpoint: Endpoint, mock_provisioner: AsyncMock, scripted_connection
    ) -> None:
        conn = scripted_connection()
        session, _ = _session(endpoint, mock_provisioner, conn)
        async with session:
            session.attach("4")
            await session.connect()
        assert conn.close_count == 1
