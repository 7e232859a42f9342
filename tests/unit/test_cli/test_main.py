"""Tests for the jupyterm command-line entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from jupyterm.cli import main, parse_args
from jupyterm.errors import ConnectError, ProvisionError


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("JUPYTER_TOKEN", raising=False)


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args([])
        assert args.url is None
        assert args.token is None
        assert args.term is None
        assert args.command == []
        assert args.verbose is False

    def test_trailing_words_form_command(self) -> None:
        args = parse_args(["--url", "http://h:1", "git", "status", "--short"])
        assert args.url == "http://h:1"
        assert args.command == ["git", "status", "--short"]

    def test_attach_flags(self) -> None:
        args = parse_args(["--term", "3", "--token", "abc"])
        assert args.term == "3"
        assert args.token == "abc"


class TestMain:
    def test_success_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("jupyterm.cli._run_session", AsyncMock(return_value=0)):
            with pytest.raises(SystemExit) as exc_info:
                main(["ls"])
        assert exc_info.value.code == 0
        assert "Goodbye!" in capsys.readouterr().out

    def test_provision_error_exits_nonzero(self) -> None:
        error = ProvisionError("failed to create terminal: 500 - boom", status_code=500, body="boom")
        with patch("jupyterm.cli._run_session", AsyncMock(side_effect=error)):
            with pytest.raises(SystemExit) as exc_info:
                main([])
        assert exc_info.value.code == 1

    def test_connect_error_exits_nonzero(self) -> None:
        with patch("jupyterm.cli._run_session", AsyncMock(side_effect=ConnectError("refused"))):
            with pytest.raises(SystemExit) as exc_info:
                main([])
        assert exc_info.value.code == 1

    def test_invalid_url_exits_with_usage_error(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--url", "ftp://nowhere", "ls"])
        assert exc_info.value.code == 2

    def test_flags_override_settings(self) -> None:
        run = AsyncMock(return_value=0)
        with patch("jupyterm.session.controller.SessionController.run", run):
            with pytest.raises(SystemExit):
                main(["--url", "http://h:1/", "--term", "7", "echo", "hi"])
        run.assert_awaited_once_with(command=["echo", "hi"], terminal_name="7")

    def test_invalid_env_setting_exits_with_usage_error(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("JUPYTERM_TIMING__OUTPUT_QUIET", "0")
        run = AsyncMock(return_value=0)
        with patch("jupyterm.cli._run_session", run):
            with pytest.raises(SystemExit) as exc_info:
                main(["ls"])
        assert exc_info.value.code == 2
        assert "Invalid configuration" in capsys.readouterr().err
        run.assert_not_called()

    def test_malformed_yaml_exits_with_usage_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config = tmp_path / "broken.yaml"
        config.write_text("server: [unclosed\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(config), "ls"])
        assert exc_info.value.code == 2
        assert "Invalid configuration" in capsys.readouterr().err
