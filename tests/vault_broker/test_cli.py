"""Tests for the command line entry point."""

import json
import logging
import sys
from unittest.mock import AsyncMock, patch

import pytest

from vault_broker.__main__ import (
    EXIT_AUTH,
    EXIT_CONFIG,
    EXIT_ERROR,
    EXIT_OK,
    main,
    parse_args,
    parse_pairs,
)
from vault_broker.common.exceptions import ConfigurationError, VaultResponseError
from vault_broker.common.logging import clear_log_context
from vault_broker.registry import create_client


@pytest.fixture
def api():
    transport = AsyncMock()
    transport.make_request.return_value = {}
    return transport


@pytest.fixture
def run_cli(api):
    """Run main() with the real client wiring over a mocked transport."""

    def _run(argv):
        with patch(
            "vault_broker.__main__.create_client",
            side_effect=lambda config: create_client(config, api=api),
        ), patch("vault_broker.__main__.setup_logging"), patch(
            "vault_broker.__main__.load_dotenv"
        ):
            return main(argv)

    return _run


@pytest.fixture
def token_env(monkeypatch):
    monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
    monkeypatch.setenv("VAULT_TOKEN", "s.static")


class TestParseArgs:
    """Tests for argument parsing."""

    def test_write(self):
        args = parse_args(["--log-level", "DEBUG", "write", "secret/app", "a=1", "b=2"])

        assert args.command == "write"
        assert args.path == "secret/app"
        assert args.pairs == ["a=1", "b=2"]
        assert args.log_level == "DEBUG"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_parse_pairs(self):
        assert parse_pairs(["a=1", "b=x=y", "c="]) == {"a": "1", "b": "x=y", "c": ""}

    @pytest.mark.parametrize("pair", ["novalue", "=value"])
    def test_parse_pairs_invalid(self, pair):
        with pytest.raises(ConfigurationError):
            parse_pairs([pair])


class TestMain:
    """Tests for main() exit codes and output."""

    def test_read(self, run_cli, api, token_env, capsys):
        api.make_request.return_value = {
            "data": {"username": "svc"},
            "lease_duration": 60,
            "renewable": True,
        }

        assert run_cli(["read", "secret/app"]) == EXIT_OK

        output = json.loads(capsys.readouterr().out)
        assert output == {
            "data": {"username": "svc"},
            "lease_id": "",
            "lease_duration": 60,
            "renewable": True,
        }
        api.make_request.assert_awaited_once_with(
            "GET", "secret/app", None, {"X-Vault-Token": "s.static"}
        )

    def test_write(self, run_cli, api, token_env, capsys):
        assert run_cli(["write", "secret/app", "username=svc"]) == EXIT_OK

        assert json.loads(capsys.readouterr().out) == {"written": "secret/app"}
        api.make_request.assert_awaited_once_with(
            "POST", "secret/app", {"username": "svc"}, {"X-Vault-Token": "s.static"}
        )

    def test_token_hides_token_id(self, run_cli, token_env, capsys):
        assert run_cli(["token"]) == EXIT_OK

        out = capsys.readouterr().out
        assert "s.static" not in out
        assert json.loads(out) == {
            "auth_method": "token",
            "lease_duration": 0,
            "renewable": False,
            "expires_at": None,
        }

    def test_config_file(self, run_cli, api, tmp_path, capsys):
        path = tmp_path / "vault.yaml"
        path.write_text(
            "url: https://vault.example.com\n"
            "auth:\n  type: token\n  config:\n    token: s.file\n",
            encoding="utf-8",
        )

        assert run_cli(["--config", str(path), "write", "secret/app", "a=1"]) == EXIT_OK

        _, _, _, headers = api.make_request.await_args.args
        assert headers == {"X-Vault-Token": "s.file"}

    def test_missing_configuration(self, run_cli, capsys):
        assert run_cli(["read", "secret/app"]) == EXIT_CONFIG

        assert "VAULT_ADDR" in capsys.readouterr().err

    def test_invalid_pair(self, run_cli, api, token_env):
        assert run_cli(["write", "secret/app", "novalue"]) == EXIT_CONFIG

        api.make_request.assert_not_awaited()

    def test_authentication_failure(self, run_cli, api, monkeypatch, capsys):
        monkeypatch.setenv("VAULT_ADDR", "https://vault.example.com")
        monkeypatch.setenv("VAULT_AUTH_TYPE", "approle")
        monkeypatch.setenv("VAULT_ROLE_ID", "my-role")
        api.make_request.side_effect = VaultResponseError(
            "POST auth/approle/login returned 400: invalid role id",
            status_code=400,
            errors=["invalid role id"],
        )

        assert run_cli(["read", "secret/app"]) == EXIT_AUTH

        err = capsys.readouterr().err
        assert "Authentication failed" in err
        assert "invalid role id" in err

    def test_request_failure(self, run_cli, api, token_env, capsys):
        api.make_request.side_effect = VaultResponseError(
            "GET secret/missing returned 404", status_code=404
        )

        assert run_cli(["read", "secret/missing"]) == EXIT_ERROR

        assert "returned 404" in capsys.readouterr().err


class TestLogOutput:
    """Tests for where the CLI sends its logs."""

    @pytest.fixture(autouse=True)
    def cleanup(self):
        yield
        clear_log_context()
        logging.getLogger().handlers.clear()

    def test_setup_logging_arguments(self, api, token_env):
        with patch(
            "vault_broker.__main__.create_client",
            side_effect=lambda config: create_client(config, api=api),
        ), patch("vault_broker.__main__.setup_logging") as setup, patch(
            "vault_broker.__main__.load_dotenv"
        ):
            assert main(["--json-logs", "token"]) == EXIT_OK

        setup.assert_called_once_with(
            console_level=logging.WARNING,
            json_format=True,
            command="token",
            stream=sys.stderr,
        )

    def test_logs_stay_off_stdout(self, api, token_env, capsys):
        api.make_request.return_value = {"data": {"username": "svc"}}

        with patch(
            "vault_broker.__main__.create_client",
            side_effect=lambda config: create_client(config, api=api),
        ), patch("vault_broker.__main__.load_dotenv"):
            assert main(["--log-level", "DEBUG", "read", "secret/app"]) == EXIT_OK

        captured = capsys.readouterr()
        assert json.loads(captured.out)["data"] == {"username": "svc"}
        assert "VaultClient.read completed" in captured.err
        assert "[read]" in captured.err
