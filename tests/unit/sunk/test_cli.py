"""
Unit Tests for CLI Module

Tests argument parsing, configuration merging, command dispatch and exit codes.
"""

import argparse
from unittest.mock import MagicMock

import pytest

from src.sunk.cli import build_config, create_parser, main, parse_param
from src.sunk.exceptions import AuthenticationError, TransportError
from src.sunk.models import ScanStatus, ServerInfo

CREDENTIALS = ["--url", "https://music.example.com", "--user", "admin", "--password", "sesame"]


@pytest.fixture(autouse=True)
def no_logging_setup(mocker):
    """Keep main() from reconfiguring the root logger during tests."""
    return mocker.patch("src.sunk.cli.setup_logging")


@pytest.fixture
def clean_env(monkeypatch):
    for var in (
        "SUBSONIC_URL",
        "SUBSONIC_USER",
        "SUBSONIC_PASSWORD",
        "SUBSONIC_CLIENT_NAME",
        "SUBSONIC_API_VERSION",
        "SUBSONIC_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture
def mock_client(mocker):
    """Patch SubsonicClient in the CLI and return the instance used in `with`."""
    client_class = mocker.patch("src.sunk.cli.SubsonicClient")
    client = MagicMock()
    client_class.return_value.__enter__.return_value = client
    return client


class TestParseParam:
    """Test suite for KEY=VALUE parsing."""

    def test_key_value(self):
        assert parse_param("id=1") == ("id", "1")

    def test_value_may_contain_equals(self):
        assert parse_param("query=a=b") == ("query", "a=b")

    def test_empty_value(self):
        assert parse_param("format=") == ("format", "")

    @pytest.mark.parametrize("value", ["id", "=1"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_param(value)


class TestCreateParser:
    """Test suite for argument parser creation."""

    def test_program_name(self):
        assert create_parser().prog == "sunk"

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_scan_action_is_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["scan"])

    def test_url_command_params(self):
        args = create_parser().parse_args(["url", "stream", "id=1", "maxBitRate=96"])

        assert args.command == "url"
        assert args.endpoint == "stream"
        assert args.params == [("id", "1"), ("maxBitRate", "96")]


class TestBuildConfig:
    """Test suite for merging options over the environment."""

    def test_options_only(self, clean_env):
        args = create_parser().parse_args(CREDENTIALS + ["--api-version", "1.12.0", "ping"])

        config = build_config(args)

        assert config.url == "https://music.example.com"
        assert config.username == "admin"
        assert config.password == "sesame"
        assert config.api_version == "1.12.0"
        assert config.client_name == "sunk"

    def test_options_override_environment(self, clean_env):
        clean_env.setenv("SUBSONIC_URL", "https://env.example.com")
        clean_env.setenv("SUBSONIC_USER", "envuser")
        clean_env.setenv("SUBSONIC_PASSWORD", "envpass")
        args = create_parser().parse_args(["--user", "admin", "ping"])

        config = build_config(args)

        assert config.url == "https://env.example.com"
        assert config.username == "admin"
        assert config.password == "envpass"

    def test_each_option_falls_back_on_its_own(self, clean_env):
        clean_env.setenv("SUBSONIC_PASSWORD", "envpass")
        args = create_parser().parse_args(
            ["--url", "https://music.example.com", "--user", "admin", "ping"]
        )

        config = build_config(args)

        assert config.url == "https://music.example.com"
        assert config.username == "admin"
        assert config.password == "envpass"

    def test_only_unresolved_settings_are_reported(self, clean_env):
        args = create_parser().parse_args(["--url", "https://music.example.com", "ping"])

        with pytest.raises(EnvironmentError) as exc_info:
            build_config(args)

        first_line = str(exc_info.value).split("\n")[0]
        assert "SUBSONIC_USER" in first_line
        assert "SUBSONIC_PASSWORD" in first_line
        assert "SUBSONIC_URL" not in first_line

    def test_timeout_option_wins_over_environment(self, clean_env):
        clean_env.setenv("SUBSONIC_TIMEOUT", "5")
        args = create_parser().parse_args(CREDENTIALS + ["--timeout", "12.5", "ping"])

        assert build_config(args).timeout == 12.5

    def test_zero_timeout_is_rejected(self, clean_env):
        args = create_parser().parse_args(CREDENTIALS + ["--timeout", "0", "ping"])

        with pytest.raises(ValueError, match="timeout must be positive"):
            build_config(args)

    def test_missing_everything(self, clean_env):
        args = create_parser().parse_args(["ping"])

        with pytest.raises(EnvironmentError):
            build_config(args)


class TestMain:
    """Test suite for the main entry point."""

    def test_url_prints_authenticated_url(self, clean_env, capsys):
        exit_code = main(CREDENTIALS + ["--api-version", "1.12.0", "url", "stream", "id=1"])

        assert exit_code == 0
        assert capsys.readouterr().out.strip() == (
            "https://music.example.com/rest/stream"
            "?u=admin&p=sesame&v=1.12.0&c=sunk&f=xml&id=1"
        )

    def test_ping(self, clean_env, mock_client, capsys):
        mock_client.server_info = ServerInfo("1.16.1", True, "0.53.3")

        exit_code = main(CREDENTIALS + ["ping"])

        assert exit_code == 0
        mock_client.ping.assert_called_once_with()
        out = capsys.readouterr().out
        assert "ok (api 1.16.1)" in out
        assert "OpenSubsonic server 0.53.3" in out

    def test_scan_start(self, clean_env, mock_client, capsys):
        assert main(CREDENTIALS + ["scan", "start"]) == 0

        mock_client.start_scan.assert_called_once_with()
        assert "scan started" in capsys.readouterr().out

    def test_scan_status(self, clean_env, mock_client, capsys):
        mock_client.get_scan_status.return_value = ScanStatus(False, 5661)

        assert main(CREDENTIALS + ["scan", "status"]) == 0

        out = capsys.readouterr().out
        assert "scanning: no" in out
        assert "count:    5661" in out

    def test_probe(self, clean_env, mock_client, capsys):
        mock_client.try_binary.return_value = "https://music.example.com/rest/stream?id=1"

        assert main(CREDENTIALS + ["probe", "stream", "id=1"]) == 0

        mock_client.try_binary.assert_called_once_with("stream", [("id", "1")])
        assert "rest/stream?id=1" in capsys.readouterr().out

    def test_raw(self, clean_env, mock_client, capsys):
        mock_client.get_raw.return_value = "<subsonic-response/>"

        assert main(CREDENTIALS + ["raw", "ping"]) == 0

        assert capsys.readouterr().out == "<subsonic-response/>"

    def test_authentication_failure_exit_code(self, clean_env, mock_client, capsys):
        mock_client.ping.side_effect = AuthenticationError(40, "Wrong username or password.")

        assert main(CREDENTIALS + ["ping"]) == 1

        assert "Authentication failed: Wrong username or password." in capsys.readouterr().err

    def test_transport_failure_exit_code(self, clean_env, mock_client, capsys):
        mock_client.get_scan_status.side_effect = TransportError("HTTP 502", status_code=502)

        assert main(CREDENTIALS + ["scan", "status"]) == 1

        assert "Connection error: HTTP 502" in capsys.readouterr().err

    def test_missing_configuration_exit_code(self, clean_env, capsys):
        assert main(["ping"]) == 1

        assert "SUBSONIC_URL" in capsys.readouterr().err

    def test_invalid_url_exit_code(self, clean_env, capsys):
        assert main(["--url", "https://", "--user", "a", "--password", "b", "ping"]) == 1

        assert "Invalid server URL" in capsys.readouterr().err

    def test_verbose_sets_debug_logging(self, clean_env, mock_client, no_logging_setup):
        main(CREDENTIALS + ["--verbose", "ping"])

        no_logging_setup.assert_called_once_with("DEBUG")
