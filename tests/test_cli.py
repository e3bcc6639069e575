"""Tests for the Click command-line interface."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from routeros_blocker import __version__
from routeros_blocker.apply import Outcome, SyncResult
from routeros_blocker.cli import main
from routeros_blocker.exceptions import AuthError, FetchError
from routeros_blocker.reconciler import ChangeSet


@pytest.fixture
def runner():
    return CliRunner(env={"ROUTEROS_LOGIN": None, "ROUTEROS_PASSWORD": None})


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep handlers and log files out of the test run."""
    with patch("routeros_blocker.cli.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def mock_router_client():
    with patch("routeros_blocker.cli.RouterClient") as mock_cls:
        client = mock_cls.return_value.__enter__.return_value
        client.connect.return_value = "gw"
        yield mock_cls


class TestMain:
    """Tests for the command group."""

    def test_no_command_shows_help(self, runner):
        result = runner.invoke(main, [])
        assert result.exit_code == 0
        assert "sync" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestSync:
    """Tests for the sync command."""

    def test_sync_applies(self, runner, mock_router_client):
        with patch("routeros_blocker.cli.synchronize") as mock_sync:
            mock_sync.return_value = SyncResult(Outcome.APPLIED, added=3, deleted=1)
            result = runner.invoke(main, ["sync", "-l", "admin", "-p", "secret"])

        assert result.exit_code == 0
        assert "3 added" in result.output
        assert "1 deleted" in result.output
        settings = mock_router_client.call_args[0][0]
        assert settings.login == "admin"
        assert settings.password == "secret"
        mock_router_client.return_value.__enter__.return_value.connect.assert_called_once()

    def test_sync_nothing_to_do(self, runner, mock_router_client):
        with patch("routeros_blocker.cli.synchronize") as mock_sync:
            mock_sync.return_value = SyncResult(Outcome.NOTHING_TO_DO)
            result = runner.invoke(main, ["sync", "-l", "admin"])

        assert result.exit_code == 0
        assert "No changes needed" in result.output

    def test_sync_dry_run(self, runner, mock_router_client):
        with patch("routeros_blocker.cli.synchronize") as mock_sync:
            mock_sync.return_value = SyncResult(Outcome.DRY_RUN, added=2, deleted=0)
            result = runner.invoke(main, ["sync", "-l", "admin", "--dry-run"])

        assert result.exit_code == 0
        assert "DRY RUN" in result.output
        settings = mock_sync.call_args[0][0]
        assert settings.dry_run is True

    def test_sync_options_reach_settings(self, runner, mock_router_client):
        with patch("routeros_blocker.cli.synchronize") as mock_sync:
            mock_sync.return_value = SyncResult(Outcome.NOTHING_TO_DO)
            result = runner.invoke(main, [
                "sync", "-l", "admin", "--address", "10.0.0.1", "--port", "8443",
                "--target", "address-list", "--list-name", "gambling",
                "--strategy", "scripted", "--insecure",
            ])

        assert result.exit_code == 0
        settings, _, target = mock_sync.call_args[0]
        assert settings.api_url == "https://10.0.0.1:8443/rest"
        assert settings.strategy == "scripted"
        assert settings.verify_tls is False
        assert dict(target.managed_filter)["list"] == "gambling"

    def test_login_from_environment(self, runner, mock_router_client):
        with patch("routeros_blocker.cli.synchronize") as mock_sync:
            mock_sync.return_value = SyncResult(Outcome.NOTHING_TO_DO)
            result = runner.invoke(main, ["sync"], env={"ROUTEROS_LOGIN": "envuser"})

        assert result.exit_code == 0
        assert mock_sync.call_args[0][0].login == "envuser"

    def test_missing_login(self, runner):
        result = runner.invoke(main, ["sync"])
        assert result.exit_code == 2

    def test_invalid_settings_exit_1(self, runner, mock_router_client):
        result = runner.invoke(main, ["sync", "-l", "admin", "--sink-address", "nowhere"])
        assert result.exit_code == 1
        mock_router_client.assert_not_called()

    def test_fetch_error_exit_1(self, runner, mock_router_client):
        with patch("routeros_blocker.cli.synchronize") as mock_sync:
            mock_sync.side_effect = FetchError("list unreachable")
            result = runner.invoke(main, ["sync", "-l", "admin"])

        assert result.exit_code == 1
        assert "list unreachable" in result.output

    def test_auth_error_exit_1(self, runner, mock_router_client):
        client = mock_router_client.return_value.__enter__.return_value
        client.connect.side_effect = AuthError("Router rejected the credentials")

        with patch("routeros_blocker.cli.synchronize") as mock_sync:
            result = runner.invoke(main, ["sync", "-l", "admin"])

        assert result.exit_code == 1
        mock_sync.assert_not_called()


class TestStatus:
    """Tests for the status command."""

    def test_status_out_of_sync(self, runner, mock_router_client):
        changes = ChangeSet(frozenset({"a.example.com"}), frozenset())
        with patch("routeros_blocker.cli.reconcile", return_value=(changes, {"b": "*1"})):
            result = runner.invoke(main, ["status", "-l", "admin"])

        assert result.exit_code == 0
        assert "Router: gw" in result.output
        assert "Managed records: 1" in result.output
        assert "Pending additions: 1" in result.output
        assert "out of sync" in result.output

    def test_status_in_sync(self, runner, mock_router_client):
        changes = ChangeSet(frozenset(), frozenset())
        with patch("routeros_blocker.cli.reconcile", return_value=(changes, {})):
            result = runner.invoke(main, ["status", "-l", "admin"])

        assert result.exit_code == 0
        assert "in sync" in result.output
