"""
Unit tests for CLI commands.
"""

import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from click.testing import CliRunner

from forestbot.cli import cli, main
from forestbot.config import get_settings
from forestbot.models import Kd, JoinCount, LastSeen, Playtime
from forestbot.realtime import CloseInfo, Event


# ══════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture
def hub_env(monkeypatch):
    """Point settings at a test hub."""
    monkeypatch.setenv("FORESTBOT_API_URL", "http://hub.test/api/v1")
    monkeypatch.setenv("FORESTBOT_WEBSOCKET_URL", "ws://hub.test/api/v1")
    monkeypatch.setenv("FORESTBOT_API_KEY", "k1")
    monkeypatch.setenv("FORESTBOT_MC_SERVER", "survival")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ══════════════════════════════════════════════════════════════
# Main CLI Tests
# ══════════════════════════════════════════════════════════════


class TestMainCLI:
    """Test main CLI group."""

    def test_cli_version(self, runner):
        """Test CLI version option."""
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_cli_help(self, runner):
        """Test CLI help output."""
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "ForestBot" in result.output
        for command in ("listen", "stats", "config"):
            assert command in result.output

    def test_cli_debug_mode(self, runner):
        """Test CLI debug mode."""
        result = runner.invoke(cli, ["--debug", "--help"])
        assert result.exit_code == 0

    def test_main_function(self):
        """Test main entry point."""
        with patch("forestbot.cli.cli") as mock_cli:
            main()
            mock_cli.assert_called_once()


# ══════════════════════════════════════════════════════════════
# Config Command Tests
# ══════════════════════════════════════════════════════════════


class TestConfigCommand:
    """Test config command."""

    def test_config_masks_key(self, runner, hub_env):
        """Test the API key is never printed."""
        result = runner.invoke(cli, ["config"])

        assert result.exit_code == 0
        assert "http://hub.test/api/v1" in result.output
        assert "survival" in result.output
        assert "***" in result.output
        assert "k1" not in result.output

    def test_config_key_not_set(self, runner, hub_env, monkeypatch):
        """Test an empty key is reported as not set."""
        monkeypatch.setenv("FORESTBOT_API_KEY", "")
        get_settings.cache_clear()

        result = runner.invoke(cli, ["config"])

        assert "Not set" in result.output


# ══════════════════════════════════════════════════════════════
# Stats Command Tests
# ══════════════════════════════════════════════════════════════


class TestStatsCommand:
    """Test stats command."""

    def test_stats_prints_values(self, runner, hub_env):
        """Test stats output with all lookups succeeding."""
        api = MagicMock()
        api.get_playtime = AsyncMock(return_value=Playtime(playtime=3600))
        api.get_kd = AsyncMock(return_value=Kd(kills=4, deaths=2))
        api.get_join_count = AsyncMock(return_value=JoinCount(joincount=9))
        api.get_last_seen = AsyncMock(return_value=LastSeen(lastseen="2024-01-01"))
        api.close = AsyncMock()

        with patch("forestbot.cli.ForestBotAPI") as mock_api:
            mock_api.from_settings.return_value = api
            result = runner.invoke(cli, ["stats", "u-1", "survival"])

        assert result.exit_code == 0
        assert "Stats for u-1 on survival" in result.output
        assert "3600" in result.output
        assert "2024-01-01" in result.output
        api.get_kd.assert_awaited_once_with("u-1", "survival")
        api.close.assert_awaited_once()

    def test_stats_unavailable(self, runner, hub_env):
        """Test failed lookups are shown as unavailable."""
        api = MagicMock()
        for name in ("get_playtime", "get_kd", "get_join_count", "get_last_seen"):
            setattr(api, name, AsyncMock(return_value=None))
        api.close = AsyncMock()

        with patch("forestbot.cli.ForestBotAPI") as mock_api:
            mock_api.from_settings.return_value = api
            result = runner.invoke(cli, ["stats", "u-1", "survival"])

        assert result.exit_code == 0
        assert result.output.count("unavailable") == 5


# ══════════════════════════════════════════════════════════════
# Listen Command Tests
# ══════════════════════════════════════════════════════════════


class TestListenCommand:
    """Test listen command."""

    def test_listen_help(self, runner):
        """Test listen help output."""
        result = runner.invoke(cli, ["listen", "--help"])
        assert result.exit_code == 0
        assert "--mc-server" in result.output
        assert "--discord" in result.output

    def test_listen_subscribes_and_prints(self, runner, hub_env):
        """Test every event is subscribed and printed as JSON."""
        handlers = {}
        api = MagicMock()
        api.on.side_effect = lambda event, handler: handlers.setdefault(event.value, handler)
        api.close = AsyncMock()

        async def close_after_events():
            handlers["minecraft_player_join"]({"username": "Steve"})
            handlers["websocket_close"](CloseInfo(code=1008, reason="bad key"))

        api.websocket.wait_closed = AsyncMock(side_effect=close_after_events)

        with patch("forestbot.cli.ForestBotAPI") as mock_api:
            mock_api.from_settings.return_value = api
            result = runner.invoke(cli, ["listen", "--mc-server", "creative", "--discord"])

        assert result.exit_code == 0
        assert set(handlers) == {event.value for event in Event}

        overrides = mock_api.from_settings.call_args[1]
        assert overrides == {"use_websocket": True, "mc_server": "creative", "is_bot_client": False}

        lines = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
        assert lines == [
            {"event": "minecraft_player_join", "data": {"username": "Steve"}},
            {"event": "websocket_close", "data": {"code": 1008, "reason": "bad key"}},
        ]
        api.close.assert_awaited_once()

    def test_listen_without_realtime_client(self, runner, hub_env):
        """Test listen fails cleanly when no realtime client was created."""
        api = MagicMock()
        api.websocket = None
        api.close = AsyncMock()

        with patch("forestbot.cli.ForestBotAPI") as mock_api:
            mock_api.from_settings.return_value = api
            result = runner.invoke(cli, ["listen"])

        assert result.exit_code == 1
        assert "Realtime connection is not enabled" in result.output
