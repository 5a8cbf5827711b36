"""Tests for the pydantic-settings configuration models."""

import pytest
from pydantic import ValidationError

from chatroom.config import get_config, reset_config
from chatroom.config.models import (
    AppConfig,
    ChatConfig,
    DatabaseConfig,
    HistoryRetention,
    LoggingConfig,
    ServerConfig,
)


class TestServerConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SERVER_PORT", raising=False)
        monkeypatch.delenv("SERVER_HOST", raising=False)

        config = ServerConfig()

        assert config.port == 3000
        assert config.host == "127.0.0.1"
        assert config.static_dir.endswith("static")

    @pytest.mark.parametrize("port", [80, 70000])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValidationError):
            ServerConfig(port=port)

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SERVER_PORT", "4100")

        assert ServerConfig().port == 4100


class TestDatabaseConfig:
    def test_default_is_in_memory(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        config = DatabaseConfig()

        assert config.url == "sqlite+aiosqlite:///:memory:"
        assert config.is_in_memory

    def test_file_database_is_not_in_memory(self):
        assert not DatabaseConfig(url="sqlite+aiosqlite:///chat.db").is_in_memory

    def test_sync_driver_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(url="sqlite:///chat.db")

    def test_empty_url_rejected(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(url="")


class TestChatConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CHAT_KEEPALIVE_INTERVAL", raising=False)
        monkeypatch.delenv("CHAT_HISTORY_RETENTION", raising=False)

        config = ChatConfig()

        assert config.keepalive_interval == 30.0
        assert config.history_retention is HistoryRetention.RETAIN

    def test_retention_from_env(self, monkeypatch):
        monkeypatch.setenv("CHAT_HISTORY_RETENTION", "purge_on_disconnect")

        assert ChatConfig().history_retention is HistoryRetention.PURGE_ON_DISCONNECT

    def test_unknown_retention_rejected(self):
        with pytest.raises(ValidationError):
            ChatConfig(history_retention="sometimes")

    @pytest.mark.parametrize("field", ["keepalive_interval", "shutdown_grace_period"])
    def test_intervals_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            ChatConfig(**{field: 0})


class TestLoggingConfig:
    def test_level_is_normalized(self):
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            LoggingConfig(environment="staging")

    def test_legacy_dict(self):
        legacy = LoggingConfig(environment="unit_test", disable_logging=True).to_legacy_dict()

        assert legacy["environment"] == "unit_test"
        assert legacy["disable_logging"] is True


class TestAppConfig:
    def test_legacy_dict_shape(self, app_config: AppConfig):
        legacy = app_config.to_legacy_dict()

        assert legacy["port"] == 54731
        assert legacy["database_url"] == "sqlite+aiosqlite:///:memory:"
        assert legacy["chat"]["history_retention"] == "retain"
        assert legacy["logging"]["environment"] == "unit_test"

    def test_get_config_is_fresh_under_pytest(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("SERVER_PORT", "4200")
        reset_config()

        second = get_config()

        assert first is not second
        assert second.server.port == 4200
