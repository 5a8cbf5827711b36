"""Tests for DatabaseManager engine setup."""

import pytest

from chatroom.config.models import DatabaseConfig
from chatroom.database import DatabaseManager
from chatroom.exceptions import ConfigurationError, DatabaseError


class TestDatabaseManager:
    def test_unparseable_url_is_a_configuration_error(self):
        # model_construct skips the URL validator so the engine sees the bad value
        config = DatabaseConfig.model_construct(url="not a database url +aiosqlite", echo=False)

        with pytest.raises(ConfigurationError) as exc_info:
            DatabaseManager(config).initialize()

        assert exc_info.value.config_key == "DATABASE_URL"
        assert exc_info.value.details["original_type"] == "ArgumentError"

    @pytest.mark.asyncio
    async def test_in_memory_engine_lifecycle(self, app_config):
        manager = DatabaseManager(app_config.database)

        await manager.create_tables()
        assert manager.is_initialized
        async with manager.session() as session:
            assert session is not None

        await manager.dispose()
        await manager.dispose()
        assert not manager.is_initialized

    @pytest.mark.asyncio
    async def test_session_before_initialize_fails(self, app_config):
        manager = DatabaseManager(app_config.database)

        with pytest.raises(DatabaseError):
            async with manager.session():
                pass
