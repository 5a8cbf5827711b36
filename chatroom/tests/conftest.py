"""
Test configuration and fixtures for the chatroom test suite.

Environment variables are set before any chatroom module loads its config,
so tests never write log files or touch a persistent database.
"""

import os

os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")
os.environ.setdefault("LOGGING_DISABLE_LOGGING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SERVER_HOST", "127.0.0.1")
os.environ.setdefault("SERVER_PORT", "54731")

# pylint: disable=wrong-import-position
from collections.abc import AsyncIterator, Iterator  # noqa: E402

import pytest  # noqa: E402

from chatroom.config import reset_config  # noqa: E402
from chatroom.config.models import AppConfig, ChatConfig, DatabaseConfig, LoggingConfig, ServerConfig  # noqa: E402
from chatroom.database import DatabaseManager  # noqa: E402
from chatroom.persistence.message_store import MessageStore  # noqa: E402
from chatroom.realtime.connection_registry import ConnectionRegistry  # noqa: E402
from chatroom.realtime.message_broadcaster import Broadcaster  # noqa: E402
from chatroom.tests.fixtures.fake_transport import FakeClock  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_config() -> Iterator[None]:
    """Each test sees a freshly loaded configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def app_config() -> AppConfig:
    """In-memory, console-only configuration for tests."""
    return AppConfig(
        server=ServerConfig(host="127.0.0.1", port=54731),
        database=DatabaseConfig(url="sqlite+aiosqlite:///:memory:"),
        chat=ChatConfig(keepalive_interval=30.0, shutdown_grace_period=0.5),
        logging=LoggingConfig(environment="unit_test", disable_logging=True),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def database(app_config: AppConfig) -> AsyncIterator[DatabaseManager]:
    """A fresh in-memory database with the chat tables created."""
    manager = DatabaseManager(app_config.database)
    manager.initialize()
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
async def message_store(database: DatabaseManager, clock: FakeClock) -> AsyncIterator[MessageStore]:
    store = MessageStore(database, clock=clock)
    yield store
    await store.close()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def broadcaster(registry: ConnectionRegistry) -> Broadcaster:
    return Broadcaster(registry)
