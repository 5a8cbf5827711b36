"""
Database configuration for the chatroom server.

This module owns the SQLAlchemy async engine and session factory behind the
message store. Tables are created once at process start and the engine is
disposed at process stop; an in-memory SQLite database disappears with it.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import ArgumentError, NoSuchModuleError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .config.models import DatabaseConfig
from .exceptions import ConfigurationError, DatabaseError, create_error_context
from .metadata import metadata
from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages the async engine and session factory for one database URL.

    The manager is created by the application container and injected into
    the message store; nothing reaches it through module globals.
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self.config = config
        self.engine: AsyncEngine | None = None
        self.session_maker: async_sessionmaker[AsyncSession] | None = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Create the engine and session factory.

        In-memory SQLite exists per DBAPI connection, so those URLs use a
        StaticPool that hands every session the same connection.
        """
        if self._initialized:
            return

        engine_kwargs: dict[str, Any] = {"echo": self.config.echo, "future": True}
        if self.config.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.config.is_in_memory:
                engine_kwargs["poolclass"] = StaticPool

        try:
            self.engine = create_async_engine(self.config.url, **engine_kwargs)
        except (ArgumentError, NoSuchModuleError, ImportError, ValueError) as e:
            # Unparseable URL or a driver that is not installed
            raise ConfigurationError(
                f"Invalid database configuration: {e}",
                config_key="DATABASE_URL",
                details={"url_preview": self.config.url[:50], "original_type": type(e).__name__},
                user_friendly="Database URL is not usable",
            ) from e
        except SQLAlchemyError as e:
            context = create_error_context()
            context.metadata["operation"] = "database_initialization"
            raise DatabaseError(
                f"Failed to create database engine: {e}",
                context=context,
                operation="initialize",
                user_friendly="Database cannot be initialized",
            ) from e

        self.session_maker = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)
        self._initialized = True
        logger.info(
            "Database engine created",
            url_preview=self.config.url[:50],
            in_memory=self.config.is_in_memory,
        )

    async def create_tables(self) -> None:
        """Create the visitors and chat_messages tables if they are missing."""
        self.initialize()
        # Register models on the shared metadata before create_all
        from . import models  # noqa: F401  # pylint: disable=import-outside-toplevel,unused-import

        assert self.engine is not None
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create tables: {e}", operation="create_tables") from e
        logger.info("Database tables ready", tables=sorted(metadata.tables))

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session bound to the managed engine."""
        if not self._initialized or self.session_maker is None:
            raise DatabaseError("Database manager is not initialized", operation="session")
        async with self.session_maker() as session:
            yield session

    async def dispose(self) -> None:
        """Dispose of the engine. Safe to call more than once."""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
        self.engine = None
        self.session_maker = None
        self._initialized = False
