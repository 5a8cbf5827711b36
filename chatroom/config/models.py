"""
Pydantic-based configuration models for the chatroom server.

Every section is a BaseSettings model with its own environment prefix, so a
deployment can be configured entirely through environment variables or a
.env file.
"""

from enum import Enum
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent.parent / "static")
IN_MEMORY_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class HistoryRetention(str, Enum):
    """What happens to a user's chat messages when their connection closes."""

    RETAIN = "retain"
    PURGE_ON_DISCONNECT = "purge_on_disconnect"


class ServerConfig(BaseSettings):
    """Server network configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=3000, description="Server port")
    static_dir: str = Field(default=DEFAULT_STATIC_DIR, description="Directory holding index.html")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port is in valid range."""
        if not 1024 <= v <= 65535:
            logger.error("Invalid server port", port=v, valid_range="1024-65535")
            raise ValueError("Port must be between 1024 and 65535")
        return v

    model_config = {"env_prefix": "SERVER_", "case_sensitive": False, "extra": "ignore"}


class DatabaseConfig(BaseSettings):
    """Message store database configuration."""

    url: str = Field(default=IN_MEMORY_DATABASE_URL, description="SQLAlchemy async database URL")
    echo: bool = Field(default=False, description="Echo SQL statements to the log")

    @field_validator("url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate the URL names an async driver."""
        if not v:
            logger.error("Database URL validation failed - empty URL")
            raise ValueError("Database URL cannot be empty")
        if "+aiosqlite" not in v and "+asyncpg" not in v:
            logger.error(
                "Database URL validation failed - synchronous driver",
                url_preview=v[:50],
                expected_drivers=["aiosqlite", "asyncpg"],
            )
            raise ValueError("Database URL must use an async driver (sqlite+aiosqlite or postgresql+asyncpg)")
        return v

    @property
    def is_in_memory(self) -> bool:
        """True when the store lives only for the lifetime of the process."""
        return ":memory:" in self.url or self.url.rstrip("/") == "sqlite+aiosqlite:"

    model_config = {"env_prefix": "DATABASE_", "case_sensitive": False, "extra": "ignore"}


class ChatConfig(BaseSettings):
    """Chat session behaviour."""

    keepalive_interval: float = Field(default=30.0, description="Seconds between liveness probes")
    history_retention: HistoryRetention = Field(
        default=HistoryRetention.RETAIN, description="Keep or purge a user's messages when they disconnect"
    )
    shutdown_grace_period: float = Field(
        default=2.0, description="Seconds to wait for sessions to finish closing during shutdown"
    )

    @field_validator("keepalive_interval", "shutdown_grace_period")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Intervals must be positive."""
        if v <= 0:
            raise ValueError("Interval must be greater than zero")
        return v

    model_config = {"env_prefix": "CHAT_", "case_sensitive": False, "extra": "ignore"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="development", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    log_base: str = Field(default="logs", description="Base log directory")
    rotation_max_bytes: int = Field(default=10 * 1024 * 1024, description="Log rotation max size in bytes")
    rotation_backup_count: int = Field(default=5, description="Number of backup log files")
    disable_logging: bool = Field(default=False, description="Disable file logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["development", "unit_test", "e2e_test", "production"]
        if v not in valid_environments:
            logger.error("Invalid logging environment", environment=v, valid_environments=valid_environments)
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Convert to the dict format expected by setup_enhanced_logging."""
        return {
            "environment": self.environment,
            "level": self.level,
            "log_base": self.log_base,
            "max_bytes": self.rotation_max_bytes,
            "backup_count": self.rotation_backup_count,
            "disable_logging": self.disable_logging,
        }


class AppConfig(BaseSettings):
    """
    Composite application configuration.

    Access via the get_config() function.
    """

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    chat: ChatConfig = Field(default_factory=ChatConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_legacy_dict(self) -> dict:
        """Convert to a plain dict, the shape the logging setup consumes."""
        return {
            "host": self.server.host,
            "port": self.server.port,
            "database_url": self.database.url,
            "logging": self.logging.to_legacy_dict(),
            "chat": {
                "keepalive_interval": self.chat.keepalive_interval,
                "history_retention": self.chat.history_retention.value,
            },
        }
