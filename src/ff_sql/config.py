"""
Connection settings for ff-sql.

Settings are read from ``FF_SQL_*`` environment variables (or a ``.env``
file) via pydantic-settings:

    FF_SQL_DSN=postgresql://app:secret@db:5432/app
    # or
    FF_SQL_HOST=db
    FF_SQL_PORT=5432
    FF_SQL_USER=app
    FF_SQL_PASSWORD=secret
    FF_SQL_DATABASE=app
"""

from typing import Any, Dict, Optional

import asyncpg
import structlog
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostgresSettings(BaseSettings):
    """PostgreSQL connection and pool settings."""

    model_config = SettingsConfigDict(
        env_prefix="FF_SQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    dsn: Optional[str] = None
    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: SecretStr = SecretStr("postgres")
    database: str = "postgres"

    # Pool sizing
    min_size: int = Field(default=1, ge=0)
    max_size: int = Field(default=10, ge=1)
    command_timeout: Optional[float] = None

    def pool_kwargs(self) -> Dict[str, Any]:
        """
        Keyword arguments for ``asyncpg.create_pool``.

        A DSN takes precedence over the discrete host/port/user fields.
        """
        kwargs: Dict[str, Any] = {
            "min_size": self.min_size,
            "max_size": self.max_size,
        }
        if self.command_timeout is not None:
            kwargs["command_timeout"] = self.command_timeout

        if self.dsn:
            kwargs["dsn"] = self.dsn
        else:
            kwargs.update(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password.get_secret_value(),
                database=self.database,
            )
        return kwargs


async def create_pool(settings: Optional[PostgresSettings] = None, logger=None):
    """
    Create an asyncpg pool from settings.

    Args:
        settings: Connection settings; read from the environment when omitted
        logger: Optional structlog logger

    Returns:
        asyncpg.Pool
    """
    settings = settings or PostgresSettings()
    logger = logger or structlog.get_logger(__name__)

    pool = await asyncpg.create_pool(**settings.pool_kwargs())
    logger.info(
        "sql.pool.created",
        host=None if settings.dsn else settings.host,
        database=None if settings.dsn else settings.database,
        min_size=settings.min_size,
        max_size=settings.max_size,
    )
    return pool
