"""
Driver abstraction for executing rendered fragments.

ff-sql never talks to the wire protocol itself. It renders a fragment to a
``$1..$n`` query plus parameter list and hands both to a driver:

- ``execute_raw(query, params)`` runs one statement and returns rows
- ``reserve()`` pins one connection for a transaction
- control commands (BEGIN / COMMIT / ROLLBACK) go through ``execute_raw``

asyncpg already speaks positional ``$n`` placeholders, so no parameter
conversion is needed for PostgreSQL.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence

import structlog

from ..exceptions import ConnectionReleasedError


class QueryExecutor(ABC):
    """Anything that can run a rendered query and return its rows."""

    @abstractmethod
    async def execute_raw(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """
        Execute a query with positional parameters.

        Args:
            query: SQL text with $1, $2, ... placeholders
            params: Values bound to the placeholders, in order

        Returns:
            List of row dicts
        """
        pass


class ReservedConnection(QueryExecutor):
    """A connection held exclusively until released."""

    @abstractmethod
    async def release(self) -> None:
        """
        Return the connection to its pool. Repeated calls are no-ops.

        Queries sent after release raise ConnectionReleasedError.
        """
        pass


class DatabaseDriver(QueryExecutor):
    """Pool-level driver: runs one-off queries and hands out reserved connections."""

    @abstractmethod
    async def reserve(self) -> ReservedConnection:
        """Acquire a connection for exclusive use."""
        pass

    async def close(self) -> None:
        """Close the underlying pool, if the driver owns one."""
        return None


class AsyncpgConnection(ReservedConnection):
    """Reserved asyncpg connection; released back to the pool it came from."""

    def __init__(self, pool, connection, logger=None):
        """
        Args:
            pool: asyncpg pool the connection was acquired from
            connection: The acquired asyncpg connection
            logger: Optional structlog logger
        """
        self.pool = pool
        self.connection = connection
        self.logger = logger or structlog.get_logger(__name__)
        self._released = False

    async def execute_raw(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        # The pool may already have handed the connection to another caller.
        if self._released:
            raise ConnectionReleasedError()
        self.logger.debug("sql.execute", query=query, param_count=len(params), reserved=True)
        rows = await self.connection.fetch(query, *params)
        return [dict(row) for row in rows]

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        await self.pool.release(self.connection)
        self.logger.debug("sql.connection.released")


class AsyncpgDriver(DatabaseDriver):
    """Driver for PostgreSQL using an asyncpg pool."""

    def __init__(self, pool, logger=None):
        """
        Args:
            pool: asyncpg connection pool
            logger: Optional structlog logger
        """
        self.pool = pool
        self.logger = logger or structlog.get_logger(__name__)

    async def execute_raw(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        self.logger.debug("sql.execute", query=query, param_count=len(params))
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, *params)
            return [dict(row) for row in rows]

    async def reserve(self) -> AsyncpgConnection:
        connection = await self.pool.acquire()
        return AsyncpgConnection(self.pool, connection, logger=self.logger)

    async def close(self) -> None:
        await self.pool.close()
        self.logger.info("sql.pool.closed")


def detect_driver(pool, logger=None) -> DatabaseDriver:
    """
    Return a driver for ``pool``.

    Objects that already provide ``execute_raw`` and ``reserve`` are used as-is,
    which also makes it easy to pass recording fakes in tests. asyncpg pools
    are wrapped in :class:`AsyncpgDriver`.

    Args:
        pool: A DatabaseDriver, a driver-like object, or an asyncpg pool
        logger: Optional structlog logger for a newly created driver

    Returns:
        DatabaseDriver instance

    Raises:
        ValueError: If the pool type cannot be determined
    """
    if isinstance(pool, DatabaseDriver):
        return pool

    pool_module = pool.__module__ if hasattr(pool, "__module__") else str(type(pool))
    if "asyncpg" in pool_module:
        return AsyncpgDriver(pool, logger=logger)

    if callable(getattr(pool, "execute_raw", None)) and callable(getattr(pool, "reserve", None)):
        return pool

    raise ValueError(f"Unsupported database pool type: {pool_module}. Supported: asyncpg")
