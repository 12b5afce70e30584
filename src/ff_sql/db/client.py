"""
Query-building surface bound to a driver.

``SQL`` is the object applications use: calling it builds a fragment from a
template, and its methods build the common SQL shapes. Every fragment it
creates is bound to the same executor, so it can be awaited to run:

    client = await SQLClient.connect()
    sql = client.sql

    rows = await sql("SELECT * FROM users WHERE id = {} AND name = {}", 123, "Alice")

    where = sql("WHERE age > {}", 25)
    rows = await sql("SELECT * FROM {} {}", sql.id("users"), where)

    await sql("INSERT INTO users {}", sql.insert_values(users))

    async def move_funds(tx):
        await tx("UPDATE accounts SET balance = balance - {} WHERE id = {}", amount, src)
        await tx("UPDATE accounts SET balance = balance + {} WHERE id = {}", amount, dst)

    await sql.transaction(move_funds)
"""

from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

import structlog

from .. import builders
from ..fragment import SQLFragment
from ..template import compose, render_template
from .adapters import DatabaseDriver, QueryExecutor, detect_driver
from .transaction import Transaction

T = TypeVar("T")


class BaseSQL:
    """
    Builder operations shared by ``SQL`` and ``TransactionSQL``.

    Args:
        executor: Executor every built fragment is bound to
        logger: Optional structlog logger
    """

    in_transaction = False

    def __init__(self, executor: QueryExecutor, logger=None):
        self.executor = executor
        self.logger = logger or structlog.get_logger(__name__)

    def __call__(self, template: str, /, *args: Any, **kwargs: Any) -> SQLFragment:
        """
        Build a fragment from a ``str.format``-style template.

        Replacement fields are bound as parameters, or spliced in when they
        hold fragments. Write literal braces as ``{{`` and ``}}``.

        Example:
            >>> sql("SELECT * FROM users WHERE id = {} AND name = {}", 123, "Alice").query
            'SELECT * FROM users WHERE id = $1 AND name = $2'
        """
        return render_template(template, args, kwargs, executor=self.executor)

    def compose(self, parts: Sequence[str], values: Sequence[Any]) -> SQLFragment:
        """Build a fragment from pre-split literal parts and values."""
        return compose(parts, values, executor=self.executor)

    def id(self, name: str) -> SQLFragment:
        """
        Safely escape an identifier (table name, column name, alias).

        Example:
            sql("SELECT {} FROM products", sql.id("order"))  # SELECT "order" FROM products
        """
        return builders.identifier(name, executor=self.executor)

    def unsafe(self, text: str) -> SQLFragment:
        """
        Insert raw SQL text. This bypasses parameterization: trusted input only.

        Example:
            sort = sort_by if sort_by in ALLOWED_SORTS else "created_at"
            sql("SELECT * FROM photos {}", sql.unsafe(f"ORDER BY {sort} DESC"))
        """
        return builders.unsafe(text, executor=self.executor)

    def values(self, rows: Sequence[Any], *columns: str) -> SQLFragment:
        """``VALUES (...), (...)`` from sequences, or from mappings picking ``columns``."""
        return builders.values(rows, *columns, executor=self.executor)

    def values_t(self, alias: str, rows: Sequence[Any], *columns: str) -> SQLFragment:
        """``VALUES (...) AS alias(col, ...)``; columns default to the first row's keys."""
        return builders.values_t(alias, rows, *columns, executor=self.executor)

    def insert_values(self, rows: Sequence[Any], *columns: str) -> SQLFragment:
        """``(col, ...) VALUES (...)`` for INSERT; columns default to the first row's keys."""
        return builders.insert_values(rows, *columns, executor=self.executor)

    def list(self, items: Sequence[Any], key: Optional[str] = None) -> SQLFragment:
        """``(v, v, ...)`` for IN clauses, projecting ``key`` from mapping items."""
        return builders.value_list(items, key, executor=self.executor)

    def join(self, separator: str, fragments: Sequence[SQLFragment]) -> SQLFragment:
        """Join fragments with ``AND``, ``OR`` or ``,``."""
        return builders.join(separator, fragments, executor=self.executor)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(executor={self.executor!r})"


class SQL(BaseSQL):
    """Top-level surface bound to a pool driver."""

    def __init__(self, driver: DatabaseDriver, logger=None):
        super().__init__(driver, logger=logger)
        self.driver = driver

    def begin(self) -> Transaction:
        """
        Return a transaction context manager.

        Example:
            async with sql.begin() as tx:
                await tx("DELETE FROM sessions WHERE user_id = {}", user_id)
        """
        return Transaction(self.driver, logger=self.logger)

    async def transaction(self, fn: Callable[["TransactionSQL"], Awaitable[T]]) -> T:
        """
        Run ``fn`` inside BEGIN / COMMIT on a reserved connection.

        ``fn`` receives a :class:`TransactionSQL` bound to that connection. If
        it raises, the transaction is rolled back and the error re-raised
        unchanged.

        Returns:
            Whatever ``fn`` returns
        """
        async with self.begin() as tx:
            return await fn(tx)


class TransactionSQL(BaseSQL):
    """Surface bound to the reserved connection of an open transaction."""

    in_transaction = True


class SQLClient:
    """
    Entry point owning a driver and its ``SQL`` surface.

    Args:
        pool: A DatabaseDriver, a driver-like object providing ``execute_raw``
            and ``reserve``, or an asyncpg pool
        logger: Optional structlog logger
    """

    def __init__(self, pool, logger=None):
        self.logger = logger or structlog.get_logger(__name__)
        self.driver = detect_driver(pool, logger=self.logger)
        self.sql = SQL(self.driver, logger=self.logger)

    @classmethod
    async def connect(cls, settings=None, logger=None) -> "SQLClient":
        """
        Create an asyncpg pool from settings and wrap it.

        Args:
            settings: PostgresSettings; read from the environment when omitted
            logger: Optional structlog logger
        """
        from ..config import create_pool

        pool = await create_pool(settings, logger=logger)
        return cls(pool, logger=logger)

    async def close(self) -> None:
        """Close the underlying pool."""
        await self.driver.close()

    async def __aenter__(self) -> "SQLClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
