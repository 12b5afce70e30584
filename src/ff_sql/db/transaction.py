"""
Transaction scope over a reserved connection.

State machine: IDLE -> ACTIVE -> COMMITTED | ROLLED_BACK.

    async with Transaction(driver) as tx:
        await tx("INSERT INTO users (name) VALUES ({})", "Alice")

Entering reserves a connection and sends BEGIN. A clean exit sends COMMIT;
an exception sends ROLLBACK and propagates unchanged. The connection is
released exactly once on every path.
"""

from enum import Enum
from typing import Optional

import structlog

from ..exceptions import TransactionStateError
from .adapters import DatabaseDriver, ReservedConnection


class TransactionState(str, Enum):
    """Lifecycle states of a Transaction."""

    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """
    Async context manager running a unit of work inside BEGIN / COMMIT.

    Args:
        driver: Driver to reserve the connection from
        logger: Optional structlog logger
    """

    def __init__(self, driver: DatabaseDriver, logger=None):
        self.driver = driver
        self.logger = logger or structlog.get_logger(__name__)
        self.state = TransactionState.IDLE
        self.connection: Optional[ReservedConnection] = None

    async def __aenter__(self):
        # Imported here: client.py builds on this module.
        from .client import TransactionSQL

        if self.state is not TransactionState.IDLE:
            raise TransactionStateError(self.state, "enter")

        self.connection = await self.driver.reserve()
        try:
            await self.connection.execute_raw("BEGIN", [])
        except BaseException:
            await self._release()
            raise

        self.state = TransactionState.ACTIVE
        self.logger.debug("sql.transaction.begin")
        return TransactionSQL(self.connection, logger=self.logger)

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc is None:
                try:
                    await self.connection.execute_raw("COMMIT", [])
                except BaseException as commit_error:
                    await self._rollback(commit_error)
                    raise
                self.state = TransactionState.COMMITTED
                self.logger.debug("sql.transaction.commit")
            else:
                await self._rollback(exc)
        finally:
            await self._release()
        return False

    async def _rollback(self, error: BaseException) -> None:
        self.logger.warning("sql.transaction.rollback", error_type=type(error).__name__)
        await self.connection.execute_raw("ROLLBACK", [])
        self.state = TransactionState.ROLLED_BACK

    async def _release(self) -> None:
        connection, self.connection = self.connection, None
        if connection is not None:
            await connection.release()
