"""
Unit tests for the Transaction state machine.
"""

from unittest.mock import MagicMock

import pytest

from ff_sql import (
    ConnectionReleasedError,
    Transaction,
    TransactionSQL,
    TransactionState,
    TransactionStateError,
)


class TestTransactionLifecycle:
    """BEGIN on enter, COMMIT or ROLLBACK on exit, release exactly once."""

    @pytest.mark.asyncio
    async def test_commit_path(self, driver):
        tx = Transaction(driver)
        assert tx.state is TransactionState.IDLE

        async with tx as tsql:
            assert isinstance(tsql, TransactionSQL)
            assert tx.state is TransactionState.ACTIVE
            await tsql("UPDATE accounts SET balance = {}", 10)

        assert tx.state is TransactionState.COMMITTED
        assert driver.log == [
            ("BEGIN", []),
            ("UPDATE accounts SET balance = $1", [10]),
            ("COMMIT", []),
        ]
        assert driver.reserved[0].release_count == 1
        assert tx.connection is None

    @pytest.mark.asyncio
    async def test_rollback_path(self, driver):
        tx = Transaction(driver)

        with pytest.raises(ValueError, match="boom"):
            async with tx as tsql:
                await tsql("DELETE FROM sessions")
                raise ValueError("boom")

        assert tx.state is TransactionState.ROLLED_BACK
        assert driver.log == [("BEGIN", []), ("DELETE FROM sessions", []), ("ROLLBACK", [])]
        assert driver.reserved[0].release_count == 1

    @pytest.mark.asyncio
    async def test_rollback_on_failed_statement(self, failing_driver):
        driver = failing_driver("INSERT INTO t VALUES ($1)")

        with pytest.raises(RuntimeError, match="failed"):
            async with Transaction(driver) as tsql:
                await tsql("INSERT INTO t VALUES ({})", 1)

        assert [query for query, _ in driver.log] == ["BEGIN", "INSERT INTO t VALUES ($1)", "ROLLBACK"]
        assert driver.reserved[0].release_count == 1

    @pytest.mark.asyncio
    async def test_begin_failure_releases_connection(self, failing_driver):
        driver = failing_driver("BEGIN")
        tx = Transaction(driver)

        with pytest.raises(RuntimeError, match="BEGIN failed"):
            async with tx:
                pass

        assert tx.state is TransactionState.IDLE
        assert driver.log == [("BEGIN", [])]
        assert driver.reserved[0].release_count == 1

    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back_and_reraises(self, failing_driver):
        driver = failing_driver("COMMIT")
        tx = Transaction(driver)

        with pytest.raises(RuntimeError, match="COMMIT failed"):
            async with tx as tsql:
                await tsql("SELECT 1")

        assert tx.state is TransactionState.ROLLED_BACK
        assert [query for query, _ in driver.log] == ["BEGIN", "SELECT 1", "COMMIT", "ROLLBACK"]
        assert driver.reserved[0].release_count == 1

    @pytest.mark.asyncio
    async def test_fragment_awaited_after_exit_raises(self, driver):
        async with Transaction(driver) as tsql:
            late = tsql("UPDATE accounts SET balance = {}", 0)

        with pytest.raises(ConnectionReleasedError):
            await late

        assert driver.log == [("BEGIN", []), ("COMMIT", [])]

    @pytest.mark.asyncio
    async def test_cannot_reenter(self, driver):
        tx = Transaction(driver)
        async with tx:
            pass

        with pytest.raises(TransactionStateError, match="Cannot enter a transaction"):
            async with tx:
                pass

        assert len(driver.reserved) == 1


class TestTransactionLogging:
    """Lifecycle events go to the injected structlog logger."""

    @pytest.mark.asyncio
    async def test_commit_events(self, driver):
        logger = MagicMock()

        async with Transaction(driver, logger=logger):
            pass

        events = [call.args[0] for call in logger.debug.call_args_list]
        assert events == ["sql.transaction.begin", "sql.transaction.commit"]
        logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_rollback_event_has_error_type(self, driver):
        logger = MagicMock()

        with pytest.raises(KeyError):
            async with Transaction(driver, logger=logger):
                raise KeyError("missing")

        logger.warning.assert_called_once_with("sql.transaction.rollback", error_type="KeyError")
