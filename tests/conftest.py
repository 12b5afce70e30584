"""
Shared pytest fixtures.

``RecordingDriver`` stands in for a database: it records every
``(query, params)`` pair it is asked to run, in order, across the pool and
any reserved connections, and answers with canned rows.
"""

import pytest

from ff_sql import SQL, ConnectionReleasedError


class RecordingConnection:
    """Reserved connection that appends to its driver's log."""

    def __init__(self, driver):
        self.driver = driver
        self.release_count = 0

    async def execute_raw(self, query, params=()):
        if self.release_count:
            raise ConnectionReleasedError()
        return await self.driver.execute_raw(query, params)

    async def release(self):
        self.release_count += 1
        self.driver.released.append(self)


class RecordingDriver:
    """In-memory driver capturing executed statements."""

    def __init__(self, rows=None, fail_on=None):
        """
        Args:
            rows: Rows returned for every statement
            fail_on: Statement text that raises RuntimeError when executed
        """
        self.rows = rows if rows is not None else []
        self.fail_on = fail_on
        self.log = []
        self.reserved = []
        self.released = []
        self.closed = False

    async def execute_raw(self, query, params=()):
        self.log.append((query, list(params)))
        if self.fail_on is not None and query == self.fail_on:
            raise RuntimeError(f"{query} failed")
        return [dict(row) for row in self.rows]

    async def reserve(self):
        connection = RecordingConnection(self)
        self.reserved.append(connection)
        return connection

    async def close(self):
        self.closed = True


@pytest.fixture
def driver():
    return RecordingDriver()


@pytest.fixture
def sql(driver):
    return SQL(driver)


@pytest.fixture
def failing_driver():
    """Factory for a driver whose given statement raises RuntimeError."""

    def make(statement):
        return RecordingDriver(fail_on=statement)

    return make
