"""
Database execution: drivers, the SQL surface and transactions.
"""

from .adapters import (
    AsyncpgConnection,
    AsyncpgDriver,
    DatabaseDriver,
    QueryExecutor,
    ReservedConnection,
    detect_driver,
)
from .client import SQL, BaseSQL, SQLClient, TransactionSQL
from .transaction import Transaction, TransactionState

__all__ = [
    "SQL",
    "BaseSQL",
    "SQLClient",
    "TransactionSQL",
    # Transactions
    "Transaction",
    "TransactionState",
    # Drivers
    "QueryExecutor",
    "DatabaseDriver",
    "ReservedConnection",
    "AsyncpgDriver",
    "AsyncpgConnection",
    "detect_driver",
]
