"""
Exception hierarchy for ff-sql.

All library errors inherit from FFSQLError so callers can catch the base
class for any ff-sql failure. Fragment-building errors also inherit from the
matching builtin (ValueError / TypeError) and are raised before any query
text is produced.
"""

from typing import Any, Optional


class FFSQLError(Exception):
    """Base exception for all ff-sql errors."""


class FragmentError(FFSQLError):
    """Raised when a fragment cannot be built from the given input."""


class EmptyInputError(FragmentError, ValueError):
    """Raised when a builder receives zero rows or items."""


class NoColumnsError(FragmentError, ValueError):
    """Raised when a multi-row builder resolves to an empty column set."""

    def __init__(self, message: str = "VALUES must have at least one column"):
        super().__init__(message)


class MissingColumnError(FragmentError, ValueError):
    """
    Raised when a row lacks a column required by a multi-row builder.

    Args:
        row: The offending row, as passed by the caller
        column: The column that was not present
        row_repr: Rendered form of the row used in the message
    """

    def __init__(self, row: Any, column: str, row_repr: Optional[str] = None):
        self.row = row
        self.column = column
        super().__init__(f"Row {row_repr if row_repr is not None else row!r} missing column {column}")


class TypeMismatchError(FragmentError, TypeError):
    """Raised when fragments and plain values are mixed in one interpolation."""


class TemplateError(FragmentError, ValueError):
    """Raised when a query template has a field that cannot be bound."""


class UnboundFragmentError(FFSQLError, RuntimeError):
    """Raised when executing a fragment that has no executor attached."""

    def __init__(self, message: str = "SQLFragment is not bound to an executor"):
        super().__init__(message)


class TransactionStateError(FFSQLError, RuntimeError):
    """Raised when a transaction is used outside its lifecycle."""

    def __init__(self, state: Any, action: str):
        self.state = state
        super().__init__(f"Cannot {action} a transaction in state {state}")


class ConnectionReleasedError(FFSQLError, RuntimeError):
    """Raised when a query is sent on a reserved connection after its release."""

    def __init__(self, message: str = "Reserved connection has already been released to the pool"):
        super().__init__(message)
