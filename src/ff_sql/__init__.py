"""
ff-sql: Composable, parameterized PostgreSQL queries for Fenixflow applications.

Features:
- Template-built query fragments that nest to any depth
- Positional $1..$n placeholders with an ordered parameter list
- Identifier escaping for reserved words, odd characters and non-ASCII names
- Builders for VALUES lists, aliased value tables, INSERT column lists,
  IN lists and AND / OR / comma joins
- Awaitable fragments and transactions over asyncpg
"""

# Version is read from package metadata (pyproject.toml is the single source of truth)
try:
    from importlib.metadata import version

    __version__ = version("ff-sql")
except Exception:
    __version__ = "0.1.0"

# Fragments and composition
from .fragment import SQLFragment, SQLPrimitive, SQLScalar
from .template import compose, parse_template
from .escaping import RESERVED_KEYWORDS, escape_identifier
from .builders import (
    identifier,
    insert_values,
    join,
    unsafe,
    value_list,
    values,
    values_t,
)

# Database
from .db import (
    SQL,
    AsyncpgDriver,
    DatabaseDriver,
    QueryExecutor,
    ReservedConnection,
    SQLClient,
    Transaction,
    TransactionSQL,
    TransactionState,
)
from .config import PostgresSettings, create_pool

# Exceptions
from .exceptions import (
    FFSQLError,
    FragmentError,
    EmptyInputError,
    NoColumnsError,
    MissingColumnError,
    TypeMismatchError,
    TemplateError,
    UnboundFragmentError,
    TransactionStateError,
    ConnectionReleasedError,
)

__all__ = [
    # Version
    "__version__",
    # Fragments
    "SQLFragment",
    "SQLPrimitive",
    "SQLScalar",
    "compose",
    "parse_template",
    "escape_identifier",
    "RESERVED_KEYWORDS",
    # Builders
    "identifier",
    "unsafe",
    "values",
    "values_t",
    "insert_values",
    "value_list",
    "join",
    # Database
    "SQL",
    "SQLClient",
    "TransactionSQL",
    "Transaction",
    "TransactionState",
    "QueryExecutor",
    "DatabaseDriver",
    "ReservedConnection",
    "AsyncpgDriver",
    # Configuration
    "PostgresSettings",
    "create_pool",
    # Exceptions
    "FFSQLError",
    "FragmentError",
    "EmptyInputError",
    "NoColumnsError",
    "MissingColumnError",
    "TypeMismatchError",
    "TemplateError",
    "UnboundFragmentError",
    "TransactionStateError",
    "ConnectionReleasedError",
]
