"""
PostgreSQL identifier escaping.

Simple lowercase identifiers pass through untouched so generated SQL stays
readable; anything else is double-quoted, and names containing characters
outside printable ASCII use the ``U&"..."`` unicode-escape form.
"""

import re

# https://www.postgresql.org/docs/current/sql-keywords-appendix.html
# Reserved keywords cannot be used as table or column names without quoting.
RESERVED_KEYWORDS = frozenset(
    {
        "all",
        "analyse",
        "analyze",
        "and",
        "any",
        "array",
        "as",
        "asc",
        "asymmetric",
        "authorization",
        "binary",
        "both",
        "case",
        "cast",
        "check",
        "collate",
        "collation",
        "column",
        "concurrently",
        "constraint",
        "create",
        "cross",
        "current_catalog",
        "current_date",
        "current_role",
        "current_schema",
        "current_time",
        "current_timestamp",
        "current_user",
        "default",
        "deferrable",
        "desc",
        "distinct",
        "do",
        "else",
        "end",
        "except",
        "false",
        "fetch",
        "for",
        "foreign",
        "freeze",
        "from",
        "full",
        "grant",
        "group",
        "having",
        "ilike",
        "in",
        "initially",
        "inner",
        "intersect",
        "into",
        "is",
        "isnull",
        "join",
        "lateral",
        "leading",
        "left",
        "like",
        "limit",
        "localtime",
        "localtimestamp",
        "natural",
        "not",
        "notnull",
        "null",
        "offset",
        "on",
        "only",
        "or",
        "order",
        "outer",
        "overlaps",
        "placing",
        "primary",
        "references",
        "returning",
        "right",
        "select",
        "session_user",
        "similar",
        "some",
        "symmetric",
        "system_user",
        "table",
        "tablesample",
        "then",
        "to",
        "trailing",
        "true",
        "union",
        "unique",
        "user",
        "using",
        "variadic",
        "verbose",
        "when",
        "where",
        "window",
        "with",
    }
)

_SIMPLE_IDENTIFIER = re.compile(r"[a-z_][a-z0-9$_]*")


def _is_unprintable(code: int) -> bool:
    return code < 32 or code >= 127


def is_reserved_keyword(name: str) -> bool:
    """Check whether ``name`` is a PostgreSQL reserved keyword (case-insensitive)."""
    return name.lower() in RESERVED_KEYWORDS


def escape_identifier(name: str) -> str:
    """
    Escape a table, column or alias name for use in PostgreSQL.

    Args:
        name: Raw identifier

    Returns:
        The identifier unchanged when it is a simple, non-reserved lowercase
        name; otherwise a double-quoted form, or a ``U&"..."`` form when it
        contains control characters or non-ASCII code points.

    Examples:
        >>> escape_identifier("users")
        'users'
        >>> escape_identifier("order")
        '"order"'
        >>> escape_identifier('col"umn')
        '"col""umn"'
        >>> escape_identifier("table_π")
        'U&"table_\\\\03c0"'
    """
    if name and _SIMPLE_IDENTIFIER.fullmatch(name) and not is_reserved_keyword(name):
        return name

    # Control characters force the unicode-escape form too, not only non-ASCII.
    if not any(_is_unprintable(ord(char)) for char in name):
        return '"' + name.replace('"', '""') + '"'

    escaped = []
    for char in name:
        code = ord(char)
        if char == '"':
            escaped.append('""')
        elif _is_unprintable(code):
            if code > 0xFFFF:
                escaped.append(f"\\{code:06x}")
            else:
                escaped.append(f"\\{code:04x}")
        else:
            escaped.append(char)
    return 'U&"' + "".join(escaped) + '"'
