"""
Fragment builders for common SQL shapes.

Every builder is a pure factory: it validates its input, then fills a fresh
SQLFragment that is returned only once complete. Errors are raised before
any query text is produced.

- ``identifier``    escaped table / column name
- ``unsafe``        raw SQL text, inserted verbatim
- ``values``        ``VALUES (...), (...)``
- ``values_t``      ``VALUES (...), (...) AS alias(col, ...)``
- ``insert_values`` ``(col, ...) VALUES (...), (...)``
- ``value_list``    ``(v, v, ...)`` for IN clauses
- ``join``          fragments separated by AND / OR / comma
"""

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from .exceptions import EmptyInputError, MissingColumnError, NoColumnsError, TypeMismatchError
from .fragment import SQLFragment, is_array, push_fragment, push_part, push_values
from .escaping import escape_identifier

if TYPE_CHECKING:
    from .db.adapters import QueryExecutor

JOIN_SEPARATORS = {
    "AND": " AND ",
    "OR": " OR ",
    ",": ", ",
}


def identifier(name: str, executor: Optional["QueryExecutor"] = None) -> SQLFragment:
    """Return a fragment holding the escaped identifier ``name``."""
    frag = SQLFragment(executor)
    push_part(frag, escape_identifier(name))
    return frag


def unsafe(text: str, executor: Optional["QueryExecutor"] = None) -> SQLFragment:
    """
    Return a fragment holding ``text`` verbatim.

    WARNING: this bypasses parameterization; only use it with trusted input.
    """
    frag = SQLFragment(executor)
    push_part(frag, text)
    return frag


def _render_row(row: Any) -> str:
    try:
        return json.dumps(dict(row), separators=(",", ":"), default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(row)


def _resolve_columns(rows: Sequence[Mapping], columns: Sequence[str]) -> List[str]:
    """Explicit columns win; otherwise take the first row's keys in order."""
    if not isinstance(rows[0], Mapping):
        raise TypeMismatchError(f"Expected every VALUES row to be a mapping, got {rows[0]!r}")
    resolved = list(columns) if columns else list(rows[0].keys())
    if not resolved:
        raise NoColumnsError()
    return resolved


def _require_rows(rows: Sequence[Any]) -> None:
    if len(rows) == 0:
        raise EmptyInputError("VALUES must have at least one element")


def _check_mapping_rows(rows: Sequence[Any], columns: Sequence[str]) -> None:
    # Validate everything up front so a failed call never yields text.
    for row in rows:
        if not isinstance(row, Mapping):
            raise TypeMismatchError(f"Expected every VALUES row to be a mapping, got {row!r}")
        for column in columns:
            if column not in row:
                raise MissingColumnError(row, column, row_repr=_render_row(row))


def _push_mapping_rows(frag: SQLFragment, rows: Sequence[Mapping], columns: Sequence[str]) -> None:
    push_part(frag, "VALUES (")
    last = len(rows) - 1
    for i, row in enumerate(rows):
        push_values(frag, [row[column] for column in columns])
        push_part(frag, ")" if i == last else "), (")


def _push_columns(frag: SQLFragment, columns: Sequence[str]) -> None:
    push_part(frag, "(" + ", ".join(escape_identifier(column) for column in columns) + ")")


def values(
    rows: Sequence[Any],
    *columns: str,
    executor: Optional["QueryExecutor"] = None,
) -> SQLFragment:
    """
    Build ``VALUES (...), (...)`` from rows.

    Rows are either all sequences (each becomes one tuple, in order) or all
    mappings, in which case ``columns`` picks and orders the values. Without
    explicit columns the first row's keys are used.

    Args:
        rows: Sequences or mappings, one per VALUES tuple
        *columns: Column names to take from mapping rows
        executor: Executor the fragment is bound to

    Returns:
        SQLFragment like ``VALUES ($1, $2), ($3, $4)``

    Raises:
        EmptyInputError: If ``rows`` is empty
        NoColumnsError: If mapping rows resolve to zero columns
        MissingColumnError: If a mapping row lacks one of the columns
        TypeMismatchError: If sequence and mapping rows are mixed
    """
    _require_rows(rows)

    if is_array(rows[0]):
        for row in rows:
            if not is_array(row):
                raise TypeMismatchError(f"Expected every VALUES row to be a sequence, got {row!r}")
        frag = SQLFragment(executor)
        push_part(frag, "VALUES (")
        last = len(rows) - 1
        for i, row in enumerate(rows):
            push_values(frag, row)
            push_part(frag, ")" if i == last else "), (")
        return frag

    cols = _resolve_columns(rows, columns)
    _check_mapping_rows(rows, cols)
    frag = SQLFragment(executor)
    _push_mapping_rows(frag, rows, cols)
    return frag


def values_t(
    alias: str,
    rows: Sequence[Mapping],
    *columns: str,
    executor: Optional["QueryExecutor"] = None,
) -> SQLFragment:
    """
    Build an aliased value table: ``VALUES (...), (...) AS alias(col, ...)``.

    Useful for bulk UPDATE ... FROM. Columns default to the first row's keys;
    the alias and every column name are escaped.

    Example:
        UPDATE users SET status = t.status FROM {values_t("t", rows)} WHERE users.id = t.id
    """
    _require_rows(rows)
    cols = _resolve_columns(rows, columns)
    _check_mapping_rows(rows, cols)

    frag = SQLFragment(executor)
    _push_mapping_rows(frag, rows, cols)
    push_part(frag, f" AS {escape_identifier(alias)}")
    _push_columns(frag, cols)
    return frag


def insert_values(
    rows: Sequence[Mapping],
    *columns: str,
    executor: Optional["QueryExecutor"] = None,
) -> SQLFragment:
    """
    Build ``(col, ...) VALUES (...), (...)`` as used after ``INSERT INTO table``.

    Columns default to the first row's keys, in that row's order.
    """
    _require_rows(rows)
    cols = _resolve_columns(rows, columns)
    _check_mapping_rows(rows, cols)

    frag = SQLFragment(executor)
    _push_columns(frag, cols)
    push_part(frag, " ")
    _push_mapping_rows(frag, rows, cols)
    return frag


def value_list(
    items: Sequence[Any],
    key: Optional[str] = None,
    executor: Optional["QueryExecutor"] = None,
) -> SQLFragment:
    """
    Build a parenthesized list ``($1, $2, ...)``, e.g. for ``IN`` clauses.

    Args:
        items: Primitive values, or mappings when ``key`` is given
        key: Key whose value is taken from each mapping item
        executor: Executor the fragment is bound to

    Raises:
        EmptyInputError: If ``items`` is empty
        MissingColumnError: If a mapping item lacks ``key``
    """
    if len(items) == 0:
        raise EmptyInputError("Value lists must have at least one element")

    if key is not None:
        for item in items:
            if not isinstance(item, Mapping):
                raise MissingColumnError(item, key)
            if key not in item:
                raise MissingColumnError(item, key, row_repr=_render_row(item))
        items = [item[key] for item in items]

    frag = SQLFragment(executor)
    push_part(frag, "(")
    push_values(frag, items)
    push_part(frag, ")")
    return frag


def join(
    separator: str,
    fragments: Sequence[SQLFragment],
    executor: Optional["QueryExecutor"] = None,
) -> SQLFragment:
    """
    Join fragments with ``" AND "``, ``" OR "`` or ``", "``.

    Zero fragments yield an empty fragment; a single fragment is copied
    unchanged.

    Raises:
        ValueError: If ``separator`` is not one of ``AND``, ``OR``, ``,``
    """
    try:
        glue = JOIN_SEPARATORS[separator]
    except KeyError:
        raise ValueError(
            f"Unknown join separator {separator!r}; expected one of {', '.join(JOIN_SEPARATORS)}"
        ) from None

    frag = SQLFragment(executor)
    for i, other in enumerate(fragments):
        if i:
            push_part(frag, glue)
        push_fragment(frag, other)
    return frag


__all__ = [
    "JOIN_SEPARATORS",
    "identifier",
    "unsafe",
    "values",
    "values_t",
    "insert_values",
    "value_list",
    "join",
]
