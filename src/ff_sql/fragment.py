"""
SQL fragments: composable, parameterized pieces of a PostgreSQL query.

A fragment keeps its literal text in ``parts`` and its bound values in
``params``, with ``len(parts) == len(params) + 1``. Placeholders are not
stored; they are numbered ``$1..$n`` when the fragment is rendered, so
fragments can be nested to any depth without renumbering.
"""

import asyncio
from datetime import date, datetime, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union
from uuid import UUID

from .exceptions import UnboundFragmentError

if TYPE_CHECKING:
    from .db.adapters import QueryExecutor

# Scalars are bound as-is; their wire representation is the driver's concern.
SQLScalar = Union[
    None, bool, int, float, Decimal, str, date, datetime, time, UUID, bytes, bytearray, memoryview
]

# Lists and tuples become PostgreSQL ARRAY[...] constructs.
SQLPrimitive = Union[SQLScalar, List["SQLPrimitive"], Tuple["SQLPrimitive", ...]]

Row = Dict[str, Any]


class SQLFragment:
    """
    A SQL query fragment that can be composed with other fragments.

    Fragments built through an ``SQL`` instance carry the executor they were
    created with, so they can be awaited directly to run the query:

        users = await sql("SELECT * FROM users WHERE id = {}", 123)

    Args:
        executor: Object providing ``execute_raw(query, params)``, or None for
            a fragment that is only used for composition
    """

    __slots__ = ("executor", "parts", "params")

    def __init__(self, executor: Optional["QueryExecutor"] = None):
        self.executor = executor
        self.parts: List[str] = [""]
        self.params: List[Any] = []

    @property
    def query(self) -> str:
        """
        The complete query string with ``$n`` placeholders.

        Example:
            parts ["SELECT * FROM users WHERE id = ", " AND name = ", ""]
            render as "SELECT * FROM users WHERE id = $1 AND name = $2"
        """
        chunks = [self.parts[0]]
        for i in range(1, len(self.parts)):
            chunks.append(f"${i}")
            chunks.append(self.parts[i])
        return "".join(chunks)

    def render(self) -> Tuple[str, List[Any]]:
        """Return ``(query, params)`` ready to hand to a driver."""
        return self.query, list(self.params)

    def to_query(self):
        """
        Return an un-started coroutine that runs this fragment.

        You might find it easier to ``await`` the fragment directly.
        """
        if self.executor is None:
            raise UnboundFragmentError()
        query, params = self.render()
        return self.executor.execute_raw(query, params)

    def execute(self) -> "asyncio.Task[List[Row]]":
        """
        Start running the query and return the task, which can be cancelled.

        Must be called from within a running event loop.
        """
        return asyncio.ensure_future(self.to_query())

    def __await__(self):
        return self.to_query().__await__()

    def __repr__(self) -> str:
        return f"SQLFragment(query={self.query!r}, params={self.params!r})"


# These push_* helpers extend a fragment that is still being built. They are
# only used on fragments the builder has not yet handed out.


def push_part(frag: SQLFragment, part: str) -> None:
    """Append literal text to the trailing part."""
    frag.parts[-1] += part


def push_param(frag: SQLFragment, param: Any) -> None:
    """Append a bound parameter, opening a new trailing part."""
    frag.parts.append("")
    frag.params.append(param)


def is_array(value: Any) -> bool:
    """Lists and tuples are SQL arrays; str and binary values are scalars."""
    return isinstance(value, (list, tuple))


def push_value(frag: SQLFragment, value: Any, in_array: bool = False) -> None:
    """
    Serialize a scalar or (nested) array value into ``frag``.

    Scalars become a new parameter. Arrays become ``ARRAY[...]`` at the
    outermost level and ``[...]`` when nested, with elements separated by
    ``", "``. Empty arrays contribute no parameters.
    """
    if is_array(value):
        push_part(frag, "[" if in_array else "ARRAY[")
        for i, item in enumerate(value):
            if i:
                push_part(frag, ", ")
            push_value(frag, item, in_array=True)
        push_part(frag, "]")
    else:
        push_param(frag, value)


def push_fragment(frag: SQLFragment, other: SQLFragment) -> None:
    """Splice ``other`` into ``frag``, copying its parts and params."""
    last = len(other.parts) - 1
    for j, part in enumerate(other.parts):
        push_part(frag, part)
        if j < last:
            push_param(frag, other.params[j])


def push_values(frag: SQLFragment, values: Sequence[Any]) -> None:
    """Serialize ``values`` separated by ``", "``."""
    for i, value in enumerate(values):
        if i:
            push_part(frag, ", ")
        push_value(frag, value)

