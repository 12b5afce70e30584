"""
Template composition.

``compose`` walks literal parts and interpolated values and produces one
SQLFragment. Each value is dispatched on its type:

- an SQLFragment is spliced in,
- a non-empty sequence whose first element is an SQLFragment has every
  element spliced in, in order, with no separator,
- anything else is serialized as a bound value (arrays become ARRAY[...]).

``parse_template`` turns a ``str.format``-style template into the literal
parts and values ``compose`` expects.
"""

from string import Formatter
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from .exceptions import TemplateError, TypeMismatchError
from .fragment import SQLFragment, is_array, push_fragment, push_part, push_value

if TYPE_CHECKING:
    from .db.adapters import QueryExecutor

_formatter = Formatter()


def compose(
    parts: Sequence[str],
    values: Sequence[Any],
    executor: Optional["QueryExecutor"] = None,
) -> SQLFragment:
    """
    Compose literal parts and interpolated values into a single fragment.

    Args:
        parts: Literal text segments; must be one longer than ``values``
        values: Fragments, sequences of fragments, or SQL primitives
        executor: Executor the resulting fragment is bound to

    Returns:
        The composed SQLFragment

    Raises:
        ValueError: If ``len(parts) != len(values) + 1``
        TypeMismatchError: If a sequence starting with a fragment contains
            anything other than fragments
    """
    if len(parts) != len(values) + 1:
        raise ValueError(
            f"Expected {len(values) + 1} literal parts for {len(values)} values, got {len(parts)}"
        )

    frag = SQLFragment(executor)
    for i, part in enumerate(parts):
        push_part(frag, part)
        if i < len(values):
            _push_interpolation(frag, values[i])
    return frag


def _push_interpolation(frag: SQLFragment, value: Any) -> None:
    if isinstance(value, SQLFragment):
        push_fragment(frag, value)
    elif is_array(value) and len(value) > 0 and isinstance(value[0], SQLFragment):
        for other in value:
            if not isinstance(other, SQLFragment):
                raise TypeMismatchError(
                    f"Expected a sequence of SQLFragment, but other values were mixed in: {other!r}"
                )
            push_fragment(frag, other)
    else:
        push_value(frag, value)


def parse_template(
    template: str,
    args: Sequence[Any] = (),
    kwargs: Optional[Dict[str, Any]] = None,
) -> Tuple[List[str], List[Any]]:
    """
    Split a ``str.format``-style template into literal parts and bound values.

    ``{}`` takes the next positional argument, ``{0}`` a positional argument by
    index and ``{name}`` a keyword argument. Attribute and index lookups such
    as ``{user.id}`` or ``{row[id]}`` are resolved the way ``str.format``
    resolves them. Literal braces are written ``{{`` and ``}}``.

    Args:
        template: Query text with replacement fields
        args: Positional arguments
        kwargs: Keyword arguments

    Returns:
        Tuple of (parts, values) with ``len(parts) == len(values) + 1``

    Raises:
        TemplateError: On malformed templates, conversions or format specs,
            mixed automatic/manual numbering, or missing arguments

    Example:
        >>> parse_template("SELECT * FROM users WHERE id = {} AND name = {}", (123, "Alice"))
        (['SELECT * FROM users WHERE id = ', ' AND name = ', ''], [123, 'Alice'])
    """
    kwargs = kwargs or {}
    parts: List[str] = []
    values: List[Any] = []
    literal = ""
    auto_index = 0
    numbering = None

    try:
        fields = list(_formatter.parse(template))
    except ValueError as e:
        raise TemplateError(f"Malformed query template: {e}") from e

    for literal_text, field_name, format_spec, conversion in fields:
        literal += literal_text
        if field_name is None:
            continue

        if conversion is not None or format_spec:
            raise TemplateError(
                f"Field {{{field_name}}} cannot use a conversion or format spec; "
                "values are bound as parameters, not formatted"
            )

        if field_name == "" or field_name[0] in ".[":
            if numbering == "manual":
                raise TemplateError(
                    "Cannot switch from manual field numbering to automatic field numbering"
                )
            numbering = "auto"
            field_name = f"{auto_index}{field_name}"
            auto_index += 1
        elif field_name[0].isdigit():
            if numbering == "auto":
                raise TemplateError(
                    "Cannot switch from automatic field numbering to manual field numbering"
                )
            numbering = "manual"

        try:
            value, _ = _formatter.get_field(field_name, args, kwargs)
        except (IndexError, KeyError, AttributeError, TypeError) as e:
            raise TemplateError(f"No value for template field {{{field_name}}}: {e!r}") from e

        parts.append(literal)
        values.append(value)
        literal = ""

    parts.append(literal)
    return parts, values


def render_template(
    template: str,
    args: Sequence[Any] = (),
    kwargs: Optional[Dict[str, Any]] = None,
    executor: Optional["QueryExecutor"] = None,
) -> SQLFragment:
    """Parse ``template`` and compose it into a fragment."""
    parts, values = parse_template(template, args, kwargs)
    return compose(parts, values, executor=executor)
