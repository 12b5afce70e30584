"""
Unit tests for template parsing and composition.
"""

from types import SimpleNamespace

import pytest

from ff_sql import SQLFragment, TemplateError, TypeMismatchError, compose, parse_template
from ff_sql.template import render_template


class TestParseTemplate:
    """str.format-style templates split into literal parts and values."""

    def test_automatic_numbering(self):
        parts, values = parse_template(
            "SELECT * FROM users WHERE id = {} AND name = {}", (123, "Alice")
        )
        assert parts == ["SELECT * FROM users WHERE id = ", " AND name = ", ""]
        assert values == [123, "Alice"]

    def test_manual_numbering_can_repeat(self):
        parts, values = parse_template("SELECT {0}, {1}, {0}", ("a", "b"))
        assert parts == ["SELECT ", ", ", ", ", ""]
        assert values == ["a", "b", "a"]

    def test_keyword_fields(self):
        parts, values = parse_template("WHERE id = {user_id}", kwargs={"user_id": 7})
        assert parts == ["WHERE id = ", ""]
        assert values == [7]

    def test_attribute_and_index_lookup(self):
        user = SimpleNamespace(id=5)
        row = {"name": "Bob"}
        _, values = parse_template("{user.id} {row[name]}", kwargs={"user": user, "row": row})
        assert values == [5, "Bob"]

    def test_escaped_braces(self):
        parts, values = parse_template("SELECT '{{}}'::jsonb, {}", (1,))
        assert parts == ["SELECT '{}'::jsonb, ", ""]
        assert values == [1]

    def test_no_fields(self):
        assert parse_template("SELECT 1") == (["SELECT 1"], [])

    def test_conversion_rejected(self):
        with pytest.raises(TemplateError, match="conversion or format spec"):
            parse_template("SELECT {!r}", (1,))

    def test_format_spec_rejected(self):
        with pytest.raises(TemplateError, match="conversion or format spec"):
            parse_template("SELECT {:>10}", (1,))

    def test_switching_numbering_rejected(self):
        with pytest.raises(TemplateError, match="automatic field numbering to manual"):
            parse_template("{} {0}", (1,))
        with pytest.raises(TemplateError, match="manual field numbering to automatic"):
            parse_template("{0} {}", (1,))

    def test_missing_argument(self):
        with pytest.raises(TemplateError, match="No value for template field"):
            parse_template("{} {}", (1,))
        with pytest.raises(TemplateError):
            parse_template("{missing}")

    def test_wrong_index_type(self):
        with pytest.raises(TemplateError, match="No value for template field"):
            parse_template("SELECT {0[x]}", ([1, 2],))

    def test_malformed_template(self):
        with pytest.raises(TemplateError, match="Malformed"):
            parse_template("SELECT {")


class TestCompose:
    """Interpolated values are dispatched on their type."""

    def test_primitives_bound_as_params(self):
        frag = compose(["SELECT ", ", ", ""], [42, None])
        assert frag.query == "SELECT $1, $2"
        assert frag.params == [42, None]

    def test_fragment_spliced(self):
        where = compose(["WHERE age > ", ""], [25])
        frag = compose(["SELECT * FROM users ", " LIMIT ", ""], [where, 10])
        assert frag.query == "SELECT * FROM users WHERE age > $1 LIMIT $2"
        assert frag.params == [25, 10]

    def test_sequence_of_fragments_spliced_without_separator(self):
        first = compose(["a = ", ""], [1])
        second = compose([" AND b = ", ""], [2])
        frag = compose(["WHERE ", ""], [[first, second]])
        assert frag.query == "WHERE a = $1 AND b = $2"
        assert frag.params == [1, 2]

    def test_mixed_fragment_sequence_rejected(self):
        first = compose(["a = ", ""], [1])
        with pytest.raises(TypeMismatchError, match="mixed in"):
            compose(["WHERE ", ""], [[first, 2]])

    def test_sequence_starting_with_value_is_array(self):
        frag = compose(["IN (", ")"], [["active", "pending"]])
        assert frag.query == "IN (ARRAY[$1, $2])"

    def test_part_count_mismatch(self):
        with pytest.raises(ValueError, match="literal parts"):
            compose(["a", "b"], [])

    def test_deep_nesting_renumbers(self):
        level1 = compose(["x = ", ""], [1])
        level2 = compose(["(", " OR y = ", ")"], [level1, 2])
        level3 = compose(["SELECT ", " AND z = ", ""], [level2, 3])
        assert level3.query == "SELECT (x = $1 OR y = $2) AND z = $3"
        assert level3.params == [1, 2, 3]

    def test_executor_attached(self, driver):
        frag = render_template("SELECT {}", (1,), executor=driver)
        assert isinstance(frag, SQLFragment)
        assert frag.executor is driver
