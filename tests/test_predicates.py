"""Tests for the built-in predicate library and PredicateRegistry."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from conform_kit.errors import ContractDefinitionError
from conform_kit.predicates import (
    PRIMITIVE_TAGS,
    PredicateRegistry,
    empty,
    eql,
    even,
    filled,
    gt,
    gteq,
    in_,
    includes,
    lt,
    match,
    max_size,
    min_size,
    not_in,
    odd,
    size,
    type_,
)


class TestTypeChecks:
    """Tests for the type? predicate."""

    def test_primitive_tags(self) -> None:
        """Every primitive tag has a type check."""
        assert {"any", "none", "boolean", "integer", "float", "string", "list", "map"} <= PRIMITIVE_TAGS
        assert {"date", "date_time", "time", "decimal", "bytes"} <= PRIMITIVE_TAGS

    def test_integer_excludes_boolean(self) -> None:
        """True is not an integer."""
        assert type_("integer", 3)
        assert not type_("integer", True)
        assert not type_("integer", 3.0)

    def test_date_excludes_date_time(self) -> None:
        """A datetime is a date_time, not a date."""
        assert type_("date", date(2024, 1, 5))
        assert not type_("date", datetime(2024, 1, 5, 12, 0))
        assert type_("date_time", datetime(2024, 1, 5, 12, 0))

    def test_list_and_map(self) -> None:
        """Lists accept tuples; maps accept any mapping."""
        assert type_("list", [1])
        assert type_("list", (1,))
        assert not type_("list", "abc")
        assert type_("map", {})
        assert not type_("map", [])

    def test_none_and_any(self) -> None:
        assert type_("none", None)
        assert not type_("none", 0)
        assert type_("any", None)
        assert type_("any", object())

    def test_decimal(self) -> None:
        assert type_("decimal", Decimal("1.5"))
        assert not type_("decimal", 1.5)

    def test_unknown_tag(self) -> None:
        """An unknown tag is a definition error."""
        with pytest.raises(ContractDefinitionError, match="Unknown primitive type"):
            type_("uuid", "x")


class TestValuePredicates:
    """Tests for emptiness, comparison, size and membership predicates."""

    def test_filled_and_empty(self) -> None:
        assert filled("x")
        assert not filled("")
        assert not filled([])
        assert not filled(None)
        assert filled(0)
        assert empty("")
        assert empty({})
        assert not empty("x")

    def test_eql(self) -> None:
        assert eql("a", "a")
        assert not eql("a", "b")

    def test_comparisons_take_bound_first(self) -> None:
        """Binary predicates receive the constraint argument first."""
        assert gt(18, 19)
        assert not gt(18, 12)
        assert gteq(18, 18)
        assert lt(10, 9)

    def test_comparison_with_incomparable_value_is_false(self) -> None:
        """Comparing incomparable values answers False rather than raising."""
        assert not gt(18, "nineteen")
        assert not lt(18, None)

    def test_even_odd(self) -> None:
        assert even(4)
        assert not even(3)
        assert odd(3)
        assert not even(True)

    def test_sizes(self) -> None:
        assert size(3, "abc")
        assert not size(3, [1])
        assert min_size(1, [1, 2])
        assert not min_size(1, [])
        assert max_size(2, "ab")
        assert not max_size(2, "abc")
        assert not size(1, 5)

    def test_match(self) -> None:
        assert match(r"^\d+$", "123")
        assert not match(r"^\d+$", "12a")
        assert not match(r"\d", 12)

    def test_membership(self) -> None:
        assert in_(["a", "b"], "a")
        assert not in_(["a", "b"], "c")
        assert not_in(["a", "b"], "c")
        assert includes("x", ["x", "y"])
        assert not includes("x", 5)


class TestPredicateRegistry:
    """Tests for PredicateRegistry."""

    def test_builtin_predicates(self) -> None:
        """Registry initializes with the built-in predicate names."""
        registry = PredicateRegistry()
        names = registry.names()
        for name in ("type?", "filled?", "gt?", "size?", "match?", "in?", "not_in?"):
            assert name in names

    def test_get_unknown(self) -> None:
        """Requesting an unknown predicate raises a definition error."""
        registry = PredicateRegistry()
        with pytest.raises(ContractDefinitionError, match="Unknown predicate"):
            registry.get("uuid?")

    def test_definition_error_is_value_error(self) -> None:
        registry = PredicateRegistry()
        with pytest.raises(ValueError):
            registry.get("uuid?")

    def test_register_custom_predicate(self) -> None:
        """Register and retrieve a custom predicate."""
        registry = PredicateRegistry()
        registry.register("palindrome?", lambda value: value == value[::-1])
        assert registry.is_registered("palindrome?")
        assert registry.get("palindrome?")("abba")

    def test_custom_predicates_in_constructor(self) -> None:
        registry = PredicateRegistry({"even_length?": lambda value: len(value) % 2 == 0})
        assert registry.is_registered("even_length?")
        assert registry.is_registered("filled?")

    def test_registries_are_independent(self) -> None:
        """Registering on one registry does not leak into another."""
        first = PredicateRegistry()
        first.register("custom?", lambda value: True)
        assert not PredicateRegistry().is_registered("custom?")

    def test_register_requires_callable(self) -> None:
        registry = PredicateRegistry()
        with pytest.raises(ContractDefinitionError):
            registry.register("broken?", "not callable")  # type: ignore[arg-type]
