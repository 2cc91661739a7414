"""Tests for validating values against compiled types."""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

import pytest
from conform_kit.compiler import TypeCompiler, compile_type
from conform_kit.errors import CastError, ErrorSet, KeyMissing, OrError, PredicateError
from conform_kit.messages import render
from conform_kit.predicates import PredicateRegistry
from conform_kit.types import identity_external_key
from conform_kit.validator import Err, Ok, validate


def _boom(value: Any) -> bool:
    raise RuntimeError("predicate should not have run")


class TestPrimitiveValidation:
    """Tests for primitive types and AND chains."""

    def test_valid_value(self) -> None:
        assert validate(compile_type("integer"), 5) == Ok(value=5)

    def test_type_mismatch(self) -> None:
        """A type? failure carries the tag followed by the offending value."""
        outcome = validate(compile_type("integer"), "5")
        assert isinstance(outcome, Err)
        assert outcome.error == PredicateError(predicate="type?", args=("integer", "5"), input="5")
        assert outcome.error.is_type_mismatch

    def test_predicate_failure(self) -> None:
        outcome = validate(compile_type(("type", "integer", [("gt?", 18)])), 12)
        assert outcome.error.predicate == "gt?"
        assert outcome.error.args == (18, 12)
        assert not outcome.error.is_type_mismatch

    def test_and_chain_short_circuits(self) -> None:
        """A predicate after a failed one never runs."""
        compiler = TypeCompiler(predicates=PredicateRegistry({"boom?": _boom}))
        compiled = compiler.compile(("type", "integer", ["boom?"]))
        outcome = compiled.validate("not an integer")
        assert outcome.error.predicate == "type?"

    def test_predicate_exceptions_propagate(self) -> None:
        """A raising predicate is a fault, not a validation error."""
        compiler = TypeCompiler(predicates=PredicateRegistry({"boom?": _boom}))
        compiled = compiler.compile(("type", "integer", ["boom?"]))
        with pytest.raises(RuntimeError, match="should not have run"):
            compiled.validate(5)


class TestListValidation:
    """Tests for list types."""

    def test_valid_list(self) -> None:
        assert compile_type(("list", "integer")).validate([1, 2, 3]) == Ok(value=[1, 2, 3])

    def test_every_member_is_checked(self) -> None:
        """Member failures are collected, nested under their index."""
        outcome = compile_type(("list", "integer")).validate([1, "x", 3, "y"])
        assert isinstance(outcome.error, ErrorSet)
        assert [error.path for error in outcome.error.errors] == [(1,), (3,)]

    def test_list_constraints_run_before_members(self) -> None:
        outcome = compile_type(("list", "integer", [("min_size?", 1)])).validate([])
        assert outcome.error.predicate == "min_size?"

    def test_not_a_list(self) -> None:
        outcome = compile_type(("list", "integer")).validate("abc")
        assert outcome.error.args == ("list", "abc")


class TestMapValidation:
    """Tests for map types."""

    def test_output_only_has_declared_keys(self) -> None:
        compiled = compile_type({"a": "integer"})
        assert compiled.validate({"a": 1, "extra": True}) == Ok(value={"a": 1})

    def test_sibling_keys_do_not_short_circuit(self) -> None:
        """A failing key does not stop later keys from being validated."""
        outcome = compile_type({"a": "integer", "b": "integer"}).validate({"a": "x", "b": "y"})
        assert isinstance(outcome.error, ErrorSet)
        assert [error.path for error in outcome.error.errors] == [("a",), ("b",)]

    def test_required_key_missing(self) -> None:
        outcome = compile_type({"a": "integer"}).validate({})
        assert outcome.error.errors == (KeyMissing(path=("a",)),)

    def test_optional_key_missing(self) -> None:
        compiled = compile_type({("optional", "a"): "integer"})
        assert compiled.validate({}) == Ok(value={})

    def test_optional_key_present_is_validated(self) -> None:
        compiled = compile_type({("optional", "a"): "integer"})
        assert not compiled.validate({"a": "x"}).ok

    def test_nested_paths(self) -> None:
        """Errors inside nested maps carry the full key path."""
        compiled = compile_type({"user": {"address": {"city": "string"}}})
        outcome = compiled.validate({"user": {"address": {"city": 5}}})
        assert [record.path for record in render(outcome.error)] == [("user", "address", "city")]

    def test_path_through_list(self) -> None:
        compiled = compile_type({"items": ("list", {"sku": "string"})})
        outcome = compiled.validate({"items": [{"sku": "a"}, {"sku": 1}]})
        assert [record.path for record in render(outcome.error)] == [("items", 1, "sku")]

    def test_not_a_map(self) -> None:
        outcome = compile_type({"a": "integer"}).validate(["a"])
        assert outcome.error.predicate == "type?"
        assert outcome.error.args == ("map", ["a"])


class TestUnionValidation:
    """Tests for union types."""

    def test_left_wins(self) -> None:
        assert compile_type(["integer", "string"]).validate(1) == Ok(value=1)

    def test_right_is_tried_after_type_mismatch(self) -> None:
        assert compile_type(["integer", "string"]).validate("x") == Ok(value="x")

    def test_both_fail(self) -> None:
        outcome = compile_type(["integer", "string"]).validate(None)
        assert isinstance(outcome.error, OrError)
        assert outcome.error.left.args == ("integer", None)
        assert outcome.error.right.args == ("string", None)

    def test_commits_to_primitive_left_after_type_check(self) -> None:
        """Once the left type check passes, its predicate failure is final."""
        compiled = compile_type([("type", "integer", [("gt?", 0)]), "string"])
        outcome = compiled.validate(-5)
        assert isinstance(outcome.error, PredicateError)
        assert outcome.error.predicate == "gt?"

    def test_constrained_string_or_integer(self) -> None:
        """A string failing size? never reaches the integer side; [] fails both type checks."""
        compiled = compile_type([("type", "string", [("size?", 5)]), "integer"])
        outcome = compiled.validate("Hello World")
        assert outcome.error == PredicateError(predicate="size?", args=(5, "Hello World"), input="Hello World")

        outcome = compiled.validate([])
        assert isinstance(outcome.error, OrError)
        assert outcome.error.left.args == ("string", [])
        assert outcome.error.right.args == ("integer", [])
        assert compiled.validate(7) == Ok(value=7)

    def test_non_primitive_left_falls_through(self) -> None:
        """A failing list on the left still lets the right side try."""
        compiled = compile_type([("list", "integer"), "string"])
        assert compiled.validate("x") == Ok(value="x")
        outcome = compiled.validate(["x"])
        assert isinstance(outcome.error, OrError)
        assert isinstance(outcome.error.left, ErrorSet)

    def test_union_errors_nest_under_key(self) -> None:
        outcome = compile_type({"id": ["integer", "string"]}).validate({"id": None})
        union_error = outcome.error.errors[0]
        assert union_error.path == ("id",)
        assert union_error.left.path == ("id",)
        assert union_error.right.path == ("id",)


class TestCastValidation:
    """Tests for cast types."""

    def test_cast_then_validate_output(self) -> None:
        compiled = compile_type(("cast", "string", ("type", "integer", [("gt?", 0)])))
        assert compiled.validate("5") == Ok(value=5)

    def test_output_failure_is_plain(self) -> None:
        """Output failures are reported as-is, not wrapped as cast errors."""
        compiled = compile_type(("cast", "string", ("type", "integer", [("gt?", 0)])))
        outcome = compiled.validate("-5")
        assert isinstance(outcome.error, PredicateError)
        assert outcome.error.predicate == "gt?"
        assert outcome.error.args == (0, -5)

    def test_input_failure_is_cast_error(self) -> None:
        compiled = compile_type(("cast", "string", "integer"))
        outcome = compiled.validate(None)
        assert isinstance(outcome.error, CastError)
        assert outcome.error.inner.args == ("string", None)

    def test_caster_exceptions_propagate(self) -> None:
        compiled = compile_type(("cast", "string", "integer"))
        with pytest.raises(ValueError):
            compiled.validate("abc")

    def test_unix_time_units(self) -> None:
        compiled = compile_type(("cast", "integer", "date_time", {"unit": "millisecond"}))
        outcome = compiled.validate(1695277470000)
        assert outcome.value == datetime(2023, 9, 21, 6, 24, 30, tzinfo=timezone.utc)

    def test_string_to_date(self) -> None:
        assert compile_type(("cast", "string", "date")).validate("2024-01-05") == Ok(value=date(2024, 1, 5))

    def test_custom_caster(self) -> None:
        """A custom caster receives tags, the validated value and options."""
        calls = []

        def caster(input_tag: str, output_tag: str, value: Any, opts: dict) -> Any:
            calls.append((input_tag, output_tag, value, opts))
            return value.upper()

        compiled = compile_type(("cast", "string", "string", {"caster": caster, "mode": "upper"}))
        assert compiled.validate("abc") == Ok(value="ABC")
        assert calls == [("string", "string", "abc", {"mode": "upper"})]

    def test_caster_object(self) -> None:
        class Trim:
            def cast(self, input_tag: str, output_tag: str, value: Any, opts: dict) -> Any:
                return value.strip()

        compiled = compile_type(("cast", "string", ("type", "string", ["filled?"]), {"caster": Trim()}))
        assert compiled.validate("  x ") == Ok(value="x")
        assert compiled.validate("   ").error.predicate == "filled?"


class KeyName(Enum):
    NAME = "name"


class TestAtomization:
    """Tests for key normalization on atomizing maps."""

    def test_external_key_accepted(self) -> None:
        compiled = compile_type({"user_name": "string"}, atomize=True)
        assert compiled.validate({"userName": "X"}) == Ok(value={"user_name": "X"})

    def test_canonical_key_wins(self) -> None:
        """When both forms are present the canonical entry is used."""
        compiled = compile_type({"user_name": "string"}, atomize=True)
        assert compiled.validate({"userName": "X", "user_name": "Y"}) == Ok(value={"user_name": "Y"})

    def test_nested_maps(self) -> None:
        compiled = compile_type({"user_info": {"first_name": "string"}}, atomize=True)
        outcome = compiled.validate({"userInfo": {"firstName": "Jane"}})
        assert outcome == Ok(value={"user_info": {"first_name": "Jane"}})

    def test_without_atomize_external_key_is_missing(self) -> None:
        outcome = compile_type({"user_name": "string"}).validate({"userName": "X"})
        assert outcome.error.errors == (KeyMissing(path=("user_name",)),)

    def test_identity_external_key(self) -> None:
        compiled = compile_type({"user_name": "string"}, atomize=True, external_key=identity_external_key)
        assert not compiled.validate({"userName": "X"}).ok

    def test_enum_and_integer_keys(self) -> None:
        """Non-string keys are matched by their string or enum value."""
        compiled = compile_type({KeyName.NAME: "string", 1: "integer"}, atomize=True)
        assert compiled.validate({"name": "x", "1": 2}) == Ok(value={KeyName.NAME: "x", 1: 2})
