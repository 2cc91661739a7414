"""Built-in predicate library and the predicate registry.

A predicate is a pure, total function identified by a symbolic name ending
in ``?``. Unary predicates take only the value (``filled?``); binary
predicates take a constraint argument first and the value last (``gt?``,
``size?``). Predicates never raise for an unexpected value shape: they are
only reached after ``type?`` succeeded, and otherwise answer ``False``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sized
from copy import copy
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable

from conform_kit.errors import ContractDefinitionError

logger = logging.getLogger(__name__)

PredicateFn = Callable[..., bool]


# ---------------------------------------------------------------------------
# type?
# ---------------------------------------------------------------------------

def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_date(value: Any) -> bool:
    return isinstance(value, date) and not isinstance(value, datetime)


TYPE_CHECKS: dict[str, Callable[[Any], bool]] = {
    "any": lambda value: True,
    "none": lambda value: value is None,
    "boolean": lambda value: isinstance(value, bool),
    "integer": _is_integer,
    "float": lambda value: isinstance(value, float),
    "string": lambda value: isinstance(value, str),
    "bytes": lambda value: isinstance(value, (bytes, bytearray)),
    "list": lambda value: isinstance(value, (list, tuple)),
    "map": lambda value: isinstance(value, Mapping),
    "date": _is_date,
    "date_time": lambda value: isinstance(value, datetime),
    "time": lambda value: isinstance(value, time),
    "decimal": lambda value: isinstance(value, Decimal),
}

PRIMITIVE_TAGS: frozenset[str] = frozenset(TYPE_CHECKS)


def type_(tag: str, value: Any) -> bool:
    check = TYPE_CHECKS.get(tag)
    if check is None:
        raise ContractDefinitionError(f"Unknown primitive type: {tag!r}")
    return check(value)


# ---------------------------------------------------------------------------
# Emptiness and equality
# ---------------------------------------------------------------------------

def filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, Sized):
        return len(value) > 0
    return True


def empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def eql(expected: Any, value: Any) -> bool:
    return value == expected


def not_eql(expected: Any, value: Any) -> bool:
    return value != expected


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

def _compare(op: Callable[[Any, Any], bool], bound: Any, value: Any) -> bool:
    try:
        return op(value, bound)
    except TypeError:
        return False


def gt(bound: Any, value: Any) -> bool:
    return _compare(lambda a, b: a > b, bound, value)


def gteq(bound: Any, value: Any) -> bool:
    return _compare(lambda a, b: a >= b, bound, value)


def lt(bound: Any, value: Any) -> bool:
    return _compare(lambda a, b: a < b, bound, value)


def lteq(bound: Any, value: Any) -> bool:
    return _compare(lambda a, b: a <= b, bound, value)


def even(value: Any) -> bool:
    return _is_integer(value) and value % 2 == 0


def odd(value: Any) -> bool:
    return _is_integer(value) and value % 2 == 1


# ---------------------------------------------------------------------------
# Sizes
# ---------------------------------------------------------------------------

def size(expected: int, value: Any) -> bool:
    return isinstance(value, Sized) and len(value) == expected


def min_size(bound: int, value: Any) -> bool:
    return isinstance(value, Sized) and len(value) >= bound


def max_size(bound: int, value: Any) -> bool:
    return isinstance(value, Sized) and len(value) <= bound


# ---------------------------------------------------------------------------
# Membership and format
# ---------------------------------------------------------------------------

def match(pattern: str | re.Pattern[str], value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return re.search(pattern, value) is not None


def includes(member: Any, value: Any) -> bool:
    try:
        return member in value
    except TypeError:
        return False


def excludes(member: Any, value: Any) -> bool:
    try:
        return member not in value
    except TypeError:
        return False


def in_(options: Any, value: Any) -> bool:
    try:
        return value in options
    except TypeError:
        return False


def not_in(options: Any, value: Any) -> bool:
    try:
        return value not in options
    except TypeError:
        return False


# ---------------------------------------------------------------------------
# Predicate registry
# ---------------------------------------------------------------------------

class PredicateRegistry:
    """Registry of built-in and custom predicates, keyed by symbolic name."""

    _BUILTIN_PREDICATES: dict[str, PredicateFn] = {
        "type?": type_,
        "filled?": filled,
        "empty?": empty,
        "eql?": eql,
        "not_eql?": not_eql,
        "gt?": gt,
        "gteq?": gteq,
        "lt?": lt,
        "lteq?": lteq,
        "even?": even,
        "odd?": odd,
        "size?": size,
        "min_size?": min_size,
        "max_size?": max_size,
        "match?": match,
        "includes?": includes,
        "excludes?": excludes,
        "in?": in_,
        "not_in?": not_in,
    }

    def __init__(self, custom_predicates: dict[str, PredicateFn] | None = None):
        self._predicates = copy(self._BUILTIN_PREDICATES)
        for name, func in (custom_predicates or {}).items():
            self.register(name, func)

    def get(self, name: str) -> PredicateFn:
        """Look up a predicate by name.

        Raises:
            ContractDefinitionError: if no predicate is registered under ``name``
        """
        if name not in self._predicates:
            raise ContractDefinitionError(f"Unknown predicate: {name!r}")
        return self._predicates[name]

    def is_registered(self, name: str) -> bool:
        return name in self._predicates

    def register(self, name: str, func: PredicateFn) -> None:
        """Register a custom predicate, replacing any predicate of the same name."""
        if not name or not callable(func):
            raise ContractDefinitionError(
                f"Predicate registration needs a name and a callable, got {name!r}"
            )
        logger.debug("Registering predicate %s", name)
        self._predicates[name] = func

    def names(self) -> list[str]:
        return sorted(self._predicates)
