"""Default coercion functions used by cast types.

A caster is any callable ``(input_tag, output_tag, value, opts) -> value``.
Casters run only after the cast's input type accepted the value; a caster
that cannot convert raises, and that fault propagates to the caller.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Callable, Protocol

from conform_kit.errors import ContractDefinitionError

_TRUE_STRINGS = frozenset({"true", "t", "yes", "y", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "f", "no", "n", "off", "0"})

_UNIX_DIVISORS = {
    "second": 1,
    "millisecond": 1_000,
    "microsecond": 1_000_000,
}


class Caster(Protocol):
    def __call__(self, input_tag: str, output_tag: str, value: Any, opts: dict[str, Any]) -> Any: ...


def _string_to_boolean(value: str, opts: dict[str, Any]) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"Cannot cast {value!r} to boolean")


def _unix_divisor(opts: dict[str, Any]) -> int:
    unit = opts.get("unit", "second")
    if unit not in _UNIX_DIVISORS:
        raise ContractDefinitionError(
            f"Unknown unix time unit {unit!r}; expected one of {sorted(_UNIX_DIVISORS)}"
        )
    return _UNIX_DIVISORS[unit]


def _integer_to_date_time(value: int, opts: dict[str, Any]) -> datetime:
    return datetime.fromtimestamp(value / _unix_divisor(opts), tz=timezone.utc)


def _date_time_to_integer(value: datetime, opts: dict[str, Any]) -> int:
    return int(value.timestamp() * _unix_divisor(opts))


CASTS: dict[tuple[str, str], Callable[[Any, dict[str, Any]], Any]] = {
    ("string", "integer"): lambda value, opts: int(value),
    ("string", "float"): lambda value, opts: float(value),
    ("string", "decimal"): lambda value, opts: Decimal(value),
    ("string", "boolean"): _string_to_boolean,
    ("string", "date"): lambda value, opts: date.fromisoformat(value),
    ("string", "date_time"): lambda value, opts: datetime.fromisoformat(value),
    ("string", "time"): lambda value, opts: time.fromisoformat(value),
    ("integer", "string"): lambda value, opts: str(value),
    ("integer", "float"): lambda value, opts: float(value),
    ("integer", "decimal"): lambda value, opts: Decimal(value),
    ("integer", "date_time"): _integer_to_date_time,
    ("float", "string"): lambda value, opts: str(value),
    ("float", "integer"): lambda value, opts: int(value),
    ("decimal", "string"): lambda value, opts: str(value),
    ("date", "string"): lambda value, opts: value.isoformat(),
    ("date_time", "string"): lambda value, opts: value.isoformat(),
    ("date_time", "integer"): _date_time_to_integer,
    ("date_time", "date"): lambda value, opts: value.date(),
    ("time", "string"): lambda value, opts: value.isoformat(),
}


def supports(input_tag: str, output_tag: str) -> bool:
    return input_tag == output_tag or (input_tag, output_tag) in CASTS


def cast(input_tag: str, output_tag: str, value: Any, opts: dict[str, Any]) -> Any:
    """Coerce ``value`` from ``input_tag`` to ``output_tag``.

    Examples:
        >>> cast("string", "integer", "12", {})
        12
        >>> cast("integer", "date_time", 1695277470, {}).year
        2023

    Raises:
        ContractDefinitionError: when no conversion exists for the tag pair
    """
    if input_tag == output_tag:
        return value
    converter = CASTS.get((input_tag, output_tag))
    if converter is None:
        raise ContractDefinitionError(f"No caster from {input_tag!r} to {output_tag!r}")
    return converter(value, opts)


def resolve_caster(candidate: Any) -> Caster:
    """Turn a ``caster`` option into a callable.

    Accepts ``None`` (the default caster), a callable, or an object exposing
    a ``cast`` method.
    """
    if candidate is None:
        return cast
    if hasattr(candidate, "cast") and callable(candidate.cast):
        return candidate.cast
    if callable(candidate):
        return candidate
    raise ContractDefinitionError(f"Caster must be callable or define cast(), got {candidate!r}")
