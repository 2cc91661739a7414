"""Builder functions producing type spec literals.

    from conform_kit.dsl import integer, list_, maybe, optional, required, string

    schema = {
        required("name"): string("filled?"),
        required("age"): integer(gt=18),
        optional("nick"): maybe(string()),
        required("tags"): list_(string(), min_size=1),
    }

Predicates are given positionally (``"filled?"``, ``("gt?", 0)``) or as
keywords taking one argument: ``gt=0`` becomes ``("gt?", 0)`` and a
trailing underscore is dropped, so ``in_=["a", "b"]`` becomes
``("in?", ["a", "b"])``. Argument-less predicates are always positional.
"""

from __future__ import annotations

from typing import Any


def _predicate_name(keyword: str) -> str:
    name = keyword.rstrip("_")
    return name if name.endswith("?") else f"{name}?"


def _predicates(args: tuple[Any, ...], kwargs: dict[str, Any]) -> list[Any]:
    return [*args, *((_predicate_name(key), value) for key, value in kwargs.items())]


def required(name: Any) -> tuple[str, Any]:
    return ("required", name)


def optional(name: Any) -> tuple[str, Any]:
    return ("optional", name)


def type_(tag: str, *predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return ("type", tag, _predicates(predicates, kw_predicates))


def any_(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("any", *predicates, **kw_predicates)


def none() -> tuple[Any, ...]:
    return type_("none")


def string(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("string", *predicates, **kw_predicates)


def integer(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("integer", *predicates, **kw_predicates)


def float_(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("float", *predicates, **kw_predicates)


def boolean(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("boolean", *predicates, **kw_predicates)


def number(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    """Integer or float; errors render as ``must be a number``."""
    return type_("number", *predicates, **kw_predicates)


def date(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("date", *predicates, **kw_predicates)


def date_time(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("date_time", *predicates, **kw_predicates)


def time(*predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return type_("time", *predicates, **kw_predicates)


def list_(member: Any, *predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return ("list", member, _predicates(predicates, kw_predicates))


def map_(keys: dict[Any, Any], *predicates: Any, **kw_predicates: Any) -> tuple[Any, ...]:
    return ("map", keys, _predicates(predicates, kw_predicates))


def union(left: Any, right: Any, *more: Any, name: str | None = None) -> tuple[Any, ...]:
    """Left-to-right alternatives; three or more nest to the right.

    ``name`` only applies to the outermost union.
    """
    if more:
        right = union(right, *more)
    opts = {"name": name} if name else {}
    return ("union", left, right, opts)


def maybe(spec: Any) -> tuple[Any, ...]:
    """``None`` or ``spec``."""
    return union(none(), spec)


def cast(source: Any, output: Any, caster: Any = None, **opts: Any) -> tuple[Any, ...]:
    """Validate as ``source``, coerce, then validate as ``output``.

    ``caster`` defaults to the built-in coercion table; remaining keyword
    options (``unit="millisecond"``) are handed to the caster.
    """
    if caster is not None:
        opts["caster"] = caster
    return ("cast", source, output, opts)
