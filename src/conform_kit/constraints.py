"""AND/OR composition of named predicate invocations.

A constraint expression is either a single ``Predicate`` invocation, an
``And`` list (applied left to right, stopping at the first failure) or an
``Or`` pair (the right alternative is tried only when the left one fails).
Items of ``And``/``Or`` may also be compiled types, which lets a key express
"subschema AND its own extra constraints" with the same machinery.
"""

from __future__ import annotations

from typing import Any, Callable, Union

from pydantic import BaseModel, ConfigDict, Field

from conform_kit.errors import OrError, PredicateError
from conform_kit.predicates import PredicateRegistry
from conform_kit.validator import Err, Ok, Outcome


class Predicate(BaseModel):
    """A predicate bound to its constraint arguments."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    args: tuple[Any, ...] = ()
    func: Callable[..., bool] = Field(repr=False)

    def apply(self, value: Any) -> Outcome:
        if self.func(*self.args, value):
            return Ok(value=value)
        return Err(
            error=PredicateError(predicate=self.name, args=(*self.args, value), input=value)
        )


class And(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    items: tuple[Any, ...]


class Or(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    left: Any
    right: Any
    opts: dict[str, Any] = Field(default_factory=dict)


ConstraintExpr = Union[Predicate, And, Or]


def predicate(
    name: str,
    args: tuple[Any, ...] | list[Any] = (),
    registry: PredicateRegistry | None = None,
) -> Predicate:
    """Build a predicate invocation, resolving ``name`` against ``registry``.

    Raises:
        ContractDefinitionError: if ``name`` is not registered
    """
    registry = registry or PredicateRegistry()
    return Predicate(name=name, args=tuple(args), func=registry.get(name))


def and_(*items: Any) -> And:
    """Compose items into a flat AND chain (nested ``And`` items are spliced in)."""
    flat: list[Any] = []
    for item in items:
        if isinstance(item, And):
            flat.extend(item.items)
        else:
            flat.append(item)
    return And(items=tuple(flat))


def or_(left: Any, right: Any, **opts: Any) -> Or:
    return Or(left=left, right=right, opts=opts)


def apply_constraints(expr: Any, value: Any) -> Outcome:
    """Apply a constraint expression to ``value``.

    AND chains short-circuit: once an item fails, later items never run, so
    a later predicate always sees a value that passed every earlier one.
    Items that transform the value (compiled types containing casts) hand
    the transformed value on to the next item.
    """
    if isinstance(expr, Predicate):
        return expr.apply(value)

    if isinstance(expr, And):
        outcome: Outcome = Ok(value=value)
        for item in expr.items:
            outcome = apply_constraints(item, outcome.value)
            if not outcome.ok:
                return outcome
        return outcome

    if isinstance(expr, Or):
        left = apply_constraints(expr.left, value)
        if left.ok:
            return left
        right = apply_constraints(expr.right, value)
        if right.ok:
            return right
        return Err(error=OrError(left=left.error, right=right.error, opts=expr.opts))

    # A compiled type used as a constraint item.
    return expr.validate(value)


def extend(expr: ConstraintExpr, extra: list[Predicate]) -> ConstraintExpr:
    """Append extra predicates to an expression, keeping it a flat AND chain."""
    if not extra:
        return expr
    return and_(expr, *extra)
