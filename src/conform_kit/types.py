"""Compiled type tree.

Each node variant carries its own validation algorithm; ``validate`` in
``conform_kit.validator`` simply dispatches to it. Nodes are frozen and may
be shared freely between concurrent validations.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, ClassVar, Hashable, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from conform_kit.constraints import Predicate, apply_constraints, extend, or_
from conform_kit.errors import (
    CastError,
    ContractDefinitionError,
    ErrorSet,
    KeyMissing,
    OrError,
    PredicateError,
)
from conform_kit.validator import Err, Ok, Outcome

Presence = Literal["required", "optional"]
ExternalKeyFn = Callable[[Hashable], Hashable]


@runtime_checkable
class CompiledType(Protocol):
    """Protocol implemented by every compiled type, built-in or custom."""

    @property
    def tag(self) -> str: ...

    @property
    def constraints(self) -> Any: ...

    def validate(self, value: Any) -> Outcome: ...


# ---------------------------------------------------------------------------
# Key representation helpers
# ---------------------------------------------------------------------------

_CAMEL_SPLIT = re.compile(r"_+([a-z0-9])")


def camelize(name: str) -> str:
    """``"first_name"`` -> ``"firstName"``; names without underscores are unchanged."""
    head = name[:1]
    return head + _CAMEL_SPLIT.sub(lambda m: m.group(1).upper(), name[1:])


def default_external_key(segment: Hashable) -> Hashable:
    """External (wire) form of a canonical key segment."""
    if isinstance(segment, Enum):
        return segment.value
    if isinstance(segment, str):
        return camelize(segment)
    return str(segment)


def identity_external_key(segment: Hashable) -> Hashable:
    if isinstance(segment, Enum):
        return segment.value
    return segment if isinstance(segment, str) else str(segment)


# ---------------------------------------------------------------------------
# Primitive
# ---------------------------------------------------------------------------

class Primitive(BaseModel):
    """A primitive type: ``type?(tag)`` followed by any extra predicates."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_primitive: ClassVar[bool] = True

    tag: str
    constraints: Any

    def validate(self, value: Any) -> Outcome:
        return apply_constraints(self.constraints, value)


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------

class ListType(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_primitive: ClassVar[bool] = False

    tag: Literal["list"] = "list"
    constraints: Any
    member: Any

    def validate(self, value: Any) -> Outcome:
        outcome = apply_constraints(self.constraints, value)
        if not outcome.ok:
            return outcome

        items: list[Any] = []
        errors = []
        for index, item in enumerate(outcome.value):
            result = self.member.validate(item)
            if result.ok:
                items.append(result.value)
            else:
                errors.append(result.error.nest((index,)))

        if errors:
            return Err(error=ErrorSet(errors=tuple(errors)))
        return Ok(value=items)


# ---------------------------------------------------------------------------
# Map
# ---------------------------------------------------------------------------

class Key(BaseModel):
    """A declared map key.

    ``path`` is the full segment chain from the owning root map, so nested
    keys can be addressed without walking their ancestors. ``children``
    mirrors the keys of ``type`` when it is itself a map.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    path: tuple[Hashable, ...]
    presence: Presence
    type: Any
    children: tuple[Key, ...] = ()

    @property
    def name(self) -> Hashable:
        return self.path[-1]

    @property
    def predicates(self) -> Any:
        return self.type.constraints

    def validate(self, data: Mapping[Hashable, Any]) -> Outcome | None:
        """Validate this key's entry in ``data``; ``None`` means optional and absent."""
        if self.name in data:
            return _nest(self.type.validate(data[self.name]), (self.name,))
        if self.presence == "required":
            return Err(error=KeyMissing(path=(self.name,)))
        return None


def _nest(outcome: Outcome, prefix: tuple[Hashable, ...]) -> Outcome:
    return outcome if outcome.ok else outcome.nest(prefix)


def atomize_keys(
    data: Mapping[Hashable, Any],
    keys: tuple[Key, ...],
    external_key: ExternalKeyFn = default_external_key,
) -> dict[Hashable, Any]:
    """Rebuild ``data`` under canonical key names.

    Entries under the canonical name win over entries under the external
    name; input keys with no declared ``Key`` are dropped. Nested maps are
    rebuilt from their ``children`` before being placed in the result.
    """
    result: dict[Hashable, Any] = {}
    for key in keys:
        if key.name in data:
            value = data[key.name]
        else:
            external = external_key(key.name)
            if external not in data:
                continue
            value = data[external]

        if key.children and isinstance(value, Mapping):
            value = atomize_keys(value, key.children, external_key)
        result[key.name] = value
    return result


class MapType(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_primitive: ClassVar[bool] = False

    tag: Literal["map"] = "map"
    constraints: Any
    keys: tuple[Key, ...] = ()
    atomize: bool = False
    external_key: ExternalKeyFn = Field(default=default_external_key, repr=False)

    def validate(self, value: Any) -> Outcome:
        outcome = apply_constraints(self.constraints, value)
        if not outcome.ok:
            return outcome

        data = outcome.value
        if self.atomize:
            data = atomize_keys(data, self.keys, self.external_key)

        output: dict[Hashable, Any] = {}
        errors = []
        for key in self.keys:
            result = key.validate(data)
            if result is None:
                continue
            if result.ok:
                output[key.name] = result.value
            else:
                errors.append(result.error)

        if errors:
            return Err(error=ErrorSet(errors=tuple(errors)))
        return Ok(value=output)


# ---------------------------------------------------------------------------
# Union
# ---------------------------------------------------------------------------

class UnionType(BaseModel):
    """A sum of two types, tried left first.

    Once a primitive left side has accepted the value's shape (its ``type?``
    passed) the union stays committed to it: a later predicate failure on
    the left is returned as is and the right side is never tried.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_primitive: ClassVar[bool] = False

    left: Any
    right: Any
    opts: dict[str, Any] = Field(default_factory=dict)

    @property
    def tag(self) -> str:
        return self.opts.get("name", "union")

    @property
    def constraints(self) -> Any:
        return or_(self.left.constraints, self.right.constraints, **self.opts)

    def validate(self, value: Any) -> Outcome:
        left = self.left.validate(value)
        if left.ok:
            return left

        if self._committed_to_left(left.error):
            return left

        right = self.right.validate(value)
        if right.ok:
            return right

        return Err(error=OrError(left=left.error, right=right.error, opts=self.opts))

    def _committed_to_left(self, error: Any) -> bool:
        return (
            getattr(self.left, "is_primitive", False)
            and isinstance(error, PredicateError)
            and not error.is_type_mismatch
        )


# ---------------------------------------------------------------------------
# Cast
# ---------------------------------------------------------------------------

class Cast(BaseModel):
    """Validate input, coerce, then validate the coerced value as output."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    is_primitive: ClassVar[bool] = False

    input: Any
    output: Any
    caster: Callable[..., Any] = Field(repr=False)
    opts: dict[str, Any] = Field(default_factory=dict)

    @property
    def tag(self) -> str:
        return self.output.tag

    @property
    def constraints(self) -> Any:
        return self.output.constraints

    def validate(self, value: Any) -> Outcome:
        outcome = self.input.validate(value)
        if not outcome.ok:
            return Err(error=CastError(inner=outcome.error))

        cast_value = self.caster(self.input.tag, self.output.tag, outcome.value, self.opts)
        return self.output.validate(cast_value)


# ---------------------------------------------------------------------------
# Constraining compiled types
# ---------------------------------------------------------------------------

def constrain(type: Any, extra: list[Predicate]) -> Any:
    """Return ``type`` with ``extra`` predicates appended to its constraints.

    Unions constrain both alternatives; casts constrain their output side.
    """
    if not extra:
        return type
    if isinstance(type, (Primitive, ListType, MapType)):
        return type.model_copy(update={"constraints": extend(type.constraints, extra)})
    if isinstance(type, UnionType):
        return type.model_copy(
            update={"left": constrain(type.left, extra), "right": constrain(type.right, extra)}
        )
    if isinstance(type, Cast):
        return type.model_copy(update={"output": constrain(type.output, extra)})
    if hasattr(type, "constrain"):
        return type.constrain(extra)
    raise ContractDefinitionError(
        f"Type {type!r} does not accept extra predicates"
    )


# ---------------------------------------------------------------------------
# Reusable type definitions and the type registry
# ---------------------------------------------------------------------------

class TypeDefinition(BaseModel):
    """A named, reusable type spec.

    A definition can be referenced directly wherever a spec is expected, or
    registered in a ``TypeRegistry`` and referenced by name. ``opts`` are
    merged into the compile options; for union specs a ``name`` option makes
    errors render under that single name.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    spec: Any
    opts: dict[str, Any] = Field(default_factory=dict)


class TypeRegistry:
    """Registry of named custom types available to the compiler."""

    _BUILTIN_TYPES: dict[str, Any] = {
        "number": TypeDefinition(
            name="number",
            spec=("union", "integer", "float", {"name": "number"}),
        ),
    }

    def __init__(self, custom_types: dict[str, Any] | None = None):
        self._types = dict(self._BUILTIN_TYPES)
        for name, definition in (custom_types or {}).items():
            self.register(name, definition)

    def get(self, name: str) -> Any:
        """Get a registered type (a ``TypeDefinition`` or a compiled type) by name.

        Raises:
            ContractDefinitionError: if ``name`` is not registered
        """
        if name not in self._types:
            raise ContractDefinitionError(f"Unknown type: {name!r}")
        return self._types[name]

    def is_registered(self, name: str) -> bool:
        return name in self._types

    def register(self, name: str, definition: Any) -> None:
        """Register a type under ``name``.

        ``definition`` may be a ``TypeDefinition``, an already compiled type
        or a plain spec (wrapped into a ``TypeDefinition``).
        """
        if not isinstance(definition, TypeDefinition) and not isinstance(definition, CompiledType):
            definition = TypeDefinition(name=name, spec=definition)
        self._types[name] = definition

    def get_all_types(self) -> dict[str, Any]:
        return dict(self._types)
