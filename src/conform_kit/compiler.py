"""Type compiler: turns ``TypeSpec`` literals into a compiled type tree.

Spec forms understood by the compiler::

    "string"                                 # primitive shorthand
    ("type", "integer", [("gt?", 18)])       # primitive or registered type
    ("list", member_spec, [("min_size?", 1)])
    {("required", "name"): spec, "age": spec}  # map; bare names are required
    ("map", keys, ["filled?"])
    ("union", left, right, {"name": "id"})   # or [left, right]
    ("cast", input_spec, output_spec, {"caster": fn, "unit": "millisecond"})

``TypeDefinition`` instances and already compiled types may appear anywhere
a spec is expected; compiled types pass through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Hashable

from conform_kit import casters
from conform_kit.constraints import Predicate, and_, predicate
from conform_kit.errors import ContractDefinitionError
from conform_kit.predicates import PRIMITIVE_TAGS, PredicateRegistry
from conform_kit.settings import ContractSettings
from conform_kit.types import (
    Cast,
    CompiledType,
    Key,
    ListType,
    MapType,
    Primitive,
    TypeDefinition,
    TypeRegistry,
    UnionType,
    constrain,
)

logger = logging.getLogger(__name__)

_SPEC_TAGS = frozenset({"type", "list", "map", "union", "cast"})
_PRESENCE = frozenset({"required", "optional"})


class TypeCompiler:
    """Compiles type specs against explicit type and predicate registries."""

    def __init__(
        self,
        types: TypeRegistry | None = None,
        predicates: PredicateRegistry | None = None,
        settings: ContractSettings | None = None,
    ) -> None:
        self.types = types or TypeRegistry()
        self.predicates = predicates or PredicateRegistry()
        self.settings = settings or ContractSettings()

    def compile(self, spec: Any, **opts: Any) -> CompiledType:
        """Compile ``spec`` into a type tree.

        Options:
            atomize: normalize external key names in every map of the tree
            external_key: callable giving the external form of a key segment

        Raises:
            ContractDefinitionError: for malformed specs, unknown types or
                predicates, duplicate keys, or casts with no known caster
        """
        opts = {
            "atomize": self.settings.atomize,
            "external_key": self.settings.external_key,
            **opts,
        }
        compiled = self._visit(spec, opts, ())
        logger.debug("Compiled %s type (atomize=%s)", compiled.tag, opts["atomize"])
        return compiled

    # -- dispatch -----------------------------------------------------------

    def _visit(self, spec: Any, opts: dict[str, Any], root: tuple[Hashable, ...]) -> Any:
        if isinstance(spec, TypeDefinition):
            return self._definition(spec, opts)
        if isinstance(spec, CompiledType):
            return spec
        if isinstance(spec, str):
            return self._type(spec, (), opts)
        if isinstance(spec, Mapping):
            return self._map(spec, (), opts, root)
        if isinstance(spec, list):
            return self._list_union(spec, opts)
        if isinstance(spec, tuple) and spec and isinstance(spec[0], str) and spec[0] in _SPEC_TAGS:
            return self._tagged(spec, opts, root)
        raise ContractDefinitionError(f"Malformed type spec: {spec!r}")

    def _tagged(self, spec: tuple[Any, ...], opts: dict[str, Any], root: tuple[Hashable, ...]) -> Any:
        tag, *parts = spec
        try:
            if tag == "type":
                return self._type(parts[0], _optional(parts, 1, ()), opts)
            if tag == "list":
                return self._list(parts[0], _optional(parts, 1, ()), opts)
            if tag == "map":
                return self._map(parts[0], _optional(parts, 1, ()), opts, root)
            if tag == "union":
                return self._union(parts[0], parts[1], _optional(parts, 2, {}), opts)
            return self._cast(parts[0], parts[1], _optional(parts, 2, {}), opts)
        except IndexError:
            raise ContractDefinitionError(f"Incomplete {tag!r} spec: {spec!r}") from None

    # -- node builders ------------------------------------------------------

    def _type(self, name: Any, predicates: Any, opts: dict[str, Any]) -> Any:
        extra = self._predicates(predicates)
        if isinstance(name, str) and name in PRIMITIVE_TAGS:
            return Primitive(tag=name, constraints=and_(self._predicate("type?", (name,)), *extra))
        if isinstance(name, str) and self.types.is_registered(name):
            registered = self.types.get(name)
            if isinstance(registered, TypeDefinition):
                registered = self._definition(registered, opts)
            return constrain(registered, extra)
        raise ContractDefinitionError(f"Unknown type: {name!r}")

    def _definition(self, definition: TypeDefinition, opts: dict[str, Any]) -> Any:
        return self._visit(definition.spec, {**opts, **definition.opts}, ())

    def _list(self, member_spec: Any, predicates: Any, opts: dict[str, Any]) -> ListType:
        return ListType(
            constraints=and_(self._predicate("type?", ("list",)), *self._predicates(predicates)),
            member=self._visit(member_spec, opts, ()),
        )

    def _map(
        self,
        keys_spec: Any,
        predicates: Any,
        opts: dict[str, Any],
        root: tuple[Hashable, ...],
    ) -> MapType:
        if not isinstance(keys_spec, Mapping):
            raise ContractDefinitionError(f"Map spec must be a mapping of keys, got {keys_spec!r}")

        keys: list[Key] = []
        seen: set[Hashable] = set()
        for raw_key, value_spec in keys_spec.items():
            presence, name = _key_name(raw_key)
            if name in seen:
                raise ContractDefinitionError(f"Duplicate key {name!r} in map spec")
            seen.add(name)

            path = root + (name,)
            if _is_map_spec(value_spec):
                nested_keys, nested_predicates = _map_parts(value_spec)
                key_type = self._map(nested_keys, nested_predicates, opts, path)
                keys.append(Key(path=path, presence=presence, type=key_type, children=key_type.keys))
            else:
                key_type = self._visit(value_spec, opts, ())
                keys.append(Key(path=path, presence=presence, type=key_type))

        return MapType(
            constraints=and_(self._predicate("type?", ("map",)), *self._predicates(predicates)),
            keys=tuple(keys),
            atomize=bool(opts.get("atomize", False)),
            external_key=opts["external_key"],
        )

    def _union(self, left: Any, right: Any, union_opts: Mapping[str, Any], opts: dict[str, Any]) -> UnionType:
        return UnionType(
            left=self._visit(left, opts, ()),
            right=self._visit(right, opts, ()),
            opts=dict(union_opts),
        )

    def _list_union(self, specs: list[Any], opts: dict[str, Any]) -> UnionType:
        if len(specs) < 2:
            raise ContractDefinitionError(f"A union needs at least two alternatives, got {specs!r}")
        if len(specs) == 2:
            return self._union(specs[0], specs[1], {}, opts)
        return self._union(specs[0], specs[1:], {}, opts)

    def _cast(self, input_spec: Any, output_spec: Any, cast_opts: Mapping[str, Any], opts: dict[str, Any]) -> Cast:
        cast_opts = dict(cast_opts)
        caster_ref = cast_opts.pop("caster", None)
        input_type = self._visit(input_spec, opts, ())
        output_type = self._visit(output_spec, opts, ())

        if caster_ref is None and not casters.supports(input_type.tag, output_type.tag):
            raise ContractDefinitionError(
                f"No caster from {input_type.tag!r} to {output_type.tag!r}; pass a custom caster"
            )

        return Cast(
            input=input_type,
            output=output_type,
            caster=casters.resolve_caster(caster_ref),
            opts=cast_opts,
        )

    # -- predicates ---------------------------------------------------------

    def _predicate(self, name: str, args: tuple[Any, ...] = ()) -> Predicate:
        return predicate(name, args, registry=self.predicates)

    def _predicates(self, items: Any) -> list[Predicate]:
        if isinstance(items, (str, Mapping)):
            items = [items]
        result: list[Predicate] = []
        for item in items or ():
            if isinstance(item, Predicate):
                result.append(item)
            elif isinstance(item, str):
                result.append(self._predicate(item))
            elif isinstance(item, tuple) and item and isinstance(item[0], str):
                result.append(self._predicate(item[0], tuple(item[1:])))
            elif isinstance(item, Mapping):
                result.extend(self._predicate(name, (arg,)) for name, arg in item.items())
            else:
                raise ContractDefinitionError(f"Malformed predicate: {item!r}")
        return result


def _optional(parts: list[Any], index: int, default: Any) -> Any:
    return parts[index] if len(parts) > index else default


def _key_name(raw_key: Any) -> tuple[str, Hashable]:
    if isinstance(raw_key, tuple) and len(raw_key) == 2 and raw_key[0] in _PRESENCE:
        return raw_key[0], raw_key[1]
    return "required", raw_key


def _is_map_spec(spec: Any) -> bool:
    if isinstance(spec, Mapping):
        return True
    return isinstance(spec, tuple) and len(spec) >= 2 and spec[0] == "map"


def _map_parts(spec: Any) -> tuple[Any, Any]:
    if isinstance(spec, Mapping):
        return spec, ()
    return spec[1], _optional(list(spec), 2, ())


def compile_type(spec: Any, **opts: Any) -> CompiledType:
    """Compile ``spec`` with a fresh compiler using the built-in registries."""
    return TypeCompiler().compile(spec, **opts)
