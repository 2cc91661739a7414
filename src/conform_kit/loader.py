"""Loading type specs from YAML schema files.

A schema file is a mapping of key names to type entries::

    name:
      type: string
      predicates:
        - filled?
    age:
      type: integer
      predicates:
        - gt?: 18
    ?nickname: string            # leading "?" marks an optional key
    tags:
      list: string
    id:
      union: [integer, string]
    joined:
      cast: {from: string, to: date}
    address:                     # nested mapping, or {map: {...}}
      city: string

``type``, ``predicates``, ``list``, ``union``, ``cast`` and ``map`` are
reserved entry keys; an entry holding any of them is read as a type entry,
not as a nested mapping. Predicates next to ``union`` apply to every
alternative; next to ``cast`` they apply to the output side.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from conform_kit.errors import ContractDefinitionError

_ENTRY_KEYS = frozenset({"type", "predicates", "list", "union", "cast", "map"})


def load_schema_file(path: Path | str) -> dict[Any, Any]:
    """Load a schema file into a map type spec.

    Raises:
        ContractDefinitionError: if the file is missing, is not valid YAML,
            or contains a malformed entry
    """
    path = Path(path)
    if not path.exists():
        raise ContractDefinitionError(f"Schema file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ContractDefinitionError(f"Schema file is not valid YAML: {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ContractDefinitionError(f"Schema file must be a mapping: {path}")
    return parse_keys(raw, where=str(path))


def parse_keys(raw: dict[Any, Any], where: str = "<schema>") -> dict[Any, Any]:
    keys: dict[Any, Any] = {}
    for name, entry in raw.items():
        if isinstance(name, str) and name.startswith("?"):
            key = ("optional", name[1:])
        else:
            key = ("required", name)
        keys[key] = parse_entry(entry, where=f"{where}.{key[1]}")
    return keys


def parse_entry(entry: Any, where: str = "<schema>") -> Any:
    """Translate one YAML type entry into a type spec literal."""
    if isinstance(entry, str):
        return entry
    if not isinstance(entry, dict):
        raise ContractDefinitionError(f"Unsupported type entry at {where}: {entry!r}")
    if not _ENTRY_KEYS.intersection(entry):
        return parse_keys(entry, where=where)

    predicates = _parse_predicates(entry.get("predicates", []), where)
    if "type" in entry:
        return ("type", entry["type"], predicates)
    if "list" in entry:
        return ("list", parse_entry(entry["list"], where=f"{where}[]"), predicates)
    if "map" in entry:
        if not isinstance(entry["map"], dict):
            raise ContractDefinitionError(f"'map' entry at {where} must be a mapping")
        return ("map", parse_keys(entry["map"], where=where), predicates)
    if "union" in entry:
        options = entry["union"]
        if not isinstance(options, list) or len(options) < 2:
            raise ContractDefinitionError(f"'union' entry at {where} needs a list of two or more types")
        return _with_predicates([parse_entry(option, where=where) for option in options], predicates, where)
    if "cast" in entry:
        return _with_predicates(_parse_cast(entry["cast"], where), predicates, where)
    raise ContractDefinitionError(f"Type entry at {where} has predicates but no type")


def _parse_cast(raw: Any, where: str) -> tuple[Any, ...]:
    if not isinstance(raw, dict) or "from" not in raw or "to" not in raw:
        raise ContractDefinitionError(f"'cast' entry at {where} needs 'from' and 'to'")
    opts = {key: value for key, value in raw.items() if key not in ("from", "to")}
    return (
        "cast",
        parse_entry(raw["from"], where=where),
        parse_entry(raw["to"], where=where),
        opts,
    )


def _with_predicates(spec: Any, predicates: list[Any], where: str) -> Any:
    """Append predicates to a parsed spec.

    Unions constrain every alternative; casts constrain their output side.
    """
    if not predicates:
        return spec
    if isinstance(spec, str):
        return ("type", spec, predicates)
    if isinstance(spec, list):
        return [_with_predicates(option, predicates, where) for option in spec]
    if isinstance(spec, dict):
        return ("map", spec, predicates)
    if isinstance(spec, tuple) and spec[0] in ("type", "list", "map"):
        return (spec[0], spec[1], [*spec[2], *predicates])
    if isinstance(spec, tuple) and spec[0] == "cast":
        return ("cast", spec[1], _with_predicates(spec[2], predicates, where), spec[3])
    raise ContractDefinitionError(f"Cannot apply predicates to the type entry at {where}: {spec!r}")


def _parse_predicates(raw: Any, where: str) -> list[Any]:
    if not isinstance(raw, list):
        raw = [raw]
    predicates: list[Any] = []
    for item in raw:
        if isinstance(item, str):
            predicates.append(item)
        elif isinstance(item, dict) and len(item) == 1:
            ((name, arg),) = item.items()
            predicates.append((name, arg))
        else:
            raise ContractDefinitionError(f"Malformed predicate at {where}: {item!r}")
    return predicates
