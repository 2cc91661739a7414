"""Rendering error trees into human-readable records.

``render`` flattens an ``ErrorNode`` tree into ``RenderedError`` records,
resolving text through a ``MessageBackend``. Records are ordered by path so
output is deterministic regardless of how the tree was assembled.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Hashable, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from conform_kit.errors import (
    CastError,
    ErrorSet,
    KeyMissing,
    OrError,
    PredicateError,
    RuleError,
)


@runtime_checkable
class MessageBackend(Protocol):
    """Produces the text of a failed predicate.

    ``args`` are the predicate's arguments followed by the offending value;
    ``value`` is that same offending value.
    """

    def text(self, predicate: str, args: tuple[Any, ...], value: Any) -> str: ...


class DefaultBackend:
    """English messages for the built-in predicates and types."""

    TYPE_TEXTS: dict[str, str] = {
        "any": "must be present",
        "none": "must be nil",
        "boolean": "must be boolean",
        "integer": "must be an integer",
        "float": "must be a float",
        "string": "must be a string",
        "bytes": "must be bytes",
        "list": "must be a list",
        "map": "must be a map",
        "date": "must be a date",
        "date_time": "must be a date time",
        "time": "must be a time",
        "decimal": "must be a decimal",
    }

    TEXTS: dict[str, str] = {
        "has_key?": "key must be present",
        "filled?": "must be filled",
        "empty?": "must be empty",
        "eql?": "must be equal to %input%",
        "not_eql?": "must not be equal to %input%",
        "lt?": "must be less than %input%",
        "gt?": "must be greater than %input%",
        "lteq?": "must be less than or equal to %input%",
        "gteq?": "must be greater than or equal to %input%",
        "min_size?": "size cannot be less than %input%",
        "max_size?": "size cannot be greater than %input%",
        "size?": "size must be %input%",
        "even?": "must be even",
        "odd?": "must be odd",
        "match?": "must have a valid format",
        "includes?": "must include %input%",
        "excludes?": "must exclude %input%",
        "in?": "must be one of: %input%",
        "not_in?": "must not be one of: %input%",
        # named built-in types
        "number": "must be a number",
    }

    def text(self, predicate: str, args: tuple[Any, ...], value: Any) -> str:
        own_args = args[:-1]
        if predicate == "type?":
            tag = own_args[0] if own_args else None
            return self.TYPE_TEXTS.get(tag, f"must be {tag}")

        template = self.TEXTS.get(predicate)
        if template is None:
            return f"must satisfy {predicate}"
        if "%input%" not in template or not own_args:
            return template

        expected = own_args[0]
        if predicate in ("in?", "not_in?"):
            expected = ", ".join(str(option) for option in expected)
        return template.replace("%input%", str(expected))


class RenderedError(BaseModel):
    """A single human-facing error record."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["type", "key", "union", "rule"]
    path: tuple[Hashable, ...] = ()
    text: str = ""
    meta: dict[str, Any] = Field(default_factory=dict)
    cast: bool = False
    left: tuple[RenderedError, ...] = ()
    right: tuple[RenderedError, ...] = ()

    def __str__(self) -> str:
        if self.kind == "union":
            message = " or ".join(
                " and ".join(str(record) for record in side) for side in (self.left, self.right)
            )
        elif self.path:
            message = f"{format_path(self.path)} {self.text}"
        else:
            message = self.text
        return f"cast error: {message}" if self.cast else message


def format_path(path: tuple[Hashable, ...]) -> str:
    """``("user", 0, "email")`` -> ``"user.0.email"``; enum keys show their value."""
    return ".".join(str(segment.value if isinstance(segment, Enum) else segment) for segment in path)


def render(
    error: Any,
    backend: MessageBackend | None = None,
    path: tuple[Hashable, ...] = (),
    sort: bool = True,
) -> list[RenderedError]:
    """Flatten an error tree into rendered records.

    ``path`` is prepended to every record. With ``sort`` the records are
    ordered by path (integer segments before strings at the same depth);
    records with equal paths keep their emission order.
    """
    backend = backend or DefaultBackend()
    records = _render(error, backend, tuple(path))
    if sort:
        records.sort(key=lambda record: _path_sort_key(record.path))
    return records


def _render(error: Any, backend: MessageBackend, prefix: tuple[Hashable, ...]) -> list[RenderedError]:
    if isinstance(error, ErrorSet):
        records: list[RenderedError] = []
        for item in error.errors:
            records.extend(_render(item, backend, prefix))
        return records

    if isinstance(error, PredicateError):
        return [
            RenderedError(
                kind="type",
                path=prefix + error.path,
                text=backend.text(error.predicate, error.args, error.input),
                meta={"predicate": error.predicate, "args": error.args},
            )
        ]

    if isinstance(error, KeyMissing):
        return [
            RenderedError(
                kind="key",
                path=prefix + error.path,
                text=backend.text("has_key?", error.path[-1:], None),
                meta={"predicate": "has_key?", "args": tuple(error.path)},
            )
        ]

    if isinstance(error, OrError):
        return [_render_union(error, backend, prefix)]

    if isinstance(error, CastError):
        return [
            record.model_copy(update={"cast": True})
            for record in _render(error.inner, backend, prefix)
        ]

    if isinstance(error, RuleError):
        return [RenderedError(kind="rule", path=prefix + error.path, text=error.text)]

    raise TypeError(f"Cannot render {error!r}")


def _render_union(error: OrError, backend: MessageBackend, prefix: tuple[Hashable, ...]) -> RenderedError:
    name = error.opts.get("name")
    if name is None:
        left = tuple(_render(error.left, backend, prefix))
        right = tuple(_render(error.right, backend, prefix))
        return RenderedError(
            kind="union",
            path=prefix + error.path,
            text=" or ".join(" and ".join(record.text for record in side) for side in (left, right)),
            meta={"union": True},
            left=left,
            right=right,
        )

    # A named union reports a single record. If exactly one side got past its
    # type check, that side's predicate failure is the more precise message.
    past_type_check = [
        branch
        for branch in (error.left, error.right)
        if isinstance(branch, PredicateError) and not branch.is_type_mismatch
    ]
    if len(past_type_check) == 1:
        return _render(past_type_check[0], backend, prefix)[0]

    return RenderedError(
        kind="type",
        path=prefix + error.path,
        text=backend.text(name, (None,), None),
        meta={"union": name},
    )


def _path_sort_key(path: tuple[Hashable, ...]) -> tuple[tuple[int, Any], ...]:
    return tuple((0, segment) if isinstance(segment, int) else (1, str(segment)) for segment in path)
