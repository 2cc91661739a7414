"""Validation error tree and definition-time exceptions.

Validation failures are values, not exceptions: every failing branch of a
type tree produces one of the frozen ``ErrorNode`` variants below. Paths are
stored relative to the node that produced the error and are extended with
``nest()`` as the error travels up through keys and list indices.
"""

from __future__ import annotations

from typing import Annotated, Any, Hashable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

PathSegment = Hashable
Path = tuple[PathSegment, ...]


class ContractDefinitionError(ValueError):
    """Raised for malformed type specs, unknown predicates/types and bad schema files."""


class PredicateError(BaseModel):
    """A predicate in a constraint chain returned false.

    ``args`` holds the predicate's own arguments followed by the offending
    value, e.g. ``("integer", "twenty")`` for ``type?`` or ``(18, 12)`` for
    ``gt?``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["predicate"] = "predicate"
    path: Path = ()
    predicate: str
    args: tuple[Any, ...] = ()
    input: Any = None

    @property
    def is_type_mismatch(self) -> bool:
        return self.predicate == "type?"

    def nest(self, prefix: Path) -> PredicateError:
        return self.model_copy(update={"path": tuple(prefix) + self.path})


class KeyMissing(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["key_missing"] = "key_missing"
    path: Path

    def nest(self, prefix: Path) -> KeyMissing:
        return self.model_copy(update={"path": tuple(prefix) + self.path})


class OrError(BaseModel):
    """Both alternatives of a union failed."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["or"] = "or"
    path: Path = ()
    left: ErrorNode
    right: ErrorNode
    opts: dict[str, Any] = Field(default_factory=dict)

    def nest(self, prefix: Path) -> OrError:
        return self.model_copy(
            update={
                "path": tuple(prefix) + self.path,
                "left": self.left.nest(prefix),
                "right": self.right.nest(prefix),
            }
        )


class ErrorSet(BaseModel):
    """Independently collected failures of sibling keys or list members."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["set"] = "set"
    errors: tuple[ErrorNode, ...]

    def nest(self, prefix: Path) -> ErrorSet:
        return self.model_copy(update={"errors": tuple(e.nest(prefix) for e in self.errors)})


class CastError(BaseModel):
    """The input side of a cast failed, so coercion never ran."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["cast"] = "cast"
    inner: ErrorNode

    def nest(self, prefix: Path) -> CastError:
        return self.model_copy(update={"inner": self.inner.nest(prefix)})


class RuleError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["rule"] = "rule"
    path: Path = ()
    text: str

    def nest(self, prefix: Path) -> RuleError:
        return self.model_copy(update={"path": tuple(prefix) + self.path})


ErrorNode = Annotated[
    Union[PredicateError, KeyMissing, OrError, ErrorSet, CastError, RuleError],
    Field(discriminator="kind"),
]

OrError.model_rebuild()
ErrorSet.model_rebuild()
CastError.model_rebuild()
