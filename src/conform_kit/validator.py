"""Validation outcomes and the polymorphic ``validate`` entry point."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from conform_kit.types import CompiledType


class Ok(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None

    @property
    def ok(self) -> bool:
        return True


class Err(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    error: Any  # an ErrorNode

    @property
    def ok(self) -> bool:
        return False

    def nest(self, prefix: tuple[Any, ...]) -> Err:
        """Return a copy whose error paths are prefixed with ``prefix``."""
        return Err(error=self.error.nest(prefix))


Outcome = Union[Ok, Err]


def validate(type: CompiledType, value: Any) -> Outcome:
    """Validate ``value`` against a compiled type.

    Dispatches on the runtime variant of ``type``; built-in and custom types
    alike implement ``validate(value)``. Predicate, caster and rule faults
    propagate as exceptions.
    """
    return type.validate(value)

