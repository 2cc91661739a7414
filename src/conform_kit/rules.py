"""Cross-field rules evaluated over a structurally valid output."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Iterable

from pydantic import BaseModel, ConfigDict, Field

from conform_kit.errors import ContractDefinitionError, RuleError

logger = logging.getLogger(__name__)


def matches_pattern(pattern: Mapping[Any, Any], value: Any) -> bool:
    """Partial structural match: every key in ``pattern`` must be present in
    ``value`` with an equal value; nested mappings are matched recursively."""
    if not isinstance(value, Mapping):
        return False
    for key, expected in pattern.items():
        if key not in value:
            return False
        if isinstance(expected, Mapping):
            if not matches_pattern(expected, value[key]):
                return False
        elif value[key] != expected:
            return False
    return True


class Rule(BaseModel):
    """A named check over the validated output.

    ``guard`` selects the outputs the rule applies to: ``None`` for all of
    them, a mapping pattern, or a predicate callable. ``body`` returns
    ``None``/``True`` on success, or a message, a ``(path, message)`` pair,
    a ``RuleError`` or a list of those.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    guard: Any = None
    body: Callable[[Any], Any] = Field(repr=False)

    def applies_to(self, output: Any) -> bool:
        if self.guard is None:
            return True
        if isinstance(self.guard, Mapping):
            return matches_pattern(self.guard, output)
        if callable(self.guard):
            return bool(self.guard(output))
        raise ContractDefinitionError(
            f"Rule {self.name!r} guard must be a mapping or a callable, got {self.guard!r}"
        )

    def apply(self, output: Any) -> list[RuleError]:
        if not self.applies_to(output):
            return []
        return self._normalize(self.body(output))

    def _normalize(self, result: Any) -> list[RuleError]:
        if result is None or result is True:
            return []
        if result is False:
            return [RuleError(text=f"{self.name} failed")]
        if isinstance(result, RuleError):
            return [result]
        if isinstance(result, str):
            return [RuleError(text=result)]
        if isinstance(result, tuple) and len(result) == 2 and isinstance(result[1], str):
            path, text = result
            if isinstance(path, (list, tuple)):
                path = tuple(path)
            else:
                path = (path,)
            return [RuleError(path=path, text=text)]
        if isinstance(result, list):
            errors: list[RuleError] = []
            for item in result:
                errors.extend(self._normalize(item))
            return errors
        raise ContractDefinitionError(f"Rule {self.name!r} returned an unsupported value: {result!r}")


def as_rule(candidate: Any, name: str | None = None, guard: Any = None) -> Rule:
    """Accept a ``Rule`` as is, or wrap a plain callable into one."""
    if isinstance(candidate, Rule):
        return candidate
    if not callable(candidate):
        raise ContractDefinitionError(f"Rule body must be callable, got {candidate!r}")
    return Rule(name=name or getattr(candidate, "__name__", "rule"), guard=guard, body=candidate)


def apply_rules(rules: Iterable[Rule], output: Any) -> list[RuleError]:
    """Run every rule once against ``output`` and collect their errors."""
    errors: list[RuleError] = []
    for rule in rules:
        rule_errors = rule.apply(output)
        if rule_errors:
            logger.debug("Rule %s reported %d error(s)", rule.name, len(rule_errors))
        errors.extend(rule_errors)
    return errors
