"""Contracts: a compiled schema plus rules and a message backend."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from conform_kit.compiler import TypeCompiler, compile_type
from conform_kit.errors import ErrorSet
from conform_kit.messages import DefaultBackend, MessageBackend, render
from conform_kit.predicates import PredicateRegistry
from conform_kit.rules import Rule, apply_rules, as_rule
from conform_kit.settings import ContractSettings
from conform_kit.types import CompiledType, TypeRegistry
from conform_kit.validator import Err, Outcome

logger = logging.getLogger(__name__)


def check(type: CompiledType, value: Any, rules: Iterable[Rule] = ()) -> Outcome:
    """Structural validation followed by rules, without rendering.

    Rules only run once the value is structurally valid; they see the
    validated output, never the raw input.
    """
    outcome = type.validate(value)
    if not outcome.ok:
        return outcome

    rule_errors = apply_rules(rules, outcome.value)
    if rule_errors:
        return Err(error=ErrorSet(errors=tuple(rule_errors)))
    return outcome


def conform(
    type: Any,
    value: Any,
    rules: Iterable[Any] = (),
    backend: MessageBackend | None = None,
    sort_errors: bool = True,
) -> Outcome:
    """Validate ``value`` and render any failure.

    ``type`` may be a compiled type or a spec (compiled with the default
    registries). Returns ``Ok(output)`` or ``Err([RenderedError, ...])``.
    """
    if not isinstance(type, CompiledType):
        type = compile_type(type)

    outcome = check(type, value, [as_rule(rule) for rule in rules])
    if outcome.ok:
        return outcome
    return Err(error=render(outcome.error, backend, sort=sort_errors))


class Contract:
    """A reusable validation contract.

    The schema is compiled once at construction; ``conform`` can then be
    called any number of times, including concurrently, as long as no rules
    are added meanwhile.

    Example:
        contract = Contract({"name": string("filled?"), "age": integer(gt=18)})

        @contract.rule(guard={"name": "admin"})
        def admins_are_adults(output):
            if output["age"] < 21:
                return ("age", "must be at least 21 for admins")
    """

    def __init__(
        self,
        schema: Any,
        rules: Iterable[Any] = (),
        message_backend: MessageBackend | None = None,
        settings: ContractSettings | None = None,
        types: TypeRegistry | None = None,
        predicates: PredicateRegistry | None = None,
        **opts: Any,
    ):
        self.settings = settings or ContractSettings()
        self.compiler = TypeCompiler(types=types, predicates=predicates, settings=self.settings)
        self.schema = self.compiler.compile(schema, **opts)
        self.rules: list[Rule] = [as_rule(rule) for rule in rules]
        self.message_backend = message_backend or DefaultBackend()

    def validate(self, value: Any) -> Outcome:
        """Validate without rendering; failures carry the raw error tree."""
        return check(self.schema, value, self.rules)

    def conform(self, value: Any) -> Outcome:
        outcome = conform(
            self.schema,
            value,
            self.rules,
            backend=self.message_backend,
            sort_errors=self.settings.sort_errors,
        )
        if outcome.ok:
            logger.debug("Conformed %s input", self.schema.tag)
        else:
            logger.debug("Rejected %s input with %d error(s)", self.schema.tag, len(outcome.error))
        return outcome

    def add_rule(self, body: Any, name: str | None = None, guard: Any = None) -> Rule:
        rule = as_rule(body, name=name, guard=guard)
        self.rules.append(rule)
        return rule

    def rule(
        self,
        func: Callable[[Any], Any] | None = None,
        *,
        name: str | None = None,
        guard: Any = None,
    ) -> Any:
        """Register the decorated function as a rule.

        Usable bare (``@contract.rule``) or with options
        (``@contract.rule(guard={...})``); the function itself is returned.
        """

        def decorator(body: Callable[[Any], Any]) -> Callable[[Any], Any]:
            self.add_rule(body, name=name, guard=guard)
            return body

        if func is not None:
            return decorator(func)
        return decorator

