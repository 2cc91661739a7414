"""Public API for conform-kit."""

from conform_kit.casters import Caster, cast, resolve_caster
from conform_kit.compiler import TypeCompiler, compile_type
from conform_kit.constraints import And, Or, Predicate, and_, apply_constraints, or_, predicate
from conform_kit.contract import Contract, check, conform
from conform_kit.errors import (
    CastError,
    ContractDefinitionError,
    ErrorNode,
    ErrorSet,
    KeyMissing,
    OrError,
    PredicateError,
    RuleError,
)
from conform_kit.loader import load_schema_file
from conform_kit.messages import DefaultBackend, MessageBackend, RenderedError, format_path, render
from conform_kit.predicates import PRIMITIVE_TAGS, PredicateRegistry
from conform_kit.rules import Rule, apply_rules
from conform_kit.settings import ContractSettings, load_settings
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
)
from conform_kit.validator import Err, Ok, Outcome, validate

__all__ = [
    # Compilation
    "TypeCompiler",
    "compile_type",
    "TypeDefinition",
    "TypeRegistry",
    "PredicateRegistry",
    "PRIMITIVE_TAGS",
    # Compiled types
    "CompiledType",
    "Primitive",
    "ListType",
    "MapType",
    "Key",
    "UnionType",
    "Cast",
    # Constraints
    "Predicate",
    "And",
    "Or",
    "predicate",
    "and_",
    "or_",
    "apply_constraints",
    # Validation
    "Ok",
    "Err",
    "Outcome",
    "validate",
    # Errors
    "ContractDefinitionError",
    "ErrorNode",
    "PredicateError",
    "KeyMissing",
    "OrError",
    "ErrorSet",
    "CastError",
    "RuleError",
    # Messages
    "MessageBackend",
    "DefaultBackend",
    "RenderedError",
    "render",
    "format_path",
    # Casting
    "Caster",
    "cast",
    "resolve_caster",
    # Rules and contracts
    "Rule",
    "apply_rules",
    "Contract",
    "check",
    "conform",
    # Configuration and schema files
    "ContractSettings",
    "load_settings",
    "load_schema_file",
]
