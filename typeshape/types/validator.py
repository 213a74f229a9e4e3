"""Validation

validate(type, value) checks a value against a type tree without changing
it and reports every problem it finds as data. It never raises for a
constructed type and never interprets strings as other kinds.

Error accumulation:
- A primitive value yields at most one error (kind check, then the first
  failing constraint)
- Arrays report count and uniqueness problems, then every failing item
- Objects report every failing field, then one error for unexpected keys
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, assert_never

from .errors import TypeValidationError
from .variants import Array, Object, Optional, Primitive, PrimitiveKind, Semantic, TypeVariant


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validate(): a verdict plus the ordered error messages."""
    valid: bool
    errors: tuple[str, ...] = ()

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationResult:
        return cls(valid=not errors, errors=tuple(errors))

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}

    def raise_if_invalid(self, value: Any, type_: TypeVariant) -> None:
        if not self.valid:
            raise TypeValidationError(value, str(type_), self.errors)


EXPECTED = {
    PrimitiveKind.STRING: "string",
    PrimitiveKind.INTEGER: "integer",
    PrimitiveKind.FLOAT: "number (float or integer)",
    PrimitiveKind.BOOLEAN: "boolean (true or false)",
    PrimitiveKind.DATE: "date",
    PrimitiveKind.DATETIME: "datetime",
}


def is_native(kind: PrimitiveKind, value: Any) -> bool:
    """True when value already is the Python representation of kind."""
    match kind:
        case PrimitiveKind.STRING:
            return isinstance(value, str)
        case PrimitiveKind.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        case PrimitiveKind.FLOAT:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        case PrimitiveKind.BOOLEAN:
            return isinstance(value, bool)
        case PrimitiveKind.DATE:
            return isinstance(value, date) and not isinstance(value, datetime)
        case PrimitiveKind.DATETIME:
            return isinstance(value, datetime)
        case _:
            assert_never(kind)


def validate(type_: TypeVariant, value: Any) -> ValidationResult:
    """Validate value against type_, collecting every error."""
    return ValidationResult.from_errors(_errors(type_, value))


def _errors(type_: TypeVariant, value: Any) -> list[str]:
    match type_:
        case Optional(inner=inner):
            return [] if value is None else _errors(inner, value)
        case _ if value is None:
            return ["Value is required but got None"]
        case Primitive(kind=kind, constraints=constraints):
            if not is_native(kind, value):
                return [f"Expected {EXPECTED[kind]}, got {type(value).__name__}"]
            if isinstance(value, float) and not math.isfinite(value):
                return ["Non-finite numbers are not allowed"]
            violation = constraints.first_violation(value)
            return [violation] if violation else []
        case Semantic(kind=kind, constraints=constraints):
            if not isinstance(value, str):
                return [f"Expected string, got {type(value).__name__}"]
            if not kind.matches(value):
                return [f"Invalid {kind.label} format"]
            violation = constraints.first_violation(value)
            return [violation] if violation else []
        case Array():
            return _array_errors(type_, value)
        case Object():
            return _object_errors(type_, value)
        case _:
            raise TypeError(f"Not a type variant: {type_!r}")


def _array_errors(type_: Array, value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return [f"Expected array, got {type(value).__name__}"]
    errors = type_.constraints.violations(value)
    for index, item in enumerate(value):
        errors.extend(f"Item at index {index}: {error}" for error in _errors(type_.item, item))
    return errors


def _object_errors(type_: Object, value: Any) -> list[str]:
    if not isinstance(value, Mapping):
        return [f"Expected object, got {type(value).__name__}"]
    errors = []
    for entry in type_.fields:
        if entry.name not in value:
            if entry.required:
                errors.append(f"Field '{entry.name}' is required")
            continue
        errors.extend(f"Field '{entry.name}': {error}" for error in _errors(entry.type, value[entry.name]))
    if not type_.additional_properties:
        unexpected = unexpected_keys(type_, value)
        if unexpected:
            errors.append(unexpected_fields_message(type_, unexpected))
    return errors


def unexpected_keys(type_: Object, value: Mapping) -> list[str]:
    declared = set(type_.field_names)
    return [str(key) for key in value if key not in declared]


def unexpected_fields_message(type_: Object, unexpected: list[str]) -> str:
    allowed = ", ".join(type_.field_names) or "none"
    return f"Unexpected fields: {', '.join(unexpected)}. Allowed fields: {allowed}"
