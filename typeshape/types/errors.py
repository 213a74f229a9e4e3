"""Type Engine Exceptions

Three taxonomies kept deliberately apart:
- TypeDefinitionError: a malformed declaration, raised at construction time
- CoercionError: a value that cannot be turned into the declared shape
- TypeValidationError: opt-in exception form of a failed ValidationResult
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from typeshape.errors import AppError, ErrorCode, coercion_failed, invalid_definition, validation_failed


@dataclass(eq=False)
class TypeDefinitionError(ValueError):
    """Raised when a type declaration is malformed.

    Unknown options, invalid bounds, non-variant field values, cycles and
    excessive nesting all end up here. Construction never returns a
    partially built type.
    """
    message: str
    code: ErrorCode = ErrorCode.E7000_DEFINITION_GENERIC
    options: tuple[str, ...] = ()

    def __post_init__(self):
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_app_error(self) -> AppError:
        return invalid_definition(self.message, code=self.code, options=list(self.options)).unwrap_err()


@dataclass(eq=False)
class CoercionError(ValueError):
    """Raised when a value cannot be coerced to the target type.

    Carries the offending value, the target type name and a path-qualified
    reason ("Field 'address': Field 'zip': ...") so callers can build a
    field-specific message without parsing the string.
    """
    value: Any
    target_type: str
    reason: str | None = None
    code: ErrorCode = ErrorCode.E2004_INVALID_TYPE

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def message(self) -> str:
        base = f"Cannot coerce {self.value!r} to {self.target_type}"
        return f"{base}: {self.reason}" if self.reason else base

    def __str__(self) -> str:
        return self.message

    def with_prefix(self, prefix: str) -> CoercionError:
        """Copy of this error with the reason qualified by a path prefix."""
        reason = f"{prefix}: {self.reason}" if self.reason else prefix
        return CoercionError(self.value, self.target_type, reason, self.code)

    def to_app_error(self, origin: str = "coercion") -> AppError:
        return coercion_failed(
            self.value, self.target_type, self.reason or "", code=self.code, origin=origin, cause=self,
        ).unwrap_err()


@dataclass(eq=False)
class TypeValidationError(ValueError):
    """Validation failure raised on request via ValidationResult.raise_if_invalid."""
    value: Any
    type_name: str
    errors: Sequence[str] = field(default_factory=tuple)

    def __post_init__(self):
        super().__init__(self.message)

    @property
    def message(self) -> str:
        base = f"Validation failed for value {self.value!r} against type {self.type_name}"
        if not self.errors:
            return base
        return base + ":\n" + "\n".join(f"  - {error}" for error in self.errors)

    def __str__(self) -> str:
        return self.message

    def to_app_error(self, origin: str = "validation") -> AppError:
        return validation_failed(self.errors, type_name=self.type_name, origin=origin).unwrap_err()
