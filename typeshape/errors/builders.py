"""Domain-Specific Error Builders

Ergonomic constructors for Err[AppError] values in the validation and
type-definition domains.
"""
from typing import Any, Sequence

from .types import AppError, ErrorCode, Err


def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    field: str | None = None,
    value: Any = None,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    """Create validation error."""
    meta = {"field": field, "value": value, **metadata}
    return Err(AppError(
        code=code,
        message=message,
        metadata={k: v for k, v in meta.items() if v is not None},
        origin=origin,
        cause=cause,
    ))


def validation_failed(errors: Sequence[str], *, type_name: str, origin: str = "") -> Err[AppError]:
    """Create an error carrying a complete validation error list."""
    if len(errors) == 1:
        message = errors[0]
    else:
        message = f"Validation failed: {len(errors)} errors"
    return validation_error(
        message,
        origin=origin,
        type=type_name,
        errors=list(errors),
    )


def coercion_failed(
    value: Any,
    target_type: str,
    reason: str,
    *,
    code: ErrorCode = ErrorCode.E2004_INVALID_TYPE,
    origin: str = "",
    cause: Exception | None = None,
) -> Err[AppError]:
    return validation_error(
        f"Cannot coerce {value!r} to {target_type}: {reason}",
        code=code,
        value=value,
        origin=origin,
        cause=cause,
        target_type=target_type,
        reason=reason,
    )


def invalid_definition(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E7000_DEFINITION_GENERIC,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    """Create type-definition error."""
    return Err(AppError(
        code=code,
        message=message,
        metadata=metadata,
        origin=origin,
    ))
