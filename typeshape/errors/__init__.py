"""Monadic Error Handling

Result[T, E] container and AppError taxonomy used by the caller-facing
helpers of the engine.

Usage:
    from typeshape.errors import Ok, Err, Result, AppError
    from typeshape.types import integer
    from typeshape.types.coercion import try_coerce

    match try_coerce(integer(), "42"):
        case Ok(value):
            print(value)
        case Err(error):
            print(error.code.name, error.message)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    collect_results,
    sequence_results,
)

from .builders import (
    validation_error,
    validation_failed,
    coercion_failed,
    invalid_definition,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "collect_results",
    "sequence_results",
    "validation_error",
    "validation_failed",
    "coercion_failed",
    "invalid_definition",
]
