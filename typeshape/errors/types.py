"""Monadic Error Handling Types

Result/Either types for composable error propagation at the caller-facing
edges of the engine (try_coerce, parse, parse_batch). The core operations
keep their own contracts: validate returns data, coerce raises.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Iterator, NoReturn, TypeVar, Union, final

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class ErrorCode(Enum):
    """Error code taxonomy.

    E2xxx: Validation and coercion errors
    E7xxx: Type definition errors
    E9xxx: Internal/Unknown errors
    """
    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000
    E2001_REQUIRED_FIELD_MISSING = 2001
    E2002_INVALID_FORMAT = 2002
    E2003_OUT_OF_RANGE = 2003
    E2004_INVALID_TYPE = 2004
    E2005_CONSTRAINT_VIOLATION = 2005
    E2006_UNEXPECTED_FIELDS = 2006
    E2010_INVALID_EMAIL = 2010
    E2011_INVALID_UUID = 2011
    E2012_INVALID_DATE = 2012
    E2021_INVALID_JSON = 2021

    # Type definition (E7xxx)
    E7000_DEFINITION_GENERIC = 7000
    E7001_UNKNOWN_OPTION = 7001
    E7002_INVALID_OPTION = 7002
    E7003_NOT_A_TYPE = 7003
    E7004_TOO_DEEP = 7004
    E7005_CYCLIC_DEFINITION = 7005
    E7006_INVALID_ROOT = 7006

    # Internal (E9xxx)
    E9000_INTERNAL_GENERIC = 9000
    E9001_UNEXPECTED_ERROR = 9001

    @property
    def http_status(self) -> int:
        """Map error code to the HTTP status a web layer would use."""
        code = self.value
        if 2000 <= code < 3000:
            return 400
        return 500

    @property
    def category(self) -> str:
        """Human-readable error category."""
        code = self.value
        if 2000 <= code < 3000:
            return "validation"
        if 7000 <= code < 8000:
            return "definition"
        return "internal"


@dataclass(frozen=True, slots=True)
class AppError:
    """Error value carried by Err.

    All errors carry:
    - Typed error code from taxonomy
    - Human-readable message
    - Structured metadata for programmatic handling
    - Origin of the failure (e.g. "coercion", "batch[3]")
    - Optional cause for error chaining
    """
    code: ErrorCode
    message: str
    metadata: dict = field(default_factory=dict)
    origin: str = ""
    cause: Exception | None = None

    def with_metadata(self, **kwargs) -> AppError:
        """Create new error with additional metadata."""
        return AppError(
            code=self.code,
            message=self.message,
            metadata={**self.metadata, **kwargs},
            origin=self.origin,
            cause=self.cause,
        )

    def with_origin(self, origin: str) -> AppError:
        return AppError(
            code=self.code,
            message=self.message,
            metadata=self.metadata,
            origin=origin,
            cause=self.cause,
        )

    def to_dict(self) -> dict:
        """Serialize error for API responses."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "message": self.message,
                "category": self.code.category,
                "origin": self.origin,
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result monad."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U, Any]:
        """Transform the success value."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Any], Any]) -> Ok[T]:
        """No-op for Ok variant."""
        return self

    def and_then(self, f: Callable[[T], Result[U, Any]]) -> Result[U, Any]:
        """Chain operations that may fail."""
        return f(self.value)

    def match(self, ok: Callable[[T], U], err: Callable[[Any], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return ok(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result monad."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raises because Err has no value to unwrap."""
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable[[Any], Any]) -> Err[E]:
        """No-op for Err variant."""
        return self

    def map_err(self, f: Callable[[E], U]) -> Err[U]:
        """Transform the error."""
        return Err(f(self.error))

    def and_then(self, f: Callable[[Any], Any]) -> Err[E]:
        """No-op for Err variant."""
        return self

    def match(self, ok: Callable[[Any], U], err: Callable[[E], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return err(self.error)

    def __iter__(self) -> Iterator:
        return iter([])


# Type alias for Result monad
Result = Union[Ok[T], Err[E]]


def collect_results(results: list[Result[T, AppError]]) -> Result[list[T], list[AppError]]:
    """Collect list of Results into Result of list.

    Returns Ok with all values if all are Ok.
    Returns Err with all errors if any are Err.
    """
    values: list[T] = []
    errors: list[AppError] = []

    for r in results:
        match r:
            case Ok(v):
                values.append(v)
            case Err(e):
                errors.append(e)

    if errors:
        return Err(errors)
    return Ok(values)


def sequence_results(results: list[Result[T, AppError]]) -> Result[list[T], AppError]:
    """Sequence Results, failing fast on first error."""
    values: list[T] = []

    for r in results:
        match r:
            case Ok(v):
                values.append(v)
            case Err(e):
                return Err(e)

    return Ok(values)
