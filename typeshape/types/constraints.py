"""Constraint Sets

One frozen pydantic model per primitive kind. Models forbid extra keys so a
misspelled option fails at definition time instead of being ignored.

Each set knows three things about its options:
- first_violation(value): the first failing rule, in the fixed order
  format -> range -> pattern -> enumeration (format checks live on the
  semantic variants). Arrays use violations(value) and report every
  count and uniqueness problem.
- to_schema(): the JSON Schema keywords for the options that are set
- describe(): "name: value" pairs for string renderings of a type
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from typeshape.errors import ErrorCode
from .errors import TypeDefinitionError

NonNegativeStrictInt = Annotated[StrictInt, Field(ge=0)]
Number = StrictInt | StrictFloat

FLOAT_TOLERANCE = 1e-9


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern:
    return re.compile(pattern)


class ConstraintSet(BaseModel):
    """Base class for per-kind constraint options."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # option name -> JSON Schema keyword
    SCHEMA_KEYWORDS: ClassVar[dict[str, str]] = {}

    @classmethod
    def build(cls, kind: str, options: Mapping[str, Any]) -> ConstraintSet:
        """Validate an options mapping, translating failures into TypeDefinitionError."""
        try:
            return cls(**options)
        except PydanticValidationError as exc:
            raise _definition_error(cls, kind, exc) from exc

    @classmethod
    def option_names(cls) -> list[str]:
        return list(cls.model_fields)

    def first_violation(self, value: Any) -> str | None:
        return None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {}
        for name, keyword in self.SCHEMA_KEYWORDS.items():
            value = getattr(self, name)
            if value is None or value is False:
                continue
            schema[keyword] = list(value) if isinstance(value, tuple) else value
        return schema

    def describe(self) -> list[str]:
        return [
            f"{name}: {value}"
            for name, value in self.model_dump().items()
            if value is not None and value is not False
        ]


def _definition_error(cls: type[ConstraintSet], kind: str, exc: PydanticValidationError) -> TypeDefinitionError:
    errors = exc.errors()
    unknown = [str(e["loc"][0]) for e in errors if e["type"] == "extra_forbidden"]
    if unknown:
        recognized = ", ".join(cls.option_names()) or "none"
        return TypeDefinitionError(
            f"Unknown option(s) for {kind}: {', '.join(unknown)}. Recognized options: {recognized}",
            code=ErrorCode.E7001_UNKNOWN_OPTION,
            options=tuple(unknown),
        )

    problems = []
    names = []
    for e in errors:
        loc = ".".join(str(part) for part in e["loc"])
        message = e["msg"].removeprefix("Value error, ")
        problems.append(f"{loc}: {message}" if loc else message)
        if e["loc"]:
            names.append(str(e["loc"][0]))
    return TypeDefinitionError(
        f"Invalid option(s) for {kind}: {'; '.join(problems)}",
        code=ErrorCode.E7002_INVALID_OPTION,
        options=tuple(names),
    )


def _check_bounds(low: Any, high: Any, low_name: str, high_name: str) -> None:
    if low is not None and high is not None and low > high:
        raise ValueError(f"{low_name} ({low}) must not exceed {high_name} ({high})")


def _has_duplicates(items: list | tuple) -> bool:
    # 1 and True compare equal but are different items
    seen: list = []
    for item in items:
        if any(type(other) is type(item) and other == item for other in seen):
            return True
        seen.append(item)
    return False


class NoConstraints(ConstraintSet):
    """Options for kinds that take no constraints (boolean, date, datetime)."""


# ============================================================================
# String Constraints
# ============================================================================

class SemanticConstraints(ConstraintSet):
    """Options for strings with a baked-in format (uuid, email)."""

    min_length: NonNegativeStrictInt | None = None
    max_length: NonNegativeStrictInt | None = None
    enum: tuple[str, ...] | None = None

    SCHEMA_KEYWORDS: ClassVar[dict[str, str]] = {
        "min_length": "minLength",
        "max_length": "maxLength",
        "enum": "enum",
    }

    @model_validator(mode="after")
    def _length_bounds(self) -> SemanticConstraints:
        _check_bounds(self.min_length, self.max_length, "min_length", "max_length")
        return self

    def _length_violation(self, value: str) -> str | None:
        length = len(value)
        if self.min_length is not None and length < self.min_length:
            return f"String length {length} is below minimum {self.min_length}"
        if self.max_length is not None and length > self.max_length:
            return f"String length {length} exceeds maximum {self.max_length}"
        return None

    def _enum_violation(self, value: Any) -> str | None:
        if self.enum is not None and value not in self.enum:
            return f"Value {value!r} is not one of: {', '.join(repr(v) for v in self.enum)}"
        return None

    def first_violation(self, value: str) -> str | None:
        return self._length_violation(value) or self._enum_violation(value)


class StringConstraints(SemanticConstraints):
    """Options for plain strings."""

    pattern: str | None = None

    SCHEMA_KEYWORDS: ClassVar[dict[str, str]] = {
        "min_length": "minLength",
        "max_length": "maxLength",
        "pattern": "pattern",
        "enum": "enum",
    }

    @field_validator("pattern", mode="before")
    @classmethod
    def _pattern_source(cls, value: Any) -> Any:
        if isinstance(value, re.Pattern):
            return value.pattern
        return value

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                compile_pattern(value)
            except re.error as exc:
                raise ValueError(f"invalid regular expression: {exc}") from exc
        return value

    def first_violation(self, value: str) -> str | None:
        if message := self._length_violation(value):
            return message
        if self.pattern is not None and not compile_pattern(self.pattern).search(value):
            return f"String {value!r} does not match pattern {self.pattern!r}"
        return self._enum_violation(value)


# ============================================================================
# Numeric Constraints
# ============================================================================

class _NumericRangeMixin:
    """Range, multiple and enumeration checks shared by integer and float."""

    def _check_options(self) -> None:
        _check_bounds(self.minimum, self.maximum, "minimum", "maximum")
        _check_bounds(self.exclusive_minimum, self.exclusive_maximum, "exclusive_minimum", "exclusive_maximum")
        if self.multiple_of is not None and self.multiple_of <= 0:
            raise ValueError(f"multiple_of must be positive, got {self.multiple_of}")

    def _is_multiple(self, value: int | float) -> bool:
        raise NotImplementedError

    def first_violation(self, value: int | float) -> str | None:
        if self.minimum is not None and value < self.minimum:
            return f"Value {value} is below minimum {self.minimum}"
        if self.maximum is not None and value > self.maximum:
            return f"Value {value} exceeds maximum {self.maximum}"
        if self.exclusive_minimum is not None and value <= self.exclusive_minimum:
            return f"Value {value} must be greater than {self.exclusive_minimum}"
        if self.exclusive_maximum is not None and value >= self.exclusive_maximum:
            return f"Value {value} must be less than {self.exclusive_maximum}"
        if self.multiple_of is not None and not self._is_multiple(value):
            return f"Value {value} is not a multiple of {self.multiple_of}"
        if self.enum is not None and value not in self.enum:
            return f"Value {value} is not one of: {', '.join(str(v) for v in self.enum)}"
        return None


NUMERIC_SCHEMA_KEYWORDS = {
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusive_minimum": "exclusiveMinimum",
    "exclusive_maximum": "exclusiveMaximum",
    "multiple_of": "multipleOf",
    "enum": "enum",
}


class IntegerConstraints(_NumericRangeMixin, ConstraintSet):
    minimum: StrictInt | None = None
    maximum: StrictInt | None = None
    exclusive_minimum: StrictInt | None = None
    exclusive_maximum: StrictInt | None = None
    multiple_of: StrictInt | None = None
    enum: tuple[StrictInt, ...] | None = None

    SCHEMA_KEYWORDS: ClassVar[dict[str, str]] = NUMERIC_SCHEMA_KEYWORDS

    @model_validator(mode="after")
    def _valid_options(self) -> IntegerConstraints:
        self._check_options()
        return self

    def _is_multiple(self, value: int | float) -> bool:
        return value % self.multiple_of == 0


class FloatConstraints(_NumericRangeMixin, ConstraintSet):
    minimum: Number | None = None
    maximum: Number | None = None
    exclusive_minimum: Number | None = None
    exclusive_maximum: Number | None = None
    multiple_of: Number | None = None
    enum: tuple[Number, ...] | None = None

    SCHEMA_KEYWORDS: ClassVar[dict[str, str]] = NUMERIC_SCHEMA_KEYWORDS

    @model_validator(mode="after")
    def _valid_options(self) -> FloatConstraints:
        for name in ("minimum", "maximum", "exclusive_minimum", "exclusive_maximum", "multiple_of"):
            value = getattr(self, name)
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
        self._check_options()
        return self

    def _is_multiple(self, value: int | float) -> bool:
        remainder = math.fmod(float(value), float(self.multiple_of))
        return abs(remainder) <= FLOAT_TOLERANCE or abs(abs(remainder) - self.multiple_of) <= FLOAT_TOLERANCE


# ============================================================================
# Collection Constraints
# ============================================================================

class ArrayConstraints(ConstraintSet):
    min_items: NonNegativeStrictInt | None = None
    max_items: NonNegativeStrictInt | None = None
    unique_items: StrictBool = False

    SCHEMA_KEYWORDS: ClassVar[dict[str, str]] = {
        "min_items": "minItems",
        "max_items": "maxItems",
        "unique_items": "uniqueItems",
    }

    @model_validator(mode="after")
    def _count_bounds(self) -> ArrayConstraints:
        _check_bounds(self.min_items, self.max_items, "min_items", "max_items")
        return self

    def violations(self, value: list | tuple) -> list[str]:
        """Count and uniqueness problems; arrays report all of them, not just the first."""
        errors = []
        length = len(value)
        if self.min_items is not None and length < self.min_items:
            errors.append(f"Array length {length} is below minimum {self.min_items}")
        if self.max_items is not None and length > self.max_items:
            errors.append(f"Array length {length} exceeds maximum {self.max_items}")
        if self.unique_items and _has_duplicates(value):
            errors.append("Array contains duplicate items but must be unique")
        return errors


class ObjectOptions(ConstraintSet):
    additional_properties: StrictBool = False
