"""Type Variants

A type is an immutable tree of variants:

    Primitive(kind)        string, integer, float, boolean, date, datetime
    Semantic(kind)         uuid, email: strings with a fixed format
    Array(item)            homogeneous sequences
    Optional(inner)        permits None / absence
    Object(fields)         ordered fields, strict about unknown keys by default

Variants are frozen, slotted dataclasses built bottom-up from already
constructed children, so a tree cannot refer to itself. Every composite
records its nesting depth at construction and refuses to exceed
Settings.MAX_TYPE_DEPTH. The operations (validate, coerce, to_schema,
serialize) live in their own modules and dispatch on the variant class;
the methods here are thin conveniences over them.
"""
from __future__ import annotations

import dataclasses
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from typeshape.config import get_settings
from typeshape.errors import ErrorCode
from .constraints import (
    ArrayConstraints,
    ConstraintSet,
    FloatConstraints,
    IntegerConstraints,
    NoConstraints,
    SemanticConstraints,
    StringConstraints,
)
from .errors import CoercionError, TypeDefinitionError

METADATA_KEYS = frozenset({"description", "example"})


class PrimitiveKind(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"

    @property
    def type_name(self) -> str:
        return _PRIMITIVE_NAMES[self]

    @property
    def constraint_class(self) -> type[ConstraintSet]:
        return _PRIMITIVE_CONSTRAINTS[self]


_PRIMITIVE_NAMES = {
    PrimitiveKind.STRING: "String",
    PrimitiveKind.INTEGER: "Integer",
    PrimitiveKind.FLOAT: "Float",
    PrimitiveKind.BOOLEAN: "Boolean",
    PrimitiveKind.DATE: "Date",
    PrimitiveKind.DATETIME: "DateTime",
}

_PRIMITIVE_CONSTRAINTS: dict[PrimitiveKind, type[ConstraintSet]] = {
    PrimitiveKind.STRING: StringConstraints,
    PrimitiveKind.INTEGER: IntegerConstraints,
    PrimitiveKind.FLOAT: FloatConstraints,
    PrimitiveKind.BOOLEAN: NoConstraints,
    PrimitiveKind.DATE: NoConstraints,
    PrimitiveKind.DATETIME: NoConstraints,
}


class SemanticKind(str, Enum):
    UUID = "uuid"
    EMAIL = "email"

    @property
    def type_name(self) -> str:
        return "UUID" if self is SemanticKind.UUID else "Email"

    @property
    def label(self) -> str:
        """Name used in format error messages."""
        return "UUID" if self is SemanticKind.UUID else "email"

    @property
    def pattern(self) -> re.Pattern:
        return _FORMAT_PATTERNS[self]

    def matches(self, value: str) -> bool:
        return self.pattern.fullmatch(value) is not None


_FORMAT_PATTERNS = {
    SemanticKind.UUID: re.compile(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
    ),
    SemanticKind.EMAIL: re.compile(
        r"[\w+\-.]+@[a-z\d\-]+(\.[a-z\d\-]+)*\.[a-z]+", re.IGNORECASE | re.ASCII
    ),
}


class _NoDefault(Enum):
    NO_DEFAULT = "NO_DEFAULT"

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT = _NoDefault.NO_DEFAULT


def _check_depth(depth: int) -> None:
    limit = get_settings().MAX_TYPE_DEPTH
    if depth > limit:
        raise TypeDefinitionError(
            f"Type nesting depth {depth} exceeds maximum of {limit}",
            code=ErrorCode.E7004_TOO_DEEP,
        )


def _require_variant(value: Any, role: str) -> TypeVariant:
    if not isinstance(value, TypeVariant):
        raise TypeDefinitionError(
            f"{role} must be a type variant, got {type(value).__name__}",
            code=ErrorCode.E7003_NOT_A_TYPE,
        )
    return value


class TypeVariant:
    """Base class of every variant."""

    __slots__ = ()

    @property
    def name(self) -> str:
        raise NotImplementedError

    @property
    def depth(self) -> int:
        return 1

    @property
    def is_optional(self) -> bool:
        return False

    def with_metadata(self, **metadata: Any) -> TypeVariant:
        """Copy of this type with documentation metadata (description, example)."""
        unknown = sorted(set(metadata) - METADATA_KEYS)
        if unknown:
            raise TypeDefinitionError(
                f"Unknown metadata key(s): {', '.join(unknown)}. Recognized keys: description, example",
                code=ErrorCode.E7001_UNKNOWN_OPTION,
                options=tuple(unknown),
            )
        return dataclasses.replace(self, **metadata)

    def validate(self, value: Any):
        from .validator import validate
        return validate(self, value)

    def coerce(self, value: Any) -> Any:
        from .coercion import coerce
        return coerce(self, value)

    def serialize(self, value: Any) -> Any:
        from .coercion import serialize
        return serialize(self, value)

    def to_schema(self) -> dict[str, Any]:
        from .schema import to_schema
        return to_schema(self)


def _with_constraints(name: str, constraints: ConstraintSet) -> str:
    parts = constraints.describe()
    return f"{name}({', '.join(parts)})" if parts else name


@dataclass(frozen=True, slots=True)
class Primitive(TypeVariant):
    kind: PrimitiveKind
    constraints: ConstraintSet | None = None
    description: str | None = None
    example: Any = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "kind", PrimitiveKind(self.kind))
        expected = self.kind.constraint_class
        if self.constraints is None:
            object.__setattr__(self, "constraints", expected())
        if type(self.constraints) is not expected:
            raise TypeDefinitionError(
                f"{self.kind.type_name} expects {expected.__name__}, got {type(self.constraints).__name__}",
                code=ErrorCode.E7002_INVALID_OPTION,
            )

    @property
    def name(self) -> str:
        return self.kind.type_name

    def __str__(self) -> str:
        return _with_constraints(self.name, self.constraints)


@dataclass(frozen=True, slots=True)
class Semantic(TypeVariant):
    kind: SemanticKind
    constraints: SemanticConstraints = field(default_factory=SemanticConstraints)
    description: str | None = None
    example: Any = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "kind", SemanticKind(self.kind))
        if type(self.constraints) is not SemanticConstraints:
            raise TypeDefinitionError(
                f"{self.kind.type_name} expects SemanticConstraints, got {type(self.constraints).__name__}",
                code=ErrorCode.E7002_INVALID_OPTION,
            )

    @property
    def name(self) -> str:
        return self.kind.type_name

    def __str__(self) -> str:
        return _with_constraints(self.name, self.constraints)


@dataclass(frozen=True, slots=True)
class Array(TypeVariant):
    item: TypeVariant
    constraints: ArrayConstraints = field(default_factory=ArrayConstraints)
    description: str | None = None
    example: Any = field(default=None, compare=False)
    _depth: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        _require_variant(self.item, "Array item type")
        if not isinstance(self.constraints, ArrayConstraints):
            raise TypeDefinitionError(
                f"Array expects ArrayConstraints, got {type(self.constraints).__name__}",
                code=ErrorCode.E7002_INVALID_OPTION,
            )
        depth = self.item.depth + 1
        _check_depth(depth)
        object.__setattr__(self, "_depth", depth)

    @property
    def name(self) -> str:
        return "Array"

    @property
    def depth(self) -> int:
        return self._depth

    def __str__(self) -> str:
        return _with_constraints(f"Array[{self.item}]", self.constraints)


@dataclass(frozen=True, slots=True)
class Optional(TypeVariant):
    inner: TypeVariant

    def __post_init__(self):
        _require_variant(self.inner, "Optional inner type")
        if isinstance(self.inner, Optional):
            object.__setattr__(self, "inner", self.inner.inner)

    @property
    def name(self) -> str:
        return f"Optional[{self.inner.name}]"

    @property
    def depth(self) -> int:
        return self.inner.depth

    @property
    def is_optional(self) -> bool:
        return True

    def with_metadata(self, **metadata: Any) -> Optional:
        return Optional(self.inner.with_metadata(**metadata))

    def __str__(self) -> str:
        return f"Optional[{self.inner}]"


@dataclass(frozen=True, slots=True)
class Field:
    """A named slot of an Object.

    A field is required unless its type is Optional or it declares a default.
    """
    name: str
    type: TypeVariant
    default: Any = field(default=NO_DEFAULT, compare=False)

    def __post_init__(self):
        _require_variant(self.type, f"Field '{self.name}'")
        if self.has_default:
            object.__setattr__(self, "default", self._checked_default())

    def _checked_default(self) -> Any:
        """Coerce the default into the field type; it must then validate."""
        label = f"Default for field '{self.name}'" if self.name else "Field default"
        if self.default is None:
            if not self.type.is_optional:
                raise TypeDefinitionError(
                    f"{label} cannot be None unless the type is Optional",
                    code=ErrorCode.E7002_INVALID_OPTION,
                )
            return None
        try:
            value = self.type.coerce(self.default)
        except CoercionError as e:
            raise TypeDefinitionError(f"{label} is invalid: {e}", code=ErrorCode.E7002_INVALID_OPTION) from e
        result = self.type.validate(value)
        if not result.valid:
            raise TypeDefinitionError(
                f"{label} is invalid: {'; '.join(result.errors)}",
                code=ErrorCode.E7002_INVALID_OPTION,
            )
        return value

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def required(self) -> bool:
        return not self.type.is_optional and not self.has_default

    def __str__(self) -> str:
        return f"{self.name}: {self.type}"


@dataclass(frozen=True, slots=True)
class Object(TypeVariant):
    fields: tuple[Field, ...] = ()
    additional_properties: bool = False
    description: str | None = None
    example: Any = field(default=None, compare=False)
    _depth: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        fields = tuple(self.fields)
        seen: set[str] = set()
        for entry in fields:
            if not isinstance(entry, Field):
                raise TypeDefinitionError(
                    f"Object fields must be Field entries, got {type(entry).__name__}",
                    code=ErrorCode.E7003_NOT_A_TYPE,
                )
            if not isinstance(entry.name, str) or not entry.name:
                raise TypeDefinitionError(
                    f"Field names must be non-empty strings, got {entry.name!r}",
                    code=ErrorCode.E7002_INVALID_OPTION,
                )
            if entry.name in seen:
                raise TypeDefinitionError(
                    f"Duplicate field name '{entry.name}'",
                    code=ErrorCode.E7002_INVALID_OPTION,
                    options=(entry.name,),
                )
            seen.add(entry.name)
        if not isinstance(self.additional_properties, bool):
            raise TypeDefinitionError(
                f"additional_properties must be a boolean, got {type(self.additional_properties).__name__}",
                code=ErrorCode.E7002_INVALID_OPTION,
                options=("additional_properties",),
            )
        depth = 1 + max((entry.type.depth for entry in fields), default=0)
        _check_depth(depth)
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "_depth", depth)

    @property
    def name(self) -> str:
        return "Object"

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.fields)

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(entry.name for entry in self.fields if entry.required)

    def get_field(self, name: str) -> Field | None:
        for entry in self.fields:
            if entry.name == name:
                return entry
        return None

    def __str__(self) -> str:
        if not self.fields:
            return "Object"
        return "Object{" + ", ".join(str(entry) for entry in self.fields) + "}"
