"""Runtime Type Engine

Declare a data shape once, then validate, coerce and describe values
against it.

Key Features:
- Primitive, semantic (uuid, email) and composite (array, optional, object) types
- Per-kind constraints checked at declaration time
- validate() reports every problem as data; coerce() raises CoercionError
- JSON Schema fragments for documentation tooling
- Derivation of object types from JSON Schema documents and example records

Usage:
    from typeshape.types import object_, integer, string, optional, array

    User = object_({
        "id": integer(minimum=1),
        "name": string(min_length=1),
        "tags": array(string(), max_items=10),
        "age": optional(integer()),
    })

    result = User.validate({"id": 1, "name": "Ada", "tags": []})
    user = User.coerce({"id": "7", "name": "Ada", "tags": "admin"})
    schema = User.to_schema()
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from typeshape.errors import ErrorCode
from typeshape.logging import types_logger
from .constraints import (
    ArrayConstraints,
    ConstraintSet,
    FloatConstraints,
    IntegerConstraints,
    NoConstraints,
    ObjectOptions,
    SemanticConstraints,
    StringConstraints,
)
from .errors import CoercionError, TypeDefinitionError, TypeValidationError
from .variants import (
    NO_DEFAULT,
    Array,
    Field,
    Object,
    Optional,
    Primitive,
    PrimitiveKind,
    Semantic,
    SemanticKind,
    TypeVariant,
)
from .validator import ValidationResult, validate
from .coercion import coerce, serialize, try_coerce
from .schema import JSONSchemaGenerator, to_schema
from .derivation import from_json_schema, from_mapping, from_record


def _pop_metadata(options: dict[str, Any]) -> dict[str, Any]:
    return {key: options.pop(key) for key in ("description", "example") if key in options}


def _log_rejected(kind: str, exc: TypeDefinitionError) -> None:
    types_logger().info(
        "type_definition_rejected",
        kind=kind,
        code=exc.code.name,
        options=list(exc.options),
        reason=exc.message,
    )


def _primitive(kind: PrimitiveKind, options: dict[str, Any]) -> Primitive:
    metadata = _pop_metadata(options)
    try:
        constraints = kind.constraint_class.build(kind.value, options)
        return Primitive(kind, constraints, **metadata)
    except TypeDefinitionError as exc:
        _log_rejected(kind.value, exc)
        raise


def _semantic(kind: SemanticKind, options: dict[str, Any]) -> Semantic:
    metadata = _pop_metadata(options)
    try:
        return Semantic(kind, SemanticConstraints.build(kind.value, options), **metadata)
    except TypeDefinitionError as exc:
        _log_rejected(kind.value, exc)
        raise


# ============================================================================
# Primitive Types
# ============================================================================

def string(**options: Any) -> Primitive:
    """String type. Options: min_length, max_length, pattern, enum."""
    return _primitive(PrimitiveKind.STRING, options)


def integer(**options: Any) -> Primitive:
    """Integer type. Options: minimum, maximum, exclusive_minimum, exclusive_maximum, multiple_of, enum."""
    return _primitive(PrimitiveKind.INTEGER, options)


def float_(**options: Any) -> Primitive:
    """Float type (integers are accepted too). Same options as integer()."""
    return _primitive(PrimitiveKind.FLOAT, options)


number = float_


def boolean(**options: Any) -> Primitive:
    return _primitive(PrimitiveKind.BOOLEAN, options)


def date(**options: Any) -> Primitive:
    return _primitive(PrimitiveKind.DATE, options)


def datetime(**options: Any) -> Primitive:
    return _primitive(PrimitiveKind.DATETIME, options)


# ============================================================================
# Semantic Types
# ============================================================================

def uuid(**options: Any) -> Semantic:
    """Canonical 8-4-4-4-12 hexadecimal UUID string."""
    return _semantic(SemanticKind.UUID, options)


def email(**options: Any) -> Semantic:
    return _semantic(SemanticKind.EMAIL, options)


# ============================================================================
# Composite Types
# ============================================================================

def array(item: TypeVariant, **options: Any) -> Array:
    """Homogeneous array. Options: min_items, max_items, unique_items."""
    metadata = _pop_metadata(options)
    try:
        return Array(item, ArrayConstraints.build("array", options), **metadata)
    except TypeDefinitionError as exc:
        _log_rejected("array", exc)
        raise


def optional(inner: TypeVariant) -> Optional:
    """Permit None or absence. Wrapping an Optional returns it unchanged."""
    if isinstance(inner, Optional):
        return inner
    try:
        return Optional(inner)
    except TypeDefinitionError as exc:
        _log_rejected("optional", exc)
        raise


def field(
    type: TypeVariant,
    *,
    required: bool = True,
    default: Any = NO_DEFAULT,
) -> Field:
    """Field declaration for object_() when a plain type is not enough.

    The name is filled in from the key of the fields mapping.
    """
    if not required:
        type = optional(type)
    try:
        return Field("", type, default)
    except TypeDefinitionError as exc:
        _log_rejected("field", exc)
        raise


def _as_fields(fields: Mapping[str, TypeVariant | Field] | Iterable[Field]) -> tuple[Field, ...]:
    if isinstance(fields, (str, bytes)) or not isinstance(fields, Iterable):
        raise TypeDefinitionError(
            f"Object fields must be a mapping or an iterable of Field entries, got {type(fields).__name__}",
            code=ErrorCode.E7003_NOT_A_TYPE,
        )
    if not isinstance(fields, Mapping):
        return tuple(fields)
    declared = []
    for name, entry in fields.items():
        if isinstance(entry, Field):
            declared.append(Field(name, entry.type, entry.default))
        else:
            declared.append(Field(name, entry))
    return tuple(declared)


def object_(
    fields: Mapping[str, TypeVariant | Field] | Iterable[Field] = (),
    *,
    additional_properties: bool = False,
    description: str | None = None,
    example: Any = None,
) -> Object:
    """Object type with ordered fields.

    Strict by default: keys outside the declared fields are reported by
    validate() and rejected by coerce(). Pass additional_properties=True
    (or use open_object) to let them through.
    """
    try:
        return Object(
            _as_fields(fields),
            additional_properties=ObjectOptions.build(
                "object", {"additional_properties": additional_properties}
            ).additional_properties,
            description=description,
            example=example,
        )
    except TypeDefinitionError as exc:
        _log_rejected("object", exc)
        raise


def open_object(
    fields: Mapping[str, TypeVariant | Field] | Iterable[Field] = (),
    *,
    description: str | None = None,
    example: Any = None,
) -> Object:
    """Object type that accepts undeclared keys."""
    return object_(fields, additional_properties=True, description=description, example=example)


__all__ = [
    # Constructors
    "string",
    "integer",
    "float_",
    "number",
    "boolean",
    "date",
    "datetime",
    "uuid",
    "email",
    "array",
    "optional",
    "field",
    "object_",
    "open_object",
    # Variants
    "TypeVariant",
    "Primitive",
    "PrimitiveKind",
    "Semantic",
    "SemanticKind",
    "Array",
    "Optional",
    "Object",
    "Field",
    "NO_DEFAULT",
    # Constraints
    "ConstraintSet",
    "NoConstraints",
    "StringConstraints",
    "SemanticConstraints",
    "IntegerConstraints",
    "FloatConstraints",
    "ArrayConstraints",
    "ObjectOptions",
    # Operations
    "validate",
    "ValidationResult",
    "coerce",
    "try_coerce",
    "serialize",
    "to_schema",
    "JSONSchemaGenerator",
    "from_json_schema",
    "from_mapping",
    "from_record",
    # Errors
    "TypeDefinitionError",
    "CoercionError",
    "TypeValidationError",
]
