"""Auto-Derivation

Build Object types from data that already carries type hints instead of
declaring them by hand:

    from_json_schema(doc)   JSON Schema object documents
    from_mapping(record)    mappings of example values
    from_record(obj)        attribute records (dataclasses, named tuples,
                            SimpleNamespace, plain objects)

Every entry point takes only= / exclude= field filters, applied after
inference. Roots that are not objects, self-referencing data and nesting
beyond Settings.MAX_TYPE_DEPTH raise TypeDefinitionError.
"""
from __future__ import annotations

import dataclasses
import math
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any
from uuid import UUID

from typeshape.config import get_settings
from typeshape.errors import ErrorCode
from typeshape.logging import derivation_logger
from .constraints import ArrayConstraints, FloatConstraints, IntegerConstraints, SemanticConstraints, StringConstraints
from .errors import TypeDefinitionError
from .variants import (
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

STRING_KEYWORDS = {"minLength": "min_length", "maxLength": "max_length", "pattern": "pattern", "enum": "enum"}
SEMANTIC_KEYWORDS = {"minLength": "min_length", "maxLength": "max_length", "enum": "enum"}
NUMERIC_KEYWORDS = {
    "minimum": "minimum",
    "maximum": "maximum",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
    "multipleOf": "multiple_of",
    "enum": "enum",
}
ARRAY_KEYWORDS = {"minItems": "min_items", "maxItems": "max_items", "uniqueItems": "unique_items"}

STRING_FORMATS = {
    "email": SemanticKind.EMAIL,
    "uuid": SemanticKind.UUID,
}

DATE_FORMATS = {
    "date": PrimitiveKind.DATE,
    "date-time": PrimitiveKind.DATETIME,
}


class _Walk:
    """Tracks the containers on the current path and the nesting depth."""

    def __init__(self, source: str):
        self.source = source
        self.limit = get_settings().MAX_TYPE_DEPTH
        self._path: set[int] = set()
        self._depth = 0

    @contextmanager
    def visit(self, container: Any) -> Iterator[None]:
        key = id(container)
        if key in self._path:
            raise TypeDefinitionError(
                f"Cannot derive a type from self-referencing {self.source} data",
                code=ErrorCode.E7005_CYCLIC_DEFINITION,
            )
        if self._depth >= self.limit:
            raise TypeDefinitionError(
                f"{self.source} data nests deeper than the maximum of {self.limit}",
                code=ErrorCode.E7004_TOO_DEEP,
            )
        self._path.add(key)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
            self._path.discard(key)


def _names(names: str | Iterable[str] | None) -> set[str] | None:
    if names is None:
        return None
    if isinstance(names, str):
        return {names}
    return {str(name) for name in names}


def _selected(name: str, only: set[str] | None, exclude: set[str] | None) -> bool:
    if only is not None and name not in only:
        return False
    return exclude is None or name not in exclude


def _derived(source: str, derived: Object) -> Object:
    derivation_logger().debug(
        "schema_derived",
        source=source,
        fields=list(derived.field_names),
        additional_properties=derived.additional_properties,
    )
    return derived


def _rejected(source: str, exc: TypeDefinitionError) -> None:
    derivation_logger().info("type_definition_rejected", source=source, code=exc.code.name, reason=exc.message)


# ============================================================================
# JSON Schema
# ============================================================================

def _options(schema: Mapping[str, Any], keywords: Mapping[str, str]) -> dict[str, Any]:
    return {option: schema[keyword] for keyword, option in keywords.items() if keyword in schema}


# integer schemas may carry float bounds; round them inward to the nearest int
INTEGER_ROUNDING = {
    "minimum": math.ceil,
    "maximum": math.floor,
    "exclusive_minimum": math.floor,
    "exclusive_maximum": math.ceil,
}


def _integer_options(schema: Mapping[str, Any]) -> dict[str, Any]:
    options = _options(schema, NUMERIC_KEYWORDS)
    for name, value in options.items():
        if not isinstance(value, float) or not math.isfinite(value):
            continue
        if name in INTEGER_ROUNDING:
            options[name] = INTEGER_ROUNDING[name](value)
        elif value.is_integer():
            options[name] = int(value)
    if isinstance(options.get("enum"), (list, tuple)):
        options["enum"] = [
            int(v) if isinstance(v, float) and v.is_integer() else v
            for v in options["enum"]
            if not (isinstance(v, float) and math.isfinite(v) and not v.is_integer())
        ]
    return options


def _metadata(schema: Mapping[str, Any]) -> dict[str, Any]:
    metadata = {}
    if "description" in schema:
        metadata["description"] = schema["description"]
    if "example" in schema:
        metadata["example"] = schema["example"]
    return metadata


def _schema_type(schema: Mapping[str, Any]) -> tuple[Any, bool]:
    """JSON type name and whether "null" is allowed alongside it."""
    declared = schema.get("type")
    if isinstance(declared, list):
        others = [name for name in declared if name != "null"]
        return (others[0] if others else None), len(others) != len(declared)
    return declared, False


def _convert(schema: Any, walk: _Walk) -> TypeVariant:
    if not isinstance(schema, Mapping):
        raise TypeDefinitionError(
            f"Property schema must be an object, got {type(schema).__name__}",
            code=ErrorCode.E7002_INVALID_OPTION,
        )
    with walk.visit(schema):
        json_type, nullable = _schema_type(schema)
        metadata = _metadata(schema)
        match json_type:
            case "string" if schema.get("format") in STRING_FORMATS:
                kind = STRING_FORMATS[schema["format"]]
                variant = Semantic(kind, SemanticConstraints.build(kind.value, _options(schema, SEMANTIC_KEYWORDS)), **metadata)
            case "string" if schema.get("format") in DATE_FORMATS:
                variant = Primitive(DATE_FORMATS[schema["format"]], **metadata)
            case "integer":
                variant = Primitive(
                    PrimitiveKind.INTEGER, IntegerConstraints.build("integer", _integer_options(schema)), **metadata,
                )
            case "number":
                variant = Primitive(
                    PrimitiveKind.FLOAT, FloatConstraints.build("float", _options(schema, NUMERIC_KEYWORDS)), **metadata,
                )
            case "boolean":
                variant = Primitive(PrimitiveKind.BOOLEAN, **metadata)
            case "array":
                items = _convert(schema["items"], walk) if "items" in schema else Primitive(PrimitiveKind.STRING)
                variant = Array(items, ArrayConstraints.build("array", _options(schema, ARRAY_KEYWORDS)), **metadata)
            case "object":
                variant = _convert_object(schema, walk)
            case _:
                variant = Primitive(
                    PrimitiveKind.STRING, StringConstraints.build("string", _options(schema, STRING_KEYWORDS)), **metadata,
                )
    return Optional(variant) if nullable else variant


def _convert_object(
    schema: Mapping[str, Any],
    walk: _Walk,
    only: set[str] | None = None,
    exclude: set[str] | None = None,
) -> Object:
    properties = schema.get("properties")
    if not properties:
        return Object((), additional_properties=True, **_metadata(schema))

    required = set(schema.get("required") or ())
    fields = []
    for name, prop in properties.items():
        if not _selected(name, only, exclude):
            continue
        variant = _convert(prop, walk)
        if name in required:
            fields.append(Field(name, variant))
        elif isinstance(prop, Mapping) and "default" in prop:
            fields.append(Field(name, Optional(variant), prop["default"]))
        else:
            fields.append(Field(name, Optional(variant)))
    return Object(
        tuple(fields),
        additional_properties=schema.get("additionalProperties") is True,
        **_metadata(schema),
    )


def from_json_schema(
    document: Mapping[str, Any],
    *,
    only: str | Iterable[str] | None = None,
    exclude: str | Iterable[str] | None = None,
) -> Object:
    """Derive an Object type from a JSON Schema object document.

    Properties missing from "required" become Optional. Formats email,
    uuid, date and date-time map to their dedicated types; unknown types
    fall back to String.

    Raises:
        TypeDefinitionError: root is not an object schema, the document
            references itself, nests too deeply, or carries invalid
            constraint values
    """
    if not isinstance(document, Mapping) or _schema_type(document)[0] != "object":
        exc = TypeDefinitionError(
            "JSON Schema root must be an object type", code=ErrorCode.E7006_INVALID_ROOT,
        )
        _rejected("json_schema", exc)
        raise exc

    walk = _Walk("json_schema")
    try:
        with walk.visit(document):
            derived = _convert_object(document, walk, _names(only), _names(exclude))
    except TypeDefinitionError as exc:
        _rejected("json_schema", exc)
        raise
    return _derived("json_schema", derived)


# ============================================================================
# Example Values
# ============================================================================

def _is_record(value: Any) -> bool:
    return (
        (dataclasses.is_dataclass(value) and not isinstance(value, type))
        or (isinstance(value, tuple) and hasattr(value, "_asdict"))
    )


def _record_items(obj: Any) -> Mapping[str, Any]:
    if dataclasses.is_dataclass(obj):
        return {entry.name: getattr(obj, entry.name) for entry in dataclasses.fields(obj)}
    if isinstance(obj, tuple) and hasattr(obj, "_asdict"):
        return obj._asdict()
    return vars(obj)


def _infer(value: Any, walk: _Walk) -> TypeVariant:
    match value:
        case bool():
            return Primitive(PrimitiveKind.BOOLEAN)
        case int():
            return Primitive(PrimitiveKind.INTEGER)
        case float():
            return Primitive(PrimitiveKind.FLOAT)
        case datetime():
            return Primitive(PrimitiveKind.DATETIME)
        case date():
            return Primitive(PrimitiveKind.DATE)
        case UUID():
            return Semantic(SemanticKind.UUID)
        case Mapping():
            return _infer_object(value, walk)
        case _ if _is_record(value):
            return _infer_object(_record_items(value), walk, container=value)
        case list() | tuple():
            with walk.visit(value):
                item = _infer(value[0], walk) if value else Primitive(PrimitiveKind.STRING)
                return Array(item)
        case _:
            return Primitive(PrimitiveKind.STRING)


def _infer_object(
    items: Mapping[str, Any],
    walk: _Walk,
    only: set[str] | None = None,
    exclude: set[str] | None = None,
    container: Any = None,
) -> Object:
    with walk.visit(items if container is None else container):
        fields = [
            Field(str(name), _infer(value, walk))
            for name, value in items.items()
            if _selected(str(name), only, exclude)
        ]
        return Object(tuple(fields))


def _derive_from_values(
    source: str,
    items: Mapping[str, Any],
    container: Any,
    only: str | Iterable[str] | None,
    exclude: str | Iterable[str] | None,
) -> Object:
    walk = _Walk(source)
    try:
        derived = _infer_object(items, walk, _names(only), _names(exclude), container=container)
    except TypeDefinitionError as exc:
        _rejected(source, exc)
        raise
    return _derived(source, derived)


def from_mapping(
    record: Mapping[str, Any],
    *,
    only: str | Iterable[str] | None = None,
    exclude: str | Iterable[str] | None = None,
) -> Object:
    """Derive a strict Object type from a mapping of example values.

    str -> String, bool -> Boolean, int -> Integer, float -> Float,
    datetime -> DateTime, date -> Date, UUID -> UUID, list/tuple -> Array
    of the first element's type (String when empty), nested mappings and
    records -> Object. None and anything else fall back to String.
    """
    if not isinstance(record, Mapping):
        exc = TypeDefinitionError(
            f"Expected a mapping, got {type(record).__name__}", code=ErrorCode.E7006_INVALID_ROOT,
        )
        _rejected("mapping", exc)
        raise exc
    return _derive_from_values("mapping", record, None, only, exclude)


def from_record(
    obj: Any,
    *,
    only: str | Iterable[str] | None = None,
    exclude: str | Iterable[str] | None = None,
) -> Object:
    """Derive a strict Object type from an attribute record's current values."""
    if isinstance(obj, (Mapping, type)) or not (_is_record(obj) or hasattr(obj, "__dict__")):
        exc = TypeDefinitionError(
            f"Expected an attribute record, got {type(obj).__name__}", code=ErrorCode.E7006_INVALID_ROOT,
        )
        _rejected("record", exc)
        raise exc
    return _derive_from_values("record", _record_items(obj), obj, only, exclude)
