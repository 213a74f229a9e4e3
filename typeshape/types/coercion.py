"""Coercion

coerce(type, value) turns loosely typed input (query strings, form posts,
JSON documents) into the shape a type describes, or raises CoercionError.

Rules per kind are explicit and enumerated below; nothing falls back to
Python truthiness or str() of arbitrary objects. Coercion converts shape
only: constraints are left to validate().

Failures inside arrays and objects are re-raised with the item index or
field name prefixed to the reason, keeping the innermost value and target
type, and chained to the original error.
"""
from __future__ import annotations

import copy
import json
import math
import re
from collections.abc import Callable, Mapping
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from typeshape.errors import AppError, ErrorCode, Err, Ok, Result
from .errors import CoercionError
from .validator import unexpected_fields_message, unexpected_keys
from .variants import Array, Object, Optional, Primitive, PrimitiveKind, Semantic, SemanticKind, TypeVariant

INTEGER_STRING = re.compile(r"[+-]?\d+")
FLOAT_STRING = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
DATE_STRING = re.compile(r"\d{4}-\d{2}-\d{2}")

TRUE_VALUES = ("true", "1", 1)
FALSE_VALUES = ("false", "0", 0)


# ============================================================================
# Primitive Rules
# ============================================================================

def _is_finite(value: float | Decimal) -> bool:
    return value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)


def _to_string(value: Any, target: str = "String") -> str:
    match value:
        case str():
            return value
        case bool():
            return "true" if value else "false"
        case int() | float() | Decimal() | UUID():
            return str(value)
        case datetime() | date():
            return value.isoformat()
        case Enum():
            return _to_string(value.value, target)
    raise CoercionError(value, target, f"Cannot convert {type(value).__name__} to string")


def _to_integer(value: Any) -> int:
    match value:
        case bool():
            return 1 if value else 0
        case int():
            return value
        case float() | Decimal():
            if not _is_finite(value):
                raise CoercionError(value, "Integer", "Non-finite number cannot be converted to integer")
            return int(value)
        case str():
            stripped = value.strip()
            if not INTEGER_STRING.fullmatch(stripped):
                raise CoercionError(value, "Integer", f"Invalid integer string {value!r}", ErrorCode.E2002_INVALID_FORMAT)
            return int(stripped)
    raise CoercionError(value, "Integer", "Value cannot be converted to integer")


def _to_float(value: Any) -> float:
    match value:
        case bool():
            return 1.0 if value else 0.0
        case str():
            stripped = value.strip()
            if not FLOAT_STRING.fullmatch(stripped):
                raise CoercionError(value, "Float", f"Invalid number string {value!r}", ErrorCode.E2002_INVALID_FORMAT)
            result = float(stripped)
        case int() | float() | Decimal():
            try:
                result = float(value)
            except (OverflowError, ValueError) as exc:
                raise CoercionError(value, "Float", str(exc)) from exc
        case _:
            raise CoercionError(value, "Float", "Value cannot be converted to float")
    if not math.isfinite(result):
        raise CoercionError(value, "Float", "Non-finite numbers are not allowed")
    return result


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, int)):
        if value in TRUE_VALUES:
            return True
        if value in FALSE_VALUES:
            return False
    raise CoercionError(value, "Boolean", f"Cannot convert {value!r} to boolean")


def _from_timestamp(value: int | float, target: str) -> datetime:
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise CoercionError(value, target, f"Invalid timestamp: {exc}", ErrorCode.E2012_INVALID_DATE) from exc


def _to_date(value: Any) -> date:
    match value:
        case datetime():
            return value.date()
        case date():
            return value
        case bool():
            pass
        case int():
            return _from_timestamp(value, "Date").date()
        case str():
            stripped = value.strip()
            if DATE_STRING.fullmatch(stripped):
                try:
                    return date.fromisoformat(stripped)
                except ValueError as exc:
                    raise CoercionError(value, "Date", str(exc), ErrorCode.E2012_INVALID_DATE) from exc
            raise CoercionError(value, "Date", "Expected a YYYY-MM-DD string", ErrorCode.E2012_INVALID_DATE)
    raise CoercionError(value, "Date", "Value cannot be converted to date")


def _to_datetime(value: Any) -> datetime:
    match value:
        case datetime():
            return value
        case date():
            return datetime.combine(value, time.min)
        case bool():
            pass
        case int() | float():
            return _from_timestamp(value, "DateTime")
        case str():
            stripped = value.strip()
            if stripped.endswith(("Z", "z")):
                stripped = stripped[:-1] + "+00:00"
            try:
                return datetime.fromisoformat(stripped)
            except ValueError as exc:
                raise CoercionError(
                    value, "DateTime", f"Invalid ISO 8601 datetime: {exc}", ErrorCode.E2012_INVALID_DATE,
                ) from exc
    raise CoercionError(value, "DateTime", "Value cannot be converted to datetime")


PRIMITIVE_RULES: dict[PrimitiveKind, Callable[[Any], Any]] = {
    PrimitiveKind.STRING: _to_string,
    PrimitiveKind.INTEGER: _to_integer,
    PrimitiveKind.FLOAT: _to_float,
    PrimitiveKind.BOOLEAN: _to_boolean,
    PrimitiveKind.DATE: _to_date,
    PrimitiveKind.DATETIME: _to_datetime,
}

FORMAT_ERROR_CODES = {
    SemanticKind.UUID: ErrorCode.E2011_INVALID_UUID,
    SemanticKind.EMAIL: ErrorCode.E2010_INVALID_EMAIL,
}


def _to_semantic(kind: SemanticKind, value: Any) -> str:
    text = _to_string(value, kind.type_name)
    if not kind.matches(text):
        raise CoercionError(value, kind.type_name, f"Invalid {kind.label} format", FORMAT_ERROR_CODES[kind])
    return text


# ============================================================================
# Composite Rules
# ============================================================================

def _decode_json(value: str, target: str) -> Any:
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise CoercionError(value, target, f"Invalid JSON: {exc}", ErrorCode.E2021_INVALID_JSON) from exc


def _coerce_array(type_: Array, value: Any) -> list:
    if isinstance(value, (list, tuple)):
        items = value
    elif isinstance(value, str) and value.lstrip().startswith("["):
        items = _decode_json(value, "Array")
    else:
        items = [value]

    coerced = []
    for index, item in enumerate(items):
        try:
            coerced.append(coerce(type_.item, item))
        except CoercionError as exc:
            raise exc.with_prefix(f"Item at index {index}") from exc
    return coerced


def _coerce_object(type_: Object, value: Any) -> dict:
    if isinstance(value, str):
        decoded = _decode_json(value, "Object")
        if not isinstance(decoded, Mapping):
            raise CoercionError(value, "Object", "JSON string did not decode to an object", ErrorCode.E2021_INVALID_JSON)
        value = decoded
    if not isinstance(value, Mapping):
        raise CoercionError(value, "Object", "Value cannot be converted to object")

    if not type_.additional_properties:
        unexpected = unexpected_keys(type_, value)
        if unexpected:
            raise CoercionError(
                value, "Object", unexpected_fields_message(type_, unexpected), ErrorCode.E2006_UNEXPECTED_FIELDS,
            )

    coerced = {}
    for entry in type_.fields:
        if entry.name not in value:
            if entry.has_default and entry.default is not None:
                coerced[entry.name] = copy.deepcopy(entry.default)
            elif entry.required:
                raise CoercionError(
                    value, "Object", f"Required field '{entry.name}' is missing from hash",
                    ErrorCode.E2001_REQUIRED_FIELD_MISSING,
                )
            continue
        raw = value[entry.name]
        if raw is None and entry.type.is_optional:
            continue
        try:
            coerced[entry.name] = coerce(entry.type, raw)
        except CoercionError as exc:
            raise exc.with_prefix(f"Field '{entry.name}'") from exc

    if type_.additional_properties:
        declared = set(type_.field_names)
        for key, item in value.items():
            if key not in declared:
                coerced[key] = item
    return coerced


# ============================================================================
# Public API
# ============================================================================

def coerce(type_: TypeVariant, value: Any) -> Any:
    """Coerce value into the shape of type_.

    Raises:
        CoercionError: when the value cannot be converted
    """
    match type_:
        case Optional(inner=inner):
            return None if value is None else coerce(inner, value)
        case _ if value is None:
            raise CoercionError(
                value, type_.name, "Required value cannot be None", ErrorCode.E2001_REQUIRED_FIELD_MISSING,
            )
        case Primitive(kind=kind):
            return PRIMITIVE_RULES[kind](value)
        case Semantic(kind=kind):
            return _to_semantic(kind, value)
        case Array():
            return _coerce_array(type_, value)
        case Object():
            return _coerce_object(type_, value)
        case _:
            raise TypeError(f"Not a type variant: {type_!r}")


def try_coerce(type_: TypeVariant, value: Any) -> Result[Any, AppError]:
    """Result-returning form of coerce()."""
    try:
        return Ok(coerce(type_, value))
    except CoercionError as exc:
        return Err(exc.to_app_error())


def serialize(type_: TypeVariant, value: Any) -> Any:
    """Coerce value, then convert it to its JSON-compatible wire form.

    Dates and datetimes become ISO 8601 strings; arrays and objects are
    converted recursively. Undeclared keys of permissive objects pass
    through unchanged.
    """
    return _to_wire(type_, coerce(type_, value))


def _to_wire(type_: TypeVariant, value: Any) -> Any:
    match type_:
        case _ if value is None:
            return None
        case Optional(inner=inner):
            return _to_wire(inner, value)
        case Primitive(kind=PrimitiveKind.DATE | PrimitiveKind.DATETIME):
            return value.isoformat()
        case Primitive() | Semantic():
            return value
        case Array(item=item):
            return [_to_wire(item, element) for element in value]
        case Object():
            wire = {}
            for key, item in value.items():
                entry = type_.get_field(key)
                wire[key] = item if entry is None else _to_wire(entry.type, item)
            return wire
        case _:
            raise TypeError(f"Not a type variant: {type_!r}")
