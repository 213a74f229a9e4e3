"""Schema Introspection

to_schema(type) mirrors a type tree into JSON Schema vocabulary. It is
pure and total over constructed types: every call builds a fresh dict.

Optional has no schema of its own. Optionality shows up only in the
parent object's "required" list, so an Optional renders as the schema of
the type it wraps.
"""
from __future__ import annotations

import copy
import json
from typing import Any

from .variants import Array, Object, Optional, Primitive, PrimitiveKind, Semantic, TypeVariant

DRAFT_2020_12 = "https://json-schema.org/draft/2020-12/schema"

JSON_TYPES = {
    PrimitiveKind.STRING: "string",
    PrimitiveKind.INTEGER: "integer",
    PrimitiveKind.FLOAT: "number",
    PrimitiveKind.BOOLEAN: "boolean",
    PrimitiveKind.DATE: "string",
    PrimitiveKind.DATETIME: "string",
}

FORMATS = {
    PrimitiveKind.DATE: "date",
    PrimitiveKind.DATETIME: "date-time",
}


def to_schema(type_: TypeVariant) -> dict[str, Any]:
    match type_:
        case Optional(inner=inner):
            return to_schema(inner)
        case Primitive(kind=kind, constraints=constraints):
            schema: dict[str, Any] = {"type": JSON_TYPES[kind]}
            if kind in FORMATS:
                schema["format"] = FORMATS[kind]
            schema.update(constraints.to_schema())
        case Semantic(kind=kind, constraints=constraints):
            schema = {"type": "string", "format": kind.value, **constraints.to_schema()}
        case Array(item=item, constraints=constraints):
            schema = {"type": "array", "items": to_schema(item), **constraints.to_schema()}
        case Object():
            schema = _object_schema(type_)
        case _:
            raise TypeError(f"Not a type variant: {type_!r}")
    return _with_metadata(schema, type_)


def _object_schema(type_: Object) -> dict[str, Any]:
    properties = {}
    for entry in type_.fields:
        prop = to_schema(entry.type)
        if entry.has_default:
            prop["default"] = copy.deepcopy(entry.default)
        properties[entry.name] = prop

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    required = list(type_.required_fields)
    if required:
        schema["required"] = required
    schema["additionalProperties"] = type_.additional_properties
    return schema


def _with_metadata(schema: dict[str, Any], type_: TypeVariant) -> dict[str, Any]:
    if type_.description is not None:
        schema["description"] = type_.description
    if type_.example is not None:
        schema["example"] = copy.deepcopy(type_.example)
    return schema


class JSONSchemaGenerator:
    """Generate a standalone JSON Schema (draft 2020-12) document."""

    def __init__(self, indent: int | None = 2):
        self.indent = indent

    def generate(self, type_: TypeVariant, *, title: str | None = None) -> str:
        document: dict[str, Any] = {"$schema": DRAFT_2020_12}
        if title:
            document["title"] = title
        document.update(to_schema(type_))
        # dates and other non-JSON defaults or examples render as strings
        return json.dumps(document, indent=self.indent, default=str)
