"""Tests for to_schema() and JSONSchemaGenerator."""

from __future__ import annotations

import json
from datetime import date

import pytest

from typeshape import types as ts
from typeshape.types import JSONSchemaGenerator, Object, TypeVariant, to_schema


@pytest.mark.parametrize(
    ("type_", "expected"),
    [
        (ts.string(), {"type": "string"}),
        (ts.integer(), {"type": "integer"}),
        (ts.float_(), {"type": "number"}),
        (ts.boolean(), {"type": "boolean"}),
        (ts.date(), {"type": "string", "format": "date"}),
        (ts.datetime(), {"type": "string", "format": "date-time"}),
        (ts.uuid(), {"type": "string", "format": "uuid"}),
        (ts.email(), {"type": "string", "format": "email"}),
    ],
)
def test_scalar_schemas(type_: TypeVariant, expected: dict) -> None:
    assert to_schema(type_) == expected


class TestConstraintKeywords:
    def test_string(self) -> None:
        assert to_schema(ts.string(min_length=1, max_length=50, pattern=r"^\w+$")) == {
            "type": "string",
            "minLength": 1,
            "maxLength": 50,
            "pattern": r"^\w+$",
        }

    def test_integer(self) -> None:
        assert to_schema(ts.integer(minimum=18, maximum=120)) == {"type": "integer", "minimum": 18, "maximum": 120}

    def test_float(self) -> None:
        assert to_schema(ts.float_(exclusive_maximum=1.0, multiple_of=0.25)) == {
            "type": "number",
            "exclusiveMaximum": 1.0,
            "multipleOf": 0.25,
        }

    def test_semantic_keeps_format_and_length(self) -> None:
        assert to_schema(ts.email(max_length=254)) == {"type": "string", "format": "email", "maxLength": 254}

    def test_array(self) -> None:
        assert to_schema(ts.array(ts.integer(), min_items=1, unique_items=True)) == {
            "type": "array",
            "items": {"type": "integer"},
            "minItems": 1,
            "uniqueItems": True,
        }


class TestOptional:
    def test_optional_has_no_schema_of_its_own(self) -> None:
        assert to_schema(ts.optional(ts.integer(minimum=0))) == {"type": "integer", "minimum": 0}

    def test_optional_fields_are_not_required(self, person: Object) -> None:
        assert to_schema(person) == {
            "type": "object",
            "properties": {
                "id": {"type": "integer", "minimum": 1},
                "name": {"type": "string", "minLength": 1},
                "email": {"type": "string", "format": "email"},
                "tags": {"type": "array", "items": {"type": "string"}, "maxItems": 3},
            },
            "required": ["id", "name", "tags"],
            "additionalProperties": False,
        }


class TestObject:
    def test_empty_required_list_is_omitted(self) -> None:
        schema = to_schema(ts.object_({"note": ts.optional(ts.string())}))
        assert "required" not in schema
        assert schema["additionalProperties"] is False

    def test_permissive_object(self) -> None:
        assert to_schema(ts.open_object({}))["additionalProperties"] is True

    def test_defaults_are_rendered(self) -> None:
        schema = to_schema(ts.object_({"role": ts.field(ts.string(), default="member")}))
        assert schema["properties"]["role"] == {"type": "string", "default": "member"}
        assert "required" not in schema

    def test_nested(self, address_book: Object) -> None:
        schema = to_schema(address_book)
        address = schema["properties"]["addresses"]["items"]
        assert address["required"] == ["street", "zip"]
        assert address["properties"]["zip"] == {"type": "string", "pattern": r"^\d{5}$"}
        assert schema["properties"]["primary"] == address
        assert schema["required"] == ["owner", "addresses"]


class TestMetadata:
    def test_description_and_example(self) -> None:
        type_ = ts.integer(minimum=0, description="Age in years", example=42)
        assert to_schema(type_) == {"type": "integer", "minimum": 0, "description": "Age in years", "example": 42}

    def test_object_metadata(self) -> None:
        type_ = ts.object_({"id": ts.integer()}, description="A user")
        assert to_schema(type_)["description"] == "A user"

    def test_each_call_returns_a_fresh_dict(self) -> None:
        type_ = ts.string(example="x")
        first = to_schema(type_)
        first["type"] = "mutated"
        assert to_schema(type_)["type"] == "string"


class TestGenerator:
    def test_document_header(self) -> None:
        document = json.loads(JSONSchemaGenerator().generate(ts.object_({"id": ts.integer()}), title="User"))
        assert document["$schema"] == "https://json-schema.org/draft/2020-12/schema"
        assert document["title"] == "User"
        assert document["properties"] == {"id": {"type": "integer"}}

    def test_untitled(self) -> None:
        document = json.loads(JSONSchemaGenerator(indent=None).generate(ts.string()))
        assert "title" not in document
        assert document["type"] == "string"

    def test_date_examples_render_as_strings(self) -> None:
        output = JSONSchemaGenerator().generate(ts.date(example=date(2024, 1, 31)))
        assert json.loads(output)["example"] == "2024-01-31"
