"""typeshape: runtime type declarations with validation, coercion and JSON Schema output.

Usage:
    import typeshape
    from typeshape.types import object_, integer, optional

    Person = object_({"id": integer(), "age": optional(integer())})

    typeshape.validate(Person, {"id": 1}).valid      # True
    typeshape.coerce(Person, {"id": "7"})            # {"id": 7}
    typeshape.to_schema(Person)["required"]          # ["id"]
"""
from .types import (
    CoercionError,
    JSONSchemaGenerator,
    TypeDefinitionError,
    TypeValidationError,
    TypeVariant,
    ValidationResult,
    coerce,
    from_json_schema,
    from_mapping,
    from_record,
    serialize,
    to_schema,
    try_coerce,
    validate,
)
from .boundaries import TypeBoundary, as_annotated, parse, parse_batch
from .logging import configure_logging

__version__ = "0.1.0"

__all__ = [
    "validate",
    "coerce",
    "try_coerce",
    "serialize",
    "to_schema",
    "JSONSchemaGenerator",
    "from_json_schema",
    "from_mapping",
    "from_record",
    "parse",
    "parse_batch",
    "as_annotated",
    "TypeBoundary",
    "TypeVariant",
    "ValidationResult",
    "TypeDefinitionError",
    "CoercionError",
    "TypeValidationError",
    "configure_logging",
]
