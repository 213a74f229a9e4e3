"""Tests for per-kind constraint sets."""

from __future__ import annotations

import re

import pytest
from pydantic import ValidationError

from typeshape.errors import ErrorCode
from typeshape.types import (
    ArrayConstraints,
    FloatConstraints,
    IntegerConstraints,
    NoConstraints,
    SemanticConstraints,
    StringConstraints,
    TypeDefinitionError,
)


class TestBuild:
    def test_unknown_option_is_rejected(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            StringConstraints.build("string", {"min_len": 3})
        assert info.value.code is ErrorCode.E7001_UNKNOWN_OPTION
        assert info.value.options == ("min_len",)
        assert "Unknown option(s) for string: min_len" in str(info.value)
        assert "min_length" in str(info.value)

    def test_kinds_without_options_reject_everything(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            NoConstraints.build("boolean", {"enum": [True]})
        assert info.value.code is ErrorCode.E7001_UNKNOWN_OPTION
        assert "Recognized options: none" in str(info.value)

    def test_semantic_kinds_have_no_pattern(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            SemanticConstraints.build("email", {"pattern": ".*"})
        assert info.value.code is ErrorCode.E7001_UNKNOWN_OPTION

    def test_inverted_bounds(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            StringConstraints.build("string", {"min_length": 5, "max_length": 2})
        assert info.value.code is ErrorCode.E7002_INVALID_OPTION
        assert "min_length (5) must not exceed max_length (2)" in str(info.value)

    def test_negative_length(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            StringConstraints.build("string", {"min_length": -1})
        assert info.value.code is ErrorCode.E7002_INVALID_OPTION
        assert info.value.options == ("min_length",)

    def test_uncompilable_pattern(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            StringConstraints.build("string", {"pattern": "(unclosed"})
        assert "invalid regular expression" in str(info.value)

    def test_compiled_pattern_is_stored_by_source(self) -> None:
        constraints = StringConstraints.build("string", {"pattern": re.compile(r"^\d+$")})
        assert constraints.pattern == r"^\d+$"

    @pytest.mark.parametrize("multiple_of", [0, -2])
    def test_multiple_of_must_be_positive(self, multiple_of: int) -> None:
        with pytest.raises(TypeDefinitionError):
            IntegerConstraints.build("integer", {"multiple_of": multiple_of})

    def test_integer_bounds_must_be_integers(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            IntegerConstraints.build("integer", {"minimum": 1.5})
        assert info.value.options == ("minimum",)

    def test_float_bounds_must_be_finite(self) -> None:
        with pytest.raises(TypeDefinitionError):
            FloatConstraints.build("float", {"maximum": float("inf")})

    def test_array_counts(self) -> None:
        with pytest.raises(TypeDefinitionError):
            ArrayConstraints.build("array", {"min_items": 3, "max_items": 1})

    def test_constraints_are_frozen(self) -> None:
        constraints = StringConstraints(min_length=1)
        with pytest.raises(ValidationError):
            constraints.min_length = 2


class TestFirstViolation:
    def test_string_order_is_length_pattern_enum(self) -> None:
        constraints = StringConstraints(min_length=3, pattern="^[a-z]+$", enum=("abc", "xyz"))
        assert constraints.first_violation("ab") == "String length 2 is below minimum 3"
        assert constraints.first_violation("ABC") == "String 'ABC' does not match pattern '^[a-z]+$'"
        assert constraints.first_violation("abd") == "Value 'abd' is not one of: 'abc', 'xyz'"
        assert constraints.first_violation("abc") is None

    def test_pattern_searches_anywhere(self) -> None:
        assert StringConstraints(pattern="b").first_violation("abc") is None

    def test_string_max_length(self) -> None:
        assert StringConstraints(max_length=2).first_violation("abc") == "String length 3 exceeds maximum 2"

    @pytest.mark.parametrize(
        ("options", "value", "message"),
        [
            ({"minimum": 0}, -1, "Value -1 is below minimum 0"),
            ({"maximum": 10}, 11, "Value 11 exceeds maximum 10"),
            ({"exclusive_minimum": 0}, 0, "Value 0 must be greater than 0"),
            ({"exclusive_maximum": 5}, 5, "Value 5 must be less than 5"),
            ({"multiple_of": 2}, 3, "Value 3 is not a multiple of 2"),
            ({"enum": (1, 2)}, 3, "Value 3 is not one of: 1, 2"),
        ],
    )
    def test_integer_rules(self, options: dict, value: int, message: str) -> None:
        assert IntegerConstraints(**options).first_violation(value) == message

    def test_range_before_multiple(self) -> None:
        constraints = IntegerConstraints(maximum=10, multiple_of=2)
        assert constraints.first_violation(13) == "Value 13 exceeds maximum 10"

    @pytest.mark.parametrize("value", [0.3, 0.7, 1.0, -0.2])
    def test_float_multiple_tolerance(self, value: float) -> None:
        assert FloatConstraints(multiple_of=0.1).first_violation(value) is None

    def test_float_not_a_multiple(self) -> None:
        assert FloatConstraints(multiple_of=0.5).first_violation(0.3) == "Value 0.3 is not a multiple of 0.5"


class TestArrayViolations:
    def test_reports_count_and_uniqueness(self) -> None:
        constraints = ArrayConstraints(min_items=3, unique_items=True)
        assert constraints.violations(["a", "a"]) == [
            "Array length 2 is below minimum 3",
            "Array contains duplicate items but must be unique",
        ]

    def test_max_items(self) -> None:
        assert ArrayConstraints(max_items=1).violations([1, 2]) == ["Array length 2 exceeds maximum 1"]

    def test_one_and_true_are_distinct(self) -> None:
        assert ArrayConstraints(unique_items=True).violations([1, True]) == []

    def test_unhashable_duplicates(self) -> None:
        assert ArrayConstraints(unique_items=True).violations([{"a": 1}, {"a": 1}]) != []


class TestSchemaKeywords:
    def test_string_keywords(self) -> None:
        constraints = StringConstraints(min_length=1, max_length=5, pattern="^a", enum=["a", "ab"])
        assert constraints.to_schema() == {
            "minLength": 1,
            "maxLength": 5,
            "pattern": "^a",
            "enum": ["a", "ab"],
        }

    def test_numeric_keywords(self) -> None:
        constraints = IntegerConstraints(exclusive_minimum=0, multiple_of=5)
        assert constraints.to_schema() == {"exclusiveMinimum": 0, "multipleOf": 5}

    def test_unset_options_are_omitted(self) -> None:
        assert ArrayConstraints().to_schema() == {}
        assert ArrayConstraints(unique_items=True).to_schema() == {"uniqueItems": True}

    def test_describe(self) -> None:
        assert IntegerConstraints(minimum=1, maximum=9).describe() == ["minimum: 1", "maximum: 9"]
        assert NoConstraints().describe() == []
