"""Tests for the Result container, AppError and the exception types."""

from __future__ import annotations

import pytest

from typeshape import types as ts
from typeshape.errors import (
    AppError,
    Err,
    ErrorCode,
    Ok,
    coercion_failed,
    collect_results,
    invalid_definition,
    sequence_results,
    validation_error,
    validation_failed,
)
from typeshape.types import CoercionError, TypeDefinitionError, TypeValidationError


class TestErrorCode:
    @pytest.mark.parametrize(
        ("code", "category", "status"),
        [
            (ErrorCode.E2001_REQUIRED_FIELD_MISSING, "validation", 400),
            (ErrorCode.E7004_TOO_DEEP, "definition", 500),
            (ErrorCode.E9001_UNEXPECTED_ERROR, "internal", 500),
        ],
    )
    def test_category_and_status(self, code: ErrorCode, category: str, status: int) -> None:
        assert code.category == category
        assert code.http_status == status


class TestResult:
    def test_ok(self) -> None:
        result = Ok(2)
        assert result.is_ok() and not result.is_err()
        assert result.unwrap() == 2
        assert result.unwrap_or(0) == 2
        assert result.map(lambda v: v * 10) == Ok(20)
        assert result.map_err(str) is result
        assert result.and_then(lambda v: Err("no")) == Err("no")
        assert result.match(ok=lambda v: f"ok {v}", err=lambda e: "err") == "ok 2"
        assert list(result) == [2]

    def test_err(self) -> None:
        result = Err("boom")
        assert result.is_err() and not result.is_ok()
        assert result.unwrap_or(0) == 0
        assert result.unwrap_err() == "boom"
        assert result.map(lambda v: v * 10) is result
        assert result.map_err(str.upper) == Err("BOOM")
        assert result.and_then(lambda v: Ok(v)) is result
        assert result.match(ok=lambda v: "ok", err=lambda e: f"err {e}") == "err boom"
        assert list(result) == []

    def test_unwrap_on_err_raises(self) -> None:
        with pytest.raises(ValueError, match="Called unwrap on Err"):
            Err("boom").unwrap()

    def test_pattern_matching(self) -> None:
        match ts.try_coerce(ts.integer(), "42"):
            case Ok(value):
                assert value == 42
            case Err():
                pytest.fail("expected Ok")

    def test_collect_results(self) -> None:
        assert collect_results([Ok(1), Ok(2)]) == Ok([1, 2])
        assert collect_results([Ok(1), Err("a"), Err("b")]) == Err(["a", "b"])

    def test_sequence_results(self) -> None:
        assert sequence_results([Ok(1), Ok(2)]) == Ok([1, 2])
        assert sequence_results([Ok(1), Err("a"), Err("b")]) == Err("a")


class TestAppError:
    def test_str_and_dict(self) -> None:
        error = AppError(ErrorCode.E2006_UNEXPECTED_FIELDS, "Unexpected fields: b", {"fields": ["b"]}, "parse")
        assert str(error) == "[E2006_UNEXPECTED_FIELDS] Unexpected fields: b"
        assert error.to_dict() == {
            "error": {
                "code": "E2006_UNEXPECTED_FIELDS",
                "code_num": 2006,
                "message": "Unexpected fields: b",
                "category": "validation",
                "origin": "parse",
                "metadata": {"fields": ["b"]},
            }
        }

    def test_copies(self) -> None:
        error = AppError(ErrorCode.E2000_VALIDATION_GENERIC, "bad", {"a": 1})
        assert error.with_metadata(b=2).metadata == {"a": 1, "b": 2}
        assert error.with_origin("batch[3]").origin == "batch[3]"
        assert error.metadata == {"a": 1}
        assert error.origin == ""


class TestBuilders:
    def test_validation_error_drops_empty_metadata(self) -> None:
        error = validation_error("bad", field="age").unwrap_err()
        assert error.metadata == {"field": "age"}
        assert error.code is ErrorCode.E2000_VALIDATION_GENERIC

    def test_validation_failed(self) -> None:
        single = validation_failed(["only"], type_name="String").unwrap_err()
        assert single.message == "only"
        several = validation_failed(["a", "b", "c"], type_name="Object", origin="parse").unwrap_err()
        assert several.message == "Validation failed: 3 errors"
        assert several.metadata == {"type": "Object", "errors": ["a", "b", "c"]}

    def test_coercion_failed(self) -> None:
        error = coercion_failed("x", "Integer", "Invalid integer string 'x'").unwrap_err()
        assert error.message == "Cannot coerce 'x' to Integer: Invalid integer string 'x'"
        assert error.metadata == {"value": "x", "target_type": "Integer", "reason": "Invalid integer string 'x'"}

    def test_invalid_definition(self) -> None:
        error = invalid_definition("nope", code=ErrorCode.E7001_UNKNOWN_OPTION, options=["x"]).unwrap_err()
        assert error.code.category == "definition"
        assert error.metadata == {"options": ["x"]}


class TestExceptions:
    def test_exceptions_are_value_errors(self) -> None:
        assert issubclass(TypeDefinitionError, ValueError)
        assert issubclass(CoercionError, ValueError)
        assert issubclass(TypeValidationError, ValueError)

    def test_definition_error_to_app_error(self) -> None:
        with pytest.raises(TypeDefinitionError) as info:
            ts.string(min_len=1)
        error = info.value.to_app_error()
        assert error.code is ErrorCode.E7001_UNKNOWN_OPTION
        assert error.metadata == {"options": ["min_len"]}

    def test_coercion_error_message(self) -> None:
        error = CoercionError("abc", "Integer")
        assert str(error) == "Cannot coerce 'abc' to Integer"
        assert error.with_prefix("Field 'n'").reason == "Field 'n'"

    def test_prefix_keeps_value_type_and_code(self) -> None:
        error = CoercionError("abc", "Integer", "bad", ErrorCode.E2002_INVALID_FORMAT).with_prefix("Item at index 2")
        assert (error.value, error.target_type, error.code) == ("abc", "Integer", ErrorCode.E2002_INVALID_FORMAT)
        assert error.reason == "Item at index 2: bad"

    def test_validation_error_to_app_error(self) -> None:
        error = TypeValidationError({"a": 1}, "Object", ("x", "y")).to_app_error(origin="ingress")
        assert error.origin == "ingress"
        assert error.metadata["errors"] == ["x", "y"]

    def test_exceptions_are_hashable(self) -> None:
        assert len({CoercionError(1, "String"), CoercionError(1, "String")}) == 2
