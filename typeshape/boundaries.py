"""Parsing at System Boundaries

Parse-don't-validate helpers for code that receives untrusted payloads:
coerce the payload into the declared shape, then validate the coerced
value against the type's constraints. Failures come back as Err[AppError]
values instead of exceptions.

Usage:
    from typeshape.boundaries import TypeBoundary, parse, as_annotated

    result = parse(User, request_json)
    if result.is_err():
        return error_response(result.unwrap_err())
    user = result.unwrap()

    class Envelope(BaseModel):
        user: as_annotated(User)
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Annotated, Any

from pydantic import BeforeValidator, WithJsonSchema

from typeshape.errors import AppError, Err, Ok, Result, collect_results, sequence_results
from typeshape.logging import boundary_logger
from typeshape.types import CoercionError, TypeValidationError, TypeVariant, coerce, to_schema, validate


class TypeBoundary:
    """Stateless boundary parser bound to one type.

    Usage:
        users = TypeBoundary(User, origin="ingress")
        result = users.parse(payload)
    """

    __slots__ = ("type", "origin")

    def __init__(self, type_: TypeVariant, origin: str = "parse"):
        self.type, self.origin = type_, origin

    def parse(self, payload: Any, *, origin: str | None = None) -> Result[Any, AppError]:
        """Coerce then validate a single payload."""
        origin = origin or self.origin
        try:
            value = coerce(self.type, payload)
        except CoercionError as e:
            boundary_logger().debug(
                "coercion_failed", type=str(self.type), origin=origin, value=e.value, reason=e.reason,
            )
            return Err(e.to_app_error(origin=origin))
        result = validate(self.type, value)
        if not result.valid:
            return Err(TypeValidationError(value, str(self.type), result.errors).to_app_error(origin=origin))
        return Ok(value)

    def parse_batch(self, payloads: Iterable[Any], *, fail_fast: bool = False) -> Result[list, list[AppError]]:
        """Parse many payloads, tagging each error with its index ("batch[3]").

        Collects every failure by default; with fail_fast=True stops at the
        first one and returns it alone.
        """
        results = (
            self.parse(payload, origin=f"{self.origin}.batch[{index}]")
            for index, payload in enumerate(payloads)
        )
        if fail_fast:
            outcome = sequence_results(results).map_err(lambda error: [error])
        else:
            outcome = collect_results(list(results))

        boundary_logger().info(
            "batch_parsed",
            type=str(self.type),
            origin=self.origin,
            fail_fast=fail_fast,
            ok=outcome.is_ok(),
            failures=outcome.match(ok=lambda values: 0, err=len),
        )
        return outcome


def parse(type_: TypeVariant, payload: Any, *, origin: str = "parse") -> Result[Any, AppError]:
    return TypeBoundary(type_, origin).parse(payload)


def parse_batch(
    type_: TypeVariant,
    payloads: Iterable[Any],
    *,
    fail_fast: bool = False,
    origin: str = "parse",
) -> Result[list, list[AppError]]:
    return TypeBoundary(type_, origin).parse_batch(payloads, fail_fast=fail_fast)


def as_annotated(type_: TypeVariant) -> Any:
    """Annotated[Any, ...] that lets a type be used as a pydantic field type.

    Input is coerced and validated before pydantic sees it; failures
    surface as pydantic ValidationError. The field's JSON Schema is the
    type's to_schema() output.
    """
    def _parse(value: Any) -> Any:
        coerced = coerce(type_, value)
        validate(type_, coerced).raise_if_invalid(coerced, type_)
        return coerced

    return Annotated[Any, BeforeValidator(_parse), WithJsonSchema(to_schema(type_))]
