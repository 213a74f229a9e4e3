"""Shared test fixtures for typeshape."""

from __future__ import annotations

import io
import json
from collections.abc import Callable, Iterator

import pytest

from typeshape import types as ts
from typeshape.config import get_settings
from typeshape.logging import configure_logging
from typeshape.types import Object


@pytest.fixture(autouse=True, scope="session")
def _quiet_logging() -> None:
    configure_logging(level="WARNING", json_logs=False)


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def max_depth(monkeypatch: pytest.MonkeyPatch) -> Callable[[int], None]:
    """Lower Settings.MAX_TYPE_DEPTH for the duration of a test."""

    def _set(limit: int) -> None:
        monkeypatch.setenv("TYPESHAPE_MAX_TYPE_DEPTH", str(limit))
        get_settings.cache_clear()

    return _set


@pytest.fixture
def json_logs() -> Iterator[Callable[[], list[dict]]]:
    """Route DEBUG-level JSON logs into a buffer, restoring quiet logging afterwards.

    Yields a callable returning the events written so far.
    """
    buffer = io.StringIO()
    configure_logging(level="DEBUG", json_logs=True, stream=buffer)

    def _events() -> list[dict]:
        return [json.loads(line) for line in buffer.getvalue().splitlines() if line.startswith("{")]

    yield _events
    configure_logging(level="WARNING", json_logs=False)


@pytest.fixture
def person() -> Object:
    return ts.object_({
        "id": ts.integer(minimum=1),
        "name": ts.string(min_length=1),
        "email": ts.optional(ts.email()),
        "tags": ts.array(ts.string(), max_items=3),
    })


@pytest.fixture
def address_book() -> Object:
    address = ts.object_({
        "street": ts.string(),
        "zip": ts.string(pattern=r"^\d{5}$"),
    })
    return ts.object_({
        "owner": ts.string(),
        "addresses": ts.array(address, min_items=1),
        "primary": ts.optional(address),
    })
