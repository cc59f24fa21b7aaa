"""Pytest configuration and shared fixtures for the refdata test suite."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from factories import FakeApi
from loguru import logger

from refdata.core.logging import configure_logging
from refdata.core.tables import HttpClient


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def client(api: FakeApi) -> Iterator[HttpClient]:
    with api.client() as http_client:
        yield http_client


@pytest.fixture
def log_messages() -> Iterator[list[dict[str, Any]]]:
    """Collect loguru records emitted during the test."""

    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    # CLI tests bind sinks to the runner's streams.
    configure_logging("INFO")
