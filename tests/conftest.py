"""Shared fixtures for helmdrift tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog

from tests.helpers import FakeClusterReader


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def cluster() -> FakeClusterReader:
    return FakeClusterReader()


@pytest.fixture
def report_lines() -> list[str]:
    """Collects report lines written to a DriftDetector sink."""
    return []
