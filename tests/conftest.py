"""Shared pytest fixtures for sqlchain unit tests."""
from __future__ import annotations

import pytest

import sqlchain
from sqlchain.builder import Builder
from tests.fixtures import RecordingPool


@pytest.fixture
def pool() -> RecordingPool:
    return RecordingPool()


@pytest.fixture
def sq(pool: RecordingPool) -> Builder:
    """Root builder with default options (postgres placeholders)."""
    return sqlchain.create(pool=pool)
