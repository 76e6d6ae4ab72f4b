"""Shared test fixtures for beanup tests."""

from __future__ import annotations

import time
from collections.abc import Iterator
from pathlib import Path

import pytest

from beanup.contracts.config import BeanUpConfig
from tests.fakes.builders import make_config
from tests.fakes.clickup import FakeTaskService


@pytest.fixture
def config(tmp_path: Path) -> BeanUpConfig:
    """Config with assignment disabled so runs stay free of identity lookups."""
    return make_config(tmp_path)


@pytest.fixture
def service() -> FakeTaskService:
    return FakeTaskService()


@pytest.fixture
def bogota_tz(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Fixed UTC-5 zone without DST."""
    monkeypatch.setenv("TZ", "America/Bogota")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
