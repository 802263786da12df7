"""Shared test fixtures.

All tests run without external services: remote config fetches go through
``httpx.MockTransport`` and filesystem tests use ``tmp_path``.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sse_starlette.sse import AppStatus

from pipeforge.daemon.settings import PipeforgeSettings, get_settings


@pytest.fixture
def settings(tmp_path: Path) -> PipeforgeSettings:
    """Settings rooted in a temporary data directory."""
    return PipeforgeSettings(data_root=str(tmp_path / "data"), log_level="DEBUG")


@pytest.fixture(autouse=True)
def _isolate_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_sse_app_status() -> Iterator[None]:
    """sse-starlette keeps process-global exit state; reset it per test."""
    AppStatus.should_exit = False
    AppStatus.should_exit_event = None
    yield
    AppStatus.should_exit = False
    AppStatus.should_exit_event = None
