"""Shared fixtures for exactshot tests."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from loguru import logger

from exactshot.config.settings import Config


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at 2025-11-28T05:55:00Z until advanced."""
    return FakeClock(datetime(2025, 11, 28, 5, 55, 0, tzinfo=timezone.utc))


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config writing screenshots and logs under tmp_path."""
    return Config(
        _env_file=None,
        screenshot_path=str(tmp_path / "screenshots"),
        log_file=str(tmp_path / "logs" / "exactshot.log"),
        scheduler_log_file=str(tmp_path / "logs" / "screenshot-scheduler.log"),
        poll_interval_ms=10,
    )


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def eventually() -> Callable:
    """Await until a predicate holds (fails after timeout seconds)."""

    async def _eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _eventually
