"""
Pytest fixtures for E2E tests.

These tests launch a real headless Chromium through Playwright. They are
skipped when the browser is not installed (run `playwright install chromium`).
"""

from pathlib import Path

import pytest
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from exactshot.config.settings import Config


def pytest_collection_modifyitems(items):
    """Mark every test in this directory as e2e."""
    for item in items:
        if "tests/e2e" in str(item.fspath).replace("\\", "/"):
            item.add_marker(pytest.mark.e2e)


@pytest.fixture
async def chromium_available() -> None:
    """Skip the test when headless Chromium cannot be launched."""
    try:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            await browser.close()
    except PlaywrightError as e:
        logger.info(f"E2E Test: Chromium unavailable: {e}")
        pytest.skip("Chromium not installed. Run: playwright install chromium")


@pytest.fixture
def e2e_config(tmp_path: Path) -> Config:
    """Config with fast timings, writing under tmp_path."""
    return Config(
        _env_file=None,
        screenshot_path=str(tmp_path / "screenshots"),
        scheduler_log_file=str(tmp_path / "screenshot-scheduler.log"),
        post_load_delay_ms=500,
        scroll_count=0,
        poll_interval_ms=100,
    )
