"""Tests for the screenshot capture routine (Playwright mocked)."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from exactshot.config import constants
from exactshot.models.capture import StepOutcome
from exactshot.services.capture import ScreenshotCapture
from exactshot.utils.timefmt import overlay_lines


def make_page() -> MagicMock:
    page = MagicMock()
    page.goto = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.evaluate = AsyncMock()
    page.screenshot = AsyncMock()
    page.query_selector = AsyncMock(return_value=None)
    return page


class FakePlaywright:
    """async_playwright() replacement wiring playwright -> browser -> context -> page."""

    def __init__(self, page: MagicMock):
        self.page = page
        self.context = MagicMock()
        self.context.new_page = AsyncMock(return_value=page)
        self.context.close = AsyncMock()
        self.browser = MagicMock()
        self.browser.new_context = AsyncMock(return_value=self.context)
        self.browser.close = AsyncMock()
        self.playwright = MagicMock()
        self.playwright.chromium.launch = AsyncMock(return_value=self.browser)
        self.playwright.stop = AsyncMock()
        self.starter = MagicMock()
        self.starter.start = AsyncMock(return_value=self.playwright)

    def patch(self):
        return patch("exactshot.services.capture.async_playwright", return_value=self.starter)


@pytest.fixture
def page() -> MagicMock:
    return make_page()


@pytest.fixture
def fake(page) -> FakePlaywright:
    return FakePlaywright(page)


class TestSuccessfulCapture:
    """Test the happy path."""

    @pytest.mark.asyncio
    async def test_writes_screenshot_named_after_capture_instant(
        self, config, clock, fake, page
    ) -> None:
        capture = ScreenshotCapture(config=config, clock=clock)

        with fake.patch():
            result = await capture.capture()

        assert result.success is True
        assert result.filename == "screenshot-2025-11-28T05-55-00-000Z.png"
        expected = Path(config.screenshot_path) / result.filename
        assert result.filepath == str(expected)
        assert result.captured_at == clock()
        page.screenshot.assert_awaited_once_with(path=str(expected), full_page=False)
        assert Path(config.screenshot_path).is_dir()

    @pytest.mark.asyncio
    async def test_launches_headless_with_retina_viewport(self, config, clock, fake) -> None:
        with fake.patch():
            await ScreenshotCapture(config=config, clock=clock).capture()

        fake.playwright.chromium.launch.assert_awaited_once_with(headless=True)
        fake.browser.new_context.assert_awaited_once_with(
            viewport={"width": 1920, "height": 1080},
            device_scale_factor=2.0,
        )

    @pytest.mark.asyncio
    async def test_primary_navigation(self, config, clock, fake, page) -> None:
        with fake.patch():
            await ScreenshotCapture(config=config, clock=clock).capture()

        page.goto.assert_awaited_once_with(
            "https://kimpga.com/", wait_until="domcontentloaded", timeout=60000
        )

    @pytest.mark.asyncio
    async def test_network_idle_option(self, config, clock, fake, page) -> None:
        config.wait_for_network_idle = True

        with fake.patch():
            await ScreenshotCapture(config=config, clock=clock).capture()

        assert page.goto.await_args.kwargs["wait_until"] == "networkidle"

    @pytest.mark.asyncio
    async def test_overlay_injected_with_capture_time(self, config, clock, fake, page) -> None:
        with fake.patch():
            await ScreenshotCapture(config=config, clock=clock).capture()

        date_line, time_line = overlay_lines(clock())
        page.evaluate.assert_any_await(
            constants.OVERLAY_SCRIPT,
            {"dateLine": date_line, "timeLine": time_line, "showTimezone": True},
        )

    @pytest.mark.asyncio
    async def test_wait_for_runs_after_scroll_and_before_overlay(
        self, config, clock, fake, page
    ) -> None:
        events = []

        async def evaluate(script, *args):
            events.append("overlay" if script == constants.OVERLAY_SCRIPT else "scroll")

        async def wait_for():
            events.append("wait")

        page.evaluate.side_effect = evaluate

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture(wait_for=wait_for)

        assert result.success is True
        assert events == ["scroll", "wait", "overlay"]

    @pytest.mark.asyncio
    async def test_no_scroll_when_disabled(self, config, clock, fake, page) -> None:
        config.scroll_count = 0

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        scripts = [c.args[0] for c in page.evaluate.await_args_list]
        assert constants.SCROLL_SCRIPT not in scripts
        scroll = next(a for a in result.actions if a.name == "scroll")
        assert scroll.outcome is StepOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_page_actions_reported(self, config, clock, fake) -> None:
        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert [a.name for a in result.actions] == [
            "switch_language",
            "select_exchange",
            "scroll",
            "overlay",
        ]
        assert result.actions[-1].outcome is StepOutcome.SUCCESS

    @pytest.mark.asyncio
    async def test_consent_dismissal_runs_first_when_enabled(
        self, config, clock, fake, page
    ) -> None:
        config.dismiss_consent = True
        page.locator.return_value.first.wait_for = AsyncMock(
            side_effect=PlaywrightTimeoutError("Timeout 5000ms exceeded")
        )

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert result.actions[0].name == "dismiss_consent"
        page.locator.return_value.first.wait_for.assert_awaited_once_with(
            state="visible", timeout=config.consent_timeout_ms
        )

    @pytest.mark.asyncio
    async def test_resources_closed(self, config, clock, fake) -> None:
        with fake.patch():
            await ScreenshotCapture(config=config, clock=clock).capture()

        fake.context.close.assert_awaited_once()
        fake.browser.close.assert_awaited_once()
        fake.playwright.stop.assert_awaited_once()


class TestNavigationFallback:
    """Test the single navigation retry."""

    @pytest.mark.asyncio
    async def test_fallback_to_load(self, config, clock, fake, page) -> None:
        page.goto.side_effect = [PlaywrightTimeoutError("Timeout 60000ms exceeded"), None]

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert result.success is True
        assert page.goto.await_count == 2
        assert page.goto.await_args.kwargs == {"wait_until": "load", "timeout": 30000}

    @pytest.mark.asyncio
    async def test_both_attempts_fail(self, config, clock, fake, page) -> None:
        page.goto.side_effect = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert result.success is False
        assert "Navigation to https://kimpga.com/ failed" in result.error
        assert result.filepath is None
        page.screenshot.assert_not_awaited()
        fake.browser.close.assert_awaited_once()
        fake.playwright.stop.assert_awaited_once()


class TestFailures:
    """Test failures outside navigation."""

    @pytest.mark.asyncio
    async def test_launch_failure(self, config, clock, fake) -> None:
        fake.playwright.chromium.launch.side_effect = PlaywrightError("Executable doesn't exist")

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert result.success is False
        assert "Executable doesn't exist" in result.error
        fake.browser.close.assert_not_awaited()
        fake.playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_screenshot_failure_still_closes(self, config, clock, fake, page) -> None:
        page.screenshot.side_effect = PlaywrightError("Target closed")

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert result.success is False
        assert result.error == "Target closed"
        fake.context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_script_errors_do_not_abort_capture(self, config, clock, fake, page) -> None:
        page.evaluate.side_effect = PlaywrightError("Execution context was destroyed")

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert result.success is True
        page.screenshot.assert_awaited_once()
        outcomes = {a.name: a.outcome for a in result.actions}
        assert outcomes["scroll"] is StepOutcome.FAILED
        assert outcomes["overlay"] is StepOutcome.FAILED

    @pytest.mark.asyncio
    async def test_overlay_error_still_waits_for_target(self, config, clock, fake, page) -> None:
        events = []

        async def evaluate(script, *args):
            if script == constants.OVERLAY_SCRIPT:
                raise PlaywrightError("Execution context was destroyed")

        async def wait_for():
            events.append("wait")

        page.evaluate.side_effect = evaluate

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture(wait_for=wait_for)

        assert result.success is True
        assert events == ["wait"]
        assert result.actions[-1].name == "overlay"
        assert result.actions[-1].outcome is StepOutcome.FAILED
        assert "Execution context was destroyed" in result.actions[-1].detail

    @pytest.mark.asyncio
    async def test_close_errors_are_not_raised(self, config, clock, fake) -> None:
        fake.browser.close.side_effect = PlaywrightError("Browser has been closed")

        with fake.patch():
            result = await ScreenshotCapture(config=config, clock=clock).capture()

        assert result.success is True
        fake.playwright.stop.assert_awaited_once()

    def test_with_prefix_shares_store(self, config) -> None:
        capture = ScreenshotCapture(config=config)

        prefixed = capture.with_prefix("[EXACT-TIME] ")

        assert prefixed.store is capture.store
        assert prefixed.config is capture.config
