"""
Screenshot capture routine using Playwright.

One capture runs, in order:

1. Ensure the output directory exists
2. Launch headless Chromium with a fixed viewport at 2x pixel density
3. Navigate (primary wait condition, then one looser fallback)
4. Best-effort page adaptation (language, base exchange)
5. Optional half-viewport scrolling (best effort)
6. Optional wait for an exact capture instant (supplied by the caller)
7. Inject the timestamp overlay (best effort)
8. Take a viewport screenshot into <output>/screenshot-<timestamp>.png
9. Close the browser

Failures are caught at the routine boundary and returned as a failed
CaptureResult; browser resources are released on every path.
"""

from collections.abc import Awaitable, Callable
from datetime import datetime

from loguru import logger
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from exactshot.config import constants
from exactshot.config.settings import Config, get_config
from exactshot.models.capture import ActionResult, CaptureResult, StepOutcome
from exactshot.services.page_actions import (
    DEFAULT_ACTIONS,
    dismiss_consent,
    run_page_actions,
    run_step,
)
from exactshot.services.screenshot_store import ScreenshotStore
from exactshot.utils.timefmt import overlay_lines, utc_now


class CaptureError(Exception):
    """Base class for capture failures."""

    pass


class NavigationError(CaptureError):
    """Both the primary and the fallback navigation attempts failed."""

    pass


class ScreenshotCapture:
    """Runs one end-to-end capture of the configured page."""

    def __init__(
        self,
        config: Config | None = None,
        store: ScreenshotStore | None = None,
        clock: Callable[[], datetime] = utc_now,
        log_prefix: str = "",
    ):
        """Initialize capture routine.

        Args:
            config: Application configuration (uses global config if omitted)
            store: Screenshot store (defaults to config.screenshot_path)
            clock: Source of the current time (UTC)
            log_prefix: Prefix for log lines, e.g. "[EXACT-TIME] "
        """
        self.config = config or get_config()
        self.store = store or ScreenshotStore(self.config.screenshot_path)
        self._clock = clock
        self._prefix = log_prefix

    def with_prefix(self, log_prefix: str) -> "ScreenshotCapture":
        """Copy of this routine that logs with a different prefix."""
        return ScreenshotCapture(self.config, self.store, self._clock, log_prefix)

    async def capture(
        self, wait_for: Callable[[], Awaitable[None]] | None = None
    ) -> CaptureResult:
        """Run a capture.

        Args:
            wait_for: Awaited after the page is prepared and before the overlay
                is injected; the exact-time scheduler blocks here until the
                target instant.

        Returns:
            CaptureResult with the file path on success or the error message
        """
        logger.info(f"{self._prefix}Starting screenshot capture...")

        playwright: Playwright | None = None
        browser: Browser | None = None
        context: BrowserContext | None = None
        actions: list[ActionResult] = []

        try:
            self.store.ensure_directory()

            playwright = await async_playwright().start()
            browser = await playwright.chromium.launch(headless=True)
            context = await browser.new_context(
                viewport=self.config.viewport,
                device_scale_factor=self.config.device_scale_factor,
            )
            page = await context.new_page()

            await self._navigate(page)
            await page.wait_for_timeout(self.config.post_load_delay_ms)

            actions = await run_page_actions(page, self._page_actions())
            actions.append(await self._scroll(page))

            if wait_for is not None:
                await wait_for()

            captured_at = self._clock()
            logger.info(f"{self._prefix}Capturing at {captured_at.isoformat()}")

            actions.append(await self._inject_overlay(page, captured_at))

            filepath = self.store.new_screenshot_path(captured_at)
            await page.screenshot(path=str(filepath), full_page=self.config.full_page)

            logger.info(f"{self._prefix}✓ Screenshot saved: {filepath}")
            return CaptureResult.succeeded(filepath, captured_at, actions)

        except Exception as e:
            logger.error(f"{self._prefix}Error taking screenshot: {e}")
            return CaptureResult.failed(str(e), actions)

        finally:
            await self._close(playwright, browser, context)

    def _page_actions(self) -> list:
        actions = []
        if self.config.dismiss_consent:
            actions.append((dismiss_consent, self.config.consent_timeout_ms))
        actions.extend((action, self.config.click_timeout_ms) for action in DEFAULT_ACTIONS)
        return actions

    async def _navigate(self, page: Page) -> None:
        """Navigate with the primary wait condition, falling back once.

        Raises:
            NavigationError: If the fallback attempt also fails
        """
        url = self.config.target_url
        logger.info(f"{self._prefix}Navigating to {url}...")

        try:
            await page.goto(
                url,
                wait_until=self.config.primary_wait_until,
                timeout=self.config.primary_nav_timeout_ms,
            )
            return
        except PlaywrightError as e:
            logger.warning(
                f"{self._prefix}First attempt failed ({e}), trying with basic load strategy..."
            )

        try:
            await page.goto(
                url,
                wait_until=constants.FALLBACK_WAIT_UNTIL,
                timeout=self.config.fallback_nav_timeout_ms,
            )
        except PlaywrightError as e:
            raise NavigationError(f"Navigation to {url} failed: {e}") from e

    async def _scroll(self, page: Page) -> ActionResult:
        count = self.config.scroll_count
        if count <= 0:
            return ActionResult(
                name="scroll", outcome=StepOutcome.SKIPPED, detail="Scrolling disabled"
            )

        async def step() -> str:
            logger.info(f"{self._prefix}Scrolling down {count} time(s) (half viewport)...")
            for _ in range(count):
                await page.evaluate(constants.SCROLL_SCRIPT)
                await page.wait_for_timeout(self.config.scroll_delay_ms)
            await page.wait_for_timeout(self.config.scroll_settle_ms)
            return f"Scrolled {count} time(s)"

        return await run_step("scroll", step)

    async def _inject_overlay(self, page: Page, captured_at: datetime) -> ActionResult:
        date_line, time_line = overlay_lines(captured_at)

        async def step() -> str:
            await page.evaluate(
                constants.OVERLAY_SCRIPT,
                {
                    "dateLine": date_line,
                    "timeLine": time_line,
                    "showTimezone": self.config.overlay_show_timezone,
                },
            )
            await page.wait_for_timeout(self.config.overlay_render_delay_ms)
            return f"{date_line} {time_line}"

        return await run_step("overlay", step)

    async def _close(
        self,
        playwright: Playwright | None,
        browser: Browser | None,
        context: BrowserContext | None,
    ) -> None:
        """Release browser resources, logging (not raising) close errors."""
        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.warning(f"{self._prefix}Error closing context: {e}")

        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"{self._prefix}Error closing browser: {e}")

        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.warning(f"{self._prefix}Error stopping playwright: {e}")
