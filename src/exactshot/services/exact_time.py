"""
Exact-Time Scheduler

Page load and UI adaptation take a variable ~12 seconds. To capture AT the
target instant instead of ~12s after a trigger, the browser is prepared
ahead of time:

1. At target - lead time, start the capture routine (pre-warm)
2. Once the page is prepared, sleep once for exactly target - now
3. Inject the overlay and take the screenshot

If preparation overruns the target, the wait is skipped and the capture
happens immediately with degraded precision.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from loguru import logger

from exactshot.config.settings import Config, get_config
from exactshot.models.capture import CaptureResult
from exactshot.services.capture import ScreenshotCapture
from exactshot.services.timer_guard import DualTimerGuard
from exactshot.utils.timefmt import utc_now

LOG_PREFIX = "[EXACT-TIME] "


class ExactTimeScheduler:
    """Pre-warms a capture and releases it at an exact instant."""

    def __init__(
        self,
        capture: ScreenshotCapture,
        config: Config | None = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize scheduler.

        Args:
            capture: Capture routine to pre-warm
            config: Application configuration (lead time, polling)
            clock: Source of the current time (UTC)
            sleep: Coroutine used for the precision wait
        """
        self.config = config or get_config()
        self._capture = capture.with_prefix(LOG_PREFIX)
        self._clock = clock
        self._sleep = sleep

    @property
    def lead_time(self) -> timedelta:
        """Configured pre-warm lead."""
        return timedelta(milliseconds=self.config.lead_time_ms)

    def lead_instant(self, target: datetime) -> datetime:
        """Instant at which preparation for target must begin."""
        return target - self.lead_time

    def create_guard(self, name: str = "guard") -> DualTimerGuard:
        """Dual-timer guard configured with this scheduler's lead time."""
        return DualTimerGuard(
            lead_time_ms=self.config.lead_time_ms,
            poll_interval_ms=self.config.poll_interval_ms,
            countdown_log_interval_s=self.config.countdown_log_interval_s,
            clock=self._clock,
            name=name,
        )

    async def wait_until(self, target: datetime) -> float:
        """Single bounded wait until target.

        Returns:
            Seconds waited (0 if the target had already passed)
        """
        remaining = (target - self._clock()).total_seconds()

        if remaining <= 0:
            logger.warning(
                f"{LOG_PREFIX}Preparation overran target by {-remaining:.3f}s, "
                f"capturing immediately"
            )
            return 0.0

        logger.info(f"{LOG_PREFIX}Page ready! Waiting {remaining * 1000:.0f}ms for exact target time...")
        await self._sleep(remaining)
        return remaining

    async def run(self, target: datetime) -> CaptureResult:
        """Prepare the page now and capture at target.

        Called at (or after) the lead instant.
        """
        started = self._clock()
        logger.info(
            f"{LOG_PREFIX}Starting browser preparation "
            f"{(target - started).total_seconds():.1f}s before target {target.isoformat()}"
        )

        result = await self._capture.capture(wait_for=lambda: self.wait_until(target))

        if result.success and result.captured_at is not None:
            skew = (result.captured_at - target).total_seconds()
            logger.info(f"{LOG_PREFIX}Captured {skew * 1000:+.0f}ms from target")
        return result

    async def schedule_exact(self, target: datetime) -> CaptureResult:
        """Wait (via a dual-timer guard) for the lead instant, then run.

        Args:
            target: Target capture instant

        Returns:
            CaptureResult of the exact-time capture
        """
        fired = asyncio.Event()
        guard = self.create_guard(name="exact-time")
        guard.arm(target, fired.set)

        try:
            await fired.wait()
        finally:
            guard.cancel()

        return await self.run(target)
