"""
Daily recurring capture.

Captures once per day at a fixed local wall-clock time (HH:MM:SS). If the
time has already passed today, the first capture is tomorrow. A failed
capture is logged and the next day is still scheduled.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, time, timedelta

from loguru import logger

from exactshot.models.capture import CaptureResult
from exactshot.services.capture import ScreenshotCapture
from exactshot.utils.timefmt import format_countdown


def next_daily_occurrence(daily_time: str, now: datetime) -> datetime:
    """Next occurrence of daily_time strictly after now.

    Args:
        daily_time: Time of day as HH:MM:SS
        now: Current time; the result uses the same timezone

    Returns:
        Datetime of the next occurrence
    """
    at = time.fromisoformat(daily_time)
    target = now.replace(hour=at.hour, minute=at.minute, second=at.second, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target


async def run_daily(
    capture: ScreenshotCapture,
    daily_time: str,
    clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    max_runs: int | None = None,
) -> list[CaptureResult]:
    """Capture every day at daily_time until cancelled.

    Args:
        capture: Capture routine
        daily_time: Time of day as HH:MM:SS (local time)
        clock: Source of the current local time
        sleep: Coroutine used to wait for the next occurrence
        max_runs: Stop after this many captures (None = run forever)

    Returns:
        Results of the captures performed (only reached when max_runs is set)
    """
    results: list[CaptureResult] = []

    while max_runs is None or len(results) < max_runs:
        now = clock()
        target = next_daily_occurrence(daily_time, now)
        delay = (target - now).total_seconds()

        logger.info(f"Screenshot scheduled for: {target.strftime('%Y-%m-%d %H:%M:%S %Z')}")
        logger.info(f"Time until screenshot: {format_countdown(delay)}")

        await sleep(delay)

        result = await capture.capture()
        if not result.success:
            logger.error(f"Screenshot failed: {result.error}")
        results.append(result)

    return results
