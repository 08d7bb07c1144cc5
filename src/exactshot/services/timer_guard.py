"""
Dual-Timer Guard

Fires a callback exactly once at (target - lead time) using two independent
triggers on the running asyncio loop:

- Polling: a task that compares the clock to the fire instant every
  poll interval. Survives host sleep/wake, since each tick re-reads the clock.
- Deferred: a single loop.call_later() handle for the exact delta, as a
  backup if the polling task is delayed.

Both triggers go through one compare-and-set transition (ARMED -> FIRED)
under a lock; whichever reaches it first fires, the other is cancelled or
becomes a no-op.

State machine:

    IDLE --arm()--> ARMED --trigger--> FIRED --reset()--> IDLE
                      |
                      +--cancel()--> IDLE
"""

import asyncio
import inspect
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum
from threading import Lock
from typing import Any

from loguru import logger

from exactshot.utils.timefmt import format_countdown, utc_now


class GuardState(str, Enum):
    """Lifecycle state of a DualTimerGuard."""

    IDLE = "idle"
    ARMED = "armed"
    FIRED = "fired"


class DualTimerGuard:
    """Redundant polling + deferred timer that fires exactly once."""

    def __init__(
        self,
        lead_time_ms: int = 15000,
        poll_interval_ms: int = 1000,
        countdown_log_interval_s: int = 30,
        clock: Callable[[], datetime] = utc_now,
        name: str = "guard",
    ):
        """Initialize guard.

        Args:
            lead_time_ms: How long before the target instant to fire
            poll_interval_ms: Polling trigger period
            countdown_log_interval_s: How often to log the countdown while armed
            clock: Source of the current time (UTC)
            name: Label used in log messages
        """
        self.lead_time = timedelta(milliseconds=lead_time_ms)
        self.poll_interval = poll_interval_ms / 1000
        self.countdown_interval = countdown_log_interval_s
        self.name = name
        self._clock = clock

        self._lock = Lock()
        self._state = GuardState.IDLE
        self._target: datetime | None = None
        self._fire_at: datetime | None = None
        self._on_fire: Callable[[], Any] | None = None
        self._poll_task: asyncio.Task | None = None
        self._timer_handle: asyncio.TimerHandle | None = None
        self._fire_task: asyncio.Future | None = None
        self._fired_by: str | None = None
        self._last_countdown_log: datetime | None = None

    @property
    def state(self) -> GuardState:
        """Current state."""
        return self._state

    @property
    def target(self) -> datetime | None:
        """Target instant of the current/last arming."""
        return self._target

    @property
    def fire_at(self) -> datetime | None:
        """Instant the guard fires (target - lead time)."""
        return self._fire_at

    @property
    def fired_by(self) -> str | None:
        """Which trigger fired ("poll" or "deferred"), if fired."""
        return self._fired_by

    @property
    def fire_task(self) -> asyncio.Future | None:
        """Task wrapping an awaitable returned by the callback, if any."""
        return self._fire_task

    def arm(self, target: datetime, on_fire: Callable[[], Any]) -> datetime:
        """Arm both triggers for target - lead time.

        Must be called from within a running event loop. If on_fire returns
        an awaitable it is scheduled as a task (see fire_task).

        Args:
            target: Target capture instant (aware datetime)
            on_fire: Callback invoked exactly once

        Returns:
            The instant the guard will fire

        Raises:
            RuntimeError: If the guard is not idle or no loop is running
        """
        loop = asyncio.get_running_loop()

        with self._lock:
            if self._state is not GuardState.IDLE:
                raise RuntimeError(f"Cannot arm {self.name}: state is {self._state.value}")

            self._target = target
            self._fire_at = target - self.lead_time
            self._on_fire = on_fire
            self._fired_by = None
            self._fire_task = None
            self._last_countdown_log = None
            self._state = GuardState.ARMED

        delay = (self._fire_at - self._clock()).total_seconds()
        self._poll_task = loop.create_task(self._poll())
        self._timer_handle = loop.call_later(max(delay, 0.0), self._on_deferred)

        logger.info(
            f"{self.name}: armed for {self._fire_at.isoformat()} "
            f"({self.lead_time.total_seconds():.0f}s before {target.isoformat()})"
        )
        return self._fire_at

    def cancel(self) -> bool:
        """Disarm both triggers.

        Returns:
            True if the guard was armed, False if it had already fired or was idle
        """
        with self._lock:
            if self._state is not GuardState.ARMED:
                return False
            self._state = GuardState.IDLE

        self._cancel_triggers()
        logger.info(f"{self.name}: cancelled")
        return True

    def reset(self) -> None:
        """Return a fired guard to IDLE so it can be re-armed."""
        with self._lock:
            if self._state is GuardState.ARMED:
                raise RuntimeError(f"Cannot reset {self.name} while armed")
            self._state = GuardState.IDLE

    def _try_fire(self, source: str) -> bool:
        """The single authoritative ARMED -> FIRED transition."""
        with self._lock:
            if self._state is not GuardState.ARMED:
                return False
            self._state = GuardState.FIRED
            self._fired_by = source

        self._cancel_triggers()

        remaining = (self._target - self._clock()).total_seconds()
        logger.info(
            f"{self.name}: fired by {source} trigger, {remaining:.1f}s before target"
        )

        result = self._on_fire()
        if inspect.isawaitable(result):
            self._fire_task = asyncio.ensure_future(result)
        return True

    def _cancel_triggers(self) -> None:
        if self._timer_handle is not None:
            self._timer_handle.cancel()
            self._timer_handle = None

        task, self._poll_task = self._poll_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _on_deferred(self) -> None:
        self._timer_handle = None
        if self._try_fire("deferred"):
            logger.warning(f"{self.name}: BACKUP TIMER TRIGGERED")

    async def _poll(self) -> None:
        while self._state is GuardState.ARMED:
            now = self._clock()
            if now >= self._fire_at:
                self._try_fire("poll")
                return

            self._log_countdown(now)
            await asyncio.sleep(self.poll_interval)

    def _log_countdown(self, now: datetime) -> None:
        last = self._last_countdown_log
        if last is not None and (now - last).total_seconds() < self.countdown_interval:
            return

        self._last_countdown_log = now
        remaining = (self._target - now).total_seconds()
        logger.info(f"{self.name}: time until screenshot: {format_countdown(remaining)}")
