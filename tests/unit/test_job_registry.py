"""Tests for the job registry."""

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from exactshot.models.capture import CaptureResult
from exactshot.models.job import JobInfo
from exactshot.services.job_registry import (
    JobNotFoundError,
    JobRegistry,
    ScheduleValidationError,
)
from exactshot.services.timer_guard import DualTimerGuard, GuardState


@pytest.fixture
def scheduler(clock) -> MagicMock:
    """Scheduler mock handing out real guards on the fake clock."""
    scheduler = MagicMock()
    scheduler.create_guard.side_effect = lambda name: DualTimerGuard(
        lead_time_ms=15000, poll_interval_ms=10, clock=clock, name=name
    )
    scheduler.run = AsyncMock(
        return_value=CaptureResult.succeeded(Path("/tmp/screenshot-x.png"), clock(), [])
    )
    return scheduler


@pytest.fixture
def registry(scheduler, clock) -> JobRegistry:
    return JobRegistry(scheduler, clock=clock)


class TestValidation:
    """Test rejection of bad targets."""

    def test_missing_datetime(self, registry) -> None:
        with pytest.raises(ScheduleValidationError, match="datetime is required"):
            registry.parse_target(None)

    def test_unparseable_datetime(self, registry) -> None:
        with pytest.raises(ScheduleValidationError, match="Invalid datetime format"):
            registry.parse_target("next tuesday")

    def test_past_datetime(self, registry, clock) -> None:
        with pytest.raises(ScheduleValidationError, match="must be in the future"):
            registry.parse_target((clock() - timedelta(seconds=1)).isoformat())

    def test_now_is_not_future(self, registry, clock) -> None:
        with pytest.raises(ScheduleValidationError):
            registry.parse_target(clock())

    def test_naive_string_is_utc(self, registry) -> None:
        """Timestamps without an offset are read as UTC."""
        target = registry.parse_target("2025-11-28T06:00:00")

        assert target == datetime(2025, 11, 28, 6, 0, tzinfo=timezone.utc)

    def test_offset_is_normalized(self, registry) -> None:
        target = registry.parse_target("2025-11-28T14:00:00+08:00")

        assert target == datetime(2025, 11, 28, 6, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_rejected_schedule_creates_no_job(self, registry, clock) -> None:
        with pytest.raises(ScheduleValidationError):
            registry.schedule((clock() - timedelta(hours=1)).isoformat())

        assert len(registry) == 0


class TestScheduling:
    """Test registering and cancelling jobs."""

    @pytest.mark.asyncio
    async def test_schedule_registers_armed_job(self, registry, clock) -> None:
        target = clock() + timedelta(hours=1)

        job = registry.schedule(target.isoformat())

        assert re.match(r"^job-\d+-[0-9a-f]{9}$", job.id)
        assert job.target == target
        assert job.guard.state is GuardState.ARMED
        assert registry.get(job.id) is job
        registry.cancel_all()

    @pytest.mark.asyncio
    async def test_job_ids_are_unique(self, registry, clock) -> None:
        target = clock() + timedelta(hours=1)

        first = registry.schedule(target)
        second = registry.schedule(target)

        assert first.id != second.id
        assert len(registry) == 2
        registry.cancel_all()

    @pytest.mark.asyncio
    async def test_list_jobs_hides_timer_handles(self, registry, clock) -> None:
        job = registry.schedule(clock() + timedelta(hours=1), recurring=True)

        assert registry.list_jobs() == [
            {
                "id": job.id,
                "datetime": "2025-11-28T06:55:00.000Z",
                "recurring": True,
                "scheduled": "2025-11-28T05:55:00.000Z",
            }
        ]
        registry.cancel_all()

    @pytest.mark.asyncio
    async def test_job_info_is_public_view(self, registry, clock) -> None:
        job = registry.schedule(clock() + timedelta(minutes=5))

        info = job.to_info()

        assert isinstance(info, JobInfo)
        assert info.id == job.id
        assert info.datetime == "2025-11-28T06:00:00.000Z"
        assert info.recurring is False
        assert "guard" not in info.model_dump()
        assert job.to_dict() == info.model_dump()
        registry.cancel_all()

    @pytest.mark.asyncio
    async def test_cancel_removes_job_and_disarms(self, registry, clock) -> None:
        job = registry.schedule(clock() + timedelta(hours=1))

        canceled = registry.cancel(job.id)

        assert canceled is job
        assert job.guard.state is GuardState.IDLE
        assert registry.get(job.id) is None
        assert registry.list_jobs() == []

    @pytest.mark.asyncio
    async def test_second_cancel_is_not_found(self, registry, clock) -> None:
        job = registry.schedule(clock() + timedelta(hours=1))
        registry.cancel(job.id)

        with pytest.raises(JobNotFoundError) as exc_info:
            registry.cancel(job.id)

        assert str(exc_info.value) == "Job not found"

    @pytest.mark.asyncio
    async def test_cancel_all(self, registry, clock) -> None:
        registry.schedule(clock() + timedelta(hours=1))
        registry.schedule(clock() + timedelta(hours=2))

        assert registry.cancel_all() == 2
        assert len(registry) == 0


class TestExecution:
    """Test what happens when a job's guard fires."""

    @pytest.mark.asyncio
    async def test_one_shot_job_runs_and_is_removed(
        self, registry, scheduler, clock, eventually
    ) -> None:
        target = clock() + timedelta(seconds=15)
        job = registry.schedule(target)

        await eventually(lambda: registry.get(job.id) is None)

        scheduler.run.assert_awaited_once_with(target)
        assert job.runs == 1

    @pytest.mark.asyncio
    async def test_failed_job_is_still_removed(
        self, registry, scheduler, clock, eventually
    ) -> None:
        scheduler.run.return_value = CaptureResult.failed("Navigation failed")
        job = registry.schedule(clock() + timedelta(seconds=15))

        await eventually(lambda: registry.get(job.id) is None)

        assert job.runs == 1

    @pytest.mark.asyncio
    async def test_recurring_job_is_rearmed_next_day(
        self, registry, scheduler, clock, eventually
    ) -> None:
        target = clock() + timedelta(seconds=15)
        job = registry.schedule(target, recurring=True)

        await eventually(lambda: job.runs == 1 and job.guard.state is GuardState.ARMED)

        assert registry.get(job.id) is job
        assert job.target == target + timedelta(days=1)
        assert job.guard.fire_at == target + timedelta(days=1) - timedelta(seconds=15)
        registry.cancel_all()

    @pytest.mark.asyncio
    async def test_cancel_while_running_skips_rearm(
        self, registry, scheduler, clock, eventually
    ) -> None:
        """A recurring job cancelled mid-capture is not re-armed."""

        async def run_and_cancel(target):
            registry.cancel(job.id)
            return CaptureResult.failed("cancelled mid-run")

        scheduler.run.side_effect = run_and_cancel
        job = registry.schedule(clock() + timedelta(seconds=15), recurring=True)

        await eventually(lambda: job.runs == 1)

        assert registry.get(job.id) is None
        assert job.guard.state is GuardState.FIRED
