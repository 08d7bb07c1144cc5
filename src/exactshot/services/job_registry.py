"""
Job Registry

In-memory map of pending capture jobs. Each job owns a DualTimerGuard whose
fire callback runs the exact-time scheduler. One-shot jobs are removed once
their capture finishes (success or failure); recurring jobs are re-armed for
the same time on the next day.

The registry is the only writer of the job map; all mutations happen under
a lock. Jobs are lost on process restart.
"""

import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from threading import Lock

from loguru import logger

from exactshot.models.capture import CaptureResult
from exactshot.models.job import ScheduledJob
from exactshot.services.exact_time import ExactTimeScheduler
from exactshot.utils.timefmt import parse_iso8601, utc_now

LOG_PREFIX = "[SCHEDULER] "

RECURRENCE_INTERVAL = timedelta(days=1)


class ScheduleValidationError(ValueError):
    """Schedule request rejected (missing, unparseable, or past timestamp)."""

    pass


class JobNotFoundError(KeyError):
    """No job registered under the given id."""

    def __str__(self) -> str:
        return "Job not found"


class JobRegistry:
    """Registry of scheduled capture jobs."""

    def __init__(
        self,
        scheduler: ExactTimeScheduler,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize registry.

        Args:
            scheduler: Exact-time scheduler run when a job's guard fires
            clock: Source of the current time (UTC)
        """
        self._scheduler = scheduler
        self._clock = clock
        self._jobs: dict[str, ScheduledJob] = {}
        self._lock = Lock()
        logger.info(f"{LOG_PREFIX}Job registry initialized")

    def parse_target(self, value: str | datetime | None) -> datetime:
        """Validate a requested capture instant.

        Raises:
            ScheduleValidationError: If missing, unparseable, or not in the future
        """
        if value is None or value == "":
            raise ScheduleValidationError("datetime is required")

        if isinstance(value, datetime):
            target = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        else:
            try:
                target = parse_iso8601(value)
            except ValueError as e:
                raise ScheduleValidationError("Invalid datetime format") from e

        if target <= self._clock():
            raise ScheduleValidationError("datetime must be in the future")

        return target

    def schedule(self, value: str | datetime | None, recurring: bool = False) -> ScheduledJob:
        """Register a job and arm its guard.

        Must be called from within a running event loop.

        Args:
            value: Target instant (ISO 8601 string or datetime)
            recurring: Re-arm daily after each run instead of removing the job

        Returns:
            The registered job

        Raises:
            ScheduleValidationError: If the target is invalid
        """
        target = self.parse_target(value)
        now = self._clock()
        job_id = f"job-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:9]}"

        guard = self._scheduler.create_guard(name=f"{LOG_PREFIX}{job_id}")
        job = ScheduledJob(
            id=job_id,
            target=target,
            recurring=bool(recurring),
            guard=guard,
            created_at=now,
        )

        logger.info(f"{LOG_PREFIX}Scheduling job {job_id} for {target.isoformat()}")
        logger.info(
            f"{LOG_PREFIX}Time until execution: {int((target - now).total_seconds())} seconds"
        )

        with self._lock:
            self._jobs[job_id] = job

        try:
            guard.arm(target, lambda: self._run_job(job_id))
        except Exception:
            with self._lock:
                self._jobs.pop(job_id, None)
            logger.error(f"{LOG_PREFIX}✗ Failed to schedule job {job_id}")
            raise

        return job

    async def _run_job(self, job_id: str) -> CaptureResult | None:
        job = self.get(job_id)
        if job is None:
            logger.info(f"{LOG_PREFIX}Job {job_id} no longer registered, skipping")
            return None

        logger.info(f"{LOG_PREFIX}✓ Pre-warming for job {job_id} at {self._clock().isoformat()}")
        logger.info(f"{LOG_PREFIX}Will capture at exact time: {job.target.isoformat()}")

        result = await self._scheduler.run(job.target)
        job.runs += 1

        if result.success:
            logger.info(f"{LOG_PREFIX}✓ Job {job_id} completed successfully - {result.filename}")
        else:
            logger.error(f"{LOG_PREFIX}✗ Job {job_id} failed: {result.error}")

        if job.recurring:
            self._rearm(job)
        else:
            with self._lock:
                removed = self._jobs.pop(job_id, None)
            if removed is not None:
                logger.info(f"{LOG_PREFIX}Job {job_id} removed from schedule")

        return result

    def _rearm(self, job: ScheduledJob) -> None:
        with self._lock:
            if self._jobs.get(job.id) is not job:
                return  # cancelled while running

            next_target = job.target + RECURRENCE_INTERVAL
            while next_target <= self._clock():
                next_target += RECURRENCE_INTERVAL
            job.target = next_target
            job.guard.reset()

        job.guard.arm(next_target, lambda: self._run_job(job.id))
        logger.info(f"{LOG_PREFIX}Recurring job {job.id} re-armed for {next_target.isoformat()}")

    def get(self, job_id: str) -> ScheduledJob | None:
        """Get a job by id."""
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self) -> list[dict]:
        """All registered jobs as API dictionaries (no timer handles)."""
        with self._lock:
            jobs = list(self._jobs.values())
        return [job.to_dict() for job in jobs]

    def cancel(self, job_id: str) -> ScheduledJob:
        """Cancel a job's timers and remove it.

        Cancelling after the guard fired removes the entry but does not stop
        a capture already in progress.

        Raises:
            JobNotFoundError: If no job has this id
        """
        with self._lock:
            job = self._jobs.pop(job_id, None)

        if job is None:
            logger.warning(f"{LOG_PREFIX}Attempted to cancel unknown job: {job_id}")
            raise JobNotFoundError(job_id)

        job.guard.cancel()
        logger.info(f"{LOG_PREFIX}Job {job_id} canceled")
        return job

    def cancel_all(self) -> int:
        """Cancel every job (used on shutdown).

        Returns:
            Number of jobs cancelled
        """
        with self._lock:
            jobs = list(self._jobs.values())
            self._jobs.clear()

        for job in jobs:
            job.guard.cancel()

        if jobs:
            logger.info(f"{LOG_PREFIX}Cancelled {len(jobs)} job(s)")
        return len(jobs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
