"""Scheduled job record held by the job registry, and its public view."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from exactshot.utils.timefmt import to_iso_z, utc_now

if TYPE_CHECKING:
    from exactshot.services.timer_guard import DualTimerGuard


class JobInfo(BaseModel):
    """Job as listed by the API and UI."""

    id: str
    datetime: str = Field(description="Target instant, ISO 8601 UTC with Z suffix")
    recurring: bool
    scheduled: str = Field(description="When the job was registered, ISO 8601 UTC")


@dataclass
class ScheduledJob:
    """A registered request to capture at a future instant.

    The guard is the cancel handle for the underlying timers and is never
    exposed through JobInfo.
    """

    id: str
    target: datetime
    recurring: bool
    guard: DualTimerGuard
    created_at: datetime = field(default_factory=utc_now)
    runs: int = 0

    def to_info(self) -> JobInfo:
        """Public view of this job."""
        return JobInfo(
            id=self.id,
            datetime=to_iso_z(self.target),
            recurring=self.recurring,
            scheduled=to_iso_z(self.created_at),
        )

    def to_dict(self) -> dict:
        """Convert job to dictionary for API response."""
        return self.to_info().model_dump()
