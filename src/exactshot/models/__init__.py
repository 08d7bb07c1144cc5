"""Data models for captures and scheduled jobs."""

from exactshot.models.capture import ActionResult, CaptureResult, ScreenshotInfo, StepOutcome
from exactshot.models.job import JobInfo, ScheduledJob

__all__ = [
    "ActionResult",
    "CaptureResult",
    "JobInfo",
    "ScheduledJob",
    "ScreenshotInfo",
    "StepOutcome",
]
