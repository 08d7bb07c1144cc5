"""
Data models for capture runs.

A capture writes a PNG and returns a CaptureResult; nothing else is
persisted. UI-adaptation steps report a tagged ActionResult instead of
raising, so a missing page element never aborts a capture.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class StepOutcome(str, Enum):
    """Outcome of a best-effort page action."""

    SUCCESS = "success"  # Action performed
    SKIPPED = "skipped"  # Element absent, nothing to do
    FAILED = "failed"  # Element present but interaction failed


class ActionResult(BaseModel):
    """Tagged result of one page action."""

    name: str = Field(description="Action name (e.g. 'switch_language')")
    outcome: StepOutcome
    detail: str = Field(default="", description="Human-readable detail for the log")

    @property
    def ok(self) -> bool:
        """True unless the action failed."""
        return self.outcome is not StepOutcome.FAILED


class CaptureResult(BaseModel):
    """Result of one capture run."""

    success: bool
    filepath: str | None = None
    filename: str | None = None
    error: str | None = None
    captured_at: datetime | None = None
    actions: list[ActionResult] = Field(default_factory=list)

    @classmethod
    def succeeded(
        cls, path: Path, captured_at: datetime, actions: list[ActionResult] | None = None
    ) -> "CaptureResult":
        """Build a successful result for a written screenshot."""
        return cls(
            success=True,
            filepath=str(path),
            filename=path.name,
            captured_at=captured_at,
            actions=actions or [],
        )

    @classmethod
    def failed(cls, error: str, actions: list[ActionResult] | None = None) -> "CaptureResult":
        """Build a failed result carrying the error message."""
        return cls(success=False, error=error, actions=actions or [])


class ScreenshotInfo(BaseModel):
    """A screenshot file found in the output directory."""

    filename: str
    path: str
    created: datetime
    size: int = Field(ge=0, description="File size in bytes")
