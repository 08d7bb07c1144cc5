"""Application settings and configuration management."""

import re
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DAILY_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d:[0-5]\d$")


class Config(BaseSettings):
    """Application configuration with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Capture Target
    target_url: str = Field(default="https://kimpga.com/", description="Page to capture")
    screenshot_path: str = Field(
        default="~/Desktop/screenshots",
        validate_default=True,
        description="Directory where screenshots are written",
    )

    # Browser Settings
    viewport_width: int = Field(default=1920, gt=0)
    viewport_height: int = Field(default=1080, gt=0)
    device_scale_factor: float = Field(
        default=2.0,
        ge=1.0,
        le=4.0,
        description="Pixel density multiplier (2 = retina-like text)",
    )
    wait_for_network_idle: bool = Field(
        default=False,
        description="Stricter primary wait condition (may cause timeouts)",
    )
    full_page: bool = Field(default=False, description="Capture full page instead of viewport")
    primary_nav_timeout_ms: int = Field(default=60000, ge=1000)
    fallback_nav_timeout_ms: int = Field(default=30000, ge=1000)
    post_load_delay_ms: int = Field(default=2000, ge=0)
    click_timeout_ms: int = Field(default=3000, ge=100)

    # Page Preparation
    dismiss_consent: bool = Field(
        default=False,
        description="Look for a cookie consent button before adapting the page",
    )
    consent_timeout_ms: int = Field(default=5000, ge=0)
    scroll_count: int = Field(default=1, ge=0, le=50, description="Half-viewport scrolls")
    scroll_delay_ms: int = Field(default=500, ge=0)
    scroll_settle_ms: int = Field(default=1000, ge=0)

    # Overlay
    overlay_render_delay_ms: int = Field(default=300, ge=0)
    overlay_show_timezone: bool = Field(
        default=True,
        description="Append the browser's resolved timezone name to the overlay",
    )

    # Exact-Time Scheduling
    lead_time_ms: int = Field(
        default=15000,
        ge=0,
        description="Pre-warm lead before the target instant (page prep takes ~12s)",
    )
    poll_interval_ms: int = Field(default=1000, ge=10)
    countdown_log_interval_s: int = Field(default=30, ge=1)
    daily_time: str = Field(default="12:00:00", description="Daily capture time (HH:MM:SS)")

    # Server Settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    ui_default_timezone: str = Field(default="Asia/Hong_Kong")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/exactshot.log", description="Service log file")
    scheduler_log_file: str = Field(
        default="~/Desktop/screenshot-scheduler.log",
        validate_default=True,
        description="Append-only log for the standalone exact-time scheduler",
    )

    # CLI Behaviour
    open_after_capture: bool = Field(
        default=False,
        description="Open the screenshot and its folder after a CLI capture",
    )

    @field_validator("screenshot_path", "scheduler_log_file")
    @classmethod
    def expand_user_path(cls, v: str) -> str:
        """Expand user home directory in paths."""
        return str(Path(v).expanduser())

    @field_validator("daily_time")
    @classmethod
    def validate_daily_time(cls, v: str) -> str:
        """Validate HH:MM:SS (24-hour) format."""
        if not _DAILY_TIME_PATTERN.match(v):
            raise ValueError(f"daily_time must be HH:MM:SS (24-hour), got {v!r}")
        return v

    @property
    def viewport(self) -> dict[str, int]:
        """Viewport in the shape Playwright expects."""
        return {"width": self.viewport_width, "height": self.viewport_height}

    @property
    def primary_wait_until(self) -> str:
        """Primary navigation wait condition."""
        return "networkidle" if self.wait_for_network_idle else "domcontentloaded"


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
