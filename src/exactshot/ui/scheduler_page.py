"""Scheduler page: schedule form, job list, and screenshot gallery."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from loguru import logger
from nicegui import ui

from exactshot.config.constants import UI_TIMEZONES
from exactshot.config.settings import Config
from exactshot.models.capture import ScreenshotInfo
from exactshot.services.capture import ScreenshotCapture
from exactshot.services.job_registry import JobNotFoundError, JobRegistry, ScheduleValidationError
from exactshot.services.screenshot_store import ScreenshotStore
from exactshot.utils.timefmt import local_to_utc, parse_iso8601, utc_now


def describe_time_from_now(target: datetime, now: datetime) -> str:
    """Short "Xh Ym from now" description used in notifications."""
    seconds = max(0, int((target - now).total_seconds()))
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    if hours > 0:
        return f"{hours}h {minutes}m from now"
    return f"{minutes}m from now"


class SchedulerPage:
    """Single-page UI for scheduling captures and browsing results."""

    def __init__(
        self,
        registry: JobRegistry,
        capture: ScreenshotCapture,
        store: ScreenshotStore,
        config: Config,
    ):
        """Initialize scheduler page.

        Args:
            registry: Job registry
            capture: Capture routine for "Take Screenshot Now"
            store: Screenshot store for the gallery
            config: Application configuration
        """
        self._registry = registry
        self._capture = capture
        self._store = store
        self._config = config

        self.date_input: ui.input | None = None
        self.time_input: ui.input | None = None
        self.timezone_select: ui.select | None = None
        self.clock_label: ui.label | None = None
        self.jobs_container: ui.column | None = None
        self.gallery_container: ui.element | None = None
        self.now_button: ui.button | None = None

    def render(self) -> None:
        """Render the page."""
        timezone_name = self._config.ui_default_timezone
        default_time = datetime.now(ZoneInfo(timezone_name)) + timedelta(minutes=2)

        with ui.column().classes("w-full max-w-5xl mx-auto p-4 gap-4"):
            ui.label("Screenshot Scheduler").classes("text-2xl font-bold")
            ui.label(self._config.target_url).classes("text-sm text-grey-7")

            with ui.card().classes("w-full"):
                ui.label("Schedule a Screenshot").classes("text-lg font-semibold")
                self.clock_label = ui.label().classes("text-sm font-mono text-grey-8")

                with ui.row().classes("w-full items-end gap-4"):
                    self.date_input = ui.input(
                        "Date", value=default_time.strftime("%Y-%m-%d")
                    ).props("type=date dense outlined")
                    self.time_input = ui.input(
                        "Time", value=default_time.strftime("%H:%M:00")
                    ).props("type=time step=1 dense outlined")
                    self.timezone_select = ui.select(
                        UI_TIMEZONES,
                        value=timezone_name if timezone_name in UI_TIMEZONES else "UTC",
                        label="Timezone",
                        on_change=lambda _: (self._update_clock(), self.update_jobs()),
                    ).props("dense outlined").classes("w-48")

                with ui.row().classes("gap-2"):
                    ui.button("Schedule Screenshot", icon="schedule", on_click=self._schedule)
                    self.now_button = ui.button(
                        "Take Screenshot Now", icon="photo_camera", on_click=self._take_now
                    ).props("outline")

            with ui.card().classes("w-full"):
                with ui.row().classes("w-full justify-between items-center"):
                    ui.label("Scheduled Jobs").classes("text-lg font-semibold")
                    ui.button("", icon="refresh", on_click=self.update_jobs).props("flat dense round")
                self.jobs_container = ui.column().classes("w-full gap-1")

            with ui.card().classes("w-full"):
                with ui.row().classes("w-full justify-between items-center"):
                    ui.label("Screenshots").classes("text-lg font-semibold")
                    ui.button("", icon="refresh", on_click=self.update_gallery).props(
                        "flat dense round"
                    )
                self.gallery_container = ui.element("div").classes(
                    "grid grid-cols-2 md:grid-cols-3 gap-4 w-full"
                )

        self._update_clock()
        self.update_jobs()
        self.update_gallery()

        ui.timer(1.0, self._update_clock)
        ui.timer(5.0, self._refresh)

    def _refresh(self) -> None:
        self.update_jobs()
        self.update_gallery()

    def _update_clock(self) -> None:
        if self.clock_label is None or self.timezone_select is None:
            return
        tz_name = self.timezone_select.value
        now = datetime.now(ZoneInfo(tz_name))
        self.clock_label.set_text(f"Current time: {now.strftime('%Y-%m-%d %H:%M:%S')} ({tz_name})")

    def _schedule(self) -> None:
        day = self.date_input.value
        clock_time = self.time_input.value
        if not day or not clock_time:
            ui.notify("Please select both date and time", type="negative")
            return

        try:
            target = local_to_utc(day, clock_time, self.timezone_select.value)
            job = self._registry.schedule(target)
        except ScheduleValidationError as e:
            ui.notify(str(e), type="negative")
            return
        except ValueError as e:
            ui.notify(f"Invalid date/time: {e}", type="negative")
            return

        ui.notify(
            f"✓ Screenshot scheduled for {describe_time_from_now(job.target, utc_now())}!",
            type="positive",
        )
        self.update_jobs()

    async def _take_now(self) -> None:
        self.now_button.disable()
        ui.notify("Taking screenshot... This may take 10-20 seconds", type="info")
        try:
            result = await self._capture.capture()
        finally:
            self.now_button.enable()

        if result.success:
            ui.notify(f"✓ Screenshot saved: {result.filename}", type="positive")
        else:
            ui.notify(f"Screenshot failed: {result.error}", type="negative")
        self.update_gallery()

    def _cancel_job(self, job_id: str) -> None:
        try:
            self._registry.cancel(job_id)
        except JobNotFoundError:
            ui.notify("Job not found", type="warning")
        else:
            ui.notify("Job canceled", type="positive")
        self.update_jobs()

    def update_jobs(self) -> None:
        """Re-render the job list."""
        if self.jobs_container is None:
            return

        self.jobs_container.clear()
        jobs = sorted(self._registry.list_jobs(), key=lambda j: j["datetime"])
        tz = ZoneInfo(self.timezone_select.value)

        with self.jobs_container:
            if not jobs:
                ui.label("No scheduled jobs").classes("text-grey-6 italic")
                return

            for job in jobs:
                target = parse_iso8601(job["datetime"]).astimezone(tz)
                with ui.row().classes("w-full items-center justify-between p-2 hover:bg-gray-50"):
                    with ui.column().classes("gap-0"):
                        ui.label(target.strftime("%Y-%m-%d %H:%M:%S %Z")).classes("font-mono")
                        caption = job["id"] + (" (recurring)" if job["recurring"] else "")
                        ui.label(caption).classes("text-xs text-grey-6")
                    ui.button(
                        "Cancel",
                        icon="cancel",
                        on_click=lambda _, job_id=job["id"]: self._cancel_job(job_id),
                    ).props("flat dense color=negative")

    def update_gallery(self) -> None:
        """Re-render the screenshot gallery."""
        if self.gallery_container is None:
            return

        self.gallery_container.clear()
        try:
            screenshots = self._store.list_screenshots()
        except OSError as e:
            logger.error(f"Failed to list screenshots: {e}")
            screenshots = []

        with self.gallery_container:
            if not screenshots:
                ui.label("No screenshots yet").classes("text-grey-6 italic")
                return

            for shot in screenshots:
                self._render_screenshot_card(shot)

    def _render_screenshot_card(self, shot: ScreenshotInfo) -> None:
        with ui.card().classes("cursor-pointer hover:shadow-lg transition-shadow") as card:
            ui.image(f"/api/screenshot/{shot.filename}").classes("w-full h-40 object-cover")
            with ui.column().classes("p-2 gap-0"):
                ui.label(shot.created.astimezone().strftime("%Y-%m-%d %H:%M:%S")).classes("text-sm")
                ui.label(f"{shot.size / 1024:.0f} KB").classes("text-xs text-grey-6")

        card.on("click", lambda s=shot: self._open_screenshot(s))

    def _open_screenshot(self, shot: ScreenshotInfo) -> None:
        with ui.dialog() as dialog, ui.card().classes("w-full max-w-6xl"):
            with ui.row().classes("w-full justify-between items-center"):
                ui.label(shot.filename).classes("text-sm font-mono")
                with ui.row().classes("gap-2"):
                    ui.link(
                        "Download", f"/api/screenshot/{shot.filename}/download", new_tab=True
                    )
                    ui.button("", icon="close", on_click=dialog.close).props("flat round dense")
            ui.image(f"/api/screenshot/{shot.filename}").classes("w-full object-contain")

        dialog.open()
