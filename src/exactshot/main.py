"""Main application entry point for exactshot."""

from loguru import logger
from nicegui import app, ui

from exactshot.api import create_api_router, install_http_middleware
from exactshot.config import Config, get_config
from exactshot.logging_setup import setup_service_logging
from exactshot.services.capture import ScreenshotCapture
from exactshot.services.exact_time import ExactTimeScheduler
from exactshot.services.job_registry import JobRegistry
from exactshot.services.screenshot_store import ScreenshotStore
from exactshot.ui.scheduler_page import SchedulerPage


def create_services(
    config: Config,
) -> tuple[ScreenshotStore, ScreenshotCapture, ExactTimeScheduler, JobRegistry]:
    """Wire the capture, scheduling, and storage services together.

    Args:
        config: Application configuration

    Returns:
        Tuple of (store, capture, scheduler, registry)
    """
    store = ScreenshotStore(config.screenshot_path)
    capture = ScreenshotCapture(config=config, store=store)
    scheduler = ExactTimeScheduler(capture, config=config)
    registry = JobRegistry(scheduler)
    return store, capture, scheduler, registry


def _cleanup_services(registry: JobRegistry) -> None:
    """Cancel pending jobs on application shutdown.

    Args:
        registry: Job registry whose guards should be released
    """
    canceled = registry.cancel_all()
    if canceled:
        logger.info(f"Canceled {canceled} pending job(s) on shutdown")


def setup_app() -> JobRegistry:
    """Set up the exactshot API routes and UI.

    Returns:
        The job registry backing the HTTP facade
    """
    config = get_config()

    setup_service_logging(config)
    logger.info("Starting exactshot application")

    store, capture, _scheduler, registry = create_services(config)
    store.ensure_directory()
    logger.info(f"Screenshots directory: {store.directory}")

    install_http_middleware(app)
    app.include_router(create_api_router(registry, capture, store))
    logger.info("REST API endpoints configured")

    app.on_shutdown(lambda: _cleanup_services(registry))

    @ui.page("/")
    def index() -> None:
        """Main application page."""
        ui.page_title("exactshot - Screenshot Scheduler")
        SchedulerPage(registry, capture, store, config).render()

    return registry


def main() -> None:
    """Entry point for the exactshot server."""
    import sys

    # NiceGUI only starts when it believes it is running from __main__
    original_main = sys.modules.get("__main__")
    sys.modules["__main__"] = sys.modules[__name__]

    try:
        config = get_config()
        setup_app()

        logger.info(f"Screenshot scheduler server running on http://localhost:{config.port}")

        ui.run(
            title="exactshot",
            host=config.host,
            port=config.port,
            reload=False,
            show=False,
        )
    finally:
        if original_main:
            sys.modules["__main__"] = original_main


if __name__ in {"__main__", "__mp_main__"}:
    main()
