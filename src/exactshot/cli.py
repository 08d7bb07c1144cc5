"""Command-line interface for exactshot.

This module provides the CLI commands for running the scheduler service,
taking one-off and daily captures, and the standalone exact-time scheduler
(``exactshot-at``).
"""

import asyncio
import signal
import sys
import webbrowser
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from loguru import logger

from exactshot.config import Config, get_config
from exactshot.logging_setup import setup_scheduler_logging
from exactshot.models.capture import CaptureResult
from exactshot.services.capture import ScreenshotCapture
from exactshot.services.daily import run_daily
from exactshot.services.exact_time import ExactTimeScheduler
from exactshot.utils.timefmt import parse_iso8601, utc_now
from exactshot.version import format_version_string

__all__ = ["cli_main", "schedule_main"]

BANNER_RULE = "=" * 60


class SchedulerTerminated(Exception):
    """Raised from the SIGTERM handler to unwind the standalone scheduler."""

    pass


def print_version() -> None:
    """Print version information."""
    print(format_version_string())


def cmd_serve() -> int:
    """Run the HTTP service and browser UI in the foreground until Ctrl+C.

    Returns:
        Exit code (0 for success or interruption, 1 for error)
    """
    config = get_config()
    print(format_version_string(include_stack=False))
    print(f"Serving on http://{config.host}:{config.port}")
    print(f"Screenshots: {config.screenshot_path}")
    print("(Use Ctrl+C to stop)")
    print()

    from exactshot.main import main as run_app

    try:
        run_app()
        return 0
    except KeyboardInterrupt:
        print("\n✓ exactshot stopped")
        return 0
    except Exception as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        logger.exception("Application error")
        return 1


def cmd_capture() -> int:
    """Take one screenshot immediately.

    Returns:
        Exit code (0 if the screenshot was saved, 1 otherwise)
    """
    print("Running immediate capture...")
    result = asyncio.run(ScreenshotCapture().capture())

    if result.success:
        print(f"✓ Screenshot saved: {result.filepath}")
        return 0

    print(f"✗ Screenshot failed: {result.error}", file=sys.stderr)
    return 1


def cmd_daily() -> int:
    """Capture every day at the configured time until interrupted."""
    config = get_config()

    print(f"Daily screenshots at {config.daily_time} (local time)")
    print("(Use Ctrl+C to stop)")
    print()

    try:
        asyncio.run(run_daily(ScreenshotCapture(config=config), config.daily_time))
    except KeyboardInterrupt:
        print("\n✓ Daily scheduler stopped")
    return 0


def open_capture(result: CaptureResult, config: Config) -> None:
    """Open a saved screenshot and its folder with the platform viewer.

    Failures are logged; they never fail the run.
    """
    if not config.open_after_capture or not result.success:
        return

    try:
        webbrowser.open(f"file://{result.filepath}")
        logger.info("📸 Screenshot automatically opened!")
        webbrowser.open(f"file://{Path(config.screenshot_path)}")
        logger.info("📁 Screenshots folder opened!")
    except webbrowser.Error as e:
        logger.warning(f"Auto-open error: {e}")


def print_schedule_usage() -> None:
    """Print usage for the standalone exact-time scheduler."""
    print('Usage: exactshot-at "2025-11-28T13:45:00+08:00"')
    print("Format: YYYY-MM-DDTHH:MM:SS+HH:MM (explicit UTC offset required)")


def _handle_sigterm(signum, frame) -> None:
    raise SchedulerTerminated()


def schedule_main(args: Optional[list[str]] = None) -> int:
    """Standalone exact-time scheduler: one capture at the given instant.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 on success or interruption, 1 on invalid input or failure)
    """
    if args is None:
        args = sys.argv[1:]

    if not args or args[0] in ("help", "-h", "--help"):
        print_schedule_usage()
        return 0

    raw = args[0]
    try:
        target = parse_iso8601(raw, require_offset=True)
    except ValueError:
        print(f"Invalid date/time format: {raw}", file=sys.stderr)
        print("Please use format: YYYY-MM-DDTHH:MM:SS+08:00", file=sys.stderr)
        return 1

    if target <= utc_now():
        print("The specified time is in the past!", file=sys.stderr)
        return 1

    config = get_config()
    sink_id = setup_scheduler_logging(config)
    previous_sigterm = signal.signal(signal.SIGTERM, _handle_sigterm)

    try:
        logger.info(BANNER_RULE)
        logger.info("ROBUST SCREENSHOT SCHEDULER STARTED")
        logger.info(BANNER_RULE)
        logger.info(f"Target URL: {config.target_url}")
        logger.info(f"Screenshot Path: {config.screenshot_path}")
        logger.info(f"Log File: {config.scheduler_log_file}")
        logger.info(BANNER_RULE)

        display_zone = ZoneInfo(config.ui_default_timezone)
        local_target = target.astimezone(display_zone)
        logger.info(
            f"Target time: {local_target.strftime('%Y-%m-%d %H:%M:%S')} ({config.ui_default_timezone})"
        )
        logger.info("Service running with periodic checks...")
        logger.info("Press Ctrl+C to stop")

        scheduler = ExactTimeScheduler(ScreenshotCapture(config=config), config=config)
        result = asyncio.run(scheduler.schedule_exact(target))

        if not result.success:
            logger.error(f"FATAL ERROR: {result.error}")
            return 1

        open_capture(result, config)
        logger.info("Screenshot completed successfully!")
        logger.info(BANNER_RULE)
        return 0

    except KeyboardInterrupt:
        logger.info("Service interrupted by user (SIGINT)")
        return 0
    except SchedulerTerminated:
        logger.info("Service terminated (SIGTERM)")
        return 0
    finally:
        signal.signal(signal.SIGTERM, previous_sigterm)
        logger.remove(sink_id)


def print_help() -> None:
    """Print CLI help message."""
    print_version()
    print()
    print("Usage: exactshot [COMMAND]")
    print()
    print("Commands:")
    print("  serve          Run the scheduler service and UI in the foreground")
    print("  capture        Take one screenshot now")
    print("  daily          Take a screenshot every day at DAILY_TIME")
    print("  at <datetime>  Take one screenshot at an exact instant")
    print("  version        Show version information")
    print("  help           Show this help message")
    print()
    print("Examples:")
    print("  exactshot serve                             # Scheduler UI on port 3000")
    print("  exactshot capture                           # Test capture")
    print('  exactshot at "2025-11-28T13:45:00+08:00"    # Exact-time capture')
    print()


def cli_main(args: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    if args is None:
        args = sys.argv[1:]

    if not args or args[0] in ("help", "-h", "--help"):
        print_help()
        return 0

    command = args[0].lower()
    flags = args[1:]

    if command == "serve":
        return cmd_serve()
    elif command == "capture":
        return cmd_capture()
    elif command == "daily":
        return cmd_daily()
    elif command == "at":
        return schedule_main(flags)
    elif command == "version":
        print_version()
        return 0
    else:
        print(f"✗ Unknown command: {command}")
        print()
        print_help()
        return 1
