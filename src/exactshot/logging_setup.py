"""Log sink configuration.

All modules log through loguru's global logger; this module only decides
where records go.
"""

from pathlib import Path

from loguru import logger

from exactshot.config.settings import Config

SERVICE_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# [2025-11-28T05:55:00.123Z] message
SCHEDULER_LOG_FORMAT = "[{time:YYYY-MM-DD[T]HH:mm:ss.SSS[Z]!UTC}] {message}"


def setup_service_logging(config: Config) -> Path:
    """Add the rotating service log file sink.

    Args:
        config: Application configuration

    Returns:
        Path of the log file
    """
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Rotation at 10 MB, keep 5 old files
    logger.add(
        log_path,
        rotation="10 MB",
        retention=5,
        level=config.log_level,
        format=SERVICE_LOG_FORMAT,
        backtrace=True,
        diagnose=True,
    )

    logger.info(f"Logging to file: {log_path}")
    return log_path


def setup_scheduler_logging(config: Config) -> int:
    """Add the append-only plaintext log used by the standalone scheduler.

    Lines are "[<ISO 8601 UTC>] <message>"; the file is never rotated.

    Args:
        config: Application configuration

    Returns:
        Sink id (pass to logger.remove to detach)
    """
    log_path = Path(config.scheduler_log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    return logger.add(
        log_path,
        mode="a",
        level=config.log_level,
        format=SCHEDULER_LOG_FORMAT,
        encoding="utf-8",
    )
