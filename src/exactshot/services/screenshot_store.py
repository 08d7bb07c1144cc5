"""
Screenshot Store

The output directory is the only record of past captures: there is no
index, so listing means scanning for screenshot-*.png and reading size and
creation time from file metadata.
"""

from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from exactshot.config.constants import SCREENSHOT_PREFIX, SCREENSHOT_SUFFIX
from exactshot.models.capture import ScreenshotInfo
from exactshot.utils.timefmt import filename_stamp


def is_screenshot_name(filename: str) -> bool:
    """Whether a filename follows the screenshot naming pattern."""
    return filename.startswith(SCREENSHOT_PREFIX) and filename.endswith(SCREENSHOT_SUFFIX)


def screenshot_filename(moment: datetime) -> str:
    """Filename for a screenshot captured at the given instant."""
    return f"{SCREENSHOT_PREFIX}{filename_stamp(moment)}{SCREENSHOT_SUFFIX}"


class ScreenshotStore:
    """Filesystem access to the screenshot output directory."""

    def __init__(self, directory: Path | str):
        """Initialize store.

        Args:
            directory: Output directory (created lazily on first capture)
        """
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        """Output directory."""
        return self._directory

    def ensure_directory(self) -> Path:
        """Create the output directory (recursively) if missing."""
        if not self._directory.exists():
            self._directory.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created screenshots directory: {self._directory}")
        return self._directory

    def new_screenshot_path(self, moment: datetime) -> Path:
        """Path for a new screenshot captured at the given instant."""
        return self._directory / screenshot_filename(moment)

    def list_screenshots(self) -> list[ScreenshotInfo]:
        """List screenshots, newest first.

        Returns:
            Screenshot entries sorted by creation time descending
        """
        if not self._directory.is_dir():
            return []

        screenshots = []
        for path in self._directory.iterdir():
            if not path.is_file() or not is_screenshot_name(path.name):
                continue

            stats = path.stat()
            # st_birthtime is only available on some platforms
            created_ts = getattr(stats, "st_birthtime", None) or stats.st_mtime
            screenshots.append(
                ScreenshotInfo(
                    filename=path.name,
                    path=str(path),
                    created=datetime.fromtimestamp(created_ts, tz=timezone.utc),
                    size=stats.st_size,
                )
            )

        screenshots.sort(key=lambda s: (s.created, s.filename), reverse=True)
        logger.debug(f"Found {len(screenshots)} screenshot(s) in {self._directory}")
        return screenshots

    def resolve(self, filename: str) -> Path | None:
        """Resolve a screenshot filename to a file inside the output directory.

        Only bare filenames matching the screenshot pattern are accepted;
        anything that would resolve outside the directory is rejected.

        Args:
            filename: Requested filename

        Returns:
            Path to the existing file, or None if not found or not allowed
        """
        if not filename or Path(filename).name != filename or not is_screenshot_name(filename):
            logger.warning(f"Rejected screenshot filename: {filename!r}")
            return None

        root = self._directory.resolve()
        candidate = (root / filename).resolve()
        if candidate.parent != root or not candidate.is_file():
            return None

        return candidate
