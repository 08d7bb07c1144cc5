"""Version report for exactshot and the browser/server stack it drives."""

import importlib.metadata

from exactshot import __version__

__all__ = ["VERSION", "STACK_DISTRIBUTIONS", "get_version_info", "format_version_string"]

VERSION = __version__

# Distributions whose versions matter when a capture misbehaves
STACK_DISTRIBUTIONS = ("playwright", "nicegui", "fastapi")


def installed_version(distribution: str) -> str | None:
    """Installed version of a distribution, or None if it is missing."""
    try:
        return importlib.metadata.version(distribution)
    except importlib.metadata.PackageNotFoundError:
        return None


def get_version_info() -> dict[str, str | None]:
    """Versions of exactshot and each stack distribution.

    Returns:
        Mapping of name to version (None for a missing distribution)
    """
    info: dict[str, str | None] = {"exactshot": VERSION}
    for name in STACK_DISTRIBUTIONS:
        info[name] = installed_version(name)
    return info


def format_version_string(include_stack: bool = True) -> str:
    """Human-readable version report.

    Args:
        include_stack: Whether to list playwright/nicegui/fastapi versions
    """
    info = get_version_info()
    lines = [f"exactshot v{info['exactshot']}"]

    if include_stack:
        for name in STACK_DISTRIBUTIONS:
            lines.append(f"  {name}: {info[name] or 'not installed'}")

    return "\n".join(lines)
