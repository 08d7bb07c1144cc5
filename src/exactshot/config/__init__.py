"""Configuration module for exactshot."""

from exactshot.config.constants import (
    EXCHANGE_SELECTORS,
    SCREENSHOT_PREFIX,
    SCREENSHOT_SUFFIX,
)
from exactshot.config.settings import Config, get_config

__all__ = [
    "Config",
    "get_config",
    "EXCHANGE_SELECTORS",
    "SCREENSHOT_PREFIX",
    "SCREENSHOT_SUFFIX",
]
