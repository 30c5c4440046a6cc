"""Utility modules: configuration, logging, helpers."""

from gtfs_validation.utils.config import get_config, load_config, reset_config, save_config
from gtfs_validation.utils.logging import get_logger, setup_logging
from gtfs_validation.utils.helpers import (
    format_gtfs_time,
    get_setting,
    is_finite_coordinate,
    normalize_text,
    save_dataframe,
)

__all__ = [
    # Config
    "get_config",
    "load_config",
    "reset_config",
    "save_config",
    # Logging
    "setup_logging",
    "get_logger",
    # Helpers
    "format_gtfs_time",
    "get_setting",
    "is_finite_coordinate",
    "normalize_text",
    "save_dataframe",
]
