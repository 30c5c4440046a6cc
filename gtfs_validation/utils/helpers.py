"""General utility functions shared by the validators.

This module provides text normalization, numeric guards, time formatting,
configuration lookup, and file I/O helpers.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd


def normalize_text(value: Optional[str]) -> str:
    """Trim and case-fold a free-text field, mapping None to an empty string.

    Args:
        value: Raw field value.

    Returns:
        Normalized string.

    Example:
        >>> normalize_text("  Red Line ")
        'red line'
    """
    if value is None:
        return ""
    return str(value).strip().casefold()


def is_finite_coordinate(lat: Optional[float], lon: Optional[float]) -> bool:
    """Return True if both coordinates are present and finite."""
    if lat is None or lon is None:
        return False
    return bool(np.isfinite(lat) and np.isfinite(lon))


def format_gtfs_time(seconds: Optional[int]) -> str:
    """Format seconds since service-day start as HH:MM:SS (hours may exceed 24).

    Args:
        seconds: Seconds since the start of the service day, or None.

    Returns:
        Formatted time, or an empty string when seconds is None.

    Example:
        >>> format_gtfs_time(90061)
        '25:01:01'
    """
    if seconds is None:
        return ""
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def get_setting(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Look up a dotted path in a nested configuration dictionary.

    Args:
        config: Configuration dictionary.
        path: Dotted key path, e.g. "validation.routes.max_short_name_length".
        default: Value returned when any segment is missing.

    Returns:
        The configured value or the default.
    """
    current: Any = config
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    if current is None:
        return default
    return current


def save_dataframe(df: pd.DataFrame, path: str, format: str = "csv") -> None:
    """Save DataFrame to file.

    Args:
        df: DataFrame to save.
        path: File path to save to.
        format: File format ("csv" or "json"). Defaults to "csv".

    Raises:
        ValueError: If format is not supported.

    Example:
        >>> df = report.to_dataframe()
        >>> save_dataframe(df, "out/findings.csv", format="csv")
    """
    file_path = Path(path)

    file_path.parent.mkdir(parents=True, exist_ok=True)

    if format.lower() == "csv":
        df.to_csv(file_path, index=False)
    elif format.lower() == "json":
        df.to_json(file_path, orient="records", indent=2)
    else:
        raise ValueError(f"Unsupported format: {format}. Use 'csv' or 'json'.")
