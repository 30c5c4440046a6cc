"""Engine configuration: one YAML file plus environment overrides.

Settings live in ``config/config.yaml`` at the project root. Any leaf can be
overridden from the environment by joining its path with double underscores,
e.g. ``VALIDATION__DUPLICATE_STOPS__BUFFER_DISTANCE_METERS=5``. The merged
result is checked once on load and cached by `get_config()`.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from gtfs_validation.utils.helpers import get_setting

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "config.yaml"
ENV_SEPARATOR = "__"

REQUIRED_SECTIONS = ["validation", "logging"]

# Thresholds that must be numbers >= 0 when present
NON_NEGATIVE_SETTINGS = (
    "validation.duplicate_stops.buffer_distance_meters",
    "validation.reversed_shapes.distance_multiplier",
    "validation.stops_away_from_shape.max_distance_meters",
)
WEEKDAY_POLICIES = ("first_match", "all")

_config_cache: Optional[Dict[str, Any]] = None


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Read a configuration file and apply environment overrides.

    Args:
        config_path: YAML file to read. Defaults to `config/config.yaml` at the
            project root.

    Returns:
        The merged configuration dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If a required section is missing or a threshold is invalid.

    Example:
        >>> config = load_config()
        >>> config["validation"]["duplicate_stops"]["buffer_distance_meters"]
        2.0
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML configuration file {path}: {e}") from e

    config = _merge_env_overrides(raw or {})
    _validate_config(config)
    logger.debug(f"Loaded configuration from {path}")
    return config


def get_config() -> Dict[str, Any]:
    """Default configuration, loaded on first call and cached afterwards."""
    global _config_cache

    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache


def reset_config() -> None:
    """Drop the cached configuration so the next `get_config()` reloads it."""
    global _config_cache
    _config_cache = None


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """Write a configuration dictionary as YAML, creating parent directories.

    Raises:
        IOError: If the file cannot be written.
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    except IOError as e:
        raise IOError(f"Failed to write configuration file {path}: {e}") from e

    logger.info(f"Saved configuration to {path}")


def _merge_env_overrides(
    config: Dict[str, Any], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """Return a copy of `config` with ``SECTION__KEY__...`` overrides applied.

    Only variables whose first segment names an existing top-level section are
    used; other variables containing ``__`` are ignored. Nested sections along
    an override path are copied, so the input dictionary is left untouched.
    """
    environ = os.environ if environ is None else environ
    merged = dict(config)

    for name in sorted(environ):
        parts = [part.lower() for part in name.split(ENV_SEPARATOR)]
        if len(parts) < 2 or parts[0] not in merged:
            continue
        _set_nested_value(merged, parts, _convert_env_value(environ[name]))

    return merged


def _set_nested_value(config: Dict[str, Any], path: List[str], value: Any) -> None:
    section = config
    for depth, key in enumerate(path[:-1]):
        child = section.get(key)
        if child is None:
            child = {}
        elif not isinstance(child, dict):
            logger.warning(
                f"Cannot apply override {ENV_SEPARATOR.join(path).upper()}: "
                f"'{'.'.join(path[: depth + 1])}' conflicts with existing non-dict value"
            )
            return
        else:
            child = dict(child)
        section[key] = child
        section = child

    section[path[-1]] = value


def _convert_env_value(value: str) -> Any:
    """Parse an override as a YAML scalar, so "8", "1.5" and "true" keep their types."""
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    if isinstance(parsed, (dict, list)):
        return value
    return parsed


def _validate_config(config: Dict[str, Any]) -> None:
    """Check required sections and the ranges of the validation thresholds.

    Raises:
        ValueError: On a missing section, a negative or non-numeric threshold,
            or an unknown weekday policy.
    """
    missing = [section for section in REQUIRED_SECTIONS if section not in config]
    if missing:
        raise ValueError(
            f"Required configuration section '{missing[0]}' is missing. "
            f"Expected sections: {', '.join(REQUIRED_SECTIONS)}"
        )

    for path in NON_NEGATIVE_SETTINGS:
        value = get_setting(config, path)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Setting '{path}' must be a number, got {value!r}")
        if value < 0:
            raise ValueError(f"Setting '{path}' must be non-negative, got {value}")

    policy = get_setting(config, "validation.calendar.weekday_policy")
    if policy is not None and policy not in WEEKDAY_POLICIES:
        raise ValueError(
            f"Setting 'validation.calendar.weekday_policy' must be one of "
            f"{', '.join(WEEKDAY_POLICIES)}, got {policy!r}"
        )
