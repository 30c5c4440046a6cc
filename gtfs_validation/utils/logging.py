"""Logging setup shared by the engine and the command line script.

Modules get their logger with `get_logger(__name__)`. The script calls
`setup_logging()` once, with the level and file from the ``logging`` section
of the configuration.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_configured = False


def _resolve_level(log_level: Union[str, int]) -> int:
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    # getLevelName returns a string for unknown names
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_level: Union[str, int] = "INFO", log_file: Optional[str] = None) -> None:
    """Attach a console handler, and optionally a file handler, to the root logger.

    Only the first call has an effect; later calls return immediately.

    Args:
        log_level: Level name such as "DEBUG" or "WARNING", or a numeric level.
            Unknown names fall back to INFO.
        log_file: Also write records to this file, creating parent directories.

    Example:
        >>> setup_logging("DEBUG", "logs/validation.log")
        >>> get_logger(__name__).info("Validating feed")
    """
    global _logging_configured

    if _logging_configured:
        return

    level = _resolve_level(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Module logger; handlers and level come from the root logger."""
    return logging.getLogger(name)
