"""
Logging for Marmoraria.

Every module logs through get_logger(), which attaches one stdout handler per
logger. The default level comes from ``logging.level`` in config.yaml and can
be raised or lowered at runtime with set_log_level() (the CLI's --verbose flag).
"""

import logging
import sys
from typing import Dict, Optional, Union

from marmoraria.core.config import get_config_value

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_loggers: Dict[str, logging.Logger] = {}
_level_override: Optional[int] = None


def resolve_level(level: Union[int, str, None]) -> int:
    """Turn 'debug', 'INFO', 20 or None (config default) into a logging level."""
    if level is None and _level_override is not None:
        return _level_override
    if level is None:
        level = get_config_value("logging", "level", default="INFO")
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def get_logger(name: str, level: Union[int, str, None] = None) -> logging.Logger:
    """
    Get the logger for a module, creating its handler on first use.

    Args:
        name: Logger name (e.g., 'marmoraria.sheets.sync')
        level: Level override; defaults to the configured level
    """
    if name in _loggers:
        return _loggers[name]

    resolved = resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(resolved)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def set_log_level(level: Union[int, str]) -> int:
    """Apply ``level`` to every logger, including ones created later."""
    global _level_override
    resolved = resolve_level(level)
    _level_override = resolved
    for logger in _loggers.values():
        logger.setLevel(resolved)
    return resolved
