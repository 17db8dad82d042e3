"""
Marmoraria Core - Shared services for all modules.

Usage:
    from marmoraria.core import get_db, get_config, get_logger, PATHS
"""

from marmoraria.core.config import get_config, get_config_value, PATHS
from marmoraria.core.db import get_db, get_value, set_value, delete_value, migrate_all
from marmoraria.core.logging import get_logger

__all__ = [
    "get_config",
    "get_config_value",
    "PATHS",
    "get_db",
    "get_value",
    "set_value",
    "delete_value",
    "migrate_all",
    "get_logger",
]
