"""
Review store entry points
"""

import logging

from .config import get_database_path
from .core.database.database_manager import DatabaseManager, get_db_manager

logger = logging.getLogger(__name__)


def init_db(db_path: str | None = None) -> DatabaseManager:
    """Create the review tables if needed and return the shared manager"""
    db_manager = get_db_manager(db_path)
    db_manager.init_database()
    logger.info(f"Review store ready at {db_manager.db_connection.db_path}")
    return db_manager


__all__ = ["DatabaseManager", "get_database_path", "get_db_manager", "init_db"]
