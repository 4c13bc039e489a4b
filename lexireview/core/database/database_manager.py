"""
Unified database manager that coordinates all repositories
"""

import logging
from datetime import datetime

from .connection import DatabaseConnection
from .models import ProgressRecord, VocabCard
from .repositories.card_repository import CardRepository
from .repositories.progress_repository import ProgressRepository
from .repositories.session_repository import SessionRepository

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Unified database manager that coordinates all repositories"""

    def __init__(self, db_path: str | None = None):
        self.db_connection = DatabaseConnection(db_path)
        self.card_repo = CardRepository(self.db_connection)
        self.session_repo = SessionRepository(self.db_connection)
        self.progress_repo = ProgressRepository(self.db_connection)

    def init_database(self) -> None:
        """Initialize database tables and indexes"""
        self.db_connection.init_database()

    def transaction(self):
        """Atomic unit of work spanning every repository"""
        return self.db_connection.transaction()

    def get_connection(self):
        """Get database connection for direct SQL access in tests"""
        return self.db_connection.get_connection()

    # Card methods
    def set_card_status(
        self,
        learner_id: str,
        language: str,
        term: str,
        status: int,
        now: datetime,
        display: str | None = None,
        meaning: str | None = None,
        reading: str | None = None,
    ) -> VocabCard:
        """Create or update a card's learning status"""
        return self.card_repo.set_card_status(
            learner_id, language, term, status, now,
            display=display, meaning=meaning, reading=reading,
        )

    def get_card_by_id(self, card_id: int) -> VocabCard | None:
        """Get card by ID"""
        return self.card_repo.get_card_by_id(card_id)

    def get_cards_by_language(self, learner_id: str, language: str) -> list[VocabCard]:
        """Get all of a learner's cards for a language"""
        return self.card_repo.get_cards_by_language(learner_id, language)

    # Progress methods
    def get_progress(self, learner_id: str) -> ProgressRecord | None:
        """Get a learner's progress record"""
        return self.progress_repo.get_progress(learner_id)


# Global instance
_db_manager = None


def get_db_manager(db_path: str | None = None) -> DatabaseManager:
    """Get global database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(db_path)
    return _db_manager
