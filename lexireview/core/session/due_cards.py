"""
Due card selection and dashboard counts
"""

import logging
import sqlite3
from datetime import datetime

from ..database.models import LanguageStats, VocabCard
from ..database.repositories.card_repository import CardRepository
from ...utils import get_language_label

logger = logging.getLogger(__name__)


class DueCardSelector:
    """Picks the cards a learner should review now, longest overdue first"""

    def __init__(self, card_repo: CardRepository, languages: list[str]):
        self.card_repo = card_repo
        self.languages = languages

    def select(
        self,
        learner_id: str,
        language: str,
        now: datetime,
        limit: int,
        conn: sqlite3.Connection | None = None,
    ) -> list[VocabCard]:
        """Up to limit cards whose next review time has passed"""
        if limit <= 0:
            return []
        cards = self.card_repo.get_due_cards(learner_id, language, now, limit, conn=conn)
        logger.debug(
            f"Selected {len(cards)} due cards for learner {learner_id} ({language})"
        )
        return cards

    def due_count(self, learner_id: str, language: str, now: datetime) -> int:
        return self.card_repo.count_due(learner_id, language, now)

    def known_count(self, learner_id: str, language: str) -> int:
        return self.card_repo.count_known(learner_id, language)

    def learning_count(self, learner_id: str, language: str) -> int:
        return self.card_repo.count_learning(learner_id, language)

    def language_stats(
        self, learner_id: str, language: str, now: datetime
    ) -> LanguageStats:
        """Due, learning and known counts for one language"""
        return {
            "language": language,
            "language_name": get_language_label(language),
            "due_count": self.due_count(learner_id, language, now),
            "learning_count": self.learning_count(learner_id, language),
            "known_count": self.known_count(learner_id, language),
        }

    def all_language_stats(self, learner_id: str, now: datetime) -> list[LanguageStats]:
        """Counts for every supported language"""
        return [
            self.language_stats(learner_id, language, now)
            for language in self.languages
        ]

    def today_overview(self, learner_id: str, now: datetime) -> dict[str, int]:
        """Due and learning totals across all supported languages"""
        stats = self.all_language_stats(learner_id, now)
        return {
            "due_count": sum(s["due_count"] for s in stats),
            "learning_count": sum(s["learning_count"] for s in stats),
        }
