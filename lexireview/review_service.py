"""
Review service: the learner-facing operations of the review engine
"""

import logging
from collections.abc import Callable
from dataclasses import asdict
from datetime import datetime
from typing import Any

from .config import Settings, get_settings
from .core.database.database_manager import DatabaseManager, get_db_manager
from .core.database.models import DailyStat, LanguageStats, VocabCard
from .core.locks.user_lock_manager import get_lock_manager
from .core.session.due_cards import DueCardSelector
from .core.session.session_manager import ReviewSessionManager
from .errors import UnauthenticatedError
from .levels import get_level_thresholds, level_from_xp
from .spaced_repetition import SpacedRepetitionSystem, get_srs_system
from .utils import calculate_accuracy, calendar_day, ensure_utc, utc_now

logger = logging.getLogger(__name__)

IdentityProvider = Callable[[], str | None]


def default_progress() -> dict[str, Any]:
    """Progress shown to a learner who has never graded a card"""
    info = level_from_xp(0)
    return {
        "total_xp": 0,
        "level": info.level,
        "title": info.title,
        "current_streak": 0,
        "longest_streak": 0,
        "streak_shields": 0,
        "total_reviews": 0,
        "total_correct": 0,
        "xp_progress": info.xp_progress,
        "xp_for_next_level": info.xp_for_next_level,
        "current_xp_in_level": info.current_xp,
    }


class ReviewService:
    """Learner-scoped operations; the learner comes from the identity provider

    Queries made without an identity return empty defaults. Mutations made
    without one raise UnauthenticatedError.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        db_manager: DatabaseManager | None = None,
        srs_system: SpacedRepetitionSystem | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.identity_provider = identity_provider
        self.settings = settings or get_settings()
        self.db_manager = db_manager or get_db_manager()
        self.srs_system = srs_system or get_srs_system()
        self.clock = clock
        self.selector = DueCardSelector(
            self.db_manager.card_repo, self.settings.supported_languages_list
        )
        self.session_manager = ReviewSessionManager(
            db_manager=self.db_manager,
            srs_system=self.srs_system,
            selector=self.selector,
            lock_manager=get_lock_manager(
                lock_timeout_minutes=self.settings.session_lock_timeout_minutes
            ),
            settings=self.settings,
            clock=clock,
        )

    def _is_learner_authorized(self, learner_id: str) -> bool:
        """Check if learner may use the engine"""
        allowed = self.settings.allowed_learners_list
        if not allowed:
            return True
        return learner_id in allowed

    def _current_learner(self) -> str | None:
        learner_id = self.identity_provider()
        if not learner_id:
            return None
        if not self._is_learner_authorized(learner_id):
            logger.warning(f"Unauthorized access attempt from learner {learner_id}")
            return None
        return learner_id

    def _require_learner(self) -> str:
        learner_id = self._current_learner()
        if learner_id is None:
            raise UnauthenticatedError()
        return learner_id

    def _now(self) -> datetime:
        return ensure_utc(self.clock())

    # Due cards and counts
    def get_due_count(self, language: str) -> int:
        learner_id = self._current_learner()
        if learner_id is None:
            return 0
        return self.selector.due_count(learner_id, language, self._now())

    def get_known_count(self, language: str) -> int:
        learner_id = self._current_learner()
        if learner_id is None:
            return 0
        return self.selector.known_count(learner_id, language)

    def get_due_cards(self, language: str, limit: int | None = None) -> list[VocabCard]:
        learner_id = self._current_learner()
        if learner_id is None:
            return []
        if limit is None:
            limit = self.settings.default_cards_per_session
        return self.selector.select(learner_id, language, self._now(), limit)

    def get_language_stats(self, language: str) -> LanguageStats | None:
        learner_id = self._current_learner()
        if learner_id is None:
            return None
        return self.selector.language_stats(learner_id, language, self._now())

    def get_all_language_stats(self) -> list[LanguageStats]:
        learner_id = self._current_learner()
        if learner_id is None:
            return []
        return self.selector.all_language_stats(learner_id, self._now())

    def get_today_overview(self) -> dict[str, int]:
        learner_id = self._current_learner()
        if learner_id is None:
            return {"due_count": 0, "learning_count": 0}
        return self.selector.today_overview(learner_id, self._now())

    # Sessions
    def start_session(self, language: str, limit: int | None = None) -> dict[str, Any]:
        learner_id = self._require_learner()
        started = self.session_manager.start_session(learner_id, language, limit)
        return {"session_id": started["session_id"], "items": started["items"]}

    def get_session(self, session_id: int) -> dict[str, Any] | None:
        learner_id = self._current_learner()
        if learner_id is None:
            return None
        return self.session_manager.get_session(learner_id, session_id)

    def grade_card(
        self,
        session_item_id: int,
        quality: int,
        session_start_time: datetime | None = None,
    ) -> dict[str, Any]:
        learner_id = self._require_learner()
        outcome = self.session_manager.grade(
            learner_id, session_item_id, quality, session_start_time
        )
        return asdict(outcome)

    def abandon_session(self, session_id: int) -> None:
        learner_id = self._require_learner()
        self.session_manager.abandon(learner_id, session_id)

    # Cards
    def set_card_status(
        self,
        language: str,
        term: str,
        status: int,
        display: str | None = None,
        meaning: str | None = None,
        reading: str | None = None,
    ) -> VocabCard:
        learner_id = self._require_learner()
        return self.db_manager.set_card_status(
            learner_id, language, term, status, self._now(),
            display=display, meaning=meaning, reading=reading,
        )

    def get_vocab_profile(self, language: str) -> list[VocabCard]:
        learner_id = self._current_learner()
        if learner_id is None:
            return []
        return self.db_manager.get_cards_by_language(learner_id, language)

    # Progress
    def get_progress(self) -> dict[str, Any] | None:
        learner_id = self._current_learner()
        if learner_id is None:
            return None

        progress = self.db_manager.get_progress(learner_id)
        if progress is None:
            return default_progress()

        info = level_from_xp(progress["total_xp"])
        return {
            "total_xp": progress["total_xp"],
            "level": info.level,
            "title": info.title,
            "current_streak": progress["current_streak"],
            "longest_streak": progress["longest_streak"],
            "streak_shields": progress["streak_shields"],
            "last_review_date": progress["last_review_date"],
            "total_reviews": progress["total_reviews"],
            "total_correct": progress["total_correct"],
            "xp_progress": info.xp_progress,
            "xp_for_next_level": info.xp_for_next_level,
            "current_xp_in_level": info.current_xp,
        }

    def get_daily_stats(self, days: int | None = None) -> list[DailyStat]:
        learner_id = self._current_learner()
        if learner_id is None:
            return []
        if days is None:
            days = self.settings.daily_stats_default_days
        return self.db_manager.progress_repo.get_daily_stats(learner_id, days)

    def get_today_stats(self) -> dict[str, int]:
        learner_id = self._current_learner()
        if learner_id is None:
            return {"review_count": 0, "correct_count": 0, "xp_earned": 0, "minutes_spent": 0}
        today = calendar_day(self._now(), self.settings.timezone)
        return self.db_manager.progress_repo.get_day_stats(learner_id, today)

    def get_weekly_stats(self) -> dict[str, int]:
        learner_id = self._current_learner()
        if learner_id is None:
            return {"review_count": 0, "correct_count": 0, "xp_earned": 0, "accuracy": 0}
        totals = self.db_manager.progress_repo.get_recent_totals(learner_id, 7)
        totals["accuracy"] = calculate_accuracy(
            totals["correct_count"], totals["review_count"]
        )
        return totals

    def get_level_thresholds(self) -> list[dict]:
        return get_level_thresholds()
