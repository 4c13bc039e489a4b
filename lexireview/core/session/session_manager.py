"""
Session management for vocabulary review
"""

import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ...config import Settings, get_settings
from ...errors import InvalidStateError, NotFoundError
from ...progression import compute_progress_update
from ...quality import validate_quality
from ...spaced_repetition import SpacedRepetitionSystem
from ...utils import calendar_day, ensure_utc, round_half_up, utc_now
from ..database.database_manager import DatabaseManager
from ..database.models import SESSION_COMPLETED, SESSION_IN_PROGRESS, ReviewSession
from ..locks.user_lock_manager import UserLockManager, get_lock_manager
from .due_cards import DueCardSelector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeOutcome:
    """What a single grading call changed"""

    ease: float
    interval_days: int
    next_review_at: datetime
    is_complete: bool
    reviewed_count: int
    card_count: int
    xp_earned: int
    base_xp: int
    bonus_xp: int
    leveled_up: bool
    new_level: int | None
    new_title: str | None
    current_streak: int
    is_first_review_of_day: bool


class ReviewSessionManager:
    """Runs review sessions: start a batch, grade each card once, finish or abandon

    Every mutating call is a single database transaction. A failed lookup or
    state check raises before anything is committed.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        srs_system: SpacedRepetitionSystem,
        selector: DueCardSelector,
        lock_manager: UserLockManager | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_manager = db_manager
        self.srs_system = srs_system
        self.selector = selector
        self.settings = settings or get_settings()
        self.lock_manager = lock_manager or get_lock_manager(
            lock_timeout_minutes=self.settings.session_lock_timeout_minutes
        )
        self.clock = clock

    def start_session(
        self, learner_id: str, language: str, limit: int | None = None
    ) -> dict[str, Any]:
        """
        Start a session over the learner's due cards

        Returns:
            {"session_id", "session", "items"} or, when nothing is due,
            {"session_id": None, "session": None, "items": []}
        """
        if language not in self.settings.supported_languages_list:
            raise ValueError(f"Unsupported language: {language}")

        if limit is None:
            limit = self.settings.default_cards_per_session
        limit = min(limit, self.settings.max_cards_per_session)

        now = ensure_utc(self.clock())

        with self.lock_manager.hold(learner_id, language, "start_session"):
            with self.db_manager.transaction() as conn:
                cards = self.selector.select(learner_id, language, now, limit, conn=conn)
                if not cards:
                    logger.info(
                        f"No due cards for learner {learner_id} ({language}), "
                        "no session started"
                    )
                    return {"session_id": None, "session": None, "items": []}

                session, _ = self.db_manager.session_repo.create_session(
                    conn, learner_id, language, cards, now
                )
                items = self.db_manager.session_repo.get_items_with_cards(
                    session["id"], conn=conn
                )

        logger.info(
            f"Started review session {session['id']} for learner {learner_id} "
            f"({language}) with {session['card_count']} cards"
        )
        return {"session_id": session["id"], "session": session, "items": items}

    def grade(
        self,
        learner_id: str,
        item_id: int,
        quality: int,
        session_start_time: datetime | None = None,
    ) -> GradeOutcome:
        """Grade one session item, updating card, progress and session together"""
        validate_quality(quality)
        now = ensure_utc(self.clock())
        session_repo = self.db_manager.session_repo

        with self.db_manager.transaction() as conn:
            item = session_repo.get_item(item_id, conn=conn)
            if item is None:
                raise NotFoundError("Session item", item_id)

            session = self._get_owned_session(conn, learner_id, item["session_id"])

            card = self.db_manager.card_repo.get_card_by_id(item["card_id"], conn=conn)
            if card is None or card["learner_id"] != learner_id:
                raise NotFoundError("Card", item["card_id"])

            if session["status"] != SESSION_IN_PROGRESS:
                raise InvalidStateError(
                    f"Session {session['id']} is {session['status']}, cannot grade"
                )
            if item["quality"] is not None:
                raise InvalidStateError(f"Session item {item_id} is already graded")

            result = self.srs_system.calculate_review(
                self.srs_system.state_from_card(card), quality, reviewed_at=now
            )
            self.db_manager.card_repo.apply_review(conn, card["id"], result, now)

            if not session_repo.mark_item_graded(conn, item_id, quality, now):
                raise InvalidStateError(f"Session item {item_id} is already graded")

            today = calendar_day(now, self.settings.timezone)
            progress_repo = self.db_manager.progress_repo
            progress = progress_repo.get_progress(learner_id, conn=conn)
            update = compute_progress_update(progress, quality, today)
            progress_repo.save_progress(conn, learner_id, update, now)
            progress_repo.add_daily_review(
                conn, learner_id, today, update.is_correct, update.award.total_xp
            )

            session = session_repo.record_review(
                conn,
                session["id"],
                result.new_ease,
                now,
                client_started_at=(
                    ensure_utc(session_start_time) if session_start_time else None
                ),
            )
            is_complete = session["status"] == SESSION_COMPLETED
            if is_complete:
                self._credit_minutes(conn, session, now)

        if update.leveled_up:
            logger.info(
                f"Learner {learner_id} reached level {update.level} ({update.title})"
            )
        if is_complete:
            logger.info(
                f"Review session {session['id']} completed: "
                f"{session['reviewed_count']}/{session['card_count']} cards"
            )

        return GradeOutcome(
            ease=result.new_ease,
            interval_days=result.new_interval,
            next_review_at=result.next_review_at,
            is_complete=is_complete,
            reviewed_count=session["reviewed_count"],
            card_count=session["card_count"],
            xp_earned=update.award.total_xp,
            base_xp=update.award.base_xp,
            bonus_xp=update.award.bonus_xp,
            leveled_up=update.leveled_up,
            new_level=update.level if update.leveled_up else None,
            new_title=update.title if update.leveled_up else None,
            current_streak=update.streak.current_streak,
            is_first_review_of_day=update.streak.is_first_review_of_day,
        )

    def abandon(self, learner_id: str, session_id: int) -> bool:
        """
        Abandon an in-progress session

        Returns:
            True if the session moved to abandoned, False if it had already ended
        """
        now = ensure_utc(self.clock())
        with self.db_manager.transaction() as conn:
            session = self._get_owned_session(conn, learner_id, session_id)
            if session["status"] != SESSION_IN_PROGRESS:
                return False
            self.db_manager.session_repo.mark_abandoned(conn, session_id)
            self._credit_minutes(conn, session, now)

        logger.info(
            f"Review session {session_id} abandoned after "
            f"{session['reviewed_count']}/{session['card_count']} cards"
        )
        return True

    def get_session(self, learner_id: str, session_id: int) -> dict[str, Any]:
        """Session with its items and card display data"""
        with self.db_manager.get_connection() as conn:
            session = self._get_owned_session(conn, learner_id, session_id)
            items = self.db_manager.session_repo.get_items_with_cards(
                session_id, conn=conn
            )

        session["average_ease"] = (
            session["ease_sum"] / session["reviewed_count"]
            if session["reviewed_count"]
            else None
        )
        return {"session": session, "items": items}

    def _get_owned_session(
        self, conn: sqlite3.Connection, learner_id: str, session_id: int
    ) -> ReviewSession:
        session = self.db_manager.session_repo.get_session(session_id, conn=conn)
        if session is None or session["learner_id"] != learner_id:
            raise NotFoundError("Session", session_id)
        return session

    def _credit_minutes(
        self, conn: sqlite3.Connection, session: ReviewSession, ended_at: datetime
    ) -> None:
        """Add the session's duration to the daily stats of the day it ended"""
        if session["reviewed_count"] == 0:
            return
        started_at = session["client_started_at"] or session["started_at"]
        minutes = round_half_up((ended_at - started_at).total_seconds() / 60)
        if minutes <= 0:
            return
        self.db_manager.progress_repo.add_minutes(
            conn,
            session["learner_id"],
            calendar_day(ended_at, self.settings.timezone),
            minutes,
        )
