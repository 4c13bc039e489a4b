"""
Progress repository for learner progression and daily statistics
"""

import logging
import sqlite3
from datetime import date, datetime
from typing import Any

from ....progression import ProgressUpdate
from ..connection import DatabaseConnection
from ..models import DailyStat, ProgressRecord

logger = logging.getLogger(__name__)

EMPTY_DAY = {"review_count": 0, "correct_count": 0, "xp_earned": 0, "minutes_spent": 0}


class ProgressRepository:
    """Repository for progress records and daily statistics"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def get_progress(
        self, learner_id: str, conn: sqlite3.Connection | None = None
    ) -> ProgressRecord | None:
        """Get a learner's progress record"""
        with self.db_connection.connection(conn) as c:
            cursor = c.execute(
                "SELECT * FROM user_progress WHERE learner_id = ?", (learner_id,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def save_progress(
        self,
        conn: sqlite3.Connection,
        learner_id: str,
        update: ProgressUpdate,
        now: datetime,
    ) -> None:
        """Insert or overwrite a learner's progress record inside a transaction"""
        streak = update.streak
        conn.execute(
            """
            INSERT INTO user_progress (
                learner_id, total_xp, level, title, current_streak,
                longest_streak, streak_shields, last_review_date,
                total_reviews, total_correct, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(learner_id) DO UPDATE SET
                total_xp = excluded.total_xp,
                level = excluded.level,
                title = excluded.title,
                current_streak = excluded.current_streak,
                longest_streak = excluded.longest_streak,
                streak_shields = excluded.streak_shields,
                last_review_date = excluded.last_review_date,
                total_reviews = excluded.total_reviews,
                total_correct = excluded.total_correct,
                updated_at = excluded.updated_at
            """,
            (
                learner_id,
                update.total_xp,
                update.level,
                update.title,
                streak.current_streak,
                streak.longest_streak,
                streak.streak_shields,
                update.review_date,
                update.total_reviews,
                update.total_correct,
                now,
                now,
            ),
        )

    def add_daily_review(
        self,
        conn: sqlite3.Connection,
        learner_id: str,
        day: date,
        is_correct: bool,
        xp_earned: int,
    ) -> None:
        """Accumulate one graded review into the learner's bucket for day"""
        conn.execute(
            """
            INSERT INTO daily_stats (
                learner_id, stat_date, review_count, correct_count, xp_earned
            )
            VALUES (?, ?, 1, ?, ?)
            ON CONFLICT(learner_id, stat_date) DO UPDATE SET
                review_count = review_count + 1,
                correct_count = correct_count + excluded.correct_count,
                xp_earned = xp_earned + excluded.xp_earned
            """,
            (learner_id, day, 1 if is_correct else 0, xp_earned),
        )

    def add_minutes(
        self, conn: sqlite3.Connection, learner_id: str, day: date, minutes: int
    ) -> None:
        """Accumulate time spent into the learner's bucket for day"""
        conn.execute(
            """
            INSERT INTO daily_stats (learner_id, stat_date, minutes_spent)
            VALUES (?, ?, ?)
            ON CONFLICT(learner_id, stat_date) DO UPDATE SET
                minutes_spent = minutes_spent + excluded.minutes_spent
            """,
            (learner_id, day, minutes),
        )

    def get_daily_stats(self, learner_id: str, days: int) -> list[DailyStat]:
        """Most recent days of statistics, oldest first"""
        # SQLite reads a negative LIMIT as no limit
        if days <= 0:
            return []
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT stat_date, review_count, correct_count, xp_earned, minutes_spent
                FROM daily_stats
                WHERE learner_id = ?
                ORDER BY stat_date DESC
                LIMIT ?
                """,
                (learner_id, days),
            )
            rows = [dict(row) for row in cursor.fetchall()]
        rows.reverse()
        return rows

    def get_day_stats(self, learner_id: str, day: date) -> dict[str, Any]:
        """Statistics for one day, zeros when nothing was recorded"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT review_count, correct_count, xp_earned, minutes_spent
                FROM daily_stats
                WHERE learner_id = ? AND stat_date = ?
                """,
                (learner_id, day),
            )
            row = cursor.fetchone()
            return dict(row) if row else dict(EMPTY_DAY)

    def get_recent_totals(self, learner_id: str, days: int = 7) -> dict[str, int]:
        """Sum of the most recent stored days"""
        totals = {"review_count": 0, "correct_count": 0, "xp_earned": 0}
        for day in self.get_daily_stats(learner_id, days):
            totals["review_count"] += day["review_count"]
            totals["correct_count"] += day["correct_count"]
            totals["xp_earned"] += day["xp_earned"]
        return totals
