"""
Card repository for vocabulary card operations
"""

import logging
import sqlite3
from datetime import datetime

from ....spaced_repetition import ReviewResult
from ..connection import DatabaseConnection
from ..models import (
    STATUS_IGNORED,
    STATUS_KNOWN,
    STATUS_LEARNING_MAX,
    STATUS_LEARNING_MIN,
    VALID_STATUSES,
    VocabCard,
    is_learning_status,
)

logger = logging.getLogger(__name__)


class CardRepository:
    """Repository for vocabulary card operations"""

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

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
        """Create or update a card's learning status

        A learning status (1-3) puts the card back into the review pool:
        it becomes due immediately with its review count and interval reset.
        """
        if status not in VALID_STATUSES:
            raise ValueError(f"Invalid card status: {status}")

        learning = is_learning_status(status)

        with self.db_connection.transaction() as conn:
            cursor = conn.execute(
                """
                SELECT id FROM vocab_cards
                WHERE learner_id = ? AND language = ? AND term = ?
                """,
                (learner_id, language, term),
            )
            existing = cursor.fetchone()

            if existing:
                card_id = existing["id"]
                if learning:
                    conn.execute(
                        """
                        UPDATE vocab_cards
                        SET status = ?, next_review_at = ?, interval_days = 0,
                            reviews = 0, updated_at = ?
                        WHERE id = ?
                        """,
                        (status, now, now, card_id),
                    )
                else:
                    conn.execute(
                        "UPDATE vocab_cards SET status = ?, updated_at = ? WHERE id = ?",
                        (status, now, card_id),
                    )
                logger.debug(f"Updated card '{term}' ({language}) to status {status}")
            else:
                cursor = conn.execute(
                    """
                    INSERT INTO vocab_cards (
                        learner_id, language, term, display, reading, meaning,
                        status, reviews, interval_days, next_review_at,
                        created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, 0, 0, ?, ?, ?)
                    """,
                    (
                        learner_id,
                        language,
                        term,
                        display or term,
                        reading,
                        meaning,
                        status,
                        now if learning else None,
                        now,
                        now,
                    ),
                )
                card_id = cursor.lastrowid
                logger.info(
                    f"Created card '{term}' ({language}) for learner {learner_id} "
                    f"with status {status}"
                )

            return self.get_card_by_id(card_id, conn=conn)

    def get_card_by_id(
        self, card_id: int, conn: sqlite3.Connection | None = None
    ) -> VocabCard | None:
        """Get card by ID"""
        with self.db_connection.connection(conn) as c:
            cursor = c.execute("SELECT * FROM vocab_cards WHERE id = ?", (card_id,))
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_card(self, learner_id: str, language: str, term: str) -> VocabCard | None:
        """Get a learner's card by term"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM vocab_cards
                WHERE learner_id = ? AND language = ? AND term = ?
                """,
                (learner_id, language, term),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_cards_by_language(self, learner_id: str, language: str) -> list[VocabCard]:
        """Get all of a learner's cards for a language"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM vocab_cards
                WHERE learner_id = ? AND language = ?
                ORDER BY term ASC
                """,
                (learner_id, language),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_due_cards(
        self,
        learner_id: str,
        language: str,
        now: datetime,
        limit: int,
        conn: sqlite3.Connection | None = None,
    ) -> list[VocabCard]:
        """Get cards due at now, longest overdue first"""
        with self.db_connection.connection(conn) as c:
            cursor = c.execute(
                """
                SELECT * FROM vocab_cards
                WHERE learner_id = ? AND language = ?
                  AND next_review_at IS NOT NULL AND next_review_at <= ?
                  AND status != ?
                ORDER BY next_review_at ASC, id ASC
                LIMIT ?
                """,
                (learner_id, language, now, STATUS_IGNORED, limit),
            )
            return [dict(row) for row in cursor.fetchall()]

    def count_due(self, learner_id: str, language: str, now: datetime) -> int:
        """Count cards due at now"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM vocab_cards
                WHERE learner_id = ? AND language = ?
                  AND next_review_at IS NOT NULL AND next_review_at <= ?
                  AND status != ?
                """,
                (learner_id, language, now, STATUS_IGNORED),
            )
            return cursor.fetchone()[0]

    def count_known(self, learner_id: str, language: str) -> int:
        """Count cards marked as known"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM vocab_cards
                WHERE learner_id = ? AND language = ? AND status = ?
                """,
                (learner_id, language, STATUS_KNOWN),
            )
            return cursor.fetchone()[0]

    def count_learning(self, learner_id: str, language: str) -> int:
        """Count cards in one of the learning statuses"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) FROM vocab_cards
                WHERE learner_id = ? AND language = ? AND status BETWEEN ? AND ?
                """,
                (learner_id, language, STATUS_LEARNING_MIN, STATUS_LEARNING_MAX),
            )
            return cursor.fetchone()[0]

    def apply_review(
        self,
        conn: sqlite3.Connection,
        card_id: int,
        result: ReviewResult,
        reviewed_at: datetime,
    ) -> None:
        """Store the scheduler output on a card inside a running transaction"""
        cursor = conn.execute(
            """
            UPDATE vocab_cards
            SET interval_days = ?,
                ease = ?,
                reviews = ?,
                last_reviewed_at = ?,
                next_review_at = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                result.new_interval,
                result.new_ease,
                result.new_reviews,
                reviewed_at,
                result.next_review_at,
                reviewed_at,
                card_id,
            ),
        )
        if cursor.rowcount != 1:
            raise sqlite3.IntegrityError(f"Card {card_id} vanished during review")
