"""
Session repository for review sessions and their items
"""

import logging
import sqlite3
from datetime import datetime
from typing import Any

from ..connection import DatabaseConnection
from ..models import (
    SESSION_ABANDONED,
    SESSION_COMPLETED,
    SESSION_IN_PROGRESS,
    ReviewSession,
    ReviewSessionItem,
    VocabCard,
)

logger = logging.getLogger(__name__)


class SessionRepository:
    """Repository for review session operations

    Write methods take the connection of a running transaction so the
    session manager can combine them with card and progress writes.
    """

    def __init__(self, db_connection: DatabaseConnection):
        self.db_connection = db_connection

    def create_session(
        self,
        conn: sqlite3.Connection,
        learner_id: str,
        language: str,
        cards: list[VocabCard],
        started_at: datetime,
    ) -> tuple[ReviewSession, list[ReviewSessionItem]]:
        """Create a session and one item per card"""
        if not cards:
            raise ValueError("A review session needs at least one card")

        cursor = conn.execute(
            """
            INSERT INTO review_sessions (
                learner_id, language, status, card_count,
                reviewed_count, ease_sum, started_at
            )
            VALUES (?, ?, ?, ?, 0, 0, ?)
            """,
            (learner_id, language, SESSION_IN_PROGRESS, len(cards), started_at),
        )
        session_id = cursor.lastrowid

        conn.executemany(
            """
            INSERT INTO review_session_items (session_id, card_id, position)
            VALUES (?, ?, ?)
            """,
            [(session_id, card["id"], position) for position, card in enumerate(cards)],
        )

        return (
            self.get_session(session_id, conn=conn),
            self.get_items(session_id, conn=conn),
        )

    def get_session(
        self, session_id: int, conn: sqlite3.Connection | None = None
    ) -> ReviewSession | None:
        """Get session by ID"""
        with self.db_connection.connection(conn) as c:
            cursor = c.execute(
                "SELECT * FROM review_sessions WHERE id = ?", (session_id,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_item(
        self, item_id: int, conn: sqlite3.Connection | None = None
    ) -> ReviewSessionItem | None:
        """Get session item by ID"""
        with self.db_connection.connection(conn) as c:
            cursor = c.execute(
                "SELECT * FROM review_session_items WHERE id = ?", (item_id,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def get_items(
        self, session_id: int, conn: sqlite3.Connection | None = None
    ) -> list[ReviewSessionItem]:
        """Get a session's items in batch order"""
        with self.db_connection.connection(conn) as c:
            cursor = c.execute(
                """
                SELECT * FROM review_session_items
                WHERE session_id = ?
                ORDER BY position ASC
                """,
                (session_id,),
            )
            return [dict(row) for row in cursor.fetchall()]

    def get_items_with_cards(
        self, session_id: int, conn: sqlite3.Connection | None = None
    ) -> list[dict[str, Any]]:
        """Get a session's items paired with the display data of their cards"""
        with self.db_connection.connection(conn) as c:
            cursor = c.execute(
                """
                SELECT i.id, i.session_id, i.card_id, i.position, i.quality,
                       i.reviewed_at, v.term, v.display, v.reading, v.meaning,
                       v.status, v.language
                FROM review_session_items i
                JOIN vocab_cards v ON v.id = i.card_id
                WHERE i.session_id = ?
                ORDER BY i.position ASC
                """,
                (session_id,),
            )
            items = []
            for row in cursor.fetchall():
                row = dict(row)
                items.append(
                    {
                        "id": row["id"],
                        "session_id": row["session_id"],
                        "card_id": row["card_id"],
                        "position": row["position"],
                        "quality": row["quality"],
                        "reviewed_at": row["reviewed_at"],
                        "card": {
                            "id": row["card_id"],
                            "language": row["language"],
                            "term": row["term"],
                            "display": row["display"],
                            "reading": row["reading"],
                            "meaning": row["meaning"],
                            "status": row["status"],
                        },
                    }
                )
            return items

    def get_active_session(
        self, learner_id: str, language: str
    ) -> ReviewSession | None:
        """Most recent in-progress session of a learner for a language"""
        with self.db_connection.get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM review_sessions
                WHERE learner_id = ? AND language = ? AND status = ?
                ORDER BY started_at DESC, id DESC
                LIMIT 1
                """,
                (learner_id, language, SESSION_IN_PROGRESS),
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def mark_item_graded(
        self,
        conn: sqlite3.Connection,
        item_id: int,
        quality: int,
        reviewed_at: datetime,
    ) -> bool:
        """Set quality on an ungraded item; False if it was already graded"""
        cursor = conn.execute(
            """
            UPDATE review_session_items
            SET quality = ?, reviewed_at = ?
            WHERE id = ? AND quality IS NULL
            """,
            (quality, reviewed_at, item_id),
        )
        return cursor.rowcount == 1

    def record_review(
        self,
        conn: sqlite3.Connection,
        session_id: int,
        new_ease: float,
        reviewed_at: datetime,
        client_started_at: datetime | None = None,
    ) -> ReviewSession:
        """Bump the session aggregate and complete it when every card is graded"""
        conn.execute(
            """
            UPDATE review_sessions
            SET reviewed_count = reviewed_count + 1,
                ease_sum = ease_sum + ?,
                client_started_at = COALESCE(?, client_started_at)
            WHERE id = ? AND status = ?
            """,
            (new_ease, client_started_at, session_id, SESSION_IN_PROGRESS),
        )
        conn.execute(
            """
            UPDATE review_sessions
            SET status = ?, completed_at = ?
            WHERE id = ? AND status = ? AND reviewed_count = card_count
            """,
            (SESSION_COMPLETED, reviewed_at, session_id, SESSION_IN_PROGRESS),
        )
        return self.get_session(session_id, conn=conn)

    def mark_abandoned(self, conn: sqlite3.Connection, session_id: int) -> bool:
        """Move an in-progress session to abandoned; False if it was not in progress"""
        cursor = conn.execute(
            """
            UPDATE review_sessions
            SET status = ?
            WHERE id = ? AND status = ?
            """,
            (SESSION_ABANDONED, session_id, SESSION_IN_PROGRESS),
        )
        return cursor.rowcount == 1
