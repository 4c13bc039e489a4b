"""
Database connection manager for the vocabulary review engine
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path

from ...config import get_database_path

logger = logging.getLogger(__name__)


def adapt_date(val: date) -> str:
    return val.isoformat()


def adapt_datetime(val: datetime) -> str:
    # Fixed-width UTC text keeps lexical order equal to chronological order
    if val.tzinfo is not None:
        val = val.astimezone(timezone.utc).replace(tzinfo=None)
    return val.isoformat(sep=" ", timespec="microseconds")


def convert_date(val: bytes) -> date:
    try:
        return date.fromisoformat(val.decode())
    except ValueError:
        date_str = val.decode()
        for fmt in ["%Y-%m-%d", "%Y-%m-%d %H:%M:%S"]:
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue
        raise ValueError(f"Invalid date format: {date_str}") from None


def convert_datetime(val: bytes) -> datetime:
    datetime_str = val.decode()
    try:
        parsed = datetime.fromisoformat(datetime_str)
    except ValueError:
        for fmt in ["%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M:%S.%f", "%Y-%m-%d"]:
            try:
                parsed = datetime.strptime(datetime_str, fmt)
                break
            except ValueError:
                continue
        else:
            raise ValueError(f"Invalid datetime format: {datetime_str}") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


sqlite3.register_adapter(date, adapt_date)
sqlite3.register_adapter(datetime, adapt_datetime)
sqlite3.register_converter("date", convert_date)
sqlite3.register_converter("datetime", convert_datetime)
sqlite3.register_converter("timestamp", convert_datetime)


class DatabaseConnection:
    """Manages SQLite database connections and settings"""

    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or get_database_path()
        self._ensure_database_directory()
        self._init_connection_settings()

    def _ensure_database_directory(self) -> None:
        """Ensure the database directory exists"""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _init_connection_settings(self) -> None:
        """Initialize database connection settings"""
        with self.get_connection() as conn:
            # WAL lets dashboard reads run while a grade is being written
            conn.execute("PRAGMA journal_mode=WAL")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper cleanup"""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, detect_types=sqlite3.PARSE_DECLTYPES)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys=ON")
            conn.execute("PRAGMA busy_timeout=30000")
            yield conn
        except Exception as e:
            if conn:
                conn.rollback()
            if isinstance(e, sqlite3.Error):
                logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    @contextmanager
    def connection(self, conn: sqlite3.Connection | None = None):
        """Reuse conn when the caller is already inside a transaction"""
        if conn is not None:
            yield conn
            return
        with self.get_connection() as new_conn:
            yield new_conn

    @contextmanager
    def transaction(self):
        """
        Run a unit of work atomically

        Takes the write lock up front so a read-modify-write cannot interleave
        with another writer. Commits on success, rolls back on any exception.
        """
        with self.get_connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.commit()

    def init_database(self) -> None:
        """Initialize database tables"""
        with self.get_connection() as conn:
            self._create_tables(conn)
            self._create_indexes(conn)
            conn.commit()

    def _create_tables(self, conn: sqlite3.Connection) -> None:
        """Create database tables"""
        tables = [
            """
            CREATE TABLE IF NOT EXISTS vocab_cards (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                learner_id TEXT NOT NULL,
                language TEXT NOT NULL,
                term TEXT NOT NULL,
                display TEXT NOT NULL,
                reading TEXT,
                meaning TEXT,
                status INTEGER NOT NULL DEFAULT 0,
                reviews INTEGER NOT NULL DEFAULT 0,
                ease REAL NOT NULL DEFAULT 2.5,
                interval_days INTEGER NOT NULL DEFAULT 0,
                last_reviewed_at TIMESTAMP,
                next_review_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                UNIQUE(learner_id, language, term)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS review_sessions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                learner_id TEXT NOT NULL,
                language TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'in_progress'
                    CHECK (status IN ('in_progress', 'completed', 'abandoned')),
                card_count INTEGER NOT NULL,
                reviewed_count INTEGER NOT NULL DEFAULT 0,
                ease_sum REAL NOT NULL DEFAULT 0,
                client_started_at TIMESTAMP,
                started_at TIMESTAMP NOT NULL,
                completed_at TIMESTAMP,
                CHECK (reviewed_count >= 0 AND reviewed_count <= card_count)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS review_session_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id INTEGER NOT NULL,
                card_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                quality INTEGER CHECK (quality IS NULL OR (quality >= 0 AND quality <= 5)),
                reviewed_at TIMESTAMP,
                FOREIGN KEY (session_id) REFERENCES review_sessions(id) ON DELETE CASCADE,
                FOREIGN KEY (card_id) REFERENCES vocab_cards(id) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS user_progress (
                learner_id TEXT PRIMARY KEY,
                total_xp INTEGER NOT NULL DEFAULT 0,
                level INTEGER NOT NULL DEFAULT 1,
                title TEXT NOT NULL DEFAULT 'Beginner',
                current_streak INTEGER NOT NULL DEFAULT 0,
                longest_streak INTEGER NOT NULL DEFAULT 0,
                streak_shields INTEGER NOT NULL DEFAULT 0,
                last_review_date DATE,
                total_reviews INTEGER NOT NULL DEFAULT 0,
                total_correct INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS daily_stats (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                learner_id TEXT NOT NULL,
                stat_date DATE NOT NULL,
                review_count INTEGER NOT NULL DEFAULT 0,
                correct_count INTEGER NOT NULL DEFAULT 0,
                xp_earned INTEGER NOT NULL DEFAULT 0,
                minutes_spent INTEGER NOT NULL DEFAULT 0,
                UNIQUE(learner_id, stat_date)
            )
            """,
        ]

        for table_sql in tables:
            conn.execute(table_sql)

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes for performance"""
        indexes = [
            (
                "CREATE INDEX IF NOT EXISTS idx_vocab_cards_status "
                "ON vocab_cards(learner_id, language, status)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_vocab_cards_next_review "
                "ON vocab_cards(learner_id, language, next_review_at)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_review_sessions_learner "
                "ON review_sessions(learner_id, language)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_review_sessions_status "
                "ON review_sessions(learner_id, status)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_review_session_items_session "
                "ON review_session_items(session_id)"
            ),
            (
                "CREATE INDEX IF NOT EXISTS idx_review_session_items_card "
                "ON review_session_items(card_id)"
            ),
        ]

        for index_sql in indexes:
            try:
                conn.execute(index_sql)
            except sqlite3.OperationalError as e:
                logger.warning(f"Failed to create index: {index_sql}, error: {e}")
