"""
Database models for the vocabulary review engine
"""

from datetime import date, datetime
from typing import TypedDict

STATUS_NEW = 0
STATUS_LEARNING_MIN = 1
STATUS_LEARNING_MAX = 3
STATUS_KNOWN = 4
STATUS_IGNORED = 99

VALID_STATUSES = (STATUS_NEW, 1, 2, 3, STATUS_KNOWN, STATUS_IGNORED)

SESSION_IN_PROGRESS = "in_progress"
SESSION_COMPLETED = "completed"
SESSION_ABANDONED = "abandoned"


def is_learning_status(status: int) -> bool:
    """Statuses 1-3 put a card in the review pool"""
    return STATUS_LEARNING_MIN <= status <= STATUS_LEARNING_MAX


class VocabCard(TypedDict):
    """Vocabulary card model"""
    id: int
    learner_id: str
    language: str
    term: str
    display: str
    reading: str | None
    meaning: str | None
    status: int
    reviews: int
    ease: float
    interval_days: int
    last_reviewed_at: datetime | None
    next_review_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ReviewSession(TypedDict):
    """Review session model"""
    id: int
    learner_id: str
    language: str
    status: str
    card_count: int
    reviewed_count: int
    ease_sum: float
    client_started_at: datetime | None
    started_at: datetime
    completed_at: datetime | None


class ReviewSessionItem(TypedDict):
    """Review session item model"""
    id: int
    session_id: int
    card_id: int
    position: int
    quality: int | None
    reviewed_at: datetime | None


class ProgressRecord(TypedDict):
    """Per-learner progression model"""
    learner_id: str
    total_xp: int
    level: int
    title: str
    current_streak: int
    longest_streak: int
    streak_shields: int
    last_review_date: date | None
    total_reviews: int
    total_correct: int
    created_at: datetime
    updated_at: datetime


class DailyStat(TypedDict):
    """Per-learner, per-day statistics model"""
    stat_date: date
    review_count: int
    correct_count: int
    xp_earned: int
    minutes_spent: int


class LanguageStats(TypedDict):
    """Dashboard card counts for one language"""
    language: str
    language_name: str
    due_count: int
    learning_count: int
    known_count: int
