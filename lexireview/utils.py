"""
Utility functions for the vocabulary review engine
"""

import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

LANGUAGE_LABELS = {
    "de": "German",
    "fr": "French",
    "ja": "Japanese",
}


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def calendar_day(moment: datetime, tz_name: str = "UTC") -> date:
    """Calendar date of moment in the given IANA timezone"""
    return ensure_utc(moment).astimezone(ZoneInfo(tz_name)).date()


def previous_day(day: date) -> date:
    """The calendar day before day"""
    return day - timedelta(days=1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives"""
    return int(math.floor(value + 0.5))


def calculate_accuracy(correct: int, total: int) -> int:
    """Accuracy as a whole percentage"""
    if total == 0:
        return 0
    return round_half_up(correct / total * 100)


def get_language_label(language: str) -> str:
    """Human readable name for a language code"""
    return LANGUAGE_LABELS.get(language, language)


def format_progress_stats(progress: dict[str, Any]) -> str:
    """Format learner progress for a plain text dashboard"""
    result = "Progress:\n"
    result += f"  Level {progress.get('level', 1)} - {progress.get('title', '')}\n"
    result += (
        f"  XP: {progress.get('total_xp', 0)} "
        f"({progress.get('xp_progress', 0)}% to next level)\n"
    )
    result += (
        f"  Streak: {progress.get('current_streak', 0)} days "
        f"(longest {progress.get('longest_streak', 0)}, "
        f"shields {progress.get('streak_shields', 0)})\n"
    )
    result += (
        f"  Reviews: {progress.get('total_reviews', 0)} "
        f"({progress.get('total_correct', 0)} correct)"
    )
    return result


def format_language_stats(stats: dict[str, Any]) -> str:
    """Format per-language card counts for a plain text dashboard"""
    return (
        f"{stats.get('language_name', stats.get('language', ''))}: "
        f"{stats.get('due_count', 0)} due, "
        f"{stats.get('learning_count', 0)} learning, "
        f"{stats.get('known_count', 0)} known"
    )
