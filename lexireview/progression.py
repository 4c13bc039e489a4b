"""
Progression ledger: experience, streaks, shields and levels earned by grading
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from .levels import level_from_xp
from .quality import RecallGrade, classify
from .utils import previous_day, round_half_up

logger = logging.getLogger(__name__)

# XP rewards
BASE_XP = {
    RecallGrade.AGAIN: 1,
    RecallGrade.HARD: 5,
    RecallGrade.GOOD: 10,
    RecallGrade.EASY: 15,
}
DAILY_BONUS_XP = 25
STREAK_BONUS_MIN_DAYS = 7
STREAK_BONUS_RATE = 0.2
SHIELD_MILESTONE_DAYS = 30


@dataclass(frozen=True)
class XpAward:
    base_xp: int
    bonus_xp: int
    total_xp: int


@dataclass(frozen=True)
class StreakUpdate:
    """Streak state after the first (or a later) review on a given day"""

    is_first_review_of_day: bool
    current_streak: int
    longest_streak: int
    streak_shields: int
    shield_used: bool = False
    shield_awarded: bool = False


@dataclass(frozen=True)
class ProgressUpdate:
    """Everything one graded review changes in a learner's progress record"""

    award: XpAward
    streak: StreakUpdate
    is_correct: bool
    previous_total_xp: int
    total_xp: int
    level: int
    title: str
    leveled_up: bool
    total_reviews: int
    total_correct: int
    review_date: date


def calculate_xp_for_review(
    quality: int, current_streak: int, is_first_review_of_day: bool
) -> XpAward:
    """XP earned for one graded review"""
    base_xp = BASE_XP[classify(quality)]

    bonus_xp = 0
    if is_first_review_of_day:
        bonus_xp += DAILY_BONUS_XP
    if current_streak >= STREAK_BONUS_MIN_DAYS:
        bonus_xp += round_half_up(base_xp * STREAK_BONUS_RATE)

    return XpAward(base_xp=base_xp, bonus_xp=bonus_xp, total_xp=base_xp + bonus_xp)


def update_streak(progress: dict[str, Any] | None, today: date) -> StreakUpdate:
    """
    Apply the day-streak policy for a review made on today

    A review on the day after last_review_date extends the streak. A longer
    gap resets it to 1 unless a shield is available, in which case one shield
    is spent and the streak is kept. A first review of a day that moves the
    streak onto a positive multiple of 30 earns a shield.
    """
    if progress is None:
        return StreakUpdate(
            is_first_review_of_day=True,
            current_streak=1,
            longest_streak=1,
            streak_shields=0,
        )

    last_review_date = progress.get("last_review_date")
    current_streak = progress.get("current_streak") or 0
    longest_streak = progress.get("longest_streak") or 0
    shields = progress.get("streak_shields") or 0

    if last_review_date == today:
        return StreakUpdate(
            is_first_review_of_day=False,
            current_streak=current_streak,
            longest_streak=longest_streak,
            streak_shields=shields,
        )

    shield_used = False
    if last_review_date == previous_day(today):
        current_streak += 1
    elif shields > 0:
        shields -= 1
        shield_used = True
    else:
        current_streak = 1

    # Only a streak that moved today can land on a milestone
    shield_awarded = (
        not shield_used
        and current_streak > 0
        and current_streak % SHIELD_MILESTONE_DAYS == 0
    )
    if shield_awarded:
        shields += 1

    return StreakUpdate(
        is_first_review_of_day=True,
        current_streak=current_streak,
        longest_streak=max(longest_streak, current_streak),
        streak_shields=shields,
        shield_used=shield_used,
        shield_awarded=shield_awarded,
    )


def compute_progress_update(
    progress: dict[str, Any] | None, quality: int, today: date
) -> ProgressUpdate:
    """Compute the new progress record for a review graded on today"""
    streak = update_streak(progress, today)
    award = calculate_xp_for_review(
        quality, streak.current_streak, streak.is_first_review_of_day
    )
    is_correct = classify(quality).is_correct

    previous_total_xp = progress["total_xp"] if progress else 0
    total_xp = previous_total_xp + award.total_xp
    before = level_from_xp(previous_total_xp)
    after = level_from_xp(total_xp)

    if streak.shield_used:
        logger.info(f"Streak shield used, streak kept at {streak.current_streak}")
    if streak.shield_awarded:
        logger.info(f"Streak shield awarded at {streak.current_streak} days")

    return ProgressUpdate(
        award=award,
        streak=streak,
        is_correct=is_correct,
        previous_total_xp=previous_total_xp,
        total_xp=total_xp,
        level=after.level,
        title=after.title,
        leveled_up=after.level > before.level,
        total_reviews=(progress["total_reviews"] if progress else 0) + 1,
        total_correct=(progress["total_correct"] if progress else 0)
        + (1 if is_correct else 0),
        review_date=today,
    )
