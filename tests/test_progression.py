"""
Tests for XP awards, streak policy and progress updates
"""

from datetime import date

import pytest

from lexireview.progression import (
    DAILY_BONUS_XP,
    calculate_xp_for_review,
    compute_progress_update,
    update_streak,
)
from lexireview.quality import RecallGrade, classify

TODAY = date(2026, 3, 10)
YESTERDAY = date(2026, 3, 9)


def make_progress(**overrides):
    progress = {
        "total_xp": 0,
        "current_streak": 0,
        "longest_streak": 0,
        "streak_shields": 0,
        "last_review_date": None,
        "total_reviews": 0,
        "total_correct": 0,
    }
    progress.update(overrides)
    return progress


class TestQualityBuckets:
    """Test the shared quality bucketing"""

    @pytest.mark.parametrize(
        "quality,grade",
        [
            (0, RecallGrade.AGAIN),
            (1, RecallGrade.AGAIN),
            (2, RecallGrade.HARD),
            (3, RecallGrade.GOOD),
            (4, RecallGrade.GOOD),
            (5, RecallGrade.EASY),
        ],
    )
    def test_classify(self, quality, grade):
        assert classify(quality) == grade

    def test_correct_means_remembered(self):
        """Qualities 3 and above count as correct, the rest are lapses"""
        assert [classify(q).is_correct for q in range(6)] == [
            False, False, False, True, True, True
        ]
        assert classify(2).is_lapse


class TestXpAward:
    """Test XP calculation for a single review"""

    @pytest.mark.parametrize("quality,base", [(0, 1), (1, 1), (2, 5), (3, 10), (4, 10), (5, 15)])
    def test_base_xp(self, quality, base):
        award = calculate_xp_for_review(quality, current_streak=0, is_first_review_of_day=False)
        assert award.base_xp == base
        assert award.bonus_xp == 0
        assert award.total_xp == base

    def test_daily_bonus(self):
        """First review of the day earns a flat bonus"""
        award = calculate_xp_for_review(4, current_streak=1, is_first_review_of_day=True)
        assert award.bonus_xp == DAILY_BONUS_XP
        assert award.total_xp == 35

    @pytest.mark.parametrize("quality,streak_bonus", [(0, 0), (2, 1), (3, 2), (5, 3)])
    def test_streak_bonus(self, quality, streak_bonus):
        """A streak of 7 or more adds 20% of the base XP, rounded"""
        award = calculate_xp_for_review(quality, current_streak=7, is_first_review_of_day=False)
        assert award.bonus_xp == streak_bonus

    def test_streak_bonus_below_threshold(self):
        award = calculate_xp_for_review(5, current_streak=6, is_first_review_of_day=False)
        assert award.bonus_xp == 0

    def test_both_bonuses(self):
        award = calculate_xp_for_review(5, current_streak=12, is_first_review_of_day=True)
        assert award.total_xp == 15 + 25 + 3


class TestStreakUpdate:
    """Test day streak and shield policy"""

    def test_no_record_starts_at_one(self):
        streak = update_streak(None, TODAY)
        assert streak.is_first_review_of_day is True
        assert streak.current_streak == 1
        assert streak.longest_streak == 1
        assert streak.streak_shields == 0

    def test_same_day_changes_nothing(self):
        progress = make_progress(
            current_streak=4, longest_streak=9, streak_shields=1, last_review_date=TODAY
        )
        streak = update_streak(progress, TODAY)
        assert streak.is_first_review_of_day is False
        assert streak.current_streak == 4
        assert streak.longest_streak == 9
        assert streak.streak_shields == 1

    def test_consecutive_day_increments(self):
        progress = make_progress(current_streak=4, longest_streak=4, last_review_date=YESTERDAY)
        streak = update_streak(progress, TODAY)
        assert streak.is_first_review_of_day is True
        assert streak.current_streak == 5
        assert streak.longest_streak == 5

    def test_gap_without_shield_resets(self):
        progress = make_progress(
            current_streak=12, longest_streak=12, last_review_date=date(2026, 3, 5)
        )
        streak = update_streak(progress, TODAY)
        assert streak.current_streak == 1
        assert streak.longest_streak == 12
        assert streak.shield_used is False

    def test_gap_with_shield_keeps_streak(self):
        """A shield absorbs the gap and exactly one is spent"""
        progress = make_progress(
            current_streak=12, longest_streak=12, streak_shields=2,
            last_review_date=date(2026, 3, 5),
        )
        streak = update_streak(progress, TODAY)
        assert streak.current_streak == 12
        assert streak.streak_shields == 1
        assert streak.shield_used is True

    def test_shield_awarded_at_thirty(self):
        progress = make_progress(
            current_streak=29, longest_streak=29, streak_shields=0, last_review_date=YESTERDAY
        )
        streak = update_streak(progress, TODAY)
        assert streak.current_streak == 30
        assert streak.streak_shields == 1
        assert streak.shield_awarded is True

    def test_shield_awarded_at_sixty(self):
        progress = make_progress(
            current_streak=59, longest_streak=59, streak_shields=1, last_review_date=YESTERDAY
        )
        streak = update_streak(progress, TODAY)
        assert streak.current_streak == 60
        assert streak.streak_shields == 2

    def test_shield_kept_streak_at_milestone_earns_nothing(self):
        """Covering a gap at a 30-day streak spends the shield without a refund"""
        progress = make_progress(
            current_streak=30, longest_streak=30, streak_shields=1,
            last_review_date=date(2026, 3, 5),
        )
        streak = update_streak(progress, TODAY)
        assert streak.current_streak == 30
        assert streak.streak_shields == 0
        assert streak.shield_used is True
        assert streak.shield_awarded is False

    def test_repeated_gaps_drain_shields(self):
        """Each gap at a milestone streak costs exactly one shield"""
        progress = make_progress(
            current_streak=60, longest_streak=60, streak_shields=2,
            last_review_date=date(2026, 3, 1),
        )
        first = update_streak(progress, date(2026, 3, 5))
        progress.update(
            current_streak=first.current_streak,
            streak_shields=first.streak_shields,
            last_review_date=date(2026, 3, 5),
        )
        second = update_streak(progress, TODAY)

        assert first.streak_shields == 1
        assert second.streak_shields == 0
        assert second.current_streak == 60

    def test_no_shield_off_milestone(self):
        progress = make_progress(current_streak=30, longest_streak=30, last_review_date=YESTERDAY)
        streak = update_streak(progress, TODAY)
        assert streak.current_streak == 31
        assert streak.shield_awarded is False
        assert streak.streak_shields == 0


class TestProgressUpdate:
    """Test the combined progress update for one graded review"""

    def test_first_review_of_new_learner(self):
        update = compute_progress_update(None, 4, TODAY)

        assert update.total_xp == 35
        assert update.previous_total_xp == 0
        assert update.streak.current_streak == 1
        assert update.total_reviews == 1
        assert update.total_correct == 1
        assert update.is_correct is True
        assert update.level == 1
        assert update.title == "Beginner"
        assert update.leveled_up is False
        assert update.review_date == TODAY

    def test_lapse_counts_review_not_correct(self):
        progress = make_progress(total_xp=50, total_reviews=5, total_correct=4, last_review_date=TODAY)
        update = compute_progress_update(progress, 1, TODAY)

        assert update.total_xp == 51
        assert update.total_reviews == 6
        assert update.total_correct == 4
        assert update.is_correct is False

    def test_level_up(self):
        progress = make_progress(total_xp=95, current_streak=1, last_review_date=TODAY)
        update = compute_progress_update(progress, 4, TODAY)

        assert update.total_xp == 105
        assert update.leveled_up is True
        assert update.level == 2
        assert update.title == "Novice"

    def test_streak_bonus_applies_after_increment(self):
        """The streak reached today decides the streak bonus"""
        progress = make_progress(
            total_xp=2000, current_streak=6, longest_streak=6, last_review_date=YESTERDAY
        )
        update = compute_progress_update(progress, 5, TODAY)

        assert update.streak.current_streak == 7
        assert update.award.bonus_xp == 25 + 3
        assert update.total_xp == 2043

    def test_total_xp_never_decreases(self):
        progress = make_progress(total_xp=400, last_review_date=TODAY)
        for quality in range(6):
            update = compute_progress_update(progress, quality, TODAY)
            assert update.total_xp > progress["total_xp"]
