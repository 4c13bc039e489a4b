"""
Spaced Repetition System implementation using a SuperMemo 2 variant
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from .config import get_settings
from .quality import classify
from .utils import round_half_up, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulingState:
    """SRS fields of a card before a review"""

    interval_days: int = 0
    ease: float = 2.5
    reviews: int = 0


@dataclass(frozen=True)
class ReviewResult:
    """Result of a spaced repetition review"""

    new_interval: int
    new_ease: float
    new_reviews: int
    next_review_at: datetime


class SpacedRepetitionSystem:
    """SuperMemo 2 variant: lapses reset to daily review but still count"""

    def __init__(self, default_ease: float | None = None, min_ease: float | None = None):
        settings = get_settings()
        self.default_ease = (
            default_ease if default_ease is not None else settings.default_ease_factor
        )
        self.min_ease = min_ease if min_ease is not None else settings.min_ease_factor

    def initial_state(self) -> SchedulingState:
        """State of a card that has never been reviewed"""
        return SchedulingState(interval_days=0, ease=self.default_ease, reviews=0)

    def state_from_card(self, card: dict) -> SchedulingState:
        """Build a SchedulingState from a card row, defaulting missing fields"""
        interval_days = card.get("interval_days")
        ease = card.get("ease")
        reviews = card.get("reviews")
        return SchedulingState(
            interval_days=interval_days if interval_days is not None else 0,
            ease=ease if ease is not None else self.default_ease,
            reviews=reviews if reviews is not None else 0,
        )

    def calculate_review(
        self,
        state: SchedulingState,
        quality: int,
        reviewed_at: datetime | None = None,
    ) -> ReviewResult:
        """
        Calculate next review for a graded recall

        Args:
            state: Card scheduling state before the review
            quality: Recall quality 0-5, 3 and above means remembered
            reviewed_at: Moment of the review (defaults to now, UTC)

        Returns:
            ReviewResult with the new interval, ease, review count and due time
        """
        if reviewed_at is None:
            reviewed_at = utc_now()

        grade = classify(quality)

        new_ease = self._calculate_new_ease(quality, state.ease)
        new_reviews = state.reviews + 1

        if grade.is_lapse:
            new_interval = 1
        elif new_reviews == 1:
            new_interval = 1
        elif new_reviews == 2:
            new_interval = 6
        else:
            new_interval = round_half_up(state.interval_days * new_ease)

        result = ReviewResult(
            new_interval=new_interval,
            new_ease=new_ease,
            new_reviews=new_reviews,
            next_review_at=reviewed_at + timedelta(days=new_interval),
        )

        logger.debug(
            f"Review quality={quality} ({grade.value}): "
            f"interval {state.interval_days}->{result.new_interval}, "
            f"ease {state.ease}->{result.new_ease}, reviews={result.new_reviews}"
        )

        return result

    def _calculate_new_ease(self, quality: int, current_ease: float) -> float:
        """SM-2 ease update, floored at the minimum ease"""
        miss = 5 - quality
        new_ease = current_ease + (0.1 - miss * (0.08 + miss * 0.02))
        return max(self.min_ease, new_ease)


# Global instance
_srs_system = None


def get_srs_system() -> SpacedRepetitionSystem:
    """Get global SRS system instance"""
    global _srs_system
    if _srs_system is None:
        _srs_system = SpacedRepetitionSystem()
    return _srs_system


def calculate_next_review(
    quality: int,
    interval_days: int = 0,
    ease: float = 2.5,
    reviews: int = 0,
    reviewed_at: datetime | None = None,
) -> ReviewResult:
    """Convenience function to calculate next review"""
    srs = get_srs_system()
    return srs.calculate_review(
        SchedulingState(interval_days=interval_days, ease=ease, reviews=reviews),
        quality,
        reviewed_at=reviewed_at,
    )
