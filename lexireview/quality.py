"""
Recall quality grades shared by the scheduler and the progression ledger
"""

from enum import Enum

from .errors import InvalidQualityError

MIN_QUALITY = 0
MAX_QUALITY = 5


class RecallGrade(str, Enum):
    """Bucket of a 0-5 recall quality"""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @property
    def is_correct(self) -> bool:
        return self in (RecallGrade.GOOD, RecallGrade.EASY)

    @property
    def is_lapse(self) -> bool:
        return not self.is_correct


def validate_quality(quality) -> int:
    """Return quality unchanged if it is an integer 0-5, raise otherwise"""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(f"Quality must be an integer, got {quality!r}")
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidQualityError(
            f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return quality


def classify(quality: int) -> RecallGrade:
    """Map a 0-5 quality to its grade bucket"""
    validate_quality(quality)
    if quality <= 1:
        return RecallGrade.AGAIN
    if quality == 2:
        return RecallGrade.HARD
    if quality <= 4:
        return RecallGrade.GOOD
    return RecallGrade.EASY
