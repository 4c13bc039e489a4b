"""
Level table mapping cumulative experience to a level and title
"""

from dataclasses import dataclass

from .utils import round_half_up


@dataclass(frozen=True)
class Level:
    level: int
    xp_required: int
    title: str


@dataclass(frozen=True)
class LevelInfo:
    """Level of a learner plus progress towards the next one"""

    level: int
    title: str
    current_xp: int
    xp_for_next_level: int
    xp_progress: int


LEVELS: tuple[Level, ...] = (
    Level(1, 0, "Beginner"),
    Level(2, 100, "Novice"),
    Level(3, 300, "Learner"),
    Level(4, 600, "Student"),
    Level(5, 1000, "Scholar"),
    Level(6, 1500, "Expert"),
    Level(7, 2200, "Master"),
    Level(8, 3000, "Sage"),
    Level(9, 4000, "Virtuoso"),
    Level(10, 5500, "Polyglot"),
    Level(11, 7500, "Linguist"),
    Level(12, 10000, "Wordsmith"),
    Level(13, 13000, "Eloquent"),
    Level(14, 17000, "Grandmaster"),
    Level(15, 22000, "Legend"),
)


def level_from_xp(total_xp: int) -> LevelInfo:
    """Resolve the level reached with total_xp"""
    index = 0
    for i in range(len(LEVELS) - 1, -1, -1):
        if total_xp >= LEVELS[i].xp_required:
            index = i
            break

    current = LEVELS[index]
    upcoming = LEVELS[index + 1] if index + 1 < len(LEVELS) else current

    xp_into_level = total_xp - current.xp_required
    xp_for_next_level = upcoming.xp_required - current.xp_required
    if current.level == upcoming.level:
        xp_progress = 100
    else:
        xp_progress = round_half_up(xp_into_level / xp_for_next_level * 100)

    return LevelInfo(
        level=current.level,
        title=current.title,
        current_xp=xp_into_level,
        xp_for_next_level=xp_for_next_level,
        xp_progress=xp_progress,
    )


def get_level_thresholds() -> list[dict]:
    """Level table as plain dicts for display"""
    return [
        {"level": entry.level, "xp_required": entry.xp_required, "title": entry.title}
        for entry in LEVELS
    ]
