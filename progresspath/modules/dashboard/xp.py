"""
XP level curve.

Level ``n`` costs ``floor(base_xp * n ** exponent)`` XP on top of the previous
levels; level 1 is free.
"""

import math
from typing import List

from progresspath.modules.dashboard.schemas import XPLevel, XPStats

BASE_XP = 100
EXPONENT = 1.5


def calculate_xp_for_level(level: int, base_xp: int = BASE_XP, exponent: float = EXPONENT) -> int:
    if level <= 1:
        return 0
    return math.floor(base_xp * math.pow(level, exponent))


def calculate_level(total_xp: int, base_xp: int = BASE_XP, exponent: float = EXPONENT) -> int:
    if total_xp <= 0:
        return 1
    level = 1
    xp_required = 0
    while xp_required <= total_xp:
        level += 1
        xp_required += calculate_xp_for_level(level, base_xp, exponent)
    return level - 1


def calculate_xp_progress(current_xp: int, current_level_xp: int, next_level_xp: int) -> float:
    """Percentage (0-100) of the way from current_level_xp to next_level_xp"""
    if next_level_xp <= current_level_xp:
        return 100.0
    xp_into_level = current_xp - current_level_xp
    xp_needed = next_level_xp - current_level_xp
    return min(100.0, max(0.0, xp_into_level / xp_needed * 100))


def _cumulative_xp(level: int, base_xp: int, exponent: float) -> int:
    return sum(calculate_xp_for_level(i, base_xp, exponent) for i in range(1, level + 1))


def get_xp_stats(total_xp: int, base_xp: int = BASE_XP, exponent: float = EXPONENT) -> XPStats:
    level = calculate_level(total_xp, base_xp, exponent)
    current_level_xp = _cumulative_xp(level, base_xp, exponent)
    next_level_xp = current_level_xp + calculate_xp_for_level(level + 1, base_xp, exponent)
    return XPStats(
        totalXP=total_xp,
        currentLevelXP=current_level_xp,
        nextLevelXP=next_level_xp,
        level=level,
        progress=calculate_xp_progress(total_xp, current_level_xp, next_level_xp),
    )


def get_xp_to_next_level(total_xp: int, base_xp: int = BASE_XP, exponent: float = EXPONENT) -> int:
    stats = get_xp_stats(total_xp, base_xp, exponent)
    return stats.nextLevelXP - total_xp


def get_level_title(level: int) -> str:
    if level < 5:
        return "Novice"
    if level < 10:
        return "Apprentice"
    if level < 20:
        return "Adept"
    if level < 35:
        return "Expert"
    if level < 50:
        return "Master"
    if level < 75:
        return "Grandmaster"
    if level < 100:
        return "Legend"
    return "Mythic"


def generate_level_progression(max_level: int = 100, base_xp: int = BASE_XP, exponent: float = EXPONENT) -> List[XPLevel]:
    return [
        XPLevel(level=level, requiredXP=calculate_xp_for_level(level, base_xp, exponent), title=get_level_title(level))
        for level in range(1, max_level + 1)
    ]


def calculate_xp_rate(xp_gained: int, days: int) -> int:
    """Average XP per day, rounded"""
    if days <= 0:
        return 0
    return math.floor(xp_gained / days + 0.5)


def estimate_days_to_level(
    current_xp: int,
    target_level: int,
    daily_xp_rate: int,
    base_xp: int = BASE_XP,
    exponent: float = EXPONENT,
) -> float:
    if daily_xp_rate <= 0:
        return math.inf
    xp_needed = _cumulative_xp(target_level, base_xp, exponent) - current_xp
    if xp_needed <= 0:
        return 0
    return math.ceil(xp_needed / daily_xp_rate)


def simple_level(total_xp: int) -> int:
    """Coarse level used for per-language summaries: floor(sqrt(xp / 100)) + 1"""
    return math.floor(math.sqrt(max(total_xp, 0) / 100)) + 1
