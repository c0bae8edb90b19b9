"""
Pure roll-ups over ``duolingo_activity`` rows.

Every function takes plain row dicts (as returned by the Supabase client) and
never touches the database, so the service layer decides what to fetch and
these decide what it means.
"""

import math
from collections import OrderedDict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from progresspath.core.dates import epoch_ms, parse_day, utc_today
from progresspath.modules.dashboard.schemas import (
    Activity,
    ChartDataPoint,
    CompletionData,
    HeatmapPoint,
    HeatmapSummary,
    LanguageStats,
    StreakData,
    TimeStats,
    VirtualLevelData,
)
from progresspath.modules.dashboard.xp import simple_level

DEFAULT_STREAK_GOAL = 30
ACTIVE_STREAK_GOAL = 50

# Heatmap intensity buckets: xp below each bound maps to its index + 1
_INTENSITY_BOUNDS = (20, 50, 100)

_ACTIVITY_TYPES = {"lesson", "practice", "review", "achievement"}


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _round(value: float) -> int:
    return math.floor(value + 0.5)


def row_xp(row: Dict[str, Any]) -> int:
    return _int(row.get("xp_gained", row.get("xp")))


def row_minutes(row: Dict[str, Any]) -> int:
    return _int(row.get("time_spent_minutes"))


def row_lessons(row: Dict[str, Any]) -> int:
    return _int(row.get("lessons_completed"))


def chart_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def _rows_by_day(rows: Iterable[Dict[str, Any]]) -> Dict[date, List[Dict[str, Any]]]:
    grouped: Dict[date, List[Dict[str, Any]]] = {}
    for row in rows:
        day = parse_day(row.get("date"))
        if day is None:
            continue
        grouped.setdefault(day, []).append(row)
    return grouped


def aggregate_daily_xp(rows: Iterable[Dict[str, Any]]) -> List[ChartDataPoint]:
    """Sum XP per calendar day; one chart point per day, oldest first."""
    xp_by_day: Dict[date, int] = {}
    for day, day_rows in _rows_by_day(rows).items():
        xp_by_day[day] = sum(row_xp(row) for row in day_rows)
    return [
        ChartDataPoint(date=day.isoformat(), xp=xp, label=chart_label(day), timestamp=epoch_ms(day))
        for day, xp in sorted(xp_by_day.items())
    ]


def _consecutive_runs(days_desc: List[date], today: date) -> tuple:
    """(current, longest) run of consecutive days; current counts back from today or yesterday."""
    day_set = set(days_desc)
    yesterday = today - timedelta(days=1)
    current = 0
    if today in day_set or yesterday in day_set:
        check = today if today in day_set else yesterday
        while check in day_set:
            current += 1
            check -= timedelta(days=1)

    longest = 0
    run = 0
    previous: Optional[date] = None
    for day in reversed(days_desc):
        run = run + 1 if previous is not None and (day - previous).days == 1 else 1
        longest = max(longest, run)
        previous = day
    return current, longest


def calculate_streak(rows: Iterable[Dict[str, Any]], today: Optional[date] = None) -> StreakData:
    """
    Current and longest streak.

    The stored ``streak_count`` wins when present: the current streak is the
    count on the most recent row (only while that row is from today or
    yesterday) and the longest is the highest count ever stored. Rows without
    counts fall back to runs of consecutive active days.
    """
    today = today or utc_today()
    grouped = _rows_by_day(rows)
    if not grouped:
        return StreakData(currentStreak=0, longestStreak=0, streakGoal=DEFAULT_STREAK_GOAL, isActive=False)

    days_desc = sorted(grouped, reverse=True)
    latest_day = days_desc[0]
    stored = [
        _int(row.get("streak_count"))
        for day_rows in grouped.values()
        for row in day_rows
        if row.get("streak_count") is not None
    ]

    if stored:
        latest_counts = [
            _int(row.get("streak_count")) for row in grouped[latest_day] if row.get("streak_count") is not None
        ]
        recent = latest_day >= today - timedelta(days=1)
        current = max(latest_counts) if latest_counts and recent else 0
        longest = max(max(stored), current)
    else:
        current, longest = _consecutive_runs(days_desc, today)

    return StreakData(
        currentStreak=current,
        longestStreak=longest,
        streakGoal=ACTIVE_STREAK_GOAL,
        isActive=today in grouped,
        lastActivityDate=latest_day,
    )


def _activity_type(row: Dict[str, Any]) -> str:
    raw = row.get("raw_api_data") or {}
    event_type = row.get("event_type") or (raw.get("event_type") if isinstance(raw, dict) else None)
    if event_type in _ACTIVITY_TYPES:
        return event_type
    return "lesson" if row_lessons(row) > 0 else "practice"


def build_activity_breakdown(rows: Iterable[Dict[str, Any]]) -> List[Activity]:
    activities = []
    for index, row in enumerate(rows):
        activity_type = _activity_type(row)
        language = row.get("language")
        day = parse_day(row.get("date"))
        activities.append(Activity(
            id=str(row.get("id") or f"activity-{index}"),
            type=activity_type,
            title=activity_type.capitalize(),
            description=f"{language} practice" if language else "Language practice",
            xpGained=row_xp(row),
            timestamp=day.isoformat() if day else "",
            language=language.lower() if language else None,
        ))
    return activities


def summarize_languages(rows: Iterable[Dict[str, Any]]) -> List[LanguageStats]:
    """Totals per language, keyed by the lowercased language string."""
    stats: "OrderedDict[str, LanguageStats]" = OrderedDict()
    for row in rows:
        raw_language = row.get("language") or "Unknown"
        key = raw_language.lower()
        entry = stats.get(key)
        if entry is None:
            entry = LanguageStats(language=key, displayName=raw_language)
            stats[key] = entry
        entry.totalXP += row_xp(row)
        entry.lessonsCompleted += row_lessons(row)
        entry.timeSpent += row_minutes(row)
        entry.streak = max(entry.streak, _int(row.get("streak_count")))
    for entry in stats.values():
        entry.level = simple_level(entry.totalXP)
    return list(stats.values())


def calculate_time_stats(rows: Iterable[Dict[str, Any]], today: Optional[date] = None) -> TimeStats:
    today = today or utc_today()
    week_start = today - timedelta(days=6)
    month_start = today - timedelta(days=29)
    stats = TimeStats()
    active_days = set()
    for day, day_rows in _rows_by_day(rows).items():
        minutes = sum(row_minutes(row) for row in day_rows)
        stats.totalMinutes += minutes
        if minutes > 0:
            active_days.add(day)
        if day == today:
            stats.todayMinutes += minutes
        if week_start <= day <= today:
            stats.weekMinutes += minutes
        if month_start <= day <= today:
            stats.monthMinutes += minutes
    stats.averageDaily = _round(stats.totalMinutes / len(active_days)) if active_days else 0
    return stats


def heatmap_intensity(xp: int) -> int:
    if xp <= 0:
        return 0
    for level, bound in enumerate(_INTENSITY_BOUNDS, start=1):
        if xp < bound:
            return level
    return len(_INTENSITY_BOUNDS) + 1


def build_heatmap(rows: Iterable[Dict[str, Any]], days: int, today: Optional[date] = None) -> List[HeatmapPoint]:
    """One point per day for the last ``days`` days (today included), zero-filled."""
    today = today or utc_today()
    grouped = _rows_by_day(rows)
    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_rows = grouped.get(day, [])
        xp = sum(row_xp(row) for row in day_rows)
        points.append(HeatmapPoint(
            date=day.isoformat(),
            xpGained=xp,
            lessonsCompleted=sum(row_lessons(row) for row in day_rows),
            timeSpentMinutes=sum(row_minutes(row) for row in day_rows),
            intensity=heatmap_intensity(xp),
        ))
    return points


def summarize_heatmap(points: List[HeatmapPoint], days: int) -> HeatmapSummary:
    total_xp = sum(p.xpGained for p in points)
    active_days = sum(1 for p in points if p.xpGained > 0)
    return HeatmapSummary(
        totalXP=total_xp,
        totalLessons=sum(p.lessonsCompleted for p in points),
        totalMinutes=sum(p.timeSpentMinutes for p in points),
        activeDays=active_days,
        averageXPPerDay=_round(total_xp / active_days) if active_days else 0,
        periodDays=days,
    )


def _skill_counts(raw: Dict[str, Any]) -> Optional[tuple]:
    skills = raw.get("skills")
    if isinstance(skills, list) and skills:
        completed = 0
        for skill in skills:
            if not isinstance(skill, dict):
                continue
            if skill.get("completed") or _int(skill.get("finishedLevels")) >= max(_int(skill.get("levels")), 1):
                completed += 1
        return len(skills), completed
    for total_key, done_key in (("total_skills", "completed_skills"), ("totalSkills", "completedSkills")):
        if raw.get(total_key) is not None:
            return _int(raw.get(total_key)), _int(raw.get(done_key))
    return None


def calculate_completion(rows: Iterable[Dict[str, Any]], language_code: str) -> Optional[CompletionData]:
    """Skill completion from the newest row whose raw payload reports skills."""
    grouped = _rows_by_day(rows)
    for day in sorted(grouped, reverse=True):
        for row in grouped[day]:
            raw = row.get("raw_api_data")
            if not isinstance(raw, dict):
                continue
            counts = _skill_counts(raw)
            if counts is None:
                continue
            total, completed = counts
            completed = min(completed, total)
            rate = round(completed / total * 100, 1) if total else 0.0
            return CompletionData(
                completionRate=rate,
                totalSkills=total,
                completedSkills=completed,
                languageCode=language_code,
            )
    return None


def calculate_virtual_level(rows: Iterable[Dict[str, Any]], language_code: str) -> Optional[VirtualLevelData]:
    rows = list(rows)
    if not rows:
        return None
    total_xp = sum(row_xp(row) for row in rows)
    total_minutes = sum(row_minutes(row) for row in rows)
    return VirtualLevelData(
        virtualLevel=simple_level(total_xp),
        totalXP=total_xp,
        estimatedHours=round(total_minutes / 60, 1),
        languageCode=language_code,
    )


def level_progress(level_data: VirtualLevelData) -> Dict[str, int]:
    """Estimated XP needed for the next level and how far the user is into it."""
    xp_for_next_level = math.ceil(level_data.virtualLevel * 100 * 1.1)
    progress_to_next_level = level_data.totalXP % xp_for_next_level
    return {
        "xpForNextLevel": xp_for_next_level,
        "progressToNextLevel": progress_to_next_level,
        "progressPercentage": _round(progress_to_next_level / xp_for_next_level * 100),
    }
