import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client

from progresspath.core.dates import parse_day, utc_today
from progresspath.core.errors import api_error
from progresspath.modules.dashboard.aggregations import calculate_streak
from progresspath.modules.dashboard.schemas import VocabularyStats
from progresspath.modules.learning.models import (
    ACTIVITY_TYPES,
    DEFAULT_MOOD,
    MOODS,
    SESSION_LIST_LIMIT,
    SESSION_TABLES,
)
from progresspath.modules.learning.schemas import LearningSessionResponse, LearningStats

logger = logging.getLogger(__name__)

RECENT_WORDS_LIMIT = 10


def normalize_list(value: Any) -> Optional[List[str]]:
    """Comma-separated string or list -> list of non-empty trimmed strings; empty -> None"""
    if not value:
        return None
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    elif isinstance(value, (list, tuple)):
        items = [str(part).strip() for part in value if part is not None]
    else:
        return None
    items = [item for item in items if item]
    return items or None


def validate_learning_session(data: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """Build the row to insert; raises ValueError on invalid input"""
    activity_type = data.get("activity_type")
    if not activity_type:
        raise ValueError("Activity type is required")
    if activity_type not in ACTIVITY_TYPES:
        raise ValueError("Invalid activity type")

    raw_duration = data.get("duration_minutes")
    if raw_duration is None or raw_duration == "":
        raise ValueError("Duration is required")
    try:
        duration = int(str(raw_duration).strip())
    except ValueError:
        raise ValueError("Duration must be at least 1 minute")
    if duration < 1:
        raise ValueError("Duration must be at least 1 minute")

    if not data.get("date"):
        raise ValueError("Date is required")
    try:
        day = parse_day(data["date"])
    except ValueError:
        raise ValueError("Invalid date")

    mood = data.get("mood")
    if mood and mood not in MOODS:
        raise ValueError("Invalid mood value")

    notes = data.get("notes")
    return {
        "activity_type": activity_type,
        "duration_minutes": duration,
        "total_time": duration,
        "notes": (notes.strip() or None) if isinstance(notes, str) else None,
        "date": day.isoformat(),
        "new_vocabulary": normalize_list(data.get("new_vocabulary")),
        "practice_sentences": normalize_list(data.get("practice_sentences")),
        "mood": mood or DEFAULT_MOOD,
        "user_id": user_id,
    }


def summarize_vocabulary(rows: Iterable[Dict[str, Any]], today: Optional[date] = None) -> VocabularyStats:
    """Vocabulary logged across sessions; rows are expected newest first."""
    today = today or utc_today()
    week_start = today - timedelta(days=7)
    stats = VocabularyStats()
    seen = set()
    for row in rows:
        words = normalize_list(row.get("new_vocabulary")) or []
        if not words:
            continue
        stats.sessionsWithVocabulary += 1
        stats.totalWords += len(words)
        day = parse_day(row.get("date"))
        if day is not None and day >= week_start:
            stats.weekWords += len(words)
        for word in words:
            key = word.lower()
            if key in seen:
                continue
            seen.add(key)
            if len(stats.recentWords) < RECENT_WORDS_LIMIT:
                stats.recentWords.append(word)
    stats.uniqueWords = len(seen)
    return stats


def session_table(language: str) -> str:
    table = SESSION_TABLES.get((language or "").lower())
    if not table:
        raise api_error(400, "Invalid language parameter", f"Supported languages: {', '.join(SESSION_TABLES)}")
    return table


class LearningSessionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def fetch_sessions(self, language: str, user_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Rows for one user, newest first; raises 500 on Supabase errors"""
        table = session_table(language)
        try:
            query = self.supabase.table(table)\
                .select("*")\
                .eq("user_id", user_id)\
                .order("date", desc=True)
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except Exception as e:
            logger.error(f"Error fetching {table} sessions for {user_id}: {e}")
            raise api_error(500, "Failed to load learning sessions", str(e))
        return result.data or []

    def list_sessions(self, language: str, user_id: str, limit: int = SESSION_LIST_LIMIT) -> List[LearningSessionResponse]:
        sessions = []
        for row in self.fetch_sessions(language, user_id, limit):
            # Older rows only carry total_time
            if row.get("duration_minutes") is None:
                row = {**row, "duration_minutes": row.get("total_time")}
            sessions.append(LearningSessionResponse(**row))
        return sessions

    def create_session(self, language: str, user_id: str, data: Dict[str, Any]) -> LearningSessionResponse:
        """Validate and insert one study session for the user"""
        table = session_table(language)
        try:
            row = validate_learning_session(data, user_id)
        except ValueError as e:
            raise api_error(400, "Invalid learning session", str(e))

        try:
            result = self.supabase.table(table).insert(row).execute()
        except Exception as e:
            logger.error(f"Error saving {table} session for {user_id}: {e}")
            raise api_error(500, "Failed to save learning session", str(e))
        if not result.data:
            raise api_error(500, "Failed to save learning session", "Insert returned no data")
        logger.info(f"Saved {language} session for user {user_id}")
        return LearningSessionResponse(**result.data[0])

    def delete_session(self, language: str, user_id: str, session_id: str) -> None:
        table = session_table(language)
        try:
            result = self.supabase.table(table)\
                .delete()\
                .eq("id", session_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting {table} session {session_id}: {e}")
            raise api_error(500, "Failed to delete learning session", str(e))
        if not result.data:
            raise api_error(404, "Learning session not found")

    def get_stats(self, language: str, user_id: str, today: Optional[date] = None) -> LearningStats:
        today = today or utc_today()
        rows = self.fetch_sessions(language, user_id)
        week_start = today - timedelta(days=7)

        total_minutes = 0
        sessions_this_week = 0
        total_vocabulary = 0
        for row in rows:
            total_minutes += int(row.get("total_time") or row.get("duration_minutes") or 0)
            day = parse_day(row.get("date"))
            if day is not None and day >= week_start:
                sessions_this_week += 1
            total_vocabulary += len(normalize_list(row.get("new_vocabulary")) or [])

        return LearningStats(
            language=language.lower(),
            totalMinutes=total_minutes,
            totalHours=round(total_minutes / 60, 1),
            totalSessions=len(rows),
            sessionsThisWeek=sessions_this_week,
            totalVocabulary=total_vocabulary,
            currentStreak=calculate_streak(rows, today).currentStreak,
        )
