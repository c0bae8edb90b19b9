import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from supabase import Client

from progresspath.core.dates import utc_today
from progresspath.core.errors import api_error
from progresspath.modules.dashboard import aggregations
from progresspath.modules.dashboard.models import (
    ACTIVITY_TABLE,
    HEATMAP_DEFAULT_DAYS,
    LANGUAGE_CODE_MAP,
    PERIOD_LOOKBACK_DAYS,
    RECENT_ACTIVITY_LIMIT,
)
from progresspath.modules.dashboard.schemas import (
    Activity,
    ChartDataPoint,
    CompletionData,
    HeatmapPoint,
    LanguageStats,
    StreakData,
    TimeStats,
    VirtualLevelData,
    VocabularyStats,
)
from progresspath.modules.learning.models import SESSION_TABLES
from progresspath.modules.learning.service import summarize_vocabulary

logger = logging.getLogger(__name__)

_CODE_TO_NAME = {code: name for name, code in LANGUAGE_CODE_MAP.items()}


def language_variants(language: str) -> List[str]:
    """Name and ISO code for a language given as either ("French" -> ["french", "fr"])"""
    key = language.strip().lower()
    if key in LANGUAGE_CODE_MAP:
        return [key, LANGUAGE_CODE_MAP[key]]
    if key in _CODE_TO_NAME:
        return [_CODE_TO_NAME[key], key]
    return [key]


class DashboardService:
    def __init__(self, supabase: Client, today: Optional[date] = None):
        self.supabase = supabase
        self._today = today

    @property
    def today(self) -> date:
        return self._today or utc_today()

    def _fetch_activity(
        self,
        user_id: str,
        language: Optional[str] = None,
        since: Optional[date] = None,
        limit: Optional[int] = None,
        columns: str = "*",
    ) -> List[Dict[str, Any]]:
        """duolingo_activity rows for one user, newest first"""
        try:
            query = self.supabase.table(ACTIVITY_TABLE)\
                .select(columns)\
                .eq("user_id", user_id)
            if language:
                variants = language_variants(language)
                query = query.or_(",".join(f"language.ilike.{variant}" for variant in variants))
            if since is not None:
                query = query\
                    .gte("date", since.isoformat())\
                    .lt("date", (self.today + timedelta(days=1)).isoformat())
            query = query.order("date", desc=True)
            if limit:
                query = query.limit(limit)
            result = query.execute()
        except Exception as e:
            logger.error(f"Error fetching {ACTIVITY_TABLE} for {user_id} (language={language}): {e}")
            raise api_error(500, "Internal server error", f"Failed to load activity data: {e}")
        return result.data or []

    def get_duolingo_stats(self, user_id: str) -> List[Dict[str, Any]]:
        return self._fetch_activity(user_id)

    def get_daily_xp(self, user_id: str, period: str = "weekly", language: Optional[str] = None) -> List[ChartDataPoint]:
        """Chart points over the look-back window of ``period``"""
        lookback = PERIOD_LOOKBACK_DAYS.get(period, PERIOD_LOOKBACK_DAYS["weekly"])
        since = self.today - timedelta(days=lookback)
        rows = self._fetch_activity(user_id, language, since=since, columns="date, xp_gained, language")
        return aggregations.aggregate_daily_xp(rows)

    def get_streak_info(self, user_id: str, language: Optional[str] = None) -> StreakData:
        rows = self._fetch_activity(user_id, language, columns="date, streak_count, language")
        return aggregations.calculate_streak(rows, self.today)

    def get_activity_breakdown(self, user_id: str, language: Optional[str] = None) -> List[Activity]:
        rows = self._fetch_activity(user_id, language, limit=RECENT_ACTIVITY_LIMIT)
        return aggregations.build_activity_breakdown(rows)

    def get_language_summary(self, user_id: str) -> List[LanguageStats]:
        rows = self._fetch_activity(
            user_id,
            columns="language, xp_gained, lessons_completed, time_spent_minutes, streak_count",
        )
        return aggregations.summarize_languages(rows)

    def get_time_stats(self, user_id: str, language: Optional[str] = None) -> TimeStats:
        rows = self._fetch_activity(user_id, language, columns="date, time_spent_minutes")
        return aggregations.calculate_time_stats(rows, self.today)

    def get_vocabulary_stats(self, user_id: str, language: Optional[str] = None) -> VocabularyStats:
        """Words logged in the study-session tables (all of them when no language is given)"""
        if language:
            name = language_variants(language)[0]
            tables = [SESSION_TABLES[name]] if name in SESSION_TABLES else []
        else:
            tables = list(SESSION_TABLES.values())

        rows: List[Dict[str, Any]] = []
        for table in tables:
            try:
                result = self.supabase.table(table)\
                    .select("date, new_vocabulary")\
                    .eq("user_id", user_id)\
                    .order("date", desc=True)\
                    .execute()
            except Exception as e:
                logger.error(f"Error fetching vocabulary from {table} for {user_id}: {e}")
                raise api_error(500, "Internal server error", f"Failed to load vocabulary data: {e}")
            rows.extend(result.data or [])
        rows.sort(key=lambda row: str(row.get("date") or ""), reverse=True)
        return summarize_vocabulary(rows, self.today)

    def get_activity_heatmap(self, user_id: str, language: str, days: int = HEATMAP_DEFAULT_DAYS) -> List[HeatmapPoint]:
        since = self.today - timedelta(days=days - 1)
        rows = self._fetch_activity(
            user_id,
            language,
            since=since,
            columns="date, xp_gained, lessons_completed, time_spent_minutes",
        )
        return aggregations.build_heatmap(rows, days, self.today)

    def get_completion_rate(self, user_id: str, language: str) -> Optional[CompletionData]:
        rows = self._fetch_activity(user_id, language, columns="date, raw_api_data")
        return aggregations.calculate_completion(rows, language_variants(language)[-1])

    def get_virtual_level(self, user_id: str, language: str) -> Optional[VirtualLevelData]:
        rows = self._fetch_activity(user_id, language, columns="date, xp_gained, time_spent_minutes")
        return aggregations.calculate_virtual_level(rows, language_variants(language)[-1])
