import logging
import random
import time
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from supabase import Client

from progresspath.core.dates import isoformat_z, utc_now, utc_today
from progresspath.core.errors import api_error
from progresspath.modules.quotes.models import (
    BUILTIN_QUOTES,
    DEFAULT_REFRESH_COUNT,
    EXPECTED_QUOTES_PER_DAY,
    MAX_REFRESH_COUNT,
    QUOTE_COLUMNS,
    QUOTES_TABLE,
    RETENTION_DAYS,
)
from progresspath.modules.quotes.schemas import PruneResult, Quote, QuoteListResponse, QuoteResponse

logger = logging.getLogger(__name__)


def quote_of_the_day(day: Optional[date] = None) -> Dict[str, Any]:
    """Built-in quote picked by day of year, stable for the whole (UTC) day"""
    day = day or utc_today()
    return BUILTIN_QUOTES[day.timetuple().tm_yday % len(BUILTIN_QUOTES)]


def builtin_to_quote(entry: Dict[str, Any]) -> Quote:
    return Quote(quote=entry["text"], author=entry["author"], language="en", category=entry.get("category"))


def clamp_count(count: Any) -> int:
    try:
        value = int(count)
    except (TypeError, ValueError):
        value = DEFAULT_REFRESH_COUNT
    return min(max(1, value), MAX_REFRESH_COUNT)


def summarize_quotes(quotes: List[Dict[str, Any]], today: date) -> Dict[str, Any]:
    """Diagnostics over every stored quote, relative to today's day_id"""
    today_id = today.isoformat()
    today_quotes = [q for q in quotes if q.get("day_id") == today_id]
    other_quotes = [q for q in quotes if q.get("day_id") != today_id]
    other_dates = []
    for q in other_quotes:
        if q.get("day_id") not in other_dates:
            other_dates.append(q.get("day_id"))

    languages: Dict[str, int] = {}
    for q in today_quotes:
        lang = q.get("language") or "unknown"
        languages[lang] = languages.get(lang, 0) + 1

    with_translation = sum(1 for q in today_quotes if q.get("translation"))
    percentage = f"{with_translation / len(today_quotes) * 100:.1f}%" if today_quotes else "0%"

    report: Dict[str, Any] = {
        "summary": {
            "today": today_id,
            "todayQuotesCount": len(today_quotes),
            "otherQuotesCount": len(other_quotes),
            "totalQuotes": len(quotes),
            "datesInDatabase": [today_id, *other_dates],
            "datesCount": len(other_dates) + 1,
        },
        "statistics": {
            "languageDistribution": languages,
            "translations": {
                "withTranslation": with_translation,
                "withoutTranslation": len(today_quotes) - with_translation,
                "percentage": percentage,
            },
        },
        "todayQuotes": [
            {key: q.get(key) for key in ("id", "quote", "author", "language", "translation", "day_id", "created_at")}
            for q in today_quotes
        ],
        "diagnostics": {
            "databaseStatus": "Connected",
            "expectedQuotesPerDay": EXPECTED_QUOTES_PER_DAY,
            "todayStatus": "Complete" if len(today_quotes) == EXPECTED_QUOTES_PER_DAY else "Incomplete",
        },
    }
    if len(today_quotes) != EXPECTED_QUOTES_PER_DAY:
        report["diagnostics"]["recommendation"] = (
            f"Expected {EXPECTED_QUOTES_PER_DAY} quotes for today, found {len(today_quotes)}. "
            "Consider running the quote job manually."
        )
    if other_quotes:
        report["otherQuotes"] = {
            "count": len(other_quotes),
            "dates": other_dates,
            "warning": "These quotes should have been deleted by the cron job",
            "samples": [
                {"id": q.get("id"), "author": q.get("author"), "day_id": q.get("day_id")} for q in other_quotes[:5]
            ],
        }
    return report


class QuoteService:
    def __init__(self, supabase: Client, rng: Optional[random.Random] = None, today: Optional[date] = None):
        self.supabase = supabase
        self.rng = rng or random.Random()
        self._today = today

    @property
    def today(self) -> date:
        return self._today or utc_today()

    def _filtered(self, columns: str, language: Optional[str], category: Optional[str], **select_kwargs):
        query = self.supabase.table(QUOTES_TABLE).select(columns, **select_kwargs)
        if language:
            query = query.eq("language", language)
        if category:
            query = query.eq("category", category)
        return query

    def count_quotes(self, language: Optional[str] = None, category: Optional[str] = None) -> int:
        try:
            result = self._filtered("id", language, category, count="exact").limit(1).execute()
        except Exception as e:
            logger.error(f"Error counting quotes: {e}")
            raise api_error(500, "Internal server error", f"Count error: {e}")
        return result.count or 0

    def _quote_at(self, offset: int, language: Optional[str], category: Optional[str]) -> Optional[Quote]:
        try:
            result = self._filtered(QUOTE_COLUMNS, language, category).range(offset, offset).execute()
        except Exception as e:
            logger.error(f"Error fetching quote at offset {offset}: {e}")
            raise api_error(500, "Internal server error", f"Fetch error: {e}")
        return Quote(**result.data[0]) if result.data else None

    def random_quote(self, language: Optional[str] = None, category: Optional[str] = None) -> QuoteResponse:
        total = self.count_quotes(language, category)
        if not total:
            raise api_error(404, "No quotes found matching criteria")
        quote = self._quote_at(self.rng.randrange(total), language, category)
        if quote is None:
            raise api_error(404, "No quotes found matching criteria")
        return QuoteResponse(quote=quote, timestamp=isoformat_z(utc_now()))

    def random_quotes(
        self,
        count: Any = DEFAULT_REFRESH_COUNT,
        language: Optional[str] = None,
        category: Optional[str] = None,
    ) -> QuoteListResponse:
        """Up to ``count`` (1-20) distinct random quotes"""
        wanted = clamp_count(count)
        total = self.count_quotes(language, category)
        if not total:
            raise api_error(404, "No quotes found")

        offsets = self.rng.sample(range(total), min(wanted, total))
        quotes = []
        for offset in offsets:
            quote = self._quote_at(offset, language, category)
            if quote is not None:
                quotes.append(quote)
        return QuoteListResponse(quotes=quotes, count=len(quotes), timestamp=isoformat_z(utc_now()))

    def daily_quote(self) -> QuoteResponse:
        """A stored quote, or the built-in quote of the day when none can be read"""
        try:
            return self.random_quote()
        except HTTPException as e:
            logger.warning(f"Falling back to built-in quote: {e.detail}")
        return QuoteResponse(
            quote=builtin_to_quote(quote_of_the_day(self.today)),
            source="builtin",
            timestamp=isoformat_z(utc_now()),
        )

    def prune_old_quotes(self) -> PruneResult:
        """Delete quotes whose day_id is more than RETENTION_DAYS days old"""
        started = time.monotonic()
        today = self.today
        cutoff = (today - timedelta(days=RETENTION_DAYS)).isoformat()
        try:
            deleted = self.supabase.table(QUOTES_TABLE)\
                .delete()\
                .lt("day_id", cutoff)\
                .execute()
            remaining = self.supabase.table(QUOTES_TABLE)\
                .select("id", count="exact")\
                .eq("day_id", today.isoformat())\
                .execute()
        except Exception as e:
            logger.error(f"Quote cleanup failed: {e}")
            raise api_error(500, "Quote cleanup failed", str(e))

        deleted_count = len(deleted.data or [])
        today_count = remaining.count if remaining.count is not None else len(remaining.data or [])
        logger.info(f"Deleted {deleted_count} quotes older than {cutoff}; {today_count} stored for today")
        return PruneResult(
            message=f"Deleted {deleted_count} quotes older than {cutoff}",
            deletedCount=deleted_count,
            cutoff=cutoff,
            today=today.isoformat(),
            todayQuotesCount=today_count,
            timestamp=isoformat_z(utc_now()),
            duration=f"{int((time.monotonic() - started) * 1000)}ms",
        )

    def diagnostics(self) -> Dict[str, Any]:
        try:
            result = self.supabase.table(QUOTES_TABLE)\
                .select("*")\
                .order("created_at")\
                .execute()
        except Exception as e:
            logger.error(f"Error reading quotes for diagnostics: {e}")
            raise api_error(500, "Internal server error", str(e))
        return summarize_quotes(result.data or [], self.today)
