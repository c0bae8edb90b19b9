"""Tests for stored quotes, the built-in fallback and the cleanup job."""

from __future__ import annotations

import random
from datetime import date, timedelta

from progresspath.core.dates import utc_today
from progresspath.modules.quotes.models import BUILTIN_QUOTES
from progresspath.modules.quotes.service import QuoteService, clamp_count, quote_of_the_day, summarize_quotes
from tests.conftest import CRON_SECRET, FakeSupabase


def _quote(day_id: str, text: str = "Keep going.", language: str = "en", **extra) -> dict:
    return {"quote": text, "author": "Someone", "language": language, "translation": None, "day_id": day_id, **extra}


class TestBuiltinQuotes:
    def test_twenty_quotes(self) -> None:
        assert len(BUILTIN_QUOTES) == 20

    def test_quote_of_the_day_uses_day_of_year(self) -> None:
        assert quote_of_the_day(date(2024, 1, 1)) is BUILTIN_QUOTES[1]
        assert quote_of_the_day(date(2024, 1, 20)) is BUILTIN_QUOTES[0]

    def test_count_is_clamped(self) -> None:
        assert clamp_count(0) == 1
        assert clamp_count(50) == 20
        assert clamp_count("abc") == 5


class TestQuoteService:
    def test_random_quotes_are_distinct(self) -> None:
        supabase = FakeSupabase()
        supabase.seed("daily_quotes", *[_quote("2024-10-10", text=f"Quote {i}") for i in range(8)])
        service = QuoteService(supabase, rng=random.Random(7))
        result = service.random_quotes(count=5)
        assert result.count == 5
        assert len({q.quote for q in result.quotes}) == 5

    def test_daily_falls_back_when_table_unreachable(self) -> None:
        supabase = FakeSupabase()
        supabase.fail_table("daily_quotes")
        service = QuoteService(supabase, today=date(2024, 1, 20))
        response = service.daily_quote()
        assert response.source == "builtin"
        assert response.quote.quote == BUILTIN_QUOTES[0]["text"]

    def test_diagnostics_summary(self) -> None:
        today = date(2024, 10, 10)
        quotes = [
            _quote("2024-10-10", language="en"),
            _quote("2024-10-10", language="fr", translation="traduction"),
            _quote("2024-10-08", language="zh"),
        ]
        report = summarize_quotes(quotes, today)
        assert report["summary"]["todayQuotesCount"] == 2
        assert report["summary"]["datesInDatabase"] == ["2024-10-10", "2024-10-08"]
        assert report["statistics"]["languageDistribution"] == {"en": 1, "fr": 1}
        assert report["statistics"]["translations"]["percentage"] == "50.0%"
        assert report["otherQuotes"]["count"] == 1
        assert report["diagnostics"]["todayStatus"] == "Incomplete"


class TestQuoteRoutes:
    def test_refresh_without_quotes_is_404(self, client) -> None:
        response = client.get("/api/quotes/refresh")
        assert response.status_code == 404

    def test_refresh_filters_by_language(self, client, fake_supabase) -> None:
        fake_supabase.seed("daily_quotes", _quote("2024-10-10", text="Bonjour", language="fr"), _quote("2024-10-10"))
        response = client.get("/api/quotes/refresh", params={"language": "fr"})
        assert response.status_code == 200
        assert response.json()["quote"]["quote"] == "Bonjour"

    def test_refresh_post_count(self, client, fake_supabase) -> None:
        fake_supabase.seed("daily_quotes", *[_quote("2024-10-10", text=f"Q{i}") for i in range(3)])
        body = client.post("/api/quotes/refresh", json={"count": 10}).json()
        assert body["count"] == 3

    def test_daily_uses_builtin_when_empty(self, client) -> None:
        body = client.get("/api/quotes/daily").json()
        assert body["source"] == "builtin"
        assert body["quote"]["quote"] == quote_of_the_day()["text"]

    def test_cron_requires_secret(self, client) -> None:
        assert client.get("/api/cron/daily-quotes").status_code == 401
        response = client.get("/api/cron/daily-quotes", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401
        assert "hint" in response.json()

    def test_cron_prunes_old_quotes(self, client, fake_supabase) -> None:
        today = utc_today()
        fake_supabase.seed(
            "daily_quotes",
            _quote(today.isoformat()),
            _quote((today - timedelta(days=2)).isoformat()),
            _quote((today - timedelta(days=3)).isoformat()),
            _quote((today - timedelta(days=10)).isoformat()),
        )
        response = client.get("/api/cron/daily-quotes", headers={"Authorization": f"Bearer {CRON_SECRET}"})
        assert response.status_code == 200
        body = response.json()
        assert body["deletedCount"] == 2
        assert body["todayQuotesCount"] == 1
        assert len(fake_supabase.tables["daily_quotes"]) == 2

    def test_test_endpoint_runs_job_with_cron_secret(self, client, fake_supabase) -> None:
        fake_supabase.seed("daily_quotes", _quote("2000-01-01"))
        response = client.post("/api/test/daily-quotes", headers={"Authorization": f"Bearer {CRON_SECRET}"})
        assert response.status_code == 200
        assert response.json()["cronResponse"]["deletedCount"] == 1
        assert client.post("/api/test/daily-quotes").status_code == 401

    def test_diagnostics_endpoint(self, client, fake_supabase) -> None:
        fake_supabase.seed("daily_quotes", _quote(utc_today().isoformat()))
        body = client.get("/api/test/daily-quotes").json()
        assert body["success"] is True
        assert body["summary"]["todayQuotesCount"] == 1
        assert body["diagnostics"]["expectedQuotesPerDay"] == 30
