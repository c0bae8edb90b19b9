from fastapi import APIRouter, Depends
from progresspath.config import Settings, get_settings
from progresspath.core.dates import isoformat_z, utc_now
from progresspath.core.dependencies import require_job_secret, require_test_secret
from progresspath.core.errors import api_error
from progresspath.database.supabase_client import get_supabase
from progresspath.modules.quotes.schemas import PruneResult, QuoteListResponse, QuoteRefreshRequest, QuoteResponse
from progresspath.modules.quotes.service import QuoteService
from supabase import Client
from typing import Optional
import logging
import time
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(tags=["quotes"])


def get_quote_service(supabase: Client = Depends(get_supabase)) -> QuoteService:
    return QuoteService(supabase)


def require_job_config(settings: Settings = Depends(get_settings)) -> None:
    """500 when the quote job cannot run against the database"""
    missing = [
        name
        for name, value in (
            ("NEXT_PUBLIC_SUPABASE_URL", settings.supabase_url),
            ("SUPABASE_SERVICE_KEY", settings.service_key),
            ("CRON_SECRET", settings.cron_secret),
        )
        if not value
    ]
    if missing:
        logger.error(f"Missing environment variables: {', '.join(missing)}")
        raise api_error(
            500,
            "Configuration error",
            f"Missing environment variables: {', '.join(missing)}. "
            "For Supabase service key, use either SUPABASE_SERVICE_ROLE_KEY or SUPABASE_SERVICE_KEY.",
            missing=missing,
        )


@router.get("/quotes/daily", response_model=QuoteResponse)
async def get_daily_quote(service: QuoteService = Depends(get_quote_service)):
    """Random stored quote with a built-in fallback"""
    return service.daily_quote()


@router.get("/quotes/refresh", response_model=QuoteResponse)
async def refresh_quote(
    language: Optional[str] = None,
    category: Optional[str] = None,
    service: QuoteService = Depends(get_quote_service),
):
    return service.random_quote(language, category)


@router.post("/quotes/refresh", response_model=QuoteListResponse)
async def refresh_quotes(
    body: Optional[QuoteRefreshRequest] = None,
    service: QuoteService = Depends(get_quote_service),
):
    """Several distinct random quotes for prefetching"""
    body = body or QuoteRefreshRequest()
    return service.random_quotes(body.count, body.language, body.category)


@router.get("/cron/daily-quotes", response_model=PruneResult, dependencies=[Depends(require_job_secret)])
async def run_daily_quotes_job(service: QuoteService = Depends(get_quote_service)):
    """Scheduled cleanup of quotes older than the retention window"""
    return service.prune_old_quotes()


@router.get("/test/daily-quotes", dependencies=[Depends(require_job_config)])
async def inspect_daily_quotes(service: QuoteService = Depends(get_quote_service)):
    """Stored-quote diagnostics"""
    started = time.monotonic()
    report = service.diagnostics()
    duration_ms = int((time.monotonic() - started) * 1000)
    return {
        "success": True,
        "queryId": f"query-{uuid.uuid4().hex[:12]}",
        "timestamp": isoformat_z(utc_now()),
        "duration": f"{duration_ms}ms",
        **report,
    }


@router.post("/test/daily-quotes", dependencies=[Depends(require_job_config), Depends(require_test_secret)])
async def trigger_daily_quotes(service: QuoteService = Depends(get_quote_service)):
    """Run the quote cleanup job in-process"""
    test_id = f"test-{uuid.uuid4().hex[:12]}"
    logger.info(f"Manual quote job run {test_id}")
    started = time.monotonic()
    result = service.prune_old_quotes()
    duration_ms = int((time.monotonic() - started) * 1000)
    return {
        "testRun": True,
        "testId": test_id,
        "timestamp": isoformat_z(utc_now()),
        "duration": f"{duration_ms}ms",
        "durationSeconds": f"{duration_ms / 1000:.2f}",
        "cronResponse": result.model_dump(),
        "success": result.success,
    }
