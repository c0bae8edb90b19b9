from fastapi import APIRouter, Depends
from progresspath.config import Settings, get_settings
from progresspath.core.dates import epoch_ms, isoformat_z, utc_now, utc_today
from progresspath.core.errors import api_error
from progresspath.database.supabase_client import get_supabase
from progresspath.modules.dashboard.aggregations import chart_label, level_progress, summarize_heatmap
from progresspath.modules.dashboard.models import HEATMAP_DEFAULT_DAYS, HEATMAP_MAX_DAYS, LANGUAGE_CODE_MAP, VALID_PERIODS
from progresspath.modules.dashboard.schemas import ChartDataPoint, XPEntryCreate
from progresspath.modules.dashboard.service import DashboardService
from progresspath.modules.dashboard.xp import get_xp_stats
from supabase import Client
from typing import Any, Dict, Optional
import logging
import re

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

_LEADING_INT = re.compile(r"\s*[+-]?\d+", re.ASCII)


def get_dashboard_service(supabase: Client = Depends(get_supabase)) -> DashboardService:
    return DashboardService(supabase)


def resolve_user_id(userId: Optional[str] = None, settings: Settings = Depends(get_settings)) -> str:
    """Dashboard owner: explicit ?userId= or the configured DASHBOARD_USER_ID"""
    return userId or settings.dashboard_user_id


def validate_period(period: str) -> str:
    if period not in VALID_PERIODS:
        raise api_error(400, f"Invalid period. Must be one of: {', '.join(VALID_PERIODS)}")
    return period


def validate_language(language: str) -> str:
    """Route language -> ISO code; 400 when unsupported"""
    code = LANGUAGE_CODE_MAP.get(language.lower())
    if not code:
        raise api_error(
            400,
            "Invalid language parameter",
            f"Language '{language.lower()}' is not supported. Valid languages: {', '.join(LANGUAGE_CODE_MAP)}",
        )
    return code


def validate_days(days: Optional[str]) -> int:
    if days is None or days == "":
        return HEATMAP_DEFAULT_DAYS
    # Leading integer wins: "7.5" and "30abc" read as 7 and 30
    match = _LEADING_INT.match(days)
    value = int(match.group()) if match else 0
    if value < 1 or value > HEATMAP_MAX_DAYS:
        raise api_error(400, "Invalid days parameter", f"Days must be a number between 1 and {HEATMAP_MAX_DAYS}")
    return value


def _metadata(user_id: str, **extra: Any) -> Dict[str, Any]:
    return {"userId": user_id, **extra, "generatedAt": isoformat_z(utc_now())}


@router.get("/xp")
async def get_xp(
    period: str = "weekly",
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    user_id: str = Depends(resolve_user_id),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Daily XP chart data across all languages"""
    validate_period(period)
    points = service.get_daily_xp(user_id, period)
    return {
        "success": True,
        "data": {"data": [p.model_dump() for p in points], "summary": {}},
        "metadata": _metadata(
            user_id,
            period=period,
            startDate=startDate,
            endDate=endDate,
            dataPoints=len(points),
        ),
    }


@router.post("/xp")
async def add_xp(entry: XPEntryCreate):
    """Echo the chart point an XP entry would produce; nothing is persisted"""
    today = utc_today()
    point = ChartDataPoint(date=today.isoformat(), xp=entry.xp, label=chart_label(today), timestamp=epoch_ms(today))
    logger.info(f"XP entry received for {entry.userId}: {entry.xp} ({entry.activityType})")
    return {"success": True, "data": point.model_dump(), "message": "XP added successfully"}


@router.get("/overview")
async def get_overview(
    period: str = "weekly",
    user_id: str = Depends(resolve_user_id),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Everything the dashboard home page renders in one call"""
    validate_period(period)
    chart_data = service.get_daily_xp(user_id, period)
    languages = service.get_language_summary(user_id)
    total_xp = sum(lang.totalXP for lang in languages)
    return {
        "success": True,
        "data": {
            "xpStats": get_xp_stats(total_xp).model_dump(),
            "chartData": [p.model_dump() for p in chart_data],
            "streakData": service.get_streak_info(user_id).model_dump(mode="json"),
            "recentActivities": [a.model_dump() for a in service.get_activity_breakdown(user_id)],
            "languageStats": [lang.model_dump() for lang in languages],
            "timeStats": service.get_time_stats(user_id).model_dump(),
            "vocabularyStats": service.get_vocabulary_stats(user_id).model_dump(),
        },
        "metadata": _metadata(user_id, period=period),
    }


@router.get("/{language}/xp")
async def get_language_xp(
    language: str,
    period: str = "weekly",
    user_id: str = Depends(resolve_user_id),
    service: DashboardService = Depends(get_dashboard_service),
):
    """XP, streak, activity, time and vocabulary for one language"""
    validate_language(language)
    validate_period(period)
    language = language.lower()
    chart_data = service.get_daily_xp(user_id, period, language)
    total_xp = sum(point.xp for point in chart_data)
    return {
        "success": True,
        "data": {
            "stats": get_xp_stats(total_xp).model_dump(),
            "chartData": [p.model_dump() for p in chart_data],
            "activities": [a.model_dump() for a in service.get_activity_breakdown(user_id, language)],
            "timeStats": service.get_time_stats(user_id, language).model_dump(),
            "streakData": service.get_streak_info(user_id, language).model_dump(mode="json"),
            "vocabularyStats": service.get_vocabulary_stats(user_id, language).model_dump(),
        },
        "metadata": _metadata(user_id, language=language, period=period),
    }


@router.post("/{language}/xp")
async def add_language_xp(language: str, entry: XPEntryCreate):
    validate_language(language)
    language = language.lower()
    logger.info(f"{language} XP entry received for {entry.userId}: {entry.xp} ({entry.activityType})")
    return {
        "success": True,
        "message": f"{language.capitalize()} XP added successfully",
        "data": {
            "xp": entry.xp,
            "activityType": entry.activityType,
            "language": language,
            "timestamp": isoformat_z(utc_now()),
        },
    }


@router.get("/{language}/heatmap")
async def get_heatmap(
    language: str,
    days: Optional[str] = None,
    user_id: str = Depends(resolve_user_id),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Per-day activity for the last ``days`` days (1-365, default 30)"""
    day_count = validate_days(days)
    language_code = validate_language(language)
    points = service.get_activity_heatmap(user_id, language_code, day_count)
    return {
        "success": True,
        "data": {
            "heatmap": [p.model_dump() for p in points],
            "summary": summarize_heatmap(points, day_count).model_dump(),
            "languageCode": language_code,
        },
        "metadata": _metadata(user_id, language=language.lower(), languageCode=language_code, days=day_count),
    }


@router.get("/{language}/completion")
async def get_completion(
    language: str,
    user_id: str = Depends(resolve_user_id),
    service: DashboardService = Depends(get_dashboard_service),
):
    language_code = validate_language(language)
    completion = service.get_completion_rate(user_id, language_code)
    if completion is None:
        raise api_error(404, "No data found", f"No completion data available for language: {language.lower()}")
    return {
        "success": True,
        "data": {
            **completion.model_dump(),
            "activeSkills": completion.totalSkills - completion.completedSkills,
        },
        "metadata": _metadata(user_id, language=language.lower(), languageCode=language_code),
    }


@router.get("/{language}/virtual-level")
async def get_virtual_level(
    language: str,
    user_id: str = Depends(resolve_user_id),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Level estimated from total XP, with progress toward the next one"""
    language_code = validate_language(language)
    level = service.get_virtual_level(user_id, language_code)
    if level is None:
        raise api_error(404, "No data found", f"No virtual level data available for language: {language.lower()}")
    return {
        "success": True,
        "data": {**level.model_dump(), "progress": level_progress(level)},
        "metadata": _metadata(user_id, language=language.lower(), languageCode=language_code),
    }
