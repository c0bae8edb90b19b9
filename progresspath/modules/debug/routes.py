from fastapi import APIRouter, Depends
from progresspath.config import Settings, get_settings
from progresspath.core.errors import api_error
from progresspath.database.supabase_client import get_supabase
from progresspath.modules.debug.service import DebugService
from supabase import Client

router = APIRouter(prefix="/debug", tags=["debug"])


def get_debug_service(supabase: Client = Depends(get_supabase)) -> DebugService:
    return DebugService(supabase)


@router.get("/db")
async def inspect_database(
    settings: Settings = Depends(get_settings),
    service: DebugService = Depends(get_debug_service),
):
    """Raw look at the activity table; not available in production"""
    if settings.is_production:
        raise api_error(404, "Not found")
    return service.inspect_activity_table(settings.dashboard_user_id)
