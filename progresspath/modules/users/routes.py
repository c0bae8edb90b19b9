from fastapi import APIRouter, Depends
from progresspath.core.dependencies import get_current_user
from progresspath.core.errors import api_error
from progresspath.database.supabase_client import get_supabase
from progresspath.modules.users.schemas import ProfileSyncResponse, UserProfileResponse, UserProfileUpdate
from progresspath.modules.users.service import UserProfileService
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserProfileService:
    return UserProfileService(supabase)


@router.get("/me/profile", response_model=UserProfileResponse)
async def get_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: UserProfileService = Depends(get_user_service),
):
    """Get the signed-in user's profile"""
    return service.get_profile(current_user["id"])


@router.put("/me/profile", response_model=UserProfileResponse)
async def update_my_profile(
    updates: UserProfileUpdate,
    current_user: Dict = Depends(get_current_user),
    service: UserProfileService = Depends(get_user_service),
):
    """Update display name / email of the signed-in user"""
    profile = service.update_user_profile(current_user["id"], updates.model_dump(exclude_none=True))
    if not profile:
        raise api_error(500, "Failed to update profile", "Profile could not be updated")
    return profile


@router.post("/me/sync", response_model=ProfileSyncResponse)
async def sync_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: UserProfileService = Depends(get_user_service),
):
    """Load the signed-in user's profile, creating it on first sync"""
    result = service.ensure_profile(current_user)
    if not result.success:
        raise api_error(500, "Profile sync failed", "Unable to load or create the user profile")
    return result
