from fastapi import APIRouter, Depends, Query
from progresspath.core.dependencies import get_current_user_id
from progresspath.database.supabase_client import get_supabase
from progresspath.modules.learning.models import SESSION_LIST_LIMIT
from progresspath.modules.learning.schemas import LearningSessionCreate, LearningSessionResponse, LearningStats
from progresspath.modules.learning.service import LearningSessionService
from supabase import Client
from typing import List

router = APIRouter(prefix="/learning", tags=["learning"])


def get_learning_service(supabase: Client = Depends(get_supabase)) -> LearningSessionService:
    return LearningSessionService(supabase)


@router.get("/{language}/sessions", response_model=List[LearningSessionResponse])
async def list_sessions(
    language: str,
    limit: int = Query(SESSION_LIST_LIMIT, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: LearningSessionService = Depends(get_learning_service),
):
    """Most recent study sessions of the signed-in user"""
    return service.list_sessions(language, user_id, limit)


@router.post("/{language}/sessions", response_model=LearningSessionResponse, status_code=201)
async def create_session(
    language: str,
    session_data: LearningSessionCreate,
    user_id: str = Depends(get_current_user_id),
    service: LearningSessionService = Depends(get_learning_service),
):
    """Log a study session"""
    return service.create_session(language, user_id, session_data.model_dump())


@router.delete("/{language}/sessions/{session_id}", status_code=204)
async def delete_session(
    language: str,
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: LearningSessionService = Depends(get_learning_service),
):
    service.delete_session(language, user_id, session_id)


@router.get("/{language}/stats", response_model=LearningStats)
async def get_stats(
    language: str,
    user_id: str = Depends(get_current_user_id),
    service: LearningSessionService = Depends(get_learning_service),
):
    """Hours, sessions, vocabulary and current streak"""
    return service.get_stats(language, user_id)
