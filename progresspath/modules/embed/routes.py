from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from progresspath.config import Settings, get_settings
from progresspath.core.dependencies import get_current_user
from progresspath.database.supabase_client import get_supabase
from progresspath.modules.embed.schemas import EmbedTokenRequest, EmbedTokenResponse, VerifyTokenRequest
from progresspath.modules.embed.service import EmbedTokenService
from supabase import Client
from typing import Dict, Optional

router = APIRouter(tags=["embed"])

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
}


def get_embed_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
) -> EmbedTokenService:
    return EmbedTokenService(
        supabase,
        secret=settings.embed_secret,
        app_url=settings.public_app_url,
        default_duration=settings.jwt_embed_default_duration,
    )


def get_embed_verifier(settings: Settings = Depends(get_settings)) -> EmbedTokenService:
    """Signature and claim checks only; no database access"""
    return EmbedTokenService(None, secret=settings.embed_secret, app_url=settings.public_app_url)


@router.post("/auth/generate-embed-token", response_model=EmbedTokenResponse)
async def generate_embed_token(
    body: Optional[EmbedTokenRequest] = None,
    current_user: Dict = Depends(get_current_user),
    service: EmbedTokenService = Depends(get_embed_service),
):
    """Issue a read-only embed token for the caller or for body.userId"""
    body = body or EmbedTokenRequest()
    return service.issue_token(current_user, target_user_id=body.userId, duration=body.duration)


@router.get("/auth/generate-embed-token", response_model=EmbedTokenResponse)
async def generate_embed_token_get(
    duration: Optional[str] = None,
    current_user: Dict = Depends(get_current_user),
    service: EmbedTokenService = Depends(get_embed_service),
):
    """Issue a read-only embed token for the caller; duration comes from the query string"""
    return service.issue_token(current_user, duration=duration or None)


@router.get("/embed/verify")
async def verify_embed_token(
    token: Optional[str] = None,
    service: EmbedTokenService = Depends(get_embed_verifier),
):
    """Verify an embed token passed as ?token="""
    result = service.verify_token(token, source="query")
    return JSONResponse(content=result.model_dump(), headers=NO_STORE_HEADERS)


@router.post("/embed/verify")
async def verify_embed_token_post(
    body: Optional[VerifyTokenRequest] = None,
    service: EmbedTokenService = Depends(get_embed_verifier),
):
    """Verify an embed token passed in the JSON body"""
    result = service.verify_token(body.token if body else None, source="body")
    return JSONResponse(content=result.model_dump(), headers=NO_STORE_HEADERS)
