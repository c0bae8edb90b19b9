from fastapi import APIRouter, Depends, HTTPException
from progresspath.config import Settings, get_settings
from progresspath.core.dependencies import get_auth_service, get_current_user
from progresspath.core.errors import api_error
from progresspath.modules.auth.schemas import CreateSessionRequest, CreateSessionResponse
from progresspath.modules.auth.service import AuthService
from progresspath.modules.embed.routes import get_embed_verifier
from progresspath.modules.embed.service import EmbedTokenService
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/create-supabase-session", response_model=CreateSessionResponse)
async def create_supabase_session(
    body: Optional[CreateSessionRequest] = None,
    service: AuthService = Depends(get_auth_service),
    embed_service: EmbedTokenService = Depends(get_embed_verifier),
    settings: Settings = Depends(get_settings),
):
    """Convert an embed token into a Supabase session for the same user"""
    token = body.token if body else None
    if not token:
        raise api_error(400, "Missing token", "JWT token is required")

    if not settings.supabase_url or not settings.service_key:
        logger.error("Missing required environment variables for Supabase")
        raise api_error(500, "Configuration error", "Server configuration is incomplete")

    try:
        payload = embed_service.decode_token(token)
    except HTTPException as e:
        if e.status_code != 401:
            raise
        if isinstance(e.detail, dict) and e.detail.get("message") == "Token has expired":
            raise api_error(401, "Token expired", "The provided token has expired")
        raise api_error(401, "Authentication failed", "Token verification failed")

    return service.create_session_from_embed_token(payload)


@router.get("/me")
async def get_me(current_user: Dict = Depends(get_current_user)):
    """Get current authenticated Supabase user"""
    return current_user
