"""
Core dependencies for route protection and shared services
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from progresspath.config import Settings, get_settings
from progresspath.core.errors import api_error
from progresspath.database.supabase_client import get_supabase
from progresspath.modules.auth.service import AuthService
from supabase import Client
from typing import Optional
import hmac
import logging

logger = logging.getLogger(__name__)

# auto_error is off so a missing header maps to 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """Extract the Supabase access token from the Authorization header"""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise api_error(401, "Missing or invalid authorization header")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> dict:
    """Resolve the Supabase user behind the bearer token"""
    return auth_service.get_current_user(token)


def get_current_user_id(user_data: dict = Depends(get_current_user)) -> str:
    return user_data["id"]


def require_job_secret(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Guard for the quote maintenance job: Authorization must be `Bearer <CRON_SECRET>`."""
    _check_secret(request, settings.cron_secret, required=True)


def require_test_secret(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Guard for manual job runs; open when neither TEST_SECRET nor CRON_SECRET is set."""
    _check_secret(request, settings.job_secret, required=False)


def _check_secret(request: Request, secret: Optional[str], required: bool) -> None:
    if not secret:
        if required:
            logger.error("CRON_SECRET is not configured; rejecting job request")
            raise api_error(401, "Unauthorized")
        return
    header = request.headers.get("authorization", "")
    if not hmac.compare_digest(header.encode(), f"Bearer {secret}".encode()):
        logger.warning("Rejected job request with invalid secret")
        raise api_error(
            401,
            "Unauthorized",
            "Invalid or missing secret",
            hint='Include "Authorization: Bearer YOUR_SECRET" header',
        )
