import hashlib
import logging
import time
from typing import Any, Callable, Dict, Optional

from fastapi import HTTPException
from supabase import Client, ClientOptions, create_client

from progresspath.config import settings
from progresspath.core.errors import api_error
from progresspath.modules.auth.models import OTP_LINK_TYPE
from progresspath.modules.auth.schemas import CreateSessionResponse, SessionPayload, SessionUser

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. dashboard pages firing parallel requests)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def _default_session_client() -> Client:
    """Fresh client for the OTP exchange; keeps the shared service client free of user sessions."""
    if not settings.supabase_url or not settings.service_key:
        raise api_error(500, "Configuration error", "Server configuration is incomplete")
    return create_client(
        settings.supabase_url,
        settings.supabase_key or settings.service_key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client, session_client_factory: Optional[Callable[[], Client]] = None):
        self.supabase = supabase
        self.session_client_factory = session_client_factory or _default_session_client

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise api_error(401, "Invalid or expired authentication token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at,
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            logger.warning(f"Supabase token validation failed: {e}")
            raise api_error(401, "Invalid or expired authentication token")

    def create_session_from_embed_token(self, payload: Dict[str, Any]) -> CreateSessionResponse:
        """Exchange verified embed-token claims for a Supabase session of the same user"""
        user_id = payload.get("userId")
        if not user_id:
            raise api_error(400, "Invalid token payload", "Token does not contain user information")

        try:
            user_response = self.supabase.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            if "not found" in str(e).lower():
                logger.error(f"User not found: {user_id}")
                raise api_error(404, "User not found", "The specified user does not exist")
            logger.error(f"Error fetching user {user_id}: {e}")
            raise api_error(500, "User validation failed", "Unable to validate user")

        user = getattr(user_response, "user", None)
        if not user:
            logger.error(f"User not found: {user_id}")
            raise api_error(404, "User not found", "The specified user does not exist")

        token_email = payload.get("email")
        if token_email and user.email != token_email:
            logger.error(f"Email mismatch for user {user_id}")
            raise api_error(403, "User mismatch", "Token user information does not match")

        try:
            link = self.supabase.auth.admin.generate_link({"type": OTP_LINK_TYPE, "email": user.email})
            session_client = self.session_client_factory()
            auth_response = session_client.auth.verify_otp(
                {"type": OTP_LINK_TYPE, "token_hash": link.properties.hashed_token}
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Session creation failed for {user_id}: {e}")
            raise api_error(500, "Session creation failed", "Unable to create Supabase session")

        session = getattr(auth_response, "session", None)
        if not session:
            logger.error("Session data missing after creation")
            raise api_error(500, "Session creation failed", "Session was not properly created")

        logger.info(f"Created Supabase session for embed user {user_id}")
        return CreateSessionResponse(
            session=SessionPayload(
                access_token=session.access_token,
                refresh_token=session.refresh_token,
                expires_in=session.expires_in,
                expires_at=session.expires_at,
                token_type=session.token_type or "bearer",
                user=SessionUser(id=user.id, email=user.email, role=getattr(user, "role", None)),
            )
        )
