import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from supabase import Client

from progresspath.core.dates import isoformat_z, utc_now
from progresspath.core.errors import api_error
from progresspath.modules.embed.models import (
    ALGORITHM,
    PROFILE_TABLE,
    READ_ONLY_PERMISSIONS,
    TOKEN_TYPE,
)
from progresspath.modules.embed.schemas import (
    EmbedTokenResponse,
    EmbedUser,
    VerifiedUser,
    VerifyTokenResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(days=7)
_DURATION_PATTERN = re.compile(r"(\d+)([smhd])", re.ASCII)
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}


def parse_duration(duration: Any) -> timedelta:
    """Parse '30s', '15m', '12h' or '7d'; anything else means 7 days."""
    if not isinstance(duration, str):
        return DEFAULT_DURATION
    match = _DURATION_PATTERN.fullmatch(duration)
    if not match:
        return DEFAULT_DURATION
    value, unit = match.groups()
    return timedelta(seconds=int(value) * _UNIT_SECONDS[unit])


def _timestamp_to_iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    return isoformat_z(datetime.fromtimestamp(int(value), tz=timezone.utc))


class EmbedTokenService:
    def __init__(self, supabase: Optional[Client], secret: Optional[str], app_url: str, default_duration: str = "7d"):
        self.supabase = supabase
        self.secret = secret
        self.app_url = app_url.rstrip("/")
        self.default_duration = default_duration

    def _require_secret(self) -> str:
        if not self.secret:
            logger.error(
                "Missing JWT secret: JWT_EMBED_SECRET, JWTEMBEDSECRET, JWT_SECRET or Supabase service key must be set"
            )
            raise api_error(500, "Configuration error", "JWT secret not configured")
        return self.secret

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        """Load the user_profiles row for the token owner"""
        try:
            result = self.supabase.table(PROFILE_TABLE)\
                .select("id, display_name, created_at")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading profile {user_id}: {e}")
            raise api_error(500, "Failed to generate embed token", "Unable to load user profile")
        if not result.data:
            raise api_error(404, "User profile not found in user_profiles table")
        return result.data[0]

    def issue_token(
        self,
        auth_user: Dict[str, Any],
        target_user_id: Optional[str] = None,
        duration: Any = None,
    ) -> EmbedTokenResponse:
        """Sign a read-only embed token for the target user (defaults to the caller)."""
        profile = self.get_profile(target_user_id or auth_user["id"])
        secret = self._require_secret()

        now = utc_now()
        expires_at = now + parse_duration(duration if duration is not None else self.default_duration)
        claims = {
            "userId": profile["id"],
            "email": auth_user.get("email"),
            "fullName": profile.get("display_name"),
            "permissions": list(READ_ONLY_PERMISSIONS),
            "type": TOKEN_TYPE,
            "createdAt": isoformat_z(now),
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "sub": str(profile["id"]),
        }
        try:
            token = jwt.encode(claims, secret, algorithm=ALGORITHM)
        except JWTError as e:
            logger.error(f"Error signing embed token: {e}")
            raise api_error(500, "Failed to generate embed token", str(e))

        logger.info(f"Issued embed token for user {profile['id']} expiring {isoformat_z(expires_at)}")
        return EmbedTokenResponse(
            token=token,
            embedUrl=f"{self.app_url}/embed?token={token}",
            expiresAt=isoformat_z(expires_at),
            user=EmbedUser(id=profile["id"], email=auth_user.get("email"), fullName=profile.get("display_name")),
            permissions=list(READ_ONLY_PERMISSIONS),
            type=TOKEN_TYPE,
        )

    def decode_token(self, token: str) -> Dict[str, Any]:
        """Check signature (HS256 only) and expiry; returns the raw claims."""
        secret = self._require_secret()
        try:
            return jwt.decode(token, secret, algorithms=[ALGORITHM], options={"verify_sub": False})
        except ExpiredSignatureError:
            raise api_error(401, "Token verification failed", "Token has expired")
        except JWTError:
            raise api_error(401, "Token verification failed", "Invalid token signature")

    @staticmethod
    def validate_permissions(payload: Dict[str, Any]) -> VerifiedUser:
        """Reject tokens that are not embed tokens and project the safe user fields."""
        if not payload.get("userId"):
            raise api_error(403, "Permission validation failed", "Token missing required userId field")
        if payload.get("type") and payload["type"] != TOKEN_TYPE:
            raise api_error(403, "Permission validation failed", 'Invalid token type. Expected "embed" token.')
        exp = payload.get("exp")
        if exp is not None and utc_now().timestamp() >= float(exp):
            raise api_error(401, "Token verification failed", "Token has expired")
        return VerifiedUser(
            userId=str(payload["userId"]),
            username=payload.get("username"),
            email=payload.get("email"),
            permissions=payload.get("permissions") or list(READ_ONLY_PERMISSIONS),
            issuedAt=_timestamp_to_iso(payload.get("iat")),
            expiresAt=_timestamp_to_iso(exp),
        )

    def verify_token(self, token: Optional[str], source: str = "query") -> VerifyTokenResponse:
        if not token:
            if source == "body":
                hint = 'Please provide a token in the request body: { "token": "YOUR_TOKEN" }'
                raise api_error(400, "Missing token in request body", hint)
            raise api_error(
                400,
                "Missing token parameter",
                "Please provide a token in the query string: ?token=YOUR_TOKEN",
            )
        try:
            payload = self.decode_token(token)
            user = self.validate_permissions(payload)
        except HTTPException:
            raise
        except Exception as e:
            logger.exception(f"JWT verification error: {e}")
            raise api_error(
                500,
                "Internal server error",
                "An unexpected error occurred during token verification",
            )
        return VerifyTokenResponse(user=user)
