import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError
from supabase import Client

from progresspath.core.errors import api_error
from progresspath.modules.users.models import TABLE
from progresspath.modules.users.schemas import ProfileSyncResponse, UserProfileResponse

logger = logging.getLogger(__name__)

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
_EMAIL_ADAPTER = TypeAdapter(EmailStr)

DEFAULT_SYNC_RETRIES = 3


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(_UUID_RE.match(value))


def is_valid_email(value: Any) -> bool:
    if not isinstance(value, str) or len(value) > 255:
        return False
    try:
        _EMAIL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


def sanitize_string(value: Any, max_length: int = 255) -> str:
    """Strip control characters and whitespace, then truncate"""
    if not isinstance(value, str):
        return ""
    return _CONTROL_CHARS_RE.sub("", value).strip()[:max_length]


def validate_profile_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only known profile fields, validated and sanitized"""
    if not isinstance(data, dict):
        raise ValueError("User profile data must be an object")
    validated: Dict[str, Any] = {}
    if data.get("email") is not None:
        if not is_valid_email(data["email"]):
            raise ValueError("Invalid email format")
        validated["email"] = sanitize_string(data["email"], 255)
    if data.get("display_name") is not None:
        validated["display_name"] = sanitize_string(data["display_name"], 100)
    return validated


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserProfileService:
    def __init__(self, supabase: Client, sleep: Callable[[float], None] = time.sleep):
        self.supabase = supabase
        self.sleep = sleep

    @staticmethod
    def _check_user_id(user_id: str) -> None:
        if not is_valid_uuid(user_id):
            logger.error(f"[SECURITY] Invalid user ID format: {user_id!r}")
            raise api_error(400, "Invalid user ID format")

    def _fetch(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table(TABLE)\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_profile(self, user_id: str) -> UserProfileResponse:
        """Get user profile by ID"""
        self._check_user_id(user_id)
        try:
            profile = self._fetch(user_id)
        except Exception as e:
            raise api_error(500, "Failed to load profile", str(e))
        if not profile:
            raise api_error(404, "User profile not found")
        return UserProfileResponse(**profile)

    def sync_user_data(self, user_id: str, max_retries: int = DEFAULT_SYNC_RETRIES) -> Optional[Dict[str, Any]]:
        """Read the profile with exponential backoff (1s, 2s, ...); None once every attempt failed"""
        self._check_user_id(user_id)
        if not isinstance(max_retries, int) or max_retries < 1 or max_retries > 10:
            max_retries = DEFAULT_SYNC_RETRIES

        last_error = None
        for attempt in range(max_retries):
            try:
                return self._fetch(user_id)
            except Exception as e:
                last_error = e
                logger.warning(f"Sync attempt {attempt + 1} failed: {e}")
                if attempt < max_retries - 1:
                    self.sleep(2 ** attempt)
        logger.error(f"All sync attempts failed: {last_error}")
        return None

    def initialize_user_profile(self, user_id: str, initial_data: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Create the profile row if it does not exist yet"""
        self._check_user_id(user_id)
        try:
            validated = validate_profile_data(initial_data or {})
        except ValueError as e:
            logger.error(f"[SECURITY] Invalid initial data: {e}")
            raise api_error(400, "Invalid profile data", str(e))

        try:
            existing = self._fetch(user_id)
            if existing:
                return existing
            now = _now_iso()
            result = self.supabase.table(TABLE).insert({
                "id": user_id,
                **validated,
                "created_at": now,
                "updated_at": now,
            }).execute()
            if not result.data:
                logger.error(f"Error creating user profile {user_id}: empty insert result")
                return None
            logger.info(f"Created user profile {user_id}")
            return result.data[0]
        except Exception as e:
            logger.error(f"Error initializing user profile: {e}")
            return None

    def update_user_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply validated profile updates and stamp updated_at"""
        self._check_user_id(user_id)
        try:
            validated = validate_profile_data(updates)
        except ValueError as e:
            logger.error(f"[SECURITY] Invalid update data: {e}")
            raise api_error(400, "Invalid profile data", str(e))

        try:
            result = self.supabase.table(TABLE)\
                .update({**validated, "updated_at": _now_iso()})\
                .eq("id", user_id)\
                .execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"Error updating user profile: {e}")
            return None

    def ensure_profile(self, auth_user: Dict[str, Any]) -> ProfileSyncResponse:
        """Sync the signed-in user's profile, creating it on first use"""
        user_id = auth_user["id"]
        profile = self.sync_user_data(user_id)
        if profile:
            return ProfileSyncResponse(success=True, profile=UserProfileResponse(**profile))

        metadata = auth_user.get("user_metadata") or {}
        email = auth_user.get("email")
        display_name = metadata.get("display_name") or metadata.get("full_name")
        if not display_name and email:
            display_name = email.split("@")[0]
        initial = {"display_name": display_name}
        if is_valid_email(email):
            initial["email"] = email

        created = self.initialize_user_profile(user_id, initial)
        if not created:
            return ProfileSyncResponse(success=False)
        return ProfileSyncResponse(success=True, created=True, profile=UserProfileResponse(**created))
