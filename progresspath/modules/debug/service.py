import logging
from typing import Any, Dict

from supabase import Client

from progresspath.core.errors import api_error
from progresspath.modules.dashboard.models import ACTIVITY_TABLE

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 10


class DebugService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def inspect_activity_table(self, target_user_id: str) -> Dict[str, Any]:
        """Sample rows, column names, row count and distinct user ids of duolingo_activity"""
        try:
            sample = self.supabase.table(ACTIVITY_TABLE)\
                .select("*")\
                .limit(SAMPLE_SIZE)\
                .execute()
            users = self.supabase.table(ACTIVITY_TABLE)\
                .select("user_id", count="exact")\
                .execute()
        except Exception as e:
            logger.error(f"Debug query on {ACTIVITY_TABLE} failed: {e}")
            raise api_error(500, "Internal server error", str(e))

        sample_rows = sample.data or []
        user_rows = users.data or []
        unique_user_ids = []
        for row in user_rows:
            user_id = row.get("user_id") or "no_user_field"
            if user_id not in unique_user_ids:
                unique_user_ids.append(user_id)

        return {
            "targetUserId": target_user_id,
            ACTIVITY_TABLE: {
                "totalRecords": users.count if users.count is not None else len(user_rows),
                "sampleData": sample_rows,
                "columns": list(sample_rows[0].keys()) if sample_rows else [],
                "uniqueUserIds": unique_user_ids,
            },
        }
