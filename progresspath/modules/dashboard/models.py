# Supabase table: duolingo_activity
# This file documents the expected database schema
# Rows are ingested outside the app; the API only reads them.

"""
Expected Supabase table structure:

duolingo_activity:
- id: uuid (primary key)
- user_id: uuid (not null, references auth.users.id)
- date: date (not null) - activity day (UTC)
- language: text (not null) - display name ("French") or ISO code ("fr")
- xp_gained: integer (default 0)
- lessons_completed: integer (default 0)
- time_spent_minutes: integer (default 0)
- streak_count: integer (nullable) - streak reported by the source on that day
- level: integer (nullable)
- raw_api_data: jsonb (nullable) - untouched payload from the source
- created_at: timestamp (default: now())

One row per (user_id, date, language). RLS: select where user_id = auth.uid().
"""

ACTIVITY_TABLE = "duolingo_activity"

# Look-back window in days for each chart period
PERIOD_LOOKBACK_DAYS = {
    "daily": 30,
    "weekly": 90,
    "monthly": 365,
    "yearly": 1825,
}
VALID_PERIODS = list(PERIOD_LOOKBACK_DAYS)

# Route parameter -> ISO 639-1 code
LANGUAGE_CODE_MAP = {
    "french": "fr",
    "german": "de",
    "spanish": "es",
    "italian": "it",
    "portuguese": "pt",
    "dutch": "nl",
    "japanese": "ja",
    "korean": "ko",
    "chinese": "zh",
}

HEATMAP_DEFAULT_DAYS = 30
HEATMAP_MAX_DAYS = 365
RECENT_ACTIVITY_LIMIT = 10
