# Supabase tables: french_learning, german_learning
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure (same for every language):
- id: uuid (primary key)
- user_id: uuid (not null, references auth.users.id; set by a trigger when omitted)
- activity_type: text (not null) - vocabulary, grammar, reading, listening, speaking, writing, exercise
- duration_minutes: integer (not null, >= 1)
- total_time: integer (nullable) - kept equal to duration_minutes
- new_vocabulary: text[] (nullable)
- practice_sentences: text[] (nullable)
- mood: text (default 'neutral') - good, neutral, difficult
- notes: text (nullable)
- date: date (not null)
- created_at: timestamp (default: now())

RLS: every policy compares user_id with auth.uid().
"""

SESSION_TABLES = {
    "french": "french_learning",
    "german": "german_learning",
}

ACTIVITY_TYPES = ["vocabulary", "grammar", "reading", "listening", "speaking", "writing", "exercise"]
MOODS = ["good", "neutral", "difficult"]
DEFAULT_MOOD = "neutral"
SESSION_LIST_LIMIT = 30
