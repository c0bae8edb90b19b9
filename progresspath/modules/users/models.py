# Supabase table: user_profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

user_profiles:
- id: uuid (primary key, references auth.users.id)
- display_name: text (nullable)
- email: text (nullable) - copied from auth.users on first sync
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Rows are created lazily the first time a signed-in user syncs.
RLS: users can only select/update the row whose id = auth.uid().
"""

TABLE = "user_profiles"
