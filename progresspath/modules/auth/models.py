# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - Access token validation (auth.get_user)
# - Admin user lookup (auth.admin.get_user_by_id)
# - Session minting from a one-time magic link token

"""
Embed token -> Supabase session conversion:
1. verify the embed token (same secret hierarchy as issuance)
2. auth.admin.get_user_by_id(userId) must return a user whose email matches
3. auth.admin.generate_link(type="magiclink") yields a hashed one-time token
4. auth.verify_otp(token_hash=..., type="magiclink") exchanges it for a session

The exchange runs on a throwaway client so the shared service-role client
never picks up the user's session.
"""

OTP_LINK_TYPE = "magiclink"
