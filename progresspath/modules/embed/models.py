# Embed tokens are stateless HS256 JWTs; nothing is persisted for them.
# Issuance reads the token owner from the user_profiles table.

"""
Embed token claims:
- userId: uuid of the profile owner (also carried as `sub`)
- email: email from auth.users
- fullName: user_profiles.display_name
- permissions: always ["read"]
- type: "embed"
- createdAt: ISO timestamp of issuance
- iat / exp: standard issued-at and expiry claims (seconds since epoch)
"""

PROFILE_TABLE = "user_profiles"
TOKEN_TYPE = "embed"
ALGORITHM = "HS256"
READ_ONLY_PERMISSIONS = ["read"]
