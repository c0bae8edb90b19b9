from pydantic import BaseModel
from typing import Any, Optional, List


class EmbedTokenRequest(BaseModel):
    userId: Optional[str] = None
    duration: Optional[Any] = None


class EmbedUser(BaseModel):
    id: str
    email: Optional[str] = None
    fullName: Optional[str] = None


class EmbedTokenResponse(BaseModel):
    success: bool = True
    token: str
    embedUrl: str
    expiresAt: str
    user: EmbedUser
    permissions: List[str]
    type: str


class VerifyTokenRequest(BaseModel):
    token: Optional[str] = None


class VerifiedUser(BaseModel):
    userId: str
    username: Optional[str] = None
    email: Optional[str] = None
    permissions: List[str]
    issuedAt: Optional[str] = None
    expiresAt: Optional[str] = None


class VerifyTokenResponse(BaseModel):
    success: bool = True
    verified: bool = True
    user: VerifiedUser
    message: str = "Token verified successfully"
