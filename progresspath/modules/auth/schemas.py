from pydantic import BaseModel
from typing import Optional


class CreateSessionRequest(BaseModel):
    token: Optional[str] = None


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


class SessionPayload(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None
    token_type: str = "bearer"
    user: SessionUser


class CreateSessionResponse(BaseModel):
    success: bool = True
    session: SessionPayload
