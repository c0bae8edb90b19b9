from pydantic import BaseModel, Field
from typing import Optional, List, Literal


class Quote(BaseModel):
    quote: str
    author: str
    language: str = "en"
    translation: Optional[str] = None
    category: Optional[str] = None


class QuoteResponse(BaseModel):
    success: bool = True
    quote: Quote
    source: Literal["database", "builtin"] = "database"
    timestamp: str


class QuoteRefreshRequest(BaseModel):
    language: Optional[str] = None
    category: Optional[str] = None
    count: int = 5


class QuoteListResponse(BaseModel):
    success: bool = True
    quotes: List[Quote] = Field(default_factory=list)
    count: int = 0
    timestamp: str


class PruneResult(BaseModel):
    success: bool = True
    message: str
    deletedCount: int
    cutoff: str
    today: str
    todayQuotesCount: int
    timestamp: str
    duration: str
