from pydantic import BaseModel
from typing import Optional, List, Union
from datetime import datetime


class LearningSessionCreate(BaseModel):
    activity_type: Optional[str] = None
    duration_minutes: Optional[Union[int, str]] = None
    date: Optional[str] = None
    notes: Optional[str] = None
    mood: Optional[str] = None
    new_vocabulary: Optional[Union[str, List[str]]] = None
    practice_sentences: Optional[Union[str, List[str]]] = None


class LearningSessionResponse(BaseModel):
    id: str
    user_id: str
    activity_type: str
    duration_minutes: Optional[int] = None
    total_time: Optional[int] = None
    date: str
    notes: Optional[str] = None
    mood: Optional[str] = None
    new_vocabulary: Optional[List[str]] = None
    practice_sentences: Optional[List[str]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LearningStats(BaseModel):
    language: str
    totalMinutes: int
    totalHours: float
    totalSessions: int
    sessionsThisWeek: int
    totalVocabulary: int
    currentStreak: int
