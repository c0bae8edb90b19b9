from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import date

TimePeriod = Literal["daily", "weekly", "monthly", "yearly"]


class ChartDataPoint(BaseModel):
    date: str
    xp: int
    label: str
    timestamp: int


class XPStats(BaseModel):
    totalXP: int
    currentLevelXP: int
    nextLevelXP: int
    level: int
    progress: float


class XPLevel(BaseModel):
    level: int
    requiredXP: int
    title: str


class StreakData(BaseModel):
    currentStreak: int = 0
    longestStreak: int = 0
    streakGoal: int = 30
    isActive: bool = False
    lastActivityDate: Optional[date] = None


class Activity(BaseModel):
    id: str
    type: Literal["lesson", "practice", "review", "achievement"]
    title: str
    description: Optional[str] = None
    xpGained: int
    timestamp: str
    language: Optional[str] = None


class LanguageStats(BaseModel):
    language: str
    displayName: str
    totalXP: int = 0
    level: int = 1
    lessonsCompleted: int = 0
    timeSpent: int = 0
    streak: int = 0


class TimeStats(BaseModel):
    totalMinutes: int = 0
    todayMinutes: int = 0
    weekMinutes: int = 0
    monthMinutes: int = 0
    averageDaily: int = 0


class VocabularyStats(BaseModel):
    totalWords: int = 0
    uniqueWords: int = 0
    weekWords: int = 0
    sessionsWithVocabulary: int = 0
    recentWords: List[str] = Field(default_factory=list)


class HeatmapPoint(BaseModel):
    date: str
    xpGained: int = 0
    lessonsCompleted: int = 0
    timeSpentMinutes: int = 0
    intensity: int = 0


class HeatmapSummary(BaseModel):
    totalXP: int
    totalLessons: int
    totalMinutes: int
    activeDays: int
    averageXPPerDay: int
    periodDays: int


class CompletionData(BaseModel):
    completionRate: float
    totalSkills: int
    completedSkills: int
    languageCode: str


class VirtualLevelData(BaseModel):
    virtualLevel: int
    totalXP: int
    estimatedHours: float
    languageCode: str


class XPEntryCreate(BaseModel):
    userId: str = Field(min_length=1)
    xp: int = Field(ge=0)
    activityType: str = Field(min_length=1)
    description: Optional[str] = None
