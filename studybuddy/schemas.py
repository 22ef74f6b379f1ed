from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"
REMINDER_PATTERN = r"^(1h|2h|1d|2d|custom)$"


# User schemas
class UserBase(BaseModel):
    email: Optional[str] = Field(None, max_length=320)
    name: Optional[str] = Field(None, max_length=200)
    expo_push_token: Optional[str] = None
    timezone: Optional[str] = Field(None, max_length=64)


class UserCreate(UserBase):
    id: str = Field(..., min_length=1, max_length=128)


class PushTokenUpdate(BaseModel):
    expo_push_token: Optional[str] = None


class UserResponse(UserBase):
    id: str
    points: int = 0
    level: int = 1
    created_at: datetime

    class Config:
        from_attributes = True


# Streak schemas
class StreakUpdateRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)

    class Config:
        populate_by_name = True


class StreakSummary(BaseModel):
    current: int
    longest: int
    totalTasksCompleted: int


class StreakUpdateResponse(BaseModel):
    success: bool = True
    streak: StreakSummary
    increased: bool
    milestone: Optional[int] = None
    pointsAwarded: int = 0
    points: int = 0
    level: int = 1
    leveledUp: bool = False


class StreakState(BaseModel):
    current: int = 0
    longest: int = 0
    lastCompletionDate: Optional[str] = None
    totalTasksCompleted: int = 0
    streakFreezes: int = 0
    active: bool = False


class StreakDataResponse(BaseModel):
    success: bool = True
    streak: StreakState


# Gamification schemas
class AwardPointsRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1)
    points: int
    activity_type: Optional[str] = Field(None, alias="activityType")

    class Config:
        populate_by_name = True


class AwardPointsResponse(BaseModel):
    points: int
    level: int
    leveledUp: bool
    pointsAdded: int


class GamificationCounters(BaseModel):
    habitsCompleted: int = 0
    featuresUsed: int = 0
    goalsCompleted: int = 0


class GamificationStatsResponse(BaseModel):
    points: int = 0
    level: int = 1
    gamification: GamificationCounters


# Task schemas
class TaskBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    type: str = Field(default="task", max_length=50)
    class_name: Optional[str] = Field(None, max_length=200)
    due_date: Optional[str] = Field(None, pattern=DATE_PATTERN)  # YYYY-MM-DD
    due_time: Optional[str] = Field(None, pattern=TIME_PATTERN)  # HH:MM
    reminder: Optional[str] = Field(None, pattern=REMINDER_PATTERN)
    custom_reminder_date: Optional[datetime] = None


class TaskCreate(TaskBase):
    user_id: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def custom_reminder_needs_date(self):
        if self.reminder == "custom" and self.custom_reminder_date is None:
            raise ValueError("custom_reminder_date is required when reminder is 'custom'")
        return self


class TaskUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    type: Optional[str] = Field(None, max_length=50)
    class_name: Optional[str] = Field(None, max_length=200)
    due_date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    due_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    reminder: Optional[str] = Field(None, pattern=REMINDER_PATTERN)
    custom_reminder_date: Optional[datetime] = None


class TaskResponse(TaskBase):
    id: int
    user_id: str
    completed: bool
    completed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class TaskCompleteResponse(BaseModel):
    task: TaskResponse
    streak: StreakUpdateResponse


class ReminderTimeResponse(BaseModel):
    task_id: int
    reminder: Optional[str] = None
    reminder_time: Optional[datetime] = None
