"""User model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class Theme(str, Enum):
    """UI theme preference."""

    DARK = "dark"
    LIGHT = "light"


class WeekStart(str, Enum):
    """First day of the week in calendar views."""

    MONDAY = "monday"
    SUNDAY = "sunday"


class UserPreferences(BaseModel):
    """Per-user display and notification preferences."""

    theme: Theme = Theme.DARK
    week_start: WeekStart = WeekStart.MONDAY
    email_reminders: bool = True


class UserStats(BaseModel):
    """Lifetime counters kept on the user document."""

    total_habits_completed: int = 0
    longest_streak: int = 0
    goals_completed: int = 0


class UserBase(BaseModel):
    """Base user fields."""

    email: EmailStr
    name: str = Field(min_length=1, max_length=50)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()


class UserCreate(UserBase):
    """User creation model with password."""

    password: str = Field(min_length=6)


class User(UserBase):
    """User model without password (for API responses)."""

    id: str = Field(alias="_id", serialization_alias="id")
    timezone: str = "UTC"
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    stats: UserStats = Field(default_factory=UserStats)
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class LoginRequest(BaseModel):
    """Login credentials."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """Bearer token issued on login."""

    access_token: str
    token_type: str = "bearer"


class ProfileUpdate(BaseModel):
    """Profile fields a user can change; unset fields are left alone."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    timezone: Optional[str] = Field(default=None, min_length=1)
    preferences: Optional[UserPreferences] = None


class PasswordChange(BaseModel):
    """Password change request."""

    current_password: str
    new_password: str = Field(min_length=6)
