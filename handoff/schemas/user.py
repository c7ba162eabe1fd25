"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserBase(BaseModel):
    """Base user schema."""

    name: str
    email: str | None = None
    timezone: str = "UTC"
    comfort_buffer_minutes: int = Field(default=5, ge=0, le=120)


class UserCreate(UserBase):
    """Schema for creating a user."""

    pass


class UserUpdate(BaseModel):
    """Schema for updating a user."""

    name: str | None = None
    email: str | None = None
    timezone: str | None = None
    comfort_buffer_minutes: int | None = Field(default=None, ge=0, le=120)


class User(UserBase):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
