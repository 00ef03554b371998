"""
Pydantic schemas for Reminder
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from docvault.schemas.document import coerce_datetime


class ReminderRequest(BaseModel):
    """Schema for a user-requested reminder (owner comes from the request context)"""
    document_id: str = Field(..., min_length=1, description="Referenced document ID")
    reminder_date: datetime = Field(..., description="When the reminder fires")
    message: str = Field(..., min_length=1, max_length=1000, description="Reminder text")

    @field_validator("reminder_date", mode="before")
    @classmethod
    def _parse_reminder_date(cls, v):
        parsed = coerce_datetime(v)
        if parsed is None:
            raise ValueError("reminder_date is required")
        return parsed


class ReminderCreate(ReminderRequest):
    """Schema for creating a reminder"""
    user_id: str = Field(..., min_length=1, description="Owning user ID, same as the document's")
    is_active: bool = Field(True, description="False marks the reminder as dismissed")


class ReminderUpdate(BaseModel):
    """Schema for updating a reminder: only the active flag can change"""
    is_active: bool = Field(..., description="Set to false to dismiss")


class ReminderResponse(BaseModel):
    """Schema for a stored reminder"""
    id: str
    user_id: str
    document_id: str
    reminder_date: datetime
    message: str
    is_active: bool = True
    created_at: datetime

    class Config:
        from_attributes = True
