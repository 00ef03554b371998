"""
Pydantic schemas for Document
"""
from datetime import date, datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, field_validator


def coerce_datetime(value: Any) -> Optional[datetime]:
    """
    Accept a datetime, a date or an ISO string and return a naive datetime.

    Date-only strings ("2026-03-01") become midnight. Empty strings mean absent.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                return datetime.combine(date.fromisoformat(text), datetime.min.time())
            return datetime.fromisoformat(text).replace(tzinfo=None)
        except ValueError:
            raise ValueError(f"Invalid date: {value!r}")
    raise ValueError(f"Invalid date: {value!r}")


def coerce_calendar_date(value: Any) -> Optional[datetime]:
    """Like coerce_datetime, but drops the time of day (expiry dates are calendar dates)."""
    parsed = coerce_datetime(value)
    if parsed is None:
        return None
    return parsed.replace(hour=0, minute=0, second=0, microsecond=0)


class DocumentCreate(BaseModel):
    """Schema for creating a document"""
    user_id: str = Field(..., min_length=1, description="Owning user ID")
    filename: str = Field(..., min_length=1, max_length=255, description="Stored filename (system-assigned)")
    original_name: str = Field(..., min_length=1, max_length=255, description="Filename supplied by the user")
    mime_type: str = Field(..., min_length=1, description="Declared MIME type")
    size: int = Field(..., ge=0, description="Size in bytes")
    category: str = Field(..., min_length=1, max_length=100, description="Category name")
    tags: List[str] = Field(default_factory=list, description="Free-text tags, insertion order kept")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Flexible metadata")
    expiry_date: Optional[datetime] = Field(None, description="Expiry date (calendar date)")
    is_encrypted: bool = Field(True, description="Informational encryption flag")

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _parse_expiry_date(cls, v):
        return coerce_calendar_date(v)


class DocumentUpdate(BaseModel):
    """Schema for updating a document. Only fields that are explicitly set are applied."""
    category: Optional[str] = Field(None, min_length=1, max_length=100, description="Category name")
    tags: Optional[List[str]] = Field(None, description="Replacement tag list")
    expiry_date: Optional[datetime] = Field(None, description="New expiry date, or null to clear it")

    @field_validator("expiry_date", mode="before")
    @classmethod
    def _parse_expiry_date(cls, v):
        return coerce_calendar_date(v)


class DocumentResponse(BaseModel):
    """Schema for a stored document"""
    id: str
    user_id: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    category: str
    tags: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    expiry_date: Optional[datetime] = None
    is_encrypted: Optional[bool] = True
    uploaded_at: datetime

    class Config:
        from_attributes = True


class StorageByType(BaseModel):
    """Bytes used per broad file type"""
    pdfs: int = 0
    images: int = 0
    documents: int = 0


class DocumentStats(BaseModel):
    """Dashboard statistics for one user"""
    total_documents: int = 0
    expiring_soon: int = Field(0, description="Documents expiring within three months")
    storage_used: int = Field(0, description="Total bytes uploaded")
    by_category: Dict[str, int] = Field(default_factory=dict)
    storage_by_type: StorageByType = Field(default_factory=StorageByType)
