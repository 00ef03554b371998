"""
Pydantic schemas for DocVault
"""
from docvault.schemas.document import (
    DocumentCreate,
    DocumentUpdate,
    DocumentResponse,
    DocumentStats,
    StorageByType,
)
from docvault.schemas.reminder import ReminderRequest, ReminderCreate, ReminderUpdate, ReminderResponse
from docvault.schemas.category import CategoryCreate, CategoryResponse, CategoryWithCount

__all__ = [
    "DocumentCreate",
    "DocumentUpdate",
    "DocumentResponse",
    "DocumentStats",
    "StorageByType",
    "ReminderRequest",
    "ReminderCreate",
    "ReminderUpdate",
    "ReminderResponse",
    "CategoryCreate",
    "CategoryResponse",
    "CategoryWithCount",
]
