"""
Business logic services
"""
from docvault.services.document_service import DocumentService, DocumentNotFoundError
from docvault.services.reminder_service import ReminderService, ReminderNotFoundError

__all__ = [
    "DocumentService",
    "DocumentNotFoundError",
    "ReminderService",
    "ReminderNotFoundError",
]
