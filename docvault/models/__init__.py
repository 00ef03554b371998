"""
Database models for DocVault
"""
from docvault.models.document import Document
from docvault.models.reminder import Reminder
from docvault.models.category import Category

__all__ = [
    "Document",
    "Reminder",
    "Category",
]
