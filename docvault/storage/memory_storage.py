"""
In-memory document store.
Used for tests and local development; nothing survives a restart.
"""
import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from docvault.core.category_config import DEFAULT_CATEGORIES
from docvault.schemas.document import DocumentCreate, DocumentResponse, DocumentStats
from docvault.schemas.reminder import ReminderCreate, ReminderResponse
from docvault.schemas.category import CategoryCreate, CategoryResponse, CategoryWithCount
from docvault.storage.base import (
    UPDATABLE_DOCUMENT_FIELDS,
    UPDATABLE_REMINDER_FIELDS,
    compute_document_stats,
    matches_search,
    validate_update_fields,
)

logger = logging.getLogger(__name__)


class MemoryStorage:
    """
    Dictionary-backed store keyed by record ID.

    Records are copied on the way in and out so callers never hold a live
    reference to stored state. A lock keeps cascade deletes atomic.
    """

    def __init__(self, seed_categories: bool = True):
        self._documents: Dict[str, DocumentResponse] = {}
        self._reminders: Dict[str, ReminderResponse] = {}
        self._categories: Dict[str, CategoryResponse] = {}
        self._lock = threading.RLock()

        if seed_categories:
            for category in DEFAULT_CATEGORIES:
                self.create_category(CategoryCreate(**category))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, document: DocumentCreate) -> DocumentResponse:
        record = DocumentResponse(
            id=str(uuid.uuid4()),
            uploaded_at=datetime.now(),
            **document.model_dump(),
        )
        with self._lock:
            self._documents[record.id] = record
        logger.debug(f"Document stored in memory: {record.id}")
        return record.model_copy(deep=True)

    def get_document(self, document_id: str, user_id: str) -> Optional[DocumentResponse]:
        doc = self._documents.get(document_id)
        if doc is None or doc.user_id != user_id:
            return None
        return doc.model_copy(deep=True)

    def get_documents(self, user_id: str) -> List[DocumentResponse]:
        docs = [doc for doc in self._documents.values() if doc.user_id == user_id]
        docs.sort(key=lambda doc: doc.uploaded_at, reverse=True)
        return [doc.model_copy(deep=True) for doc in docs]

    def get_documents_by_category(self, user_id: str, category: str) -> List[DocumentResponse]:
        return [doc for doc in self.get_documents(user_id) if doc.category == category]

    def search_documents(self, user_id: str, query: str) -> List[DocumentResponse]:
        return [doc for doc in self.get_documents(user_id) if matches_search(doc, query)]

    def get_expiring_documents(self, user_id: str, days: int, now: Optional[datetime] = None) -> List[DocumentResponse]:
        now = now or datetime.now()
        until = now + timedelta(days=days)
        docs = [
            doc for doc in self.get_documents(user_id)
            if doc.expiry_date is not None and now <= doc.expiry_date <= until
        ]
        docs.sort(key=lambda doc: doc.expiry_date)
        return docs

    def update_document(self, document_id: str, user_id: str, updates: Dict[str, Any]) -> Optional[DocumentResponse]:
        validate_update_fields(updates, UPDATABLE_DOCUMENT_FIELDS)
        with self._lock:
            doc = self._documents.get(document_id)
            if doc is None or doc.user_id != user_id:
                return None
            updated = doc.model_copy(update=updates, deep=True)
            self._documents[document_id] = updated
        return updated.model_copy(deep=True)

    def delete_document(self, document_id: str, user_id: str) -> bool:
        with self._lock:
            doc = self._documents.get(document_id)
            if doc is None or doc.user_id != user_id:
                return False

            del self._documents[document_id]
            reminder_ids = [rid for rid, r in self._reminders.items() if r.document_id == document_id]
            for reminder_id in reminder_ids:
                del self._reminders[reminder_id]

        logger.info(f"Document deleted: {document_id} ({len(reminder_ids)} reminder(s) removed)")
        return True

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def create_reminder(self, reminder: ReminderCreate) -> ReminderResponse:
        record = ReminderResponse(
            id=str(uuid.uuid4()),
            created_at=datetime.now(),
            **reminder.model_dump(),
        )
        with self._lock:
            self._reminders[record.id] = record
        return record.model_copy(deep=True)

    def _user_reminders(self, user_id: str) -> List[ReminderResponse]:
        reminders = [r for r in self._reminders.values() if r.user_id == user_id]
        reminders.sort(key=lambda r: r.reminder_date, reverse=True)
        return [r.model_copy(deep=True) for r in reminders]

    def get_reminders(self, user_id: str) -> List[ReminderResponse]:
        return self._user_reminders(user_id)

    def get_reminders_for_document(self, document_id: str, user_id: str) -> List[ReminderResponse]:
        return [r for r in self._user_reminders(user_id) if r.document_id == document_id]

    def get_active_reminders(self, user_id: str) -> List[ReminderResponse]:
        return [r for r in self._user_reminders(user_id) if r.is_active]

    def get_upcoming_reminders(self, user_id: str, days: int, now: Optional[datetime] = None) -> List[ReminderResponse]:
        now = now or datetime.now()
        until = now + timedelta(days=days)
        return [
            r for r in self._user_reminders(user_id)
            if r.is_active and now <= r.reminder_date <= until
        ]

    def update_reminder(self, reminder_id: str, user_id: str, updates: Dict[str, Any]) -> Optional[ReminderResponse]:
        validate_update_fields(updates, UPDATABLE_REMINDER_FIELDS)
        with self._lock:
            reminder = self._reminders.get(reminder_id)
            if reminder is None or reminder.user_id != user_id:
                return None
            updated = reminder.model_copy(update=updates)
            self._reminders[reminder_id] = updated
        return updated.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_categories(self) -> List[CategoryResponse]:
        return [category.model_copy() for category in self._categories.values()]

    def create_category(self, category: CategoryCreate) -> CategoryResponse:
        with self._lock:
            if any(existing.name == category.name for existing in self._categories.values()):
                raise ValueError(f"Category already exists: {category.name}")
            record = CategoryResponse(id=str(uuid.uuid4()), **category.model_dump())
            self._categories[record.id] = record
        return record.model_copy()

    def get_categories_with_counts(self, user_id: str) -> List[CategoryWithCount]:
        counts: Dict[str, int] = {}
        for doc in self._documents.values():
            if doc.user_id == user_id:
                counts[doc.category] = counts.get(doc.category, 0) + 1

        return [
            CategoryWithCount(**category.model_dump(), document_count=counts.get(category.name, 0))
            for category in self.get_categories()
        ]

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_document_stats(self, user_id: str, now: Optional[datetime] = None) -> DocumentStats:
        return compute_document_stats(self.get_documents(user_id), now)
