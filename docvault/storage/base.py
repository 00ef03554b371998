"""
Persistence interface shared by every document store.

Stores are structural: anything that provides these methods can back the
ingestion pipeline and services. All lookups that take a user_id return None
(or False) for both missing and foreign records.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Protocol, runtime_checkable

from docvault.schemas.document import DocumentCreate, DocumentResponse, DocumentStats, StorageByType
from docvault.schemas.reminder import ReminderCreate, ReminderResponse
from docvault.schemas.category import CategoryCreate, CategoryResponse, CategoryWithCount

# Fields a document update may touch; id, user_id and uploaded_at never change
UPDATABLE_DOCUMENT_FIELDS = {"category", "tags", "expiry_date", "metadata"}
UPDATABLE_REMINDER_FIELDS = {"is_active"}

EXPIRING_SOON_DAYS = 90


class PersistenceError(Exception):
    """Storage backend failure (unavailable, constraint violation, ...)"""
    pass


@runtime_checkable
class DocumentStore(Protocol):
    """Storage contract for documents, reminders and categories"""

    # Documents
    def create_document(self, document: DocumentCreate) -> DocumentResponse: ...

    def get_document(self, document_id: str, user_id: str) -> Optional[DocumentResponse]: ...

    def get_documents(self, user_id: str) -> List[DocumentResponse]: ...

    def get_documents_by_category(self, user_id: str, category: str) -> List[DocumentResponse]: ...

    def search_documents(self, user_id: str, query: str) -> List[DocumentResponse]: ...

    def get_expiring_documents(self, user_id: str, days: int, now: Optional[datetime] = None) -> List[DocumentResponse]: ...

    def update_document(self, document_id: str, user_id: str, updates: Dict[str, Any]) -> Optional[DocumentResponse]: ...

    def delete_document(self, document_id: str, user_id: str) -> bool: ...

    # Reminders
    def create_reminder(self, reminder: ReminderCreate) -> ReminderResponse: ...

    def get_reminders(self, user_id: str) -> List[ReminderResponse]: ...

    def get_reminders_for_document(self, document_id: str, user_id: str) -> List[ReminderResponse]: ...

    def get_active_reminders(self, user_id: str) -> List[ReminderResponse]: ...

    def get_upcoming_reminders(self, user_id: str, days: int, now: Optional[datetime] = None) -> List[ReminderResponse]: ...

    def update_reminder(self, reminder_id: str, user_id: str, updates: Dict[str, Any]) -> Optional[ReminderResponse]: ...

    # Categories
    def get_categories(self) -> List[CategoryResponse]: ...

    def create_category(self, category: CategoryCreate) -> CategoryResponse: ...

    def get_categories_with_counts(self, user_id: str) -> List[CategoryWithCount]: ...

    # Statistics
    def get_document_stats(self, user_id: str, now: Optional[datetime] = None) -> DocumentStats: ...


def validate_update_fields(updates: Dict[str, Any], allowed: set) -> None:
    """Reject updates to unknown or immutable fields."""
    invalid = set(updates) - allowed
    if invalid:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(invalid))}")


def matches_search(document: DocumentResponse, query: str) -> bool:
    """Case-insensitive match over filenames, category and tags."""
    needle = query.lower()
    return (
        needle in document.filename.lower()
        or needle in document.original_name.lower()
        or needle in document.category.lower()
        or any(needle in tag.lower() for tag in document.tags)
    )


def compute_document_stats(documents: Iterable[DocumentResponse], now: Optional[datetime] = None) -> DocumentStats:
    """
    Aggregate dashboard statistics for a user's documents.

    :param documents: All documents owned by the user
    :param now: Reference time for "expiring soon"
    :return: DocumentStats
    """
    now = now or datetime.now()
    soon = now + timedelta(days=EXPIRING_SOON_DAYS)
    documents = list(documents)

    by_category: Dict[str, int] = {}
    for doc in documents:
        by_category[doc.category] = by_category.get(doc.category, 0) + 1

    def _size_where(predicate) -> int:
        return sum(doc.size for doc in documents if predicate(doc.mime_type.lower()))

    return DocumentStats(
        total_documents=len(documents),
        expiring_soon=sum(
            1 for doc in documents
            if doc.expiry_date is not None and now <= doc.expiry_date <= soon
        ),
        storage_used=sum(doc.size for doc in documents),
        by_category=by_category,
        storage_by_type=StorageByType(
            pdfs=_size_where(lambda mime: "pdf" in mime),
            images=_size_where(lambda mime: "image" in mime),
            documents=_size_where(
                lambda mime: "document" in mime or "msword" in mime or "wordprocessingml" in mime
            ),
        ),
    )
