"""
SQL document store.

Durable implementation of the document store on SQLAlchemy. Every operation
runs in its own session; failures are rolled back and re-raised as
PersistenceError so callers never see driver-specific exceptions.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from docvault.core.category_config import DEFAULT_CATEGORIES
from docvault.models.category import Category
from docvault.models.document import Document
from docvault.models.reminder import Reminder
from docvault.schemas.document import DocumentCreate, DocumentResponse, DocumentStats
from docvault.schemas.reminder import ReminderCreate, ReminderResponse
from docvault.schemas.category import CategoryCreate, CategoryResponse, CategoryWithCount
from docvault.storage.base import (
    UPDATABLE_DOCUMENT_FIELDS,
    UPDATABLE_REMINDER_FIELDS,
    PersistenceError,
    compute_document_stats,
    matches_search,
    validate_update_fields,
)

logger = logging.getLogger(__name__)


def _to_document(row: Document) -> DocumentResponse:
    # "metadata" is reserved on declarative models, the column lives on doc_metadata
    return DocumentResponse(
        id=row.id,
        user_id=row.user_id,
        filename=row.filename,
        original_name=row.original_name,
        mime_type=row.mime_type,
        size=row.size,
        category=row.category,
        tags=list(row.tags or []),
        metadata=dict(row.doc_metadata or {}),
        expiry_date=row.expiry_date,
        is_encrypted=row.is_encrypted,
        uploaded_at=row.uploaded_at,
    )


def _escape_like(value: str) -> str:
    """Make LIKE wildcards in user input literal (escape character is a backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_reminder(row: Reminder) -> ReminderResponse:
    return ReminderResponse.model_validate(row)


def _to_category(row: Category) -> CategoryResponse:
    return CategoryResponse.model_validate(row)


class SQLStorage:
    """
    Document store backed by a relational database.

    Args:
        session_factory: sessionmaker bound to the target engine
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, action: str):
        db: Session = self.session_factory()
        try:
            yield db
        except IntegrityError as e:
            db.rollback()
            raise PersistenceError(f"{action} failed: {str(e.orig)}") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"{action} failed: {str(e)}", exc_info=True)
            raise PersistenceError(f"{action} failed: {str(e)}") from e
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, document: DocumentCreate) -> DocumentResponse:
        with self._session("Document creation") as db:
            row = Document(
                user_id=document.user_id,
                filename=document.filename,
                original_name=document.original_name,
                mime_type=document.mime_type,
                size=document.size,
                category=document.category,
                tags=list(document.tags),
                doc_metadata=dict(document.metadata),
                expiry_date=document.expiry_date,
                is_encrypted=document.is_encrypted,
                uploaded_at=datetime.now(),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_document(row)

    def get_document(self, document_id: str, user_id: str) -> Optional[DocumentResponse]:
        with self._session("Document lookup") as db:
            row = db.query(Document)\
                .filter(Document.id == document_id, Document.user_id == user_id).first()
            return _to_document(row) if row else None

    def get_documents(self, user_id: str) -> List[DocumentResponse]:
        with self._session("Document listing") as db:
            rows = db.query(Document)\
                .filter(Document.user_id == user_id)\
                .order_by(Document.uploaded_at.desc()).all()
            return [_to_document(row) for row in rows]

    def get_documents_by_category(self, user_id: str, category: str) -> List[DocumentResponse]:
        with self._session("Document listing") as db:
            rows = db.query(Document)\
                .filter(Document.user_id == user_id, Document.category == category)\
                .order_by(Document.uploaded_at.desc()).all()
            return [_to_document(row) for row in rows]

    def search_documents(self, user_id: str, query: str) -> List[DocumentResponse]:
        # Tags are a JSON array, so they are matched per element after loading
        pattern = f"%{_escape_like(query)}%"
        with self._session("Document search") as db:
            rows = db.query(Document)\
                .filter(
                    Document.user_id == user_id,
                    or_(
                        Document.filename.ilike(pattern, escape="\\"),
                        Document.original_name.ilike(pattern, escape="\\"),
                        Document.category.ilike(pattern, escape="\\"),
                        Document.tags.isnot(None),
                    )
                )\
                .order_by(Document.uploaded_at.desc()).all()
            documents = [_to_document(row) for row in rows]
        return [doc for doc in documents if matches_search(doc, query)]

    def get_expiring_documents(self, user_id: str, days: int, now: Optional[datetime] = None) -> List[DocumentResponse]:
        now = now or datetime.now()
        with self._session("Expiring document lookup") as db:
            rows = db.query(Document)\
                .filter(
                    Document.user_id == user_id,
                    Document.expiry_date.isnot(None),
                    Document.expiry_date >= now,
                    Document.expiry_date <= now + timedelta(days=days),
                )\
                .order_by(Document.expiry_date.asc()).all()
            return [_to_document(row) for row in rows]

    def update_document(self, document_id: str, user_id: str, updates: Dict[str, Any]) -> Optional[DocumentResponse]:
        validate_update_fields(updates, UPDATABLE_DOCUMENT_FIELDS)
        with self._session("Document update") as db:
            row = db.query(Document)\
                .filter(Document.id == document_id, Document.user_id == user_id).first()
            if not row:
                return None

            for field, value in updates.items():
                if field == "metadata":
                    row.doc_metadata = dict(value or {})
                elif field == "tags":
                    row.tags = list(value or [])
                else:
                    setattr(row, field, value)

            db.commit()
            db.refresh(row)
            return _to_document(row)

    def delete_document(self, document_id: str, user_id: str) -> bool:
        with self._session("Document deletion") as db:
            row = db.query(Document)\
                .filter(Document.id == document_id, Document.user_id == user_id).first()
            if not row:
                return False

            # Reminders go in the same transaction; not every backend enforces ON DELETE CASCADE
            removed = db.query(Reminder)\
                .filter(Reminder.document_id == document_id)\
                .delete(synchronize_session=False)
            db.delete(row)
            db.commit()

        logger.info(f"Document deleted: {document_id} ({removed} reminder(s) removed)")
        return True

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def create_reminder(self, reminder: ReminderCreate) -> ReminderResponse:
        with self._session("Reminder creation") as db:
            row = Reminder(
                user_id=reminder.user_id,
                document_id=reminder.document_id,
                reminder_date=reminder.reminder_date,
                message=reminder.message,
                is_active=reminder.is_active,
                created_at=datetime.now(),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_reminder(row)

    def _query_reminders(self, action: str, *criteria) -> List[ReminderResponse]:
        with self._session(action) as db:
            rows = db.query(Reminder)\
                .filter(*criteria)\
                .order_by(Reminder.reminder_date.desc()).all()
            return [_to_reminder(row) for row in rows]

    def get_reminders(self, user_id: str) -> List[ReminderResponse]:
        return self._query_reminders("Reminder listing", Reminder.user_id == user_id)

    def get_reminders_for_document(self, document_id: str, user_id: str) -> List[ReminderResponse]:
        return self._query_reminders(
            "Reminder listing",
            Reminder.user_id == user_id,
            Reminder.document_id == document_id,
        )

    def get_active_reminders(self, user_id: str) -> List[ReminderResponse]:
        return self._query_reminders(
            "Reminder listing",
            Reminder.user_id == user_id,
            Reminder.is_active.is_(True),
        )

    def get_upcoming_reminders(self, user_id: str, days: int, now: Optional[datetime] = None) -> List[ReminderResponse]:
        now = now or datetime.now()
        return self._query_reminders(
            "Upcoming reminder lookup",
            Reminder.user_id == user_id,
            Reminder.is_active.is_(True),
            Reminder.reminder_date >= now,
            Reminder.reminder_date <= now + timedelta(days=days),
        )

    def update_reminder(self, reminder_id: str, user_id: str, updates: Dict[str, Any]) -> Optional[ReminderResponse]:
        validate_update_fields(updates, UPDATABLE_REMINDER_FIELDS)
        with self._session("Reminder update") as db:
            row = db.query(Reminder)\
                .filter(Reminder.id == reminder_id, Reminder.user_id == user_id).first()
            if not row:
                return None

            for field, value in updates.items():
                setattr(row, field, value)

            db.commit()
            db.refresh(row)
            return _to_reminder(row)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def _ensure_default_categories(self, db: Session) -> None:
        if db.query(Category).count() > 0:
            return

        for category in DEFAULT_CATEGORIES:
            db.add(Category(**category))
        db.commit()
        logger.info(f"Seeded {len(DEFAULT_CATEGORIES)} default categories")

    def get_categories(self) -> List[CategoryResponse]:
        with self._session("Category listing") as db:
            self._ensure_default_categories(db)
            rows = db.query(Category).order_by(Category.name.asc()).all()
            return [_to_category(row) for row in rows]

    def create_category(self, category: CategoryCreate) -> CategoryResponse:
        db: Session = self.session_factory()
        try:
            self._ensure_default_categories(db)
            row = Category(**category.model_dump())
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_category(row)
        except IntegrityError as e:
            db.rollback()
            raise ValueError(f"Category already exists: {category.name}") from e
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Category creation failed: {str(e)}") from e
        finally:
            db.close()

    def get_categories_with_counts(self, user_id: str) -> List[CategoryWithCount]:
        with self._session("Category listing") as db:
            self._ensure_default_categories(db)
            counts = dict(
                db.query(Document.category, func.count(Document.id))
                .filter(Document.user_id == user_id)
                .group_by(Document.category).all()
            )
            rows = db.query(Category).order_by(Category.name.asc()).all()
            return [
                CategoryWithCount(
                    **_to_category(row).model_dump(),
                    document_count=counts.get(row.name, 0),
                )
                for row in rows
            ]

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def get_document_stats(self, user_id: str, now: Optional[datetime] = None) -> DocumentStats:
        return compute_document_stats(self.get_documents(user_id), now)
