"""
Document business logic service
"""
import logging
from typing import Optional, List, Tuple

from docvault.integrations.storage_client import FileStorage, StorageException
from docvault.modules.reminders import schedule_expiry_reminders
from docvault.schemas.document import DocumentResponse, DocumentUpdate, DocumentStats
from docvault.schemas.category import CategoryWithCount

logger = logging.getLogger(__name__)


class DocumentNotFoundError(LookupError):
    """Document does not exist or belongs to another user"""

    def __init__(self, document_id: str):
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class DocumentService:
    """
    Service for document operations outside of ingestion

    Every call is scoped to one user; a foreign document is reported exactly
    like a missing one.
    """

    def __init__(self, store, file_storage: FileStorage):
        self.store = store
        self.file_storage = file_storage

    def get_document(self, document_id: str, user_id: str) -> DocumentResponse:
        """
        Get a document by ID

        Raises:
            DocumentNotFoundError: If the document is missing or foreign
        """
        document = self.store.get_document(document_id, user_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def list_documents(
        self,
        user_id: str,
        category: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[DocumentResponse]:
        """
        List a user's documents, newest first

        Args:
            user_id: Owning user
            category: Only documents in this category ("all" means no filter)
            search: Case-insensitive text matched against names, category and tags

        Returns:
            Matching documents
        """
        if search and search.strip():
            documents = self.store.search_documents(user_id, search.strip())
            if category and category != "all":
                documents = [doc for doc in documents if doc.category == category]
            return documents

        if category and category != "all":
            return self.store.get_documents_by_category(user_id, category)

        return self.store.get_documents(user_id)

    def update_document(self, document_id: str, user_id: str, update: DocumentUpdate) -> DocumentResponse:
        """
        Update category, tags or expiry date

        A document that gains its first expiry date gets its reminders
        scheduled. Clearing the expiry date dismisses the document's active
        reminders. Changing an existing expiry date leaves reminders as they are.

        Raises:
            DocumentNotFoundError: If the document is missing or foreign
            ValueError: If the update is invalid
        """
        current = self.get_document(document_id, user_id)
        updates = update.model_dump(exclude_unset=True)

        if "category" in updates and updates["category"] is None:
            raise ValueError("category cannot be null")
        if "tags" in updates and updates["tags"] is None:
            updates["tags"] = []

        if not updates:
            return current

        updated = self.store.update_document(document_id, user_id, updates)
        if updated is None:
            raise DocumentNotFoundError(document_id)

        if current.expiry_date is None and updated.expiry_date is not None:
            try:
                schedule_expiry_reminders(self.store, updated)
            except Exception as e:
                logger.error(f"Reminder scheduling failed for document {document_id}: {e}", exc_info=True)

        elif current.expiry_date is not None and "expiry_date" in updates and updated.expiry_date is None:
            dismissed = 0
            for reminder in self.store.get_reminders_for_document(document_id, user_id):
                if reminder.is_active:
                    self.store.update_reminder(reminder.id, user_id, {"is_active": False})
                    dismissed += 1
            logger.info(f"Expiry cleared for document {document_id}, {dismissed} reminder(s) dismissed")

        return updated

    def delete_document(self, document_id: str, user_id: str) -> None:
        """
        Delete a document, its reminders and its stored file

        Raises:
            DocumentNotFoundError: If the document is missing or foreign
        """
        document = self.get_document(document_id, user_id)

        if not self.store.delete_document(document_id, user_id):
            raise DocumentNotFoundError(document_id)

        try:
            self.file_storage.delete_file(document.filename)
        except StorageException as e:
            # The record is gone; a leftover file is only wasted space
            logger.warning(f"Could not remove stored file {document.filename}: {e}")

    def get_file(self, document_id: str, user_id: str) -> Tuple[DocumentResponse, bytes]:
        """
        Get a document together with its file bytes

        Raises:
            DocumentNotFoundError: If the document or its file is missing
        """
        document = self.get_document(document_id, user_id)
        content = self.file_storage.read_file(document.filename)
        if content is None:
            logger.warning(f"Stored file missing for document {document_id}: {document.filename}")
            raise DocumentNotFoundError(document_id)
        return document, content

    def get_stats(self, user_id: str) -> DocumentStats:
        return self.store.get_document_stats(user_id)

    def get_categories(self, user_id: str) -> List[CategoryWithCount]:
        return self.store.get_categories_with_counts(user_id)
