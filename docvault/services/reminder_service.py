"""
Reminder business logic service
"""
import logging
from typing import Optional, List

from docvault.schemas.reminder import ReminderCreate, ReminderRequest, ReminderResponse
from docvault.services.document_service import DocumentNotFoundError

logger = logging.getLogger(__name__)


class ReminderNotFoundError(LookupError):
    """Reminder does not exist or belongs to another user"""

    def __init__(self, reminder_id: str):
        super().__init__(f"Reminder not found: {reminder_id}")
        self.reminder_id = reminder_id


class ReminderService:
    """Service for reminder-related business logic"""

    def __init__(self, store):
        self.store = store

    def list_reminders(self, user_id: str, upcoming_days: Optional[int] = None) -> List[ReminderResponse]:
        """
        List reminders

        Args:
            user_id: Owning user
            upcoming_days: When given, only reminders due within this many days

        Returns:
            Active reminders, latest reminder date first; dismissed ones are left out
        """
        if upcoming_days is not None:
            if upcoming_days < 0:
                raise ValueError("upcoming must not be negative")
            return self.store.get_upcoming_reminders(user_id, upcoming_days)
        return self.store.get_active_reminders(user_id)

    def get_document_reminders(self, document_id: str, user_id: str) -> List[ReminderResponse]:
        if self.store.get_document(document_id, user_id) is None:
            raise DocumentNotFoundError(document_id)
        return self.store.get_reminders_for_document(document_id, user_id)

    def create_reminder(self, user_id: str, request: ReminderRequest) -> ReminderResponse:
        """
        Create a user-requested reminder

        Raises:
            DocumentNotFoundError: If the referenced document is missing or foreign
        """
        if self.store.get_document(request.document_id, user_id) is None:
            raise DocumentNotFoundError(request.document_id)

        reminder = self.store.create_reminder(ReminderCreate(
            user_id=user_id,
            document_id=request.document_id,
            reminder_date=request.reminder_date,
            message=request.message,
        ))
        logger.info(f"Reminder {reminder.id} created for document {request.document_id}")
        return reminder

    def update_reminder(self, reminder_id: str, user_id: str, is_active: bool) -> ReminderResponse:
        """
        Set a reminder's active flag

        Raises:
            ReminderNotFoundError: If the reminder is missing or foreign
        """
        reminder = self.store.update_reminder(reminder_id, user_id, {"is_active": is_active})
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        return reminder

    def dismiss_reminder(self, reminder_id: str, user_id: str) -> ReminderResponse:
        return self.update_reminder(reminder_id, user_id, False)
