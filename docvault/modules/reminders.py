"""
Expiry reminder scheduling.

A document with an expiry date gets up to three reminders, one per lead time,
each firing that many days before expiry. Lead times whose trigger has already
passed are skipped, so a document expiring in 10 days only gets the 1-week
reminder and an expired document gets none.

Scheduling the same document twice creates a second set of reminders. Callers
schedule once, when a document first acquires an expiry date.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from docvault.schemas.document import DocumentResponse
from docvault.schemas.reminder import ReminderCreate, ReminderResponse

logger = logging.getLogger(__name__)

# (days before expiry, human-readable lead time)
REMINDER_LEAD_TIMES: Tuple[Tuple[int, str], ...] = (
    (90, "3 months"),
    (30, "1 month"),
    (7, "1 week"),
)


def format_reminder_message(original_name: str, lead_label: str) -> str:
    return f"{original_name} expires in {lead_label}"


def build_expiry_reminders(
    document: DocumentResponse,
    now: Optional[datetime] = None
) -> List[ReminderCreate]:
    """
    Compute the reminders a document should get, without persisting them.

    :param document: Document with an expiry date
    :param now: Reference time, defaults to the current time
    :return: Reminders whose trigger date is strictly after now, longest lead first
    """
    if document.expiry_date is None:
        return []

    now = now or datetime.now()
    reminders = []

    for days, label in REMINDER_LEAD_TIMES:
        reminder_date = document.expiry_date - timedelta(days=days)
        if reminder_date <= now:
            logger.debug(f"Skipping {label} reminder for {document.id}: {reminder_date} already passed")
            continue

        reminders.append(ReminderCreate(
            user_id=document.user_id,
            document_id=document.id,
            reminder_date=reminder_date,
            message=format_reminder_message(document.original_name, label),
            is_active=True,
        ))

    return reminders


def schedule_expiry_reminders(
    store,
    document: DocumentResponse,
    now: Optional[datetime] = None
) -> List[ReminderResponse]:
    """
    Create and persist the expiry reminders for a document.

    :param store: DocumentStore used to persist the reminders
    :param document: Document with an expiry date
    :param now: Reference time, defaults to the current time
    :return: The persisted reminders (0 to 3)
    """
    created = [store.create_reminder(reminder) for reminder in build_expiry_reminders(document, now)]

    logger.info(
        f"Scheduled {len(created)} expiry reminder(s) for document {document.id} "
        f"(expires {document.expiry_date.date() if document.expiry_date else None})"
    )
    return created
