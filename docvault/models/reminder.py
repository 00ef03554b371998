"""
Database model for Reminder
"""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, func

from docvault.core.database import Base


class Reminder(Base):
    """Reminder model - a dated notice about a document, usually an upcoming expiry"""
    __tablename__ = "reminders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), nullable=False, index=True)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    reminder_date = Column(DateTime, nullable=False, index=True)
    message = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)  # False once dismissed
    created_at = Column(DateTime, default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Reminder(id={self.id}, document_id={self.document_id}, reminder_date={self.reminder_date}, is_active={self.is_active})>"
