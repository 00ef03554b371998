"""
Database model for Document
"""
import uuid
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON, func

from docvault.core.database import Base


class Document(Base):
    """Document model - uploaded file metadata, category and optional expiry date"""
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(100), nullable=False, index=True)
    filename = Column(String(255), nullable=False)  # stored name, system-assigned
    original_name = Column(String(255), nullable=False)  # name supplied by the user
    mime_type = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False)

    # Referenced by name, not by foreign key: deleting a category leaves documents untouched
    category = Column(String(100), nullable=False, index=True)
    tags = Column(JSON, nullable=True)

    # Flexible metadata, e.g. {"fileExtension": ".jpg", "scan": {"documentType": "passport"}}
    doc_metadata = Column("metadata", JSON, nullable=True)

    expiry_date = Column(DateTime, nullable=True, index=True)
    is_encrypted = Column(Boolean, nullable=True, default=True)
    uploaded_at = Column(DateTime, default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Document(id={self.id}, original_name='{self.original_name}', user_id={self.user_id}, category='{self.category}')>"
