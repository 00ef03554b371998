"""
Database model for Category
"""
import uuid
from sqlalchemy import Column, String, Text

from docvault.core.database import Base


class Category(Base):
    """Category model - document classifications (Identity Documents, Receipts, etc.)"""
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False, unique=True, index=True)
    icon = Column(String(100), nullable=False)  # e.g. "fas fa-id-card"
    color = Column(String(20), nullable=False)  # e.g. "#3b82f6"
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
