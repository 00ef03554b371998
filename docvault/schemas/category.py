"""
Pydantic schemas for Category
"""
from typing import Optional
from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    """Schema for creating a category"""
    name: str = Field(..., min_length=1, max_length=100, description="Category name, unique")
    icon: str = Field(..., min_length=1, max_length=100, description="Icon reference")
    color: str = Field(..., min_length=1, max_length=20, description="Display color")
    description: Optional[str] = Field(None, description="Category description")


class CategoryResponse(CategoryCreate):
    """Schema for a stored category"""
    id: str

    class Config:
        from_attributes = True


class CategoryWithCount(CategoryResponse):
    """Category plus the number of documents the user has filed under it"""
    document_count: int = 0
