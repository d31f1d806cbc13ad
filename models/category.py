"""
Category schemas for validation and serialization.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema, TimestampMixin


class CategoryCreate(BaseSchema):
    """
    Create a new category.

    Required: name
    Slug is derived from the name by the service.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name (unique, case-insensitive)",
        examples=["Sofás", "Cadeiras"]
    )
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = Field(None, description="Public image URL")
    display_order: int = Field(default=0, ge=0)


class CategoryUpdate(BaseSchema):
    """
    Update existing category.

    All fields optional - only provided fields are updated.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = None
    display_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class CategoryResponse(BaseSchema, TimestampMixin):
    """Category row as stored."""

    id: str = Field(..., description="Category UUID")
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
