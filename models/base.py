"""
Shared schema building blocks for catalog models.
"""

from math import ceil
from typing import Generic, Optional, TypeVar
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class BaseSchema(BaseModel):
    """
    Base for catalog request/response schemas.

    Strings are trimmed and assignments re-validated, so a name
    edited after construction still passes its field rules.
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class TimestampMixin(BaseModel):
    """Timestamps set by the database."""
    created_at: datetime
    updated_at: Optional[datetime] = None


class Page(BaseSchema, Generic[T]):
    """One page of a listing plus the totals needed to navigate it."""
    data: list[T] = Field(default_factory=list)
    total: int = Field(0, ge=0)
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1)
    total_pages: int = 0

    @classmethod
    def build(cls, items: list, total: int, page: int, page_size: int):
        return cls(
            data=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=ceil(total / page_size) if total else 0
        )
