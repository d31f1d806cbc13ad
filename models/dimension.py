"""
Dimension schemas.

Dimensions are the furniture equivalent of sizes.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema


class DimensionCreate(BaseSchema):
    """Create a new dimension preset."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        examples=["Compacto", "Padrão", "King"]
    )
    width_cm: Optional[float] = Field(None, gt=0)
    height_cm: Optional[float] = Field(None, gt=0)
    depth_cm: Optional[float] = Field(None, gt=0)
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True


class DimensionUpdate(BaseSchema):
    """Partial dimension update."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    width_cm: Optional[float] = Field(None, gt=0)
    height_cm: Optional[float] = Field(None, gt=0)
    depth_cm: Optional[float] = Field(None, gt=0)
    display_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class DimensionResponse(BaseSchema):
    """Dimension row as stored."""

    id: str
    name: str
    width_cm: Optional[float] = None
    height_cm: Optional[float] = None
    depth_cm: Optional[float] = None
    display_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
