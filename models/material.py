"""
Material schemas.

Materials double as product colors: the importer stores each color as a
material with a hex code.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum
from datetime import datetime
import re

from models.base import BaseSchema


HEX_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


class MaterialType(str, Enum):
    """Material families."""
    WOOD = "wood"
    FABRIC = "fabric"
    METAL = "metal"
    GLASS = "glass"
    OTHER = "other"


def _validate_hex(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not v.startswith("#"):
        v = f"#{v}"
    if not HEX_PATTERN.match(v):
        raise ValueError("hex_code must look like #RRGGBB")
    return v.upper()


class MaterialCreate(BaseSchema):
    """
    Create a new material.

    Required: name, type
    display_order defaults to the next free slot.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        examples=["MDF Freijó", "Veludo Azul"]
    )
    type: MaterialType = Field(default=MaterialType.OTHER)
    hex_code: Optional[str] = Field(None, examples=["#D2B48C"])
    description: Optional[str] = Field(None, max_length=1000)
    is_custom: bool = True
    display_order: Optional[int] = Field(None, ge=0)

    @field_validator("hex_code")
    @classmethod
    def hex_format(cls, v: Optional[str]) -> Optional[str]:
        return _validate_hex(v)


class MaterialUpdate(BaseSchema):
    """Partial material update."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[MaterialType] = None
    hex_code: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    is_custom: Optional[bool] = None
    display_order: Optional[int] = Field(None, ge=0)

    @field_validator("hex_code")
    @classmethod
    def hex_format(cls, v: Optional[str]) -> Optional[str]:
        return _validate_hex(v)


class MaterialResponse(BaseSchema):
    """Material row as stored."""

    id: str
    name: str
    type: MaterialType = MaterialType.OTHER
    hex_code: Optional[str] = None
    description: Optional[str] = None
    is_custom: bool = False
    display_order: int = 0
    created_at: Optional[datetime] = None
