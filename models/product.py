"""
Product schemas for validation and serialization.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema, Page, TimestampMixin
from models.category import CategoryResponse
from models.dimension import DimensionResponse
from models.material import MaterialResponse


class StockStatus(str, Enum):
    """Product availability."""
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    MADE_TO_ORDER = "made_to_order"


class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: name, category_id, price
    Optional: everything else; dimension_ids and material_ids become
    product_dimensions / product_materials rows.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name",
        examples=["Sofá 3 Lugares", "Cadeira X"]
    )
    category_id: str = Field(..., description="Category UUID")
    description: Optional[str] = Field(None, max_length=5000)
    price: float = Field(..., ge=0, description="Price in BRL")
    discount_price: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = None
    weight_kg: Optional[float] = Field(None, gt=0)
    warranty_months: int = Field(default=12, ge=0, le=120)
    assembly_required: bool = True
    is_featured: bool = False
    stock_status: StockStatus = StockStatus.IN_STOCK
    dimension_ids: list[str] = Field(default_factory=list)
    material_ids: list[str] = Field(default_factory=list)


class ProductUpdate(BaseSchema):
    """
    Update existing product.

    All fields optional - only provided fields are updated.
    Passing dimension_ids or material_ids replaces the current links.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category_id: Optional[str] = None
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[float] = Field(None, ge=0)
    discount_price: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = None
    weight_kg: Optional[float] = Field(None, gt=0)
    warranty_months: Optional[int] = Field(None, ge=0, le=120)
    assembly_required: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    stock_status: Optional[StockStatus] = None
    dimension_ids: Optional[list[str]] = None
    material_ids: Optional[list[str]] = None


class ProductResponse(BaseSchema, TimestampMixin):
    """
    Product row as stored.

    Used for GET responses without relations.
    """

    id: str = Field(..., description="Product UUID")
    name: str
    slug: str
    description: Optional[str] = None
    price: float
    discount_price: Optional[float] = None
    category_id: str
    image_url: Optional[str] = None
    weight_kg: Optional[float] = None
    warranty_months: Optional[int] = None
    assembly_required: bool = True
    is_active: bool = True
    is_featured: bool = False
    stock_status: StockStatus = StockStatus.IN_STOCK


class ProductWithRelations(ProductResponse):
    """Product with its category, dimensions and materials resolved."""

    category: Optional[CategoryResponse] = None
    dimensions: list[DimensionResponse] = Field(default_factory=list)
    materials: list[MaterialResponse] = Field(default_factory=list)


class ProductListResponse(Page[ProductWithRelations]):
    """One page of products with relations."""
