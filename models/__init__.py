"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    Page,
)
from models.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
)
from models.material import (
    MaterialType,
    MaterialCreate,
    MaterialUpdate,
    MaterialResponse,
)
from models.dimension import (
    DimensionCreate,
    DimensionUpdate,
    DimensionResponse,
)
from models.product import (
    StockStatus,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductWithRelations,
    ProductListResponse,
)
from models.product_import import (
    CellValue,
    RawRow,
    ColumnMapping,
    ColorSpec,
    ProcessedProduct,
    ImportResult,
    ExtractionRequest,
    ReferenceSnapshot,
    ImportStatus,
    ImportProgress,
    ImportSummary,
    ImportPreviewResponse,
    ImportExecuteRequest,
    ImportConfigurationStatus,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "Page",

    # Category
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",

    # Material
    "MaterialType",
    "MaterialCreate",
    "MaterialUpdate",
    "MaterialResponse",

    # Dimension
    "DimensionCreate",
    "DimensionUpdate",
    "DimensionResponse",

    # Product
    "StockStatus",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductWithRelations",
    "ProductListResponse",

    # Import
    "CellValue",
    "RawRow",
    "ColumnMapping",
    "ColorSpec",
    "ProcessedProduct",
    "ImportResult",
    "ExtractionRequest",
    "ReferenceSnapshot",
    "ImportStatus",
    "ImportProgress",
    "ImportSummary",
    "ImportPreviewResponse",
    "ImportExecuteRequest",
    "ImportConfigurationStatus",
]
