"""
Business logic services.

Each service handles one domain area.
"""

from services.category_service import CategoryService, get_category_service
from services.material_service import MaterialService, get_material_service
from services.dimension_service import DimensionService, get_dimension_service
from services.product_service import ProductService, get_product_service
from services.reference_data_service import ReferenceDataService
from services.extraction_service import ExtractionProvider, ClaudeExtractionProvider
from services.import_progress_service import (
    ProgressReporter,
    ImportProgressTracker,
    get_progress_tracker,
)
from services.import_service import ProductImportService, get_import_service
from services.preview_cache_service import PreviewCache, UploadedSpreadsheet, get_preview_cache

__all__ = [
    "CategoryService",
    "get_category_service",
    "MaterialService",
    "get_material_service",
    "DimensionService",
    "get_dimension_service",
    "ProductService",
    "get_product_service",
    "ReferenceDataService",
    "ExtractionProvider",
    "ClaudeExtractionProvider",
    "ProgressReporter",
    "ImportProgressTracker",
    "get_progress_tracker",
    "ProductImportService",
    "get_import_service",
    "PreviewCache",
    "UploadedSpreadsheet",
    "get_preview_cache",
]
