"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Catalog
    ProductNotFoundError,
    CategoryNotFoundError,
    CategoryNameExistsError,
    MaterialNotFoundError,
    DimensionNotFoundError,

    # Import (fatal)
    SpreadsheetParseError,
    AIConfigurationError,
    ReferenceDataError,
    ExtractionError,
    ImportPreviewNotFoundError,
    ImportInProgressError,

    # Import (recorded per item)
    EntityCreationError,
    ProductResolutionError,
    ProductCreationError,
    AssociationResolutionError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",

    # Catalog
    "ProductNotFoundError",
    "CategoryNotFoundError",
    "CategoryNameExistsError",
    "MaterialNotFoundError",
    "DimensionNotFoundError",

    # Import (fatal)
    "SpreadsheetParseError",
    "AIConfigurationError",
    "ReferenceDataError",
    "ExtractionError",
    "ImportPreviewNotFoundError",
    "ImportInProgressError",

    # Import (recorded per item)
    "EntityCreationError",
    "ProductResolutionError",
    "ProductCreationError",
    "AssociationResolutionError",
]
