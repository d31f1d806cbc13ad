"""
Custom exception classes for the application.

Fatal import errors propagate to the caller. Per-item import errors
(entity creation, product resolution, product creation) are caught by the
import service and recorded in the summary as their message.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class CategoryNotFoundError(NotFoundError):
    """Category not found."""

    def __init__(self, category_id: str):
        super().__init__(
            resource="Category",
            identifier=category_id,
            code="CATEGORY_NOT_FOUND"
        )


class CategoryNameExistsError(DuplicateError):
    """Category name already exists (names are unique, case-insensitive)."""

    def __init__(self, name: str):
        super().__init__(
            resource="Category",
            field="name",
            value=name
        )


class MaterialNotFoundError(NotFoundError):
    """Material not found."""

    def __init__(self, material_id: str):
        super().__init__(
            resource="Material",
            identifier=material_id,
            code="MATERIAL_NOT_FOUND"
        )


class DimensionNotFoundError(NotFoundError):
    """Dimension not found."""

    def __init__(self, dimension_id: str):
        super().__init__(
            resource="Dimension",
            identifier=dimension_id,
            code="DIMENSION_NOT_FOUND"
        )


# ===================
# IMPORT ERRORS (FATAL)
# ===================

class SpreadsheetParseError(ValidationError):
    """Uploaded file could not be read as a spreadsheet."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="SPREADSHEET_PARSE_ERROR",
            message=message,
            details=details
        )


class AIConfigurationError(AppError):
    """AI extraction credential is missing (503)."""

    def __init__(self, message: str = "AI extraction is not configured. Set ANTHROPIC_API_KEY."):
        super().__init__(
            code="AI_NOT_CONFIGURED",
            message=message,
            status_code=503
        )


class ReferenceDataError(DatabaseError):
    """Categories, materials or dimensions could not be loaded."""

    def __init__(self, collection: str, message: str):
        super().__init__(
            operation="select",
            message=message,
            details={"collection": collection}
        )


class ExtractionError(ExternalServiceError):
    """AI call failed or returned something that is not a JSON object."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            service="ai_extraction",
            message=message,
            details=details
        )


class ImportPreviewNotFoundError(NotFoundError):
    """Uploaded spreadsheet expired or never existed."""

    def __init__(self, preview_id: str):
        super().__init__(
            resource="Import preview",
            identifier=preview_id,
            code="IMPORT_PREVIEW_NOT_FOUND"
        )


class ImportInProgressError(ConflictError):
    """Another import run holds the catalog."""

    def __init__(self, running_id: Optional[str] = None):
        super().__init__(
            code="IMPORT_IN_PROGRESS",
            message="Another import is already running. Wait for it to finish.",
            details={"running_import": running_id}
        )


# ===================
# IMPORT ERRORS (RECORDED PER ITEM)
# ===================

class EntityCreationError(AppError):
    """A new category or material proposed by the AI could not be created."""

    def __init__(self, kind: str, name: str, reason: str):
        super().__init__(
            code="ENTITY_CREATION_FAILED",
            message=f"Failed to create {kind} '{name}': {reason}",
            details={"kind": kind, "name": name}
        )


class ProductResolutionError(ValidationError):
    """Product references a category that does not exist."""

    def __init__(self, product_name: str, category: str):
        super().__init__(
            code="PRODUCT_CATEGORY_NOT_FOUND",
            message=f"Product '{product_name}': category '{category}' not found",
            details={"product": product_name, "category": category}
        )


class ProductCreationError(AppError):
    """Backend rejected a product insert."""

    def __init__(self, product_name: str, reason: str):
        super().__init__(
            code="PRODUCT_CREATION_FAILED",
            message=f"Product '{product_name}': {reason}",
            details={"product": product_name}
        )


class AssociationResolutionError(ValidationError):
    """Product size or color matched no dimension or material."""

    def __init__(self, product_name: str, kind: str, names: list[str]):
        super().__init__(
            code="PRODUCT_ASSOCIATION_NOT_FOUND",
            message=f"Product '{product_name}': {kind} not found: {', '.join(names)}",
            details={"product": product_name, "kind": kind, "names": names}
        )
