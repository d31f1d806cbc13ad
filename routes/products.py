"""
Product API routes.

Products are returned with their category, dimensions and materials.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductWithRelations,
    ProductListResponse,
)
from services.product_service import get_product_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# ROUTES
# ===================

@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    include_inactive: bool = Query(False, description="Include inactive products")
):
    """
    List products, newest first.

    Returns paginated list of products with relations.
    """
    try:
        service = get_product_service()

        products, total = service.get_all(
            page=page,
            page_size=page_size,
            category_id=category_id,
            active_only=not include_inactive
        )

        return ProductListResponse.build(products, total, page, page_size)

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductWithRelations)
async def get_product(product_id: str):
    """
    Get a single product by ID.

    Raises:
        404: Product not found
    """
    try:
        return get_product_service().get_by_id(product_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductWithRelations, status_code=201)
async def create_product(data: ProductCreate):
    """
    Create a product with its dimension and material links.

    The slug is derived from the name and suffixed when already taken.
    """
    try:
        return get_product_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{product_id}", response_model=ProductWithRelations)
async def update_product(product_id: str, data: ProductUpdate):
    """
    Update an existing product.

    Only provided fields are updated. Passing dimension_ids or material_ids
    replaces the existing links.

    Raises:
        404: Product not found
    """
    try:
        return get_product_service().update(product_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str):
    """
    Delete a product (soft delete).

    Raises:
        404: Product not found
    """
    try:
        get_product_service().delete(product_id)
        return None  # 204 No Content
    except Exception as e:
        return handle_error(e)
