"""
Category API routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.category import CategoryCreate, CategoryUpdate, CategoryResponse
from services.category_service import get_category_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}}
    )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    include_inactive: bool = Query(False, description="Include inactive categories")
):
    """List categories by display order."""
    try:
        return get_category_service().get_all(active_only=not include_inactive)
    except Exception as e:
        return handle_error(e)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str):
    try:
        return get_category_service().get_by_id(category_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=CategoryResponse, status_code=201)
async def create_category(data: CategoryCreate):
    """
    Create a category.

    Raises:
        409: Name already used (case-insensitive)
    """
    try:
        return get_category_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: str, data: CategoryUpdate):
    """Update a category. Renaming regenerates the slug."""
    try:
        return get_category_service().update(category_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{category_id}", status_code=204)
async def delete_category(category_id: str):
    """Deactivate a category. Its products are left untouched."""
    try:
        get_category_service().delete(category_id)
        return None
    except Exception as e:
        return handle_error(e)
