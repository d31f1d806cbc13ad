"""
Dimension (size) API routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.dimension import DimensionCreate, DimensionUpdate, DimensionResponse
from services.dimension_service import get_dimension_service
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


@router.get("", response_model=list[DimensionResponse])
async def list_dimensions(
    include_inactive: bool = Query(False, description="Include inactive dimensions")
):
    try:
        return get_dimension_service().get_all(active_only=not include_inactive)
    except Exception as e:
        return handle_error(e)


@router.get("/{dimension_id}", response_model=DimensionResponse)
async def get_dimension(dimension_id: str):
    try:
        return get_dimension_service().get_by_id(dimension_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=DimensionResponse, status_code=201)
async def create_dimension(data: DimensionCreate):
    try:
        return get_dimension_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{dimension_id}", response_model=DimensionResponse)
async def update_dimension(dimension_id: str, data: DimensionUpdate):
    try:
        return get_dimension_service().update(dimension_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{dimension_id}", status_code=204)
async def delete_dimension(dimension_id: str):
    try:
        get_dimension_service().delete(dimension_id)
        return None
    except Exception as e:
        return handle_error(e)
