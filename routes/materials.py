"""
Material (color / finish) API routes.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from typing import Optional
import structlog

from models.material import MaterialCreate, MaterialUpdate, MaterialResponse, MaterialType
from services.material_service import get_material_service
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


@router.get("", response_model=list[MaterialResponse])
async def list_materials(
    type: Optional[MaterialType] = Query(None, description="Filter by material type")
):
    try:
        return get_material_service().get_all(material_type=type)
    except Exception as e:
        return handle_error(e)


@router.get("/{material_id}", response_model=MaterialResponse)
async def get_material(material_id: str):
    try:
        return get_material_service().get_by_id(material_id)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=MaterialResponse, status_code=201)
async def create_material(data: MaterialCreate):
    """Create a material. display_order defaults to the end of the list."""
    try:
        return get_material_service().create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{material_id}", response_model=MaterialResponse)
async def update_material(material_id: str, data: MaterialUpdate):
    try:
        return get_material_service().update(material_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{material_id}", status_code=204)
async def delete_material(material_id: str):
    """Delete a material. Product links are removed by the database."""
    try:
        get_material_service().delete(material_id)
        return None
    except Exception as e:
        return handle_error(e)
