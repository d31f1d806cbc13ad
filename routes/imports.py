"""
Spreadsheet import API routes.

Two-step workflow:
    1. POST /preview uploads the file, parses it and caches the rows.
       The dashboard shows the columns so the operator can map them.
    2. POST /{preview_id}/execute runs the AI import on the cached rows.
       GET /{preview_id}/progress can be polled while it runs.

Only one import runs at a time per process.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse
from typing import Optional
import asyncio
import structlog

from config.settings import settings
from exceptions import AppError, ImportInProgressError, ImportPreviewNotFoundError
from models.product_import import (
    ImportConfigurationStatus,
    ImportExecuteRequest,
    ImportPreviewResponse,
    ImportProgress,
    ImportSummary,
)
from parsers.spreadsheet_parser import read_spreadsheet, extract_columns
from services.preview_cache_service import UploadedSpreadsheet, get_preview_cache
from services.import_progress_service import get_progress_tracker
from services.import_service import get_import_service

logger = structlog.get_logger(__name__)

router = APIRouter()

SAMPLE_ROWS = 5

_import_lock = asyncio.Lock()

# preview_id of the run holding _import_lock, if any
_running_import: Optional[str] = None


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}}
    )


@router.get("/status", response_model=ImportConfigurationStatus)
async def import_status():
    """Whether the AI importer is configured, plus its batch limits."""
    try:
        service = get_import_service()
        return ImportConfigurationStatus(
            ai_configured=service.is_configured,
            model=service.config.ai_model if service.is_configured else None,
            batch_size=service.config.batch_size,
            max_rows=service.config.max_rows,
        )
    except Exception as e:
        return handle_error(e)


@router.post("/preview", response_model=ImportPreviewResponse)
async def preview_import(
    file: UploadFile = File(..., description="Spreadsheet (.xlsx, .xls or .csv)")
):
    """
    Upload and parse a spreadsheet (nothing is saved to the catalog).

    A file without data rows returns has_data=false and no preview_id.

    Raises:
        422: File is not a readable spreadsheet
    """
    logger.info("import_preview_started", filename=file.filename, content_type=file.content_type)

    try:
        content = await file.read()
        rows = read_spreadsheet(content, filename=file.filename)
        columns = extract_columns(rows)

        if not rows:
            logger.info("import_preview_empty", filename=file.filename)
            return ImportPreviewResponse(filename=file.filename, has_data=False, row_count=0)

        preview_id = get_preview_cache().store(
            UploadedSpreadsheet(
                filename=file.filename,
                rows=rows,
                columns=columns,
            ),
            ttl_minutes=settings.import_preview_ttl_minutes,
        )

        logger.info(
            "import_preview_cached",
            preview_id=preview_id,
            filename=file.filename,
            rows=len(rows),
            columns=len(columns)
        )

        return ImportPreviewResponse(
            preview_id=preview_id,
            filename=file.filename,
            has_data=True,
            row_count=len(rows),
            columns=columns,
            sample_rows=rows[:SAMPLE_ROWS],
        )

    except Exception as e:
        return handle_error(e)


@router.post("/{preview_id}/execute", response_model=ImportSummary)
async def execute_import(preview_id: str, data: Optional[ImportExecuteRequest] = None):
    """
    Run the AI import on a previewed spreadsheet.

    Omitting column_mapping (or leaving every field blank) lets the AI
    detect all columns. Per-product problems are reported in the summary;
    the request only fails on fatal errors.

    Raises:
        404: Preview not found or expired
        409: Another import is running
        503: AI extraction failed or not configured
    """
    global _running_import

    try:
        uploaded = get_preview_cache().get(preview_id)
        if uploaded is None:
            raise ImportPreviewNotFoundError(preview_id)

        # A second run is rejected, not queued
        if _import_lock.locked():
            raise ImportInProgressError(_running_import)

        tracker = get_progress_tracker()
        async with _import_lock:
            _running_import = preview_id
            try:
                summary = await get_import_service().execute_import(
                    uploaded.rows,
                    column_mapping=data.column_mapping if data else None,
                    on_progress=tracker.callback_for(preview_id),
                )
            finally:
                _running_import = None

        get_preview_cache().delete(preview_id)
        return summary

    except Exception as e:
        return handle_error(e)


@router.get("/{preview_id}/progress", response_model=ImportProgress)
async def import_progress(preview_id: str):
    """
    Latest progress of an import.

    A previewed file that has not started yet reports status "idle".

    Raises:
        404: Unknown preview
    """
    try:
        progress = get_progress_tracker().get(preview_id)
        if progress is not None:
            return progress

        uploaded = get_preview_cache().get(preview_id)
        if uploaded is None:
            raise ImportPreviewNotFoundError(preview_id)

        return ImportProgress(total=len(uploaded.rows))

    except Exception as e:
        return handle_error(e)
