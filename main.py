"""
Furniture Catalog Admin - Main Application

FastAPI entry point: catalog CRUD under /api/* and the AI spreadsheet
importer under /api/import.

Run locally:
    python main.py
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import structlog
from datetime import datetime, timezone

from config import settings, check_connection
from exceptions import AppError
from routes import (
    products_router,
    categories_router,
    materials_router,
    dimensions_router,
    imports_router,
)


def configure_logging() -> None:
    """JSON logs in production, colored console output elsewhere."""
    logging.basicConfig(format="%(message)s", level=settings.log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.is_production
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger(__name__)

# (router, prefix, tag)
ROUTERS = (
    (products_router, "/api/products", "Products"),
    (categories_router, "/api/categories", "Categories"),
    (materials_router, "/api/materials", "Materials"),
    (dimensions_router, "/api/dimensions", "Dimensions"),
    (imports_router, "/api/import", "Import"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log database reachability and whether the AI importer can run."""
    logger.info("application_starting", environment=settings.environment, debug=settings.debug)

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "database_connected",
            products=db_status["products_count"],
            categories=db_status["categories_count"]
        )
    else:
        logger.error("database_connection_failed", error=db_status.get("error"))

    if not settings.ai_configured:
        logger.warning("ai_import_disabled", reason="ANTHROPIC_API_KEY not set")

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Furniture Catalog Admin",
    description="Catalog management and AI-assisted spreadsheet product import",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router, prefix, tag in ROUTERS:
    app.include_router(router, prefix=prefix, tags=[tag])


@app.get("/health")
async def health_check():
    """Database table counts and AI importer availability."""
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.environment,
        "database": db_status,
        "ai_import": settings.ai_configured
    }


@app.get("/")
async def root():
    """API name and route prefixes."""
    return {
        "name": "Furniture Catalog Admin API",
        "version": app.version,
        "docs": app.docs_url or "Disabled in production",
        "health": "/health",
        "endpoints": {tag.lower(): prefix for _, prefix, tag in ROUTERS},
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """AppErrors that escape a route keep their own status and code."""
    logger.warning("app_error", path=request.url.path, code=exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
