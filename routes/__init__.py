"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.products import router as products_router
from routes.categories import router as categories_router
from routes.materials import router as materials_router
from routes.dimensions import router as dimensions_router
from routes.imports import router as imports_router

__all__ = [
    "products_router",
    "categories_router",
    "materials_router",
    "dimensions_router",
    "imports_router",
]
