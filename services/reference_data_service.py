"""
Reference data snapshot for the spreadsheet importer.

Loads the active categories, materials and dimensions once per import run.
Nothing is cached between runs.
"""

from typing import Optional
import structlog

from exceptions import ReferenceDataError
from models.product_import import ReferenceSnapshot
from services.category_service import CategoryService, get_category_service
from services.dimension_service import DimensionService, get_dimension_service
from services.material_service import MaterialService, get_material_service

logger = structlog.get_logger(__name__)


class ReferenceDataService:
    """Builds a ReferenceSnapshot from the catalog services."""

    def __init__(
        self,
        category_service: Optional[CategoryService] = None,
        material_service: Optional[MaterialService] = None,
        dimension_service: Optional[DimensionService] = None,
    ):
        self.category_service = category_service or get_category_service()
        self.material_service = material_service or get_material_service()
        self.dimension_service = dimension_service or get_dimension_service()

    def fetch_snapshot(self) -> ReferenceSnapshot:
        """
        Fetch the three collections, one query each.

        Raises:
            ReferenceDataError: If any collection fails to load. Name
                resolution against partial data would silently mis-map,
                so the whole import must stop.
        """
        logger.info("fetching_reference_data")

        loaders = (
            ("categories", lambda: self.category_service.get_all(active_only=True)),
            ("materials", self.material_service.get_all),
            ("dimensions", lambda: self.dimension_service.get_all(active_only=True)),
        )

        collections = {}
        for name, load in loaders:
            try:
                collections[name] = load()
            except Exception as e:
                logger.error("reference_data_fetch_failed", collection=name, error=str(e))
                message = getattr(e, "message", str(e))
                raise ReferenceDataError(name, message) from e

        snapshot = ReferenceSnapshot(**collections)

        logger.info(
            "reference_data_fetched",
            categories=len(snapshot.categories),
            materials=len(snapshot.materials),
            dimensions=len(snapshot.dimensions)
        )

        return snapshot
