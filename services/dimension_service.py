"""
Dimension service for catalog CRUD.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.dimension import DimensionCreate, DimensionUpdate, DimensionResponse
from exceptions import DimensionNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class DimensionService:
    """Dimension (size preset) business logic."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "dimensions"

    def get_all(self, active_only: bool = True) -> list[DimensionResponse]:
        """Get dimensions ordered by display_order."""
        logger.debug("getting_dimensions", active_only=active_only)

        try:
            query = self.db.table(self.table).select("*")
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("display_order").execute()

            return [DimensionResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_dimensions_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, dimension_id: str) -> DimensionResponse:
        """
        Get a single dimension by ID.

        Raises:
            DimensionNotFoundError: If dimension doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", dimension_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_dimension_failed", dimension_id=dimension_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise DimensionNotFoundError(dimension_id)

        return DimensionResponse(**result.data[0])

    def create(self, data: DimensionCreate) -> DimensionResponse:
        """Create a new dimension."""
        logger.info("creating_dimension", name=data.name)

        try:
            result = self.db.table(self.table).insert(data.model_dump()).execute()
            dimension = DimensionResponse(**result.data[0])

            logger.info("dimension_created", dimension_id=dimension.id, name=dimension.name)
            return dimension

        except Exception as e:
            logger.error("create_dimension_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, dimension_id: str, data: DimensionUpdate) -> DimensionResponse:
        """
        Update an existing dimension.

        Raises:
            DimensionNotFoundError: If dimension doesn't exist
        """
        logger.info("updating_dimension", dimension_id=dimension_id)

        existing = self.get_by_id(dimension_id)

        update_data = data.model_dump(exclude_unset=True)
        if not update_data:
            return existing

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", dimension_id)
                .execute()
            )
            return DimensionResponse(**result.data[0])

        except Exception as e:
            logger.error("update_dimension_failed", dimension_id=dimension_id, error=str(e))
            raise DatabaseError("update", str(e))

    def delete(self, dimension_id: str) -> bool:
        """
        Delete a dimension.

        Raises:
            DimensionNotFoundError: If dimension doesn't exist
        """
        logger.info("deleting_dimension", dimension_id=dimension_id)

        self.get_by_id(dimension_id)

        try:
            self.db.table(self.table).delete().eq("id", dimension_id).execute()
            logger.info("dimension_deleted", dimension_id=dimension_id)
            return True

        except Exception as e:
            logger.error("delete_dimension_failed", dimension_id=dimension_id, error=str(e))
            raise DatabaseError("delete", str(e))


_dimension_service: Optional[DimensionService] = None


def get_dimension_service() -> DimensionService:
    """Get or create DimensionService instance."""
    global _dimension_service
    if _dimension_service is None:
        _dimension_service = DimensionService()
    return _dimension_service
