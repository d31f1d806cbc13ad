"""
Material service for catalog CRUD.

Materials cover both physical finishes (wood, fabric, ...) and the colors
created by the spreadsheet importer.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.material import (
    MaterialCreate,
    MaterialUpdate,
    MaterialResponse,
    MaterialType
)
from exceptions import MaterialNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class MaterialService:
    """Material business logic. Deletes are hard deletes."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "materials"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self, material_type: Optional[MaterialType] = None) -> list[MaterialResponse]:
        """
        Get all materials ordered by display_order.

        Args:
            material_type: Only return materials of this type
        """
        logger.debug("getting_materials", material_type=material_type)

        try:
            query = self.db.table(self.table).select("*")
            if material_type:
                query = query.eq("type", material_type.value)
            result = query.order("display_order").execute()

            return [MaterialResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_materials_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, material_id: str) -> MaterialResponse:
        """
        Get a single material by ID.

        Raises:
            MaterialNotFoundError: If material doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", material_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_material_failed", material_id=material_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise MaterialNotFoundError(material_id)

        return MaterialResponse(**result.data[0])

    def next_display_order(self) -> int:
        """Highest display_order + 1, or 1 for an empty table."""
        try:
            result = (
                self.db.table(self.table)
                .select("display_order")
                .order("display_order", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_max_display_order_failed", error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            return 1
        return (result.data[0].get("display_order") or 0) + 1

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: MaterialCreate) -> MaterialResponse:
        """Create a new material, appended after existing ones by default."""
        logger.info("creating_material", name=data.name, type=data.type.value)

        display_order = data.display_order
        if display_order is None:
            display_order = self.next_display_order()

        try:
            insert_data = {
                "name": data.name,
                "type": data.type.value,
                "hex_code": data.hex_code,
                "description": data.description,
                "is_custom": data.is_custom,
                "display_order": display_order,
            }

            result = self.db.table(self.table).insert(insert_data).execute()
            material = MaterialResponse(**result.data[0])

            logger.info(
                "material_created",
                material_id=material.id,
                name=material.name,
                hex_code=material.hex_code
            )

            return material

        except Exception as e:
            logger.error("create_material_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, material_id: str, data: MaterialUpdate) -> MaterialResponse:
        """
        Update an existing material.

        Raises:
            MaterialNotFoundError: If material doesn't exist
        """
        logger.info("updating_material", material_id=material_id)

        existing = self.get_by_id(material_id)

        update_data = data.model_dump(exclude_unset=True, mode="json")
        if not update_data:
            return existing

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", material_id)
                .execute()
            )
            material = MaterialResponse(**result.data[0])

            logger.info(
                "material_updated",
                material_id=material_id,
                fields=list(update_data.keys())
            )

            return material

        except Exception as e:
            logger.error("update_material_failed", material_id=material_id, error=str(e))
            raise DatabaseError("update", str(e))

    def delete(self, material_id: str) -> bool:
        """
        Delete a material.

        Raises:
            MaterialNotFoundError: If material doesn't exist
        """
        logger.info("deleting_material", material_id=material_id)

        self.get_by_id(material_id)

        try:
            self.db.table(self.table).delete().eq("id", material_id).execute()
            logger.info("material_deleted", material_id=material_id)
            return True

        except Exception as e:
            logger.error("delete_material_failed", material_id=material_id, error=str(e))
            raise DatabaseError("delete", str(e))


_material_service: Optional[MaterialService] = None


def get_material_service() -> MaterialService:
    """Get or create MaterialService instance."""
    global _material_service
    if _material_service is None:
        _material_service = MaterialService()
    return _material_service
