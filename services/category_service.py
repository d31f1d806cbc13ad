"""
Category service for catalog CRUD.

Category names are unique case-insensitively; the slug is derived from the
name on create and on rename.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.category import CategoryCreate, CategoryUpdate, CategoryResponse
from exceptions import (
    CategoryNotFoundError,
    CategoryNameExistsError,
    DatabaseError
)
from utils.text_utils import normalize_name, slugify

logger = structlog.get_logger(__name__)


class CategoryService:
    """
    Category business logic.

    Handles CRUD operations for categories. Deletes are soft
    (is_active=False) because products reference categories.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "categories"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(self, active_only: bool = True) -> list[CategoryResponse]:
        """
        Get all categories ordered by display_order.

        Args:
            active_only: Only return active categories

        Returns:
            List of CategoryResponse
        """
        logger.debug("getting_categories", active_only=active_only)

        try:
            query = self.db.table(self.table).select("*")
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("display_order").execute()

            return [CategoryResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_categories_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, category_id: str) -> CategoryResponse:
        """
        Get a single category by ID.

        Raises:
            CategoryNotFoundError: If category doesn't exist
        """
        logger.debug("getting_category", category_id=category_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", category_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_category_failed", category_id=category_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise CategoryNotFoundError(category_id)

        return CategoryResponse(**result.data[0])

    def get_by_name(self, name: str) -> Optional[CategoryResponse]:
        """
        Get a category by name, ignoring case and surrounding whitespace.

        Compared with normalize_name in Python: PostgREST ilike would treat
        "%", "_" and "*" in the name as wildcards.

        Returns:
            CategoryResponse or None if not found
        """
        key = normalize_name(name)
        if not key:
            return None

        try:
            result = self.db.table(self.table).select("*").execute()
        except Exception as e:
            logger.error("get_category_by_name_failed", name=name, error=str(e))
            raise DatabaseError("select", str(e))

        for row in result.data:
            if normalize_name(row.get("name")) == key:
                return CategoryResponse(**row)
        return None

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: CategoryCreate) -> CategoryResponse:
        """
        Create a new category.

        Raises:
            CategoryNameExistsError: If the name is taken
        """
        logger.info("creating_category", name=data.name)

        if self.get_by_name(data.name):
            raise CategoryNameExistsError(data.name)

        try:
            insert_data = {
                "name": data.name,
                "slug": slugify(data.name),
                "description": data.description,
                "image_url": data.image_url,
                "display_order": data.display_order,
                "is_active": True,
            }

            result = self.db.table(self.table).insert(insert_data).execute()
            category = CategoryResponse(**result.data[0])

            logger.info(
                "category_created",
                category_id=category.id,
                name=category.name
            )

            return category

        except Exception as e:
            logger.error("create_category_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, category_id: str, data: CategoryUpdate) -> CategoryResponse:
        """
        Update an existing category.

        Raises:
            CategoryNotFoundError: If category doesn't exist
            CategoryNameExistsError: If the new name is taken
        """
        logger.info("updating_category", category_id=category_id)

        existing = self.get_by_id(category_id)

        if data.name and normalize_name(data.name) != normalize_name(existing.name):
            if self.get_by_name(data.name):
                raise CategoryNameExistsError(data.name)

        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data:
            update_data["slug"] = slugify(update_data["name"])

        if not update_data:
            return existing

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", category_id)
                .execute()
            )
            category = CategoryResponse(**result.data[0])

            logger.info(
                "category_updated",
                category_id=category_id,
                fields=list(update_data.keys())
            )

            return category

        except Exception as e:
            logger.error("update_category_failed", category_id=category_id, error=str(e))
            raise DatabaseError("update", str(e))

    def delete(self, category_id: str) -> bool:
        """
        Soft delete a category (set is_active=False).

        Raises:
            CategoryNotFoundError: If category doesn't exist
        """
        logger.info("deleting_category", category_id=category_id)

        self.get_by_id(category_id)

        try:
            self.db.table(self.table).update(
                {"is_active": False}
            ).eq("id", category_id).execute()

            logger.info("category_deleted", category_id=category_id)
            return True

        except Exception as e:
            logger.error("delete_category_failed", category_id=category_id, error=str(e))
            raise DatabaseError("update", str(e))


# Singleton instance for convenience
_category_service: Optional[CategoryService] = None


def get_category_service() -> CategoryService:
    """Get or create CategoryService instance."""
    global _category_service
    if _category_service is None:
        _category_service = CategoryService()
    return _category_service
