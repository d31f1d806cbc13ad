"""
Product service for business logic operations.

Products link to dimensions and materials through the product_dimensions
and product_materials tables. Reads resolve those links into nested
objects; writes go through insert_product + add_dimensions/add_materials so
the importer can report link failures separately from product failures.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.category import CategoryResponse
from models.dimension import DimensionResponse
from models.material import MaterialResponse
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductWithRelations,
)
from exceptions import ProductNotFoundError, DatabaseError
from utils.text_utils import slugify, unique_slug

logger = structlog.get_logger(__name__)


class ProductService:
    """
    Product business logic.

    Handles CRUD operations for products and their associations.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"
        self.dimensions_table = "product_dimensions"
        self.materials_table = "product_materials"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        page: int = 1,
        page_size: int = 20,
        category_id: Optional[str] = None,
        active_only: bool = True
    ) -> tuple[list[ProductWithRelations], int]:
        """
        Get products with relations, newest first.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            category_id: Filter by category
            active_only: Only return active products

        Returns:
            Tuple of (products list, total count)
        """
        logger.info(
            "getting_products",
            page=page,
            page_size=page_size,
            category_id=category_id
        )

        try:
            query = self.db.table(self.table).select("*", count="exact")

            if active_only:
                query = query.eq("is_active", True)
            if category_id:
                query = query.eq("category_id", category_id)

            offset = (page - 1) * page_size
            result = (
                query.order("created_at", desc=True)
                .range(offset, offset + page_size - 1)
                .execute()
            )

            rows = [ProductResponse(**row) for row in result.data]
            total = result.count or 0

        except Exception as e:
            logger.error("get_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

        products = self._with_relations(rows)

        logger.info("products_retrieved", count=len(products), total=total)

        return products, total

    def get_by_id(self, product_id: str) -> ProductWithRelations:
        """
        Get a single product with relations.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductNotFoundError(product_id)

        return self._with_relations([ProductResponse(**result.data[0])])[0]

    def get_slugs(self) -> set[str]:
        """All product slugs, active or not."""
        try:
            result = self.db.table(self.table).select("slug").execute()
        except Exception as e:
            logger.error("get_product_slugs_failed", error=str(e))
            raise DatabaseError("select", str(e))

        return {row["slug"] for row in result.data if row.get("slug")}

    def next_free_slug(self, name: str) -> str:
        """Slug for name, suffixed with -2, -3, ... if already taken."""
        base = slugify(name)
        try:
            result = (
                self.db.table(self.table)
                .select("slug")
                .like("slug", f"{base}%")
                .execute()
            )
        except Exception as e:
            logger.error("get_product_slugs_failed", slug=base, error=str(e))
            raise DatabaseError("select", str(e))

        taken = {row["slug"] for row in result.data if row.get("slug")}
        return unique_slug(base, taken)

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate) -> ProductWithRelations:
        """
        Create a product and its dimension/material links.

        Returns:
            Created product with relations
        """
        product = self.insert_product(data, slug=self.next_free_slug(data.name))
        self.add_dimensions(product.id, data.dimension_ids)
        self.add_materials(product.id, data.material_ids)
        return self.get_by_id(product.id)

    def insert_product(self, data: ProductCreate, slug: str) -> ProductResponse:
        """
        Insert the base product row only.

        Args:
            data: Product fields (dimension_ids/material_ids are ignored here)
            slug: Slug to store, uniqueness is the caller's concern

        Raises:
            DatabaseError: If the insert fails
        """
        logger.info("creating_product", name=data.name, slug=slug)

        try:
            insert_data = data.model_dump(
                mode="json",
                exclude={"dimension_ids", "material_ids"}
            )
            insert_data["slug"] = slug
            insert_data["is_active"] = True

            result = self.db.table(self.table).insert(insert_data).execute()
            product = ProductResponse(**result.data[0])

            logger.info(
                "product_created",
                product_id=product.id,
                slug=product.slug
            )

            return product

        except Exception as e:
            logger.error("create_product_failed", name=data.name, error=str(e))
            raise DatabaseError("insert", str(e))

    def add_dimensions(self, product_id: str, dimension_ids: list[str]) -> int:
        """Link dimensions to a product in one batched insert."""
        return self._insert_links(self.dimensions_table, "dimension_id", product_id, dimension_ids)

    def add_materials(self, product_id: str, material_ids: list[str]) -> int:
        """Link materials to a product in one batched insert."""
        return self._insert_links(self.materials_table, "material_id", product_id, material_ids)

    def update(self, product_id: str, data: ProductUpdate) -> ProductWithRelations:
        """
        Update an existing product.

        Only provided fields are updated. dimension_ids / material_ids, when
        given, replace the current links.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("updating_product", product_id=product_id)

        existing = self.get_by_id(product_id)

        update_data = data.model_dump(
            mode="json",
            exclude_unset=True,
            exclude={"dimension_ids", "material_ids"}
        )
        if "name" in update_data and update_data["name"] != existing.name:
            update_data["slug"] = self.next_free_slug(update_data["name"])

        try:
            if update_data:
                self.db.table(self.table).update(update_data).eq("id", product_id).execute()

            if data.dimension_ids is not None:
                self.db.table(self.dimensions_table).delete().eq("product_id", product_id).execute()
            if data.material_ids is not None:
                self.db.table(self.materials_table).delete().eq("product_id", product_id).execute()

        except Exception as e:
            logger.error("update_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("update", str(e))

        if data.dimension_ids is not None:
            self.add_dimensions(product_id, data.dimension_ids)
        if data.material_ids is not None:
            self.add_materials(product_id, data.material_ids)

        logger.info(
            "product_updated",
            product_id=product_id,
            fields=list(update_data.keys())
        )

        return self.get_by_id(product_id)

    def delete(self, product_id: str) -> bool:
        """
        Soft delete a product (set is_active=False).

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("deleting_product", product_id=product_id)

        self.get_by_id(product_id)

        try:
            self.db.table(self.table).update(
                {"is_active": False}
            ).eq("id", product_id).execute()

            logger.info("product_deleted", product_id=product_id)
            return True

        except Exception as e:
            logger.error("delete_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("update", str(e))

    # ===================
    # HELPERS
    # ===================

    def _insert_links(
        self,
        table: str,
        column: str,
        product_id: str,
        ids: list[str]
    ) -> int:
        # dict.fromkeys keeps order and drops duplicates
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return 0

        rows = [{"product_id": product_id, column: entity_id} for entity_id in unique_ids]

        try:
            self.db.table(table).insert(rows).execute()
        except Exception as e:
            logger.error(
                "product_links_failed",
                table=table,
                product_id=product_id,
                count=len(rows),
                error=str(e)
            )
            raise DatabaseError("insert", str(e), details={"table": table})

        logger.debug("product_links_created", table=table, product_id=product_id, count=len(rows))
        return len(rows)

    def _with_relations(self, products: list[ProductResponse]) -> list[ProductWithRelations]:
        """Resolve categories, dimensions and materials with one query per table."""
        if not products:
            return []

        product_ids = [p.id for p in products]
        category_ids = list({p.category_id for p in products})

        try:
            categories = self.db.table("categories").select("*").in_("id", category_ids).execute().data
            dimension_links = (
                self.db.table(self.dimensions_table)
                .select("product_id, dimension_id")
                .in_("product_id", product_ids)
                .execute()
                .data
            )
            material_links = (
                self.db.table(self.materials_table)
                .select("product_id, material_id")
                .in_("product_id", product_ids)
                .execute()
                .data
            )

            dimension_ids = list({link["dimension_id"] for link in dimension_links})
            material_ids = list({link["material_id"] for link in material_links})

            dimensions = []
            if dimension_ids:
                dimensions = self.db.table("dimensions").select("*").in_("id", dimension_ids).execute().data
            materials = []
            if material_ids:
                materials = self.db.table("materials").select("*").in_("id", material_ids).execute().data

        except Exception as e:
            logger.error("get_product_relations_failed", count=len(products), error=str(e))
            raise DatabaseError("select", str(e))

        categories_by_id = {row["id"]: CategoryResponse(**row) for row in categories}
        dimensions_by_id = {row["id"]: DimensionResponse(**row) for row in dimensions}
        materials_by_id = {row["id"]: MaterialResponse(**row) for row in materials}

        result = []
        for product in products:
            product_dimensions = [
                dimensions_by_id[link["dimension_id"]]
                for link in dimension_links
                if link["product_id"] == product.id and link["dimension_id"] in dimensions_by_id
            ]
            product_materials = [
                materials_by_id[link["material_id"]]
                for link in material_links
                if link["product_id"] == product.id and link["material_id"] in materials_by_id
            ]
            result.append(ProductWithRelations(
                **product.model_dump(),
                category=categories_by_id.get(product.category_id),
                dimensions=product_dimensions,
                materials=product_materials,
            ))

        return result


# Singleton instance for convenience
_product_service: Optional[ProductService] = None


def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
