"""
Spreadsheet product import.

Runs one import end to end:

    rows -> reference snapshot -> AI extraction (batched) -> reconciliation

Reconciliation resolves the category/color/size names returned by the AI
against the catalog (case-insensitive exact match), creates the categories
and colors the AI flagged as new, then creates products and their
dimension/material links.

Failure policy:
    - Missing AI credential, reference data fetch, AI extraction: fatal.
      The run reports an "error" progress update and re-raises.
    - Creating a category/color, resolving a product's category, inserting
      a product or its links: recorded in the summary, the run continues.

The whole run is sequential. Database work runs in a worker thread so the
event loop keeps serving progress requests. Nothing is rolled back; rows written before a
fatal error stay in the catalog.
"""

from dataclasses import dataclass, field
from typing import Optional
import asyncio
import structlog

from config.import_config import ImportConfig
from config.settings import settings
from exceptions import (
    AIConfigurationError,
    AssociationResolutionError,
    EntityCreationError,
    ProductCreationError,
    ProductResolutionError,
)
from models.material import MaterialCreate, MaterialType
from models.category import CategoryCreate
from models.product import ProductCreate
from models.product_import import (
    ColorSpec,
    ColumnMapping,
    ExtractionRequest,
    ImportResult,
    ImportStatus,
    ImportSummary,
    ProcessedProduct,
    RawRow,
    ReferenceSnapshot,
)
from services.category_service import CategoryService, get_category_service
from services.extraction_service import ClaudeExtractionProvider, ExtractionProvider
from services.import_progress_service import ProgressCallback, ProgressReporter
from services.material_service import MaterialService, get_material_service
from services.product_service import ProductService, get_product_service
from services.reference_data_service import ReferenceDataService
from utils.text_utils import normalize_name, slugify, unique_slug

logger = structlog.get_logger(__name__)


@dataclass
class NameLookups:
    """Case-insensitive name -> id maps owned by a single run."""
    categories: dict[str, str] = field(default_factory=dict)
    materials: dict[str, str] = field(default_factory=dict)
    dimensions: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_snapshot(cls, snapshot: ReferenceSnapshot) -> "NameLookups":
        return cls(
            categories={normalize_name(c.name): c.id for c in snapshot.categories},
            materials={normalize_name(m.name): m.id for m in snapshot.materials},
            dimensions={normalize_name(d.name): d.id for d in snapshot.dimensions},
        )


def resolve_names(names: list[str], lookup: dict[str, str]) -> tuple[list[str], list[str]]:
    """
    Split names into resolved ids and unresolved names.

    Ids keep first-seen order without duplicates.
    """
    ids: list[str] = []
    missing: list[str] = []
    for name in names:
        entity_id = lookup.get(normalize_name(name))
        if entity_id is None:
            missing.append(name)
        elif entity_id not in ids:
            ids.append(entity_id)
    return ids, missing


def merge_results(target: ImportResult, batch: ImportResult) -> None:
    """Append a batch result, de-duplicating new names case-insensitively."""
    target.products.extend(batch.products)
    target.errors.extend(batch.errors)

    seen_categories = {normalize_name(name) for name in target.new_categories}
    for name in batch.new_categories:
        key = normalize_name(name)
        if key and key not in seen_categories:
            seen_categories.add(key)
            target.new_categories.append(name)

    seen_colors = {normalize_name(color.name) for color in target.new_colors}
    for color in batch.new_colors:
        key = normalize_name(color.name)
        if key and key not in seen_colors:
            seen_colors.add(key)
            target.new_colors.append(color)


class ProductImportService:
    """
    Spreadsheet import pipeline.

    All collaborators are injected; nothing is read from global settings.
    """

    def __init__(
        self,
        config: ImportConfig,
        provider: ExtractionProvider,
        reference_service: Optional[ReferenceDataService] = None,
        category_service: Optional[CategoryService] = None,
        material_service: Optional[MaterialService] = None,
        product_service: Optional[ProductService] = None,
    ):
        self.config = config
        self.provider = provider
        self.category_service = category_service or get_category_service()
        self.material_service = material_service or get_material_service()
        self.product_service = product_service or get_product_service()
        self.reference_service = reference_service or ReferenceDataService(
            category_service=self.category_service,
            material_service=self.material_service,
        )

    @property
    def is_configured(self) -> bool:
        return self.provider.is_configured

    # ===================
    # PIPELINE
    # ===================

    async def execute_import(
        self,
        rows: list[RawRow],
        column_mapping: Optional[ColumnMapping] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ImportSummary:
        """
        Import products from parsed spreadsheet rows.

        Args:
            rows: Rows in spreadsheet order
            column_mapping: Operator's column choices; None or empty means
                every field is auto-detected
            on_progress: Called synchronously with each ImportProgress. The
                last call has status "done" or "error".

        Returns:
            ImportSummary with counts, per-item errors and warnings

        Raises:
            AIConfigurationError: No extraction credential
            ReferenceDataError: Catalog reference data could not be loaded
            ExtractionError: AI call failed or returned invalid JSON
            DatabaseError: Existing product slugs could not be loaded
        """
        reporter = ProgressReporter(on_progress, total=len(rows))

        logger.info(
            "import_started",
            rows=len(rows),
            provider=self.provider.name,
            manual_mapping=bool(column_mapping and not column_mapping.is_empty)
        )

        try:
            summary = await self._run(rows, column_mapping, reporter)
        except Exception as e:
            message = getattr(e, "message", str(e))
            logger.error("import_failed", error=message, error_type=type(e).__name__)
            reporter.report(ImportStatus.ERROR, message, errors=[message])
            raise

        reporter.report(
            ImportStatus.DONE,
            f"Import finished: {summary.products_created} products created",
            current=reporter.total,
            errors=summary.errors,
        )

        logger.info(
            "import_completed",
            products_created=summary.products_created,
            categories_created=summary.categories_created,
            materials_created=summary.materials_created,
            errors=len(summary.errors),
            warnings=len(summary.warnings)
        )

        return summary

    async def _run(
        self,
        rows: list[RawRow],
        column_mapping: Optional[ColumnMapping],
        reporter: ProgressReporter,
    ) -> ImportSummary:
        if not self.provider.is_configured:
            raise AIConfigurationError()

        summary = ImportSummary(rows_received=len(rows))

        if not rows:
            return summary

        if len(rows) > self.config.max_rows:
            summary.warnings.append(
                f"The file has {len(rows)} rows; only the first {self.config.max_rows} were imported"
            )
            logger.warning("import_rows_truncated", rows=len(rows), max_rows=self.config.max_rows)
            rows = rows[:self.config.max_rows]

        reporter.report(ImportStatus.PARSING, "Loading categories, colors and sizes")
        # Supabase calls block; keep them off the event loop so progress can be polled
        snapshot = await asyncio.to_thread(self.reference_service.fetch_snapshot)

        result = await self.extract(rows, snapshot, column_mapping, reporter)
        summary.rows_processed = len(rows)

        return await asyncio.to_thread(self.reconcile, result, snapshot, reporter, summary)

    async def extract(
        self,
        rows: list[RawRow],
        snapshot: ReferenceSnapshot,
        column_mapping: Optional[ColumnMapping] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> ImportResult:
        """
        Run AI extraction over all rows, one call per batch.

        Later batches see the categories and colors proposed by earlier
        ones as existing, so the same new name is not proposed twice.
        Any batch failure aborts the whole extraction.
        """
        reporter = reporter or ProgressReporter()
        mapping = column_mapping if column_mapping and not column_mapping.is_empty else None
        batch_size = self.config.batch_size
        merged = ImportResult()

        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            end = start + len(batch)

            reporter.report(
                ImportStatus.PROCESSING,
                f"Analyzing rows {start + 1}-{end} of {len(rows)} with AI",
                current=start,
            )

            request = ExtractionRequest(
                rows=batch,
                existing_categories=snapshot.category_names + merged.new_categories,
                existing_colors=snapshot.colors + merged.new_colors,
                existing_sizes=snapshot.dimension_names,
                column_mapping=mapping,
                first_row_number=start + 2,  # row 1 is the header
            )
            merge_results(merged, await self.provider.extract(request))

        logger.info(
            "extraction_merged",
            batches=(len(rows) + batch_size - 1) // batch_size,
            products=len(merged.products),
            new_categories=len(merged.new_categories),
            new_colors=len(merged.new_colors)
        )

        return merged

    # ===================
    # RECONCILIATION
    # ===================

    def reconcile(
        self,
        result: ImportResult,
        snapshot: ReferenceSnapshot,
        reporter: Optional[ProgressReporter] = None,
        summary: Optional[ImportSummary] = None,
    ) -> ImportSummary:
        """
        Persist an extraction result.

        Categories are created before colors; products are created in the
        order the AI returned them.
        """
        reporter = reporter or ProgressReporter()
        summary = summary or ImportSummary()
        summary.errors.extend(result.errors)

        lookups = NameLookups.from_snapshot(snapshot)
        taken_slugs = self.product_service.get_slugs()

        reporter.report(
            ImportStatus.CREATING,
            f"Creating {len(result.new_categories)} categories and {len(result.new_colors)} colors",
            errors=summary.errors,
        )

        for name in result.new_categories:
            self._ensure_category(name, lookups, summary)

        for color in result.new_colors:
            self._ensure_color(color, lookups, summary)

        total = len(result.products)
        reporter.total = total

        for index, product in enumerate(result.products, start=1):
            reporter.report(
                ImportStatus.CREATING,
                f"Creating product {index} of {total}: {product.name}",
                current=index - 1,
                errors=summary.errors,
            )

            try:
                self._create_product(product, lookups, taken_slugs, summary)
                summary.products_created += 1
            except (ProductResolutionError, ProductCreationError) as e:
                logger.warning("import_product_skipped", product=product.name, reason=e.code)
                summary.errors.append(e.message)

            reporter.report(
                ImportStatus.CREATING,
                f"Processed {index} of {total} products",
                current=index,
                errors=summary.errors,
            )

        return summary

    def _ensure_category(self, name: str, lookups: NameLookups, summary: ImportSummary) -> None:
        key = normalize_name(name)
        # Already existing, or created earlier in this run
        if not key or key in lookups.categories:
            return

        try:
            category = self.category_service.create(CategoryCreate(name=name))
        except Exception as e:
            error = EntityCreationError("category", name, getattr(e, "message", str(e)))
            logger.warning("import_category_failed", name=name, error=error.message)
            summary.errors.append(error.message)
            return

        lookups.categories[key] = category.id
        summary.categories_created += 1

    def _ensure_color(self, color: ColorSpec, lookups: NameLookups, summary: ImportSummary) -> None:
        key = normalize_name(color.name)
        if not key or key in lookups.materials:
            return

        try:
            material = self.material_service.create(MaterialCreate(
                name=color.name,
                type=MaterialType.OTHER,
                hex_code=color.hex,
                is_custom=True,
            ))
        except Exception as e:
            error = EntityCreationError("color", color.name, getattr(e, "message", str(e)))
            logger.warning("import_color_failed", name=color.name, error=error.message)
            summary.errors.append(error.message)
            return

        lookups.materials[key] = material.id
        summary.materials_created += 1

    def _create_product(
        self,
        product: ProcessedProduct,
        lookups: NameLookups,
        taken_slugs: set[str],
        summary: ImportSummary,
    ) -> None:
        """
        Create one product and its links.

        Raises:
            ProductResolutionError: Category matches nothing; nothing written
            ProductCreationError: Product insert rejected; nothing written
        """
        category_id = lookups.categories.get(normalize_name(product.category))
        if category_id is None:
            raise ProductResolutionError(product.name, product.category)

        slug = unique_slug(slugify(product.name) or "produto", taken_slugs)

        try:
            data = ProductCreate(
                name=product.name,
                category_id=category_id,
                description=product.description,
                price=product.price,
            )
            created = self.product_service.insert_product(data, slug=slug)
        except Exception as e:
            raise ProductCreationError(product.name, getattr(e, "message", str(e))) from e

        taken_slugs.add(slug)

        dimension_ids, missing_sizes = resolve_names(product.sizes, lookups.dimensions)
        material_ids, missing_colors = resolve_names(
            [color.name for color in product.colors], lookups.materials
        )

        if self.config.report_unresolved_associations:
            if missing_sizes:
                summary.warnings.append(
                    AssociationResolutionError(product.name, "sizes", missing_sizes).message
                )
            if missing_colors:
                summary.warnings.append(
                    AssociationResolutionError(product.name, "colors", missing_colors).message
                )

        # The product exists at this point; link failures do not undo it
        for kind, link, ids in (
            ("sizes", self.product_service.add_dimensions, dimension_ids),
            ("colors", self.product_service.add_materials, material_ids),
        ):
            if not ids:
                continue
            try:
                link(created.id, ids)
            except Exception as e:
                summary.errors.append(
                    f"Product '{product.name}': {kind} not linked: {getattr(e, 'message', str(e))}"
                )


# Singleton instance for convenience
_import_service: Optional[ProductImportService] = None


def get_import_service() -> ProductImportService:
    """Get or create ProductImportService wired to Claude and Supabase."""
    global _import_service
    if _import_service is None:
        config = ImportConfig.from_settings(settings)
        _import_service = ProductImportService(
            config=config,
            provider=ClaudeExtractionProvider(config),
        )
    return _import_service
