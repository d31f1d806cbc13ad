"""
Spreadsheet import models.

Covers the raw rows read from the uploaded file, the column mapping chosen
by the operator, the structured result returned by the AI extraction
provider, and the progress/summary reported back to the operator.

JSON exchanged with the AI and the dashboard uses camelCase keys
(newCategories, productsCreated, ...); Python code uses snake_case.
"""

from typing import Optional, Union
from enum import Enum
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models.category import CategoryResponse
from models.dimension import DimensionResponse
from models.material import HEX_PATTERN, MaterialResponse
from utils.text_utils import parse_price


CellValue = Union[str, int, float, bool, None]
RawRow = dict[str, CellValue]


class CamelSchema(BaseModel):
    """Accepts and emits camelCase keys, accepts snake_case too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# ===================
# COLUMN MAPPING
# ===================

class ColumnMapping(CamelSchema):
    """
    Operator-chosen source column for each product field.

    A field left as None is auto-detected by the AI for that field only.
    Column names are not checked against the spreadsheet.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    category: Optional[str] = None
    sizes: Optional[str] = None
    colors: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_auto(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_empty(self) -> bool:
        """True when every field is auto-detected."""
        return all(value is None for value in self.model_dump().values())

    def auto_detect_fields(self) -> list[str]:
        """Fields the AI has to find on its own."""
        return [field for field, value in self.model_dump().items() if value is None]


# ===================
# AI OUTPUT
# ===================

class ColorSpec(CamelSchema):
    """Color name with an optional #RRGGBB hex code."""

    name: str = Field(..., min_length=1)
    hex: Optional[str] = None

    @field_validator("hex", mode="before")
    @classmethod
    def normalize_hex(cls, v):
        if not v or not isinstance(v, str):
            return None
        v = v.strip()
        if not v.startswith("#"):
            v = f"#{v}"
        # Unusable hex codes are dropped, the color itself is kept
        return v.upper() if HEX_PATTERN.match(v) else None


class ProcessedProduct(CamelSchema):
    """One normalized product as returned by the AI. Not persisted directly."""

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    price: float = 0.0
    category: str = ""
    sizes: list[str] = Field(default_factory=list)
    colors: list[ColorSpec] = Field(default_factory=list)

    @field_validator("name", "category", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if v is None:
            return ""
        return str(v)

    @field_validator("description", mode="before")
    @classmethod
    def blank_description(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v) -> float:
        return parse_price(v)

    @field_validator("sizes", mode="before")
    @classmethod
    def coerce_sizes(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return [str(item).strip() for item in v if item is not None and str(item).strip()]

    @field_validator("colors", mode="before")
    @classmethod
    def coerce_colors(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        colors = []
        for item in v:
            if isinstance(item, str) and item.strip():
                colors.append({"name": item.strip()})
            elif isinstance(item, dict) and item.get("name"):
                colors.append(item)
        return colors


class ImportResult(CamelSchema):
    """
    Envelope returned by the extraction provider.

    Every category/color/size named by a product should appear either in
    the existing reference data or in the new_* lists. This is not
    enforced; the import service reports what it cannot resolve.
    """

    products: list[ProcessedProduct] = Field(default_factory=list)
    new_categories: list[str] = Field(default_factory=list)
    new_colors: list[ColorSpec] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class ExtractionRequest(CamelSchema):
    """Everything the extraction provider gets for one batch of rows."""

    rows: list[RawRow]
    existing_categories: list[str] = Field(default_factory=list)
    existing_colors: list[ColorSpec] = Field(default_factory=list)
    existing_sizes: list[str] = Field(default_factory=list)
    column_mapping: Optional[ColumnMapping] = None
    first_row_number: int = Field(
        default=2,
        description="Spreadsheet row number of rows[0] (row 1 is the header)"
    )


# ===================
# REFERENCE SNAPSHOT
# ===================

class ReferenceSnapshot(BaseModel):
    """Active categories, materials and dimensions fetched for one run."""

    categories: list[CategoryResponse] = Field(default_factory=list)
    materials: list[MaterialResponse] = Field(default_factory=list)
    dimensions: list[DimensionResponse] = Field(default_factory=list)

    @property
    def category_names(self) -> list[str]:
        return [c.name for c in self.categories]

    @property
    def colors(self) -> list[ColorSpec]:
        return [ColorSpec(name=m.name, hex=m.hex_code) for m in self.materials]

    @property
    def dimension_names(self) -> list[str]:
        return [d.name for d in self.dimensions]


# ===================
# PROGRESS / SUMMARY
# ===================

class ImportStatus(str, Enum):
    """Phase tag of a running import."""
    IDLE = "idle"
    PARSING = "parsing"
    PROCESSING = "processing"
    CREATING = "creating"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportStatus.DONE, ImportStatus.ERROR)


class ImportProgress(CamelSchema):
    """Snapshot broadcast at each phase change and after each product."""

    total: int = 0
    current: int = 0
    status: ImportStatus = ImportStatus.IDLE
    message: str = ""
    errors: list[str] = Field(default_factory=list)


class ImportSummary(CamelSchema):
    """Outcome of one import run. Shown to the operator, never persisted."""

    products_created: int = 0
    categories_created: int = 0
    materials_created: int = Field(
        default=0,
        validation_alias=AliasChoices("materialsCreated", "colorsCreated", "materials_created"),
        description="Colors/materials created"
    )
    rows_received: int = 0
    rows_processed: int = 0
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# ===================
# API
# ===================

class ImportPreviewResponse(CamelSchema):
    """Result of uploading a spreadsheet, before the import runs."""

    preview_id: Optional[str] = None
    filename: Optional[str] = None
    has_data: bool
    row_count: int
    columns: list[str] = Field(default_factory=list)
    sample_rows: list[RawRow] = Field(default_factory=list)


class ImportExecuteRequest(CamelSchema):
    """Body of the execute call. Omitting the mapping means automatic mode."""

    column_mapping: Optional[ColumnMapping] = None


class ImportConfigurationStatus(CamelSchema):
    """Whether the AI importer can run."""

    ai_configured: bool
    model: Optional[str] = None
    batch_size: int
    max_rows: int
