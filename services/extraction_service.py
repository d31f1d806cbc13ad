"""
AI extraction for spreadsheet imports.

Turns arbitrary spreadsheet rows into normalized products with a hosted
language model. The import service only depends on the ExtractionProvider
interface; ClaudeExtractionProvider is the production implementation.

The prompt fixes the response shape (products / newCategories / newColors /
errors) and the rules for sizes, colors and prices. The model's output is
only checked for JSON validity and shape, not for business correctness.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
import json
import re
import structlog

import anthropic
from pydantic import ValidationError as PydanticValidationError

from config.import_config import ImportConfig
from exceptions import AIConfigurationError, ExtractionError
from models.product_import import (
    ColorSpec,
    ColumnMapping,
    ExtractionRequest,
    ImportResult,
    ProcessedProduct,
)

logger = structlog.get_logger(__name__)


AUTO_DETECT = "detect automatically"

MAPPING_LABELS = {
    "name": "Product name",
    "description": "Description",
    "price": "Price",
    "category": "Category",
    "sizes": "Sizes / dimensions",
    "colors": "Colors / materials",
}

SYSTEM_PROMPT = """You are a product import assistant for a Brazilian furniture catalog.
You read spreadsheet rows exported by store owners and convert them to catalog products.

IMPORTANT: Return ONLY valid JSON, no markdown, no explanation, no code blocks."""

RESPONSE_SCHEMA = """{
  "products": [
    {
      "name": "string (product name)",
      "description": "string or null",
      "price": 0.0,
      "category": "string (category name)",
      "sizes": ["string (dimension names)"],
      "colors": [{ "name": "string", "hex": "#RRGGBB" }]
    }
  ],
  "newCategories": ["string"],
  "newColors": [{ "name": "string", "hex": "#RRGGBB" }],
  "errors": ["string"]
}"""


class ExtractionProvider(ABC):
    """
    Interface for anything that turns raw rows into an ImportResult.

    Implementations may call a hosted model, run local heuristics or apply
    fixed rules. They raise ExtractionError when no usable result exists.
    """

    name: str = "base"

    @property
    def is_configured(self) -> bool:
        """False when the provider cannot run (e.g. missing credential)."""
        return True

    @abstractmethod
    async def extract(self, request: ExtractionRequest) -> ImportResult:
        """Interpret one batch of rows."""


class ClaudeExtractionProvider(ExtractionProvider):
    """Extraction through the Anthropic Messages API."""

    name = "claude"

    def __init__(self, config: ImportConfig, client: Optional[Any] = None):
        self.config = config
        self.client = client
        if self.client is None and config.anthropic_api_key:
            self.client = anthropic.AsyncAnthropic(api_key=config.anthropic_api_key)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def extract(self, request: ExtractionRequest) -> ImportResult:
        """
        Send one batch of rows to Claude.

        Raises:
            AIConfigurationError: If no API key was configured
            ExtractionError: If the API call fails or the reply is not a JSON object
        """
        if not self.is_configured:
            raise AIConfigurationError()

        prompt = build_prompt(request)

        logger.info(
            "ai_extraction_started",
            model=self.config.ai_model,
            rows=len(request.rows),
            first_row=request.first_row_number,
            prompt_length=len(prompt)
        )

        try:
            response = await self.client.messages.create(
                model=self.config.ai_model,
                max_tokens=self.config.ai_max_tokens,
                temperature=self.config.ai_temperature,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}]
            )
        except anthropic.APIError as e:
            logger.error("ai_extraction_api_error", error=str(e), error_type=type(e).__name__)
            raise ExtractionError(
                message="AI extraction failed. Try again in a few minutes.",
                details={"original_error": str(e)}
            ) from e

        response_text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )

        if getattr(response, "stop_reason", None) == "max_tokens":
            # Truncated JSON will not parse; the error below explains why
            logger.warning("ai_extraction_truncated", rows=len(request.rows))

        logger.debug("ai_response_received", response_length=len(response_text))

        result = parse_extraction_response(response_text)

        logger.info(
            "ai_extraction_completed",
            products=len(result.products),
            new_categories=len(result.new_categories),
            new_colors=len(result.new_colors),
            errors=len(result.errors)
        )

        return result


# ===================
# PROMPT
# ===================

def build_mapping_context(mapping: Optional[ColumnMapping]) -> str:
    """Describe the operator's column choices, or "" in automatic mode."""
    if mapping is None or mapping.is_empty:
        return ""

    lines = ["The operator mapped these columns manually:"]
    for field, label in MAPPING_LABELS.items():
        column = getattr(mapping, field)
        lines.append(f'- {label}: column "{column or AUTO_DETECT}"')
    lines.append("Use this mapping to read the data. Fields marked "
                 f'"{AUTO_DETECT}" must be found by you.')
    return "\n".join(lines)


def build_prompt(request: ExtractionRequest) -> str:
    """
    Assemble the user prompt for one batch.

    Field names and rules here are the contract the import service relies
    on; change them together with parse_extraction_response.
    """
    existing_colors = [color.name for color in request.existing_colors]
    rows_json = json.dumps(request.rows, ensure_ascii=False, indent=2, default=str)

    size_rule = (
        f"1. Sizes must be names from the existing dimensions list {json.dumps(request.existing_sizes, ensure_ascii=False)}. "
        'Normalize variations (e.g. "Pequeno" -> "Compacto", "grande" -> "Grande"). '
        "Leave out sizes that match nothing."
        if request.existing_sizes
        else "1. Sizes: copy size labels as written, trimmed (no dimensions are registered yet)."
    )

    sections = [
        "Analyze the spreadsheet rows and return valid JSON following exactly this schema:",
        RESPONSE_SCHEMA,
        "Rules:",
        size_rule,
        '2. If a color has no hex code, infer one (e.g. "Rosa" -> "#EA9FC2", "Preto" -> "#1A1A1A").',
        '3. Prices must be plain numbers: remove "R$", thousands separators, and use "." for decimals '
        '("R$ 1.299,90" -> 1299.9).',
        "4. If a product has no valid price, use 0.",
        "5. Use an existing category or color name whenever one fits, spelled exactly as listed. "
        "Categories and colors that do not exist yet must also be listed in newCategories / newColors.",
        f"6. Report parsing problems in \"errors\" with the spreadsheet row number "
        f"(the first row below is row {request.first_row_number}).",
        "7. Skip rows that are clearly not products (totals, blank lines, notes).",
    ]

    mapping_context = build_mapping_context(request.column_mapping)
    if mapping_context:
        sections.append(mapping_context)

    sections.extend([
        f"Existing categories: {json.dumps(request.existing_categories, ensure_ascii=False)}",
        f"Existing colors: {json.dumps(existing_colors, ensure_ascii=False)}",
        "Spreadsheet rows (JSON):",
        rows_json,
    ])

    return "\n\n".join(sections)


# ===================
# RESPONSE
# ===================

def parse_extraction_response(response_text: str) -> ImportResult:
    """
    Parse the model reply into an ImportResult.

    Products that fail validation are dropped and reported in errors.

    Raises:
        ExtractionError: If the reply is not a JSON object
    """
    # Remove ```json and ``` markers if present
    cleaned = response_text.strip()
    if cleaned.startswith("```"):
        cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
        cleaned = re.sub(r'\s*```$', '', cleaned)

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("ai_json_parse_failed", response_preview=response_text[:500], error=str(e))
        raise ExtractionError(
            message="AI returned an invalid response. Check the file format and try again.",
            details={"original_error": str(e)}
        ) from e

    if not isinstance(data, dict):
        logger.error("ai_response_not_object", response_type=type(data).__name__)
        raise ExtractionError(
            message="AI returned an invalid response. Check the file format and try again.",
            details={"response_type": type(data).__name__}
        )

    errors = [str(e) for e in _as_list(data.get("errors")) if e]

    products = []
    for index, raw in enumerate(_as_list(data.get("products")), start=1):
        try:
            products.append(ProcessedProduct.model_validate(raw))
        except PydanticValidationError:
            label = raw.get("name") if isinstance(raw, dict) else None
            errors.append(f"Product #{index} ignored: invalid data ({label or 'no name'})")

    new_categories = [
        str(name).strip() for name in _as_list(data.get("newCategories"))
        if isinstance(name, str) and name.strip()
    ]

    new_colors = []
    for raw in _as_list(data.get("newColors")):
        if isinstance(raw, str) and raw.strip():
            new_colors.append(ColorSpec(name=raw.strip()))
        elif isinstance(raw, dict) and raw.get("name"):
            try:
                new_colors.append(ColorSpec.model_validate(raw))
            except PydanticValidationError:
                errors.append(f"Color ignored: invalid data ({raw.get('name')})")

    return ImportResult(
        products=products,
        new_categories=new_categories,
        new_colors=new_colors,
        errors=errors,
    )


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []
