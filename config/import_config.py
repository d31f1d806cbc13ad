"""
Explicit configuration for the spreadsheet import pipeline.

The pipeline never reads environment or global settings itself; callers
build an ImportConfig (usually from Settings) and pass it in.
"""

from typing import Optional
from pydantic import BaseModel, Field

from config.settings import Settings


class ImportConfig(BaseModel):
    """Knobs for one ProductImportService instance."""

    anthropic_api_key: Optional[str] = None
    ai_model: str = "claude-sonnet-4-20250514"
    ai_max_tokens: int = Field(default=8192, ge=256)
    ai_temperature: float = Field(default=0.1, ge=0, le=1)
    batch_size: int = Field(default=50, ge=1)
    max_rows: int = Field(default=1000, ge=1)
    report_unresolved_associations: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImportConfig":
        return cls(
            anthropic_api_key=settings.anthropic_api_key,
            ai_model=settings.ai_model,
            ai_max_tokens=settings.ai_max_tokens,
            ai_temperature=settings.ai_temperature,
            batch_size=settings.import_batch_size,
            max_rows=settings.import_max_rows,
            report_unresolved_associations=settings.import_report_unresolved_associations,
        )
