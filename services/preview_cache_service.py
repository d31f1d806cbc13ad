"""
In-memory holding area for uploaded spreadsheets.

An upload is parsed once at preview time; execute reads the cached rows
by preview_id. Entries expire after a TTL and a restart drops them all,
so this only works with a single API process.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog

from models.product_import import RawRow

logger = structlog.get_logger(__name__)

DEFAULT_TTL_MINUTES = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UploadedSpreadsheet:
    """Rows parsed from one upload."""
    filename: Optional[str]
    rows: list[RawRow]
    columns: list[str] = field(default_factory=list)


class PreviewCache:
    """
    Uploaded spreadsheets keyed by preview_id.

    clock is injectable so tests can move time forward.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._entries: dict[str, tuple[datetime, UploadedSpreadsheet]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def store(self, upload: UploadedSpreadsheet, ttl_minutes: int = DEFAULT_TTL_MINUTES) -> str:
        """Cache an upload and return its new preview_id."""
        self.purge_expired()

        preview_id = str(uuid.uuid4())
        self._entries[preview_id] = (self._clock() + timedelta(minutes=ttl_minutes), upload)
        return preview_id

    def get(self, preview_id: str) -> Optional[UploadedSpreadsheet]:
        """The cached upload, or None when unknown or expired."""
        entry = self._entries.get(preview_id)
        if entry is None:
            return None

        expires_at, upload = entry
        if self._clock() >= expires_at:
            del self._entries[preview_id]
            logger.info("import_preview_expired", preview_id=preview_id)
            return None
        return upload

    def delete(self, preview_id: str) -> None:
        self._entries.pop(preview_id, None)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("import_previews_purged", count=len(expired))
        return len(expired)


# Singleton instance
_preview_cache: Optional[PreviewCache] = None


def get_preview_cache() -> PreviewCache:
    """Get or create the preview cache singleton."""
    global _preview_cache
    if _preview_cache is None:
        _preview_cache = PreviewCache()
    return _preview_cache
