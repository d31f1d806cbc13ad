"""
Import progress reporting.

The import service pushes an ImportProgress snapshot at every phase change
and after every product. Updates are forwarded synchronously with no
buffering. The tracker keeps the latest snapshot per import so the
dashboard can poll it while the run is in flight.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import threading
import structlog

from config.settings import settings
from models.product_import import ImportProgress, ImportStatus

logger = structlog.get_logger(__name__)


ProgressCallback = Callable[[ImportProgress], None]

DEFAULT_TTL_MINUTES = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressReporter:
    """
    Wraps an optional callback.

    With no callback, updates are dropped. A failing callback is logged and
    ignored; progress display must never abort an import.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None, total: int = 0):
        self.callback = callback
        self.total = total
        self.last: Optional[ImportProgress] = None

    def report(
        self,
        status: ImportStatus,
        message: str,
        current: int = 0,
        errors: Optional[list[str]] = None,
    ) -> ImportProgress:
        progress = ImportProgress(
            total=self.total,
            current=current,
            status=status,
            message=message,
            errors=list(errors or []),
        )
        self.last = progress

        if self.callback is not None:
            try:
                self.callback(progress)
            except Exception as e:
                logger.warning(
                    "progress_callback_failed",
                    status=status.value,
                    error=str(e)
                )

        return progress


class ImportProgressTracker:
    """
    In-memory latest progress per import id. Single-process only.

    An entry expires ttl_minutes after its last update. The run writes
    from a worker thread while routes read from the event loop.
    """

    def __init__(self, ttl_minutes: int = DEFAULT_TTL_MINUTES, clock: Callable[[], datetime] = _utcnow):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._clock = clock
        self._lock = threading.Lock()
        self._progress: dict[str, tuple[datetime, ImportProgress]] = {}

    def __len__(self) -> int:
        return len(self._progress)

    def callback_for(self, import_id: str) -> ProgressCallback:
        def _store(progress: ImportProgress) -> None:
            self.purge_expired()
            with self._lock:
                self._progress[import_id] = (self._clock(), progress)
        return _store

    def get(self, import_id: str) -> Optional[ImportProgress]:
        """Latest progress, or None when unknown or expired."""
        with self._lock:
            entry = self._progress.get(import_id)
            if entry is None:
                return None

            updated_at, progress = entry
            if self._clock() - updated_at >= self.ttl:
                del self._progress[import_id]
                return None
            return progress

    def clear(self, import_id: str) -> None:
        with self._lock:
            self._progress.pop(import_id, None)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [
                key for key, (updated_at, _) in self._progress.items()
                if now - updated_at >= self.ttl
            ]
            for key in expired:
                del self._progress[key]
        if expired:
            logger.debug("import_progress_purged", count=len(expired))
        return len(expired)


_tracker: Optional[ImportProgressTracker] = None


def get_progress_tracker() -> ImportProgressTracker:
    """Get or create the process-wide tracker."""
    global _tracker
    if _tracker is None:
        _tracker = ImportProgressTracker(ttl_minutes=settings.import_preview_ttl_minutes)
    return _tracker
