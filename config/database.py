"""
Supabase client for the catalog tables.

One client per process. The service role key is preferred when set,
since the importer writes categories, materials and products in bulk.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

# Tables counted by the health check
CATALOG_TABLES = ("products", "categories", "materials", "dimensions")


class DatabaseConnectionError(Exception):
    """Supabase client could not be created."""


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client.

    Raises:
        DatabaseConnectionError: If the client cannot be created
    """
    use_service_key = bool(settings.supabase_service_key)
    logger.info(
        "connecting_to_supabase",
        url=settings.supabase_url[:30] + "...",
        service_role=use_service_key
    )

    try:
        client = create_client(
            settings.supabase_url,
            settings.supabase_service_key if use_service_key else settings.supabase_key
        )
    except Exception as e:
        logger.error("supabase_connection_failed", error=str(e), error_type=type(e).__name__)
        raise DatabaseConnectionError(f"Failed to connect to Supabase: {e}") from e

    return client


def check_connection() -> dict:
    """
    Row counts for each catalog table.

    Never raises: a failure is reported as status "unhealthy".
    """
    try:
        client = get_supabase_client()
        counts = {
            f"{table}_count": client.table(table).select("id", count="exact").limit(1).execute().count
            for table in CATALOG_TABLES
        }
    except Exception as e:
        logger.warning("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}

    return {"status": "healthy", **counts}
