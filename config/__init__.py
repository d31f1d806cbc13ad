"""
Configuration module.

Exports:
    settings: Application settings instance
    ImportConfig: Limits and credentials for one import service
    get_supabase_client: Cached Supabase client
    check_connection: Health check over the catalog tables
"""

from config.settings import settings, get_settings, Settings
from config.import_config import ImportConfig
from config.database import (
    get_supabase_client,
    check_connection,
    DatabaseConnectionError,
    CATALOG_TABLES,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",
    "ImportConfig",

    # Database
    "get_supabase_client",
    "check_connection",
    "DatabaseConnectionError",
    "CATALOG_TABLES",
]
