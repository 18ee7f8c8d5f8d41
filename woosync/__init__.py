"""Rental catalog sync: WooCommerce -> SQLite mirror with canonical read models."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from woosync.client import CatalogClient
from woosync.config import (
    DEFAULT_RENTAL_CATEGORY_ID,
    RENTAL_CATEGORY_SLUG,
    Settings,
    load_settings,
)
from woosync.db import CatalogStore, init_db
from woosync.errors import (
    NotFoundError,
    ParseError,
    PerProductSyncError,
    RemoteFetchError,
    StoreError,
    SyncError,
)
from woosync.models import PersistedProduct, SyncSummary
from woosync.normalizer import to_canonical, to_persisted
from woosync.pricing import resolve_pricing
from woosync.service import CatalogService
from woosync.sync import SyncOrchestrator

__all__ = [
    # Version
    "__version__",
    # Config
    "DEFAULT_RENTAL_CATEGORY_ID",
    "RENTAL_CATEGORY_SLUG",
    "Settings",
    "load_settings",
    # Models
    "PersistedProduct",
    "SyncSummary",
    # Components
    "CatalogClient",
    "CatalogStore",
    "CatalogService",
    "SyncOrchestrator",
    "init_db",
    # Core functions
    "resolve_pricing",
    "to_persisted",
    "to_canonical",
    # Errors
    "SyncError",
    "RemoteFetchError",
    "PerProductSyncError",
    "ParseError",
    "NotFoundError",
    "StoreError",
]
