"""Configuration and constants for the catalog sync."""

import os
from dataclasses import dataclass
from typing import Optional

__all__ = [
    "API_BASE",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "PER_PAGE",
    "MAX_RETRIES",
    "RETRY_BACKOFF_BASE",
    "MAX_RETRY_BACKOFF",
    "RETRY_STATUS_CODES",
    "DEFAULT_RENTAL_CATEGORY_ID",
    "RENTAL_CATEGORY_SLUG",
    "SYNC_STATUS",
    "DB_PATH",
    "DEFAULT_CATEGORY",
    "PLACEHOLDER_IMAGE",
    "UNKNOWN_ID",
    "UNNAMED_PRODUCT",
    "Settings",
    "load_settings",
]

# Remote catalog API (WooCommerce REST v3 style)
API_BASE = ""  # e.g. https://shop.example.com/wp-json/wc/v3

HEADERS = {
    "User-Agent": "woosync rental catalog mirror",
    "Accept": "application/json",
}

# Request timeouts (seconds)
REQUEST_TIMEOUT = 30

# Pagination settings
PER_PAGE = 100  # WooCommerce maximum

# Retry settings with exponential backoff
MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2.0
MAX_RETRY_BACKOFF = 30.0
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

# Rental category ("alugueres") that scopes every sync and read
DEFAULT_RENTAL_CATEGORY_ID = 319
RENTAL_CATEGORY_SLUG = "alugueres"
SYNC_STATUS = "publish"

# Storage
DB_PATH = "data/catalog.db"

# Canonical product defaults
DEFAULT_CATEGORY = "general"
PLACEHOLDER_IMAGE = "/placeholder.svg"
UNKNOWN_ID = "unknown"
UNNAMED_PRODUCT = "Unnamed product"


@dataclass(frozen=True)
class Settings:
    """Runtime settings, resolved once from the environment and passed around."""

    api_base: str = API_BASE
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    rental_category_id: int = DEFAULT_RENTAL_CATEGORY_ID
    rental_category_slug: str = RENTAL_CATEGORY_SLUG
    db_path: str = DB_PATH
    request_timeout: float = REQUEST_TIMEOUT
    per_page: int = PER_PAGE
    max_retries: int = MAX_RETRIES

    @property
    def has_credentials(self) -> bool:
        return bool(self.consumer_key and self.consumer_secret)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    """Build Settings from environment variables.

    Call ``load_dotenv()`` first if a .env file should be honoured.
    """
    return Settings(
        api_base=os.getenv("WOOCOMMERCE_API_BASE", API_BASE).rstrip("/"),
        consumer_key=os.getenv("WOOCOMMERCE_CONSUMER_KEY") or None,
        consumer_secret=os.getenv("WOOCOMMERCE_CONSUMER_SECRET") or None,
        rental_category_id=_int_env("ALUGUERES_CATEGORY_ID", DEFAULT_RENTAL_CATEGORY_ID),
        rental_category_slug=os.getenv("ALUGUERES_CATEGORY_SLUG", RENTAL_CATEGORY_SLUG),
        db_path=os.getenv("CATALOG_DB_PATH", DB_PATH),
        request_timeout=_int_env("WOOCOMMERCE_TIMEOUT", REQUEST_TIMEOUT),
        per_page=_int_env("WOOCOMMERCE_PER_PAGE", PER_PAGE),
        max_retries=_int_env("WOOCOMMERCE_MAX_RETRIES", MAX_RETRIES),
    )
