"""Data models for persisted products and sync runs."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

__all__ = ["PersistedProduct", "SyncSummary", "TIER_KEYS"]

# Tiered rental pricing keys: 1-2 days, 3-6 days, 7+ days
TIER_KEYS = ("precio_1_2", "precio_3_6", "precio_7_mais")


@dataclass
class PersistedProduct:
    """One row of the products table.

    List and map shaped fields (categories, images, variation ids and stock,
    custom fields, metadata) hold serialized JSON text. The store round-trips
    them without looking inside, except for category containment queries.
    """

    # Required fields
    external_id: int
    name: str

    # Core fields
    status: str = "publish"
    price: Optional[float] = 0.0
    regular_price: Optional[float] = 0.0
    stock_quantity: Optional[int] = 0
    stock_status: str = "instock"
    description: str = ""
    short_description: str = ""
    sku: str = ""

    # Serialized JSON blobs
    categories: Optional[str] = "[]"
    images: Optional[str] = "[]"
    variation_ids: Optional[str] = "[]"
    variation_stock: Optional[str] = "[]"
    custom_fields: Optional[str] = "{}"
    metadata: Optional[str] = "[]"

    # Resolved tier prices
    price_tier_1: Optional[float] = None
    price_tier_2: Optional[float] = None
    price_tier_3: Optional[float] = None

    # Store-owned fields (set after insert/update)
    id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "PersistedProduct":
        """Build from a sqlite3.Row or dict, ignoring unknown columns."""
        data = dict(row)
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class SyncSummary:
    """Counters for one sync run."""

    fetched: int = 0
    synced: int = 0
    errors: int = 0
    skipped: int = 0
    status: str = "running"
    error: Optional[str] = None
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())
    finished_at: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    def finish(self, error: Optional[str] = None) -> "SyncSummary":
        self.finished_at = datetime.now().isoformat()
        self.error = error
        self.status = "failed" if error else "completed"
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
