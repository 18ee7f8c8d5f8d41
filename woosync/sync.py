"""Sync orchestration: remote rental catalog -> local store.

Pages through the remote catalog filtered to the rental category, re-checks
membership locally, pulls variations for variable products and upserts each
product on its own. One bad product is counted and skipped; only a failing
product page or a broken store ends the run early.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from woosync.client import CatalogClient
from woosync.config import DEFAULT_RENTAL_CATEGORY_ID, PER_PAGE, SYNC_STATUS, Settings
from woosync.db import CatalogStore
from woosync.errors import PerProductSyncError, RemoteFetchError, StoreError
from woosync.logging_config import get_logger, log_sync_event
from woosync.models import PersistedProduct, SyncSummary
from woosync.normalizer import is_variable, to_persisted
from woosync.pricing import resolve_pricing

__all__ = ["belongs_to_category", "SyncOrchestrator"]

logger = get_logger("sync")


def belongs_to_category(product: Mapping[str, Any], category_id: int) -> bool:
    """True if the product's embedded category list contains category_id."""
    categories = product.get("categories")
    if not isinstance(categories, list):
        return False
    for category in categories:
        if not isinstance(category, Mapping):
            continue
        try:
            if int(category.get("id")) == int(category_id):
                return True
        except (TypeError, ValueError):
            continue
    return False


class SyncOrchestrator:
    """Drives one sync run against an injected client and store."""

    def __init__(
        self,
        client: CatalogClient,
        store: CatalogStore,
        rental_category_id: int = DEFAULT_RENTAL_CATEGORY_ID,
        status: str = SYNC_STATUS,
        per_page: int = PER_PAGE,
    ):
        self.client = client
        self.store = store
        self.rental_category_id = rental_category_id
        self.status = status
        self.per_page = per_page

    @classmethod
    def from_settings(cls, settings: Settings, client: CatalogClient, store: CatalogStore) -> "SyncOrchestrator":
        return cls(
            client=client,
            store=store,
            rental_category_id=settings.rental_category_id,
            per_page=settings.per_page,
        )

    def build_product(self, product: Mapping[str, Any]) -> PersistedProduct:
        """Fetch variations if needed and normalize one remote product."""
        variations: List[Dict[str, Any]] = []
        if is_variable(product):
            variations = self.client.fetch_all_variations(product["id"], self.per_page)

        pricing = resolve_pricing(product.get("acf") or {}, product.get("meta_data") or [])
        return to_persisted(product, variations, pricing)

    def sync_product(self, product: Mapping[str, Any]) -> PersistedProduct:
        """Normalize and upsert a single product.

        Raises:
            PerProductSyncError: If the product cannot be normalized or written
            StoreError: If the store itself is unreachable
        """
        try:
            row = self.build_product(product)
            self.store.upsert_by_external_id(row)
            return row
        except StoreError:
            raise
        except Exception as e:
            raise PerProductSyncError(product.get("id"), e) from e

    def run_sync(self) -> SyncSummary:
        """Run a full sync and return its counters.

        A product page failure marks the summary failed and stops the run;
        counts gathered so far are kept. A store failure, at startup or while
        writing products, ends the run with StoreError.
        """
        summary = SyncSummary()
        self.store.ensure_schema()

        logger.info(f"Starting catalog sync for category {self.rental_category_id} (variations included)")
        log_sync_event("sync_start", {
            "category_id": self.rental_category_id,
            "status_filter": self.status,
            "per_page": self.per_page,
        })

        error: Optional[str] = None
        try:
            for products in self.client.iter_product_pages(self.rental_category_id, self.status, self.per_page):
                summary.fetched += len(products)
                for product in products:
                    self._process(product, summary)
        except RemoteFetchError as e:
            error = str(e)
            logger.error(f"Sync aborted: {e}")
            log_sync_event("sync_failed", {
                "error": error,
                "fetched": summary.fetched,
                "synced": summary.synced,
            }, level=logging.ERROR)
        except StoreError as e:
            logger.error(f"Sync aborted, catalog store failed: {e}")
            log_sync_event("sync_failed", {
                "error": str(e),
                "fetched": summary.fetched,
                "synced": summary.synced,
            }, level=logging.ERROR)
            summary.finish(str(e))
            self._record(summary)
            raise

        summary.finish(error)
        self._record(summary)

        logger.info(
            f"Sync {summary.status}: {summary.synced} synced, {summary.errors} errors, "
            f"{summary.skipped} skipped, {summary.fetched} fetched"
        )
        log_sync_event("sync_complete", summary.to_dict())
        return summary

    def _process(self, product: Mapping[str, Any], summary: SyncSummary) -> None:
        product_id = product.get("id") if isinstance(product, Mapping) else None

        if not isinstance(product, Mapping) or not belongs_to_category(product, self.rental_category_id):
            summary.skipped += 1
            logger.info(f"Product {product_id} is not in category {self.rental_category_id}, skipping")
            log_sync_event("product_skipped", {"product_id": product_id}, level=logging.DEBUG)
            return

        try:
            row = self.sync_product(product)
        except PerProductSyncError as e:
            summary.errors += 1
            logger.error(str(e))
            log_sync_event("product_error", {
                "product_id": product_id,
                "error": str(e.cause),
            }, level=logging.ERROR)
            return

        summary.synced += 1
        logger.info(f"Product synced: {row.external_id} - {row.name}")
        log_sync_event("product_synced", {
            "product_id": row.external_id,
            "stock_quantity": row.stock_quantity,
            "price": row.price,
        }, level=logging.DEBUG)

    def _record(self, summary: SyncSummary) -> None:
        try:
            self.store.record_sync_run(summary)
        except StoreError as e:
            logger.warning(f"Could not record sync run: {e}")
