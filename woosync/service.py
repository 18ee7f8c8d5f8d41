"""Read path: canonical products out of the local store."""

from typing import Any, Dict, List, Optional, Union

from woosync.config import DEFAULT_RENTAL_CATEGORY_ID, RENTAL_CATEGORY_SLUG, Settings
from woosync.db import CatalogStore
from woosync.errors import NotFoundError, ParseError
from woosync.logging_config import get_logger
from woosync.models import PersistedProduct
from woosync.normalizer import parse_json_field, to_canonical

__all__ = ["CatalogService"]

logger = get_logger("service")


class CatalogService:
    """Serves canonical products scoped to the rental category."""

    def __init__(
        self,
        store: CatalogStore,
        rental_category_id: int = DEFAULT_RENTAL_CATEGORY_ID,
        rental_category_slug: str = RENTAL_CATEGORY_SLUG,
    ):
        self.store = store
        self.rental_category_id = rental_category_id
        self.rental_category_slug = rental_category_slug

    @classmethod
    def from_settings(cls, settings: Settings, store: CatalogStore) -> "CatalogService":
        return cls(store, settings.rental_category_id, settings.rental_category_slug)

    def _canonical(self, row: PersistedProduct) -> Dict[str, Any]:
        return to_canonical(row, self.rental_category_id, self.rental_category_slug)

    def list_by_category(
        self,
        category_id: Optional[int] = None,
        slug: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Canonical products of a category, optionally narrowed by a sub-category slug.

        Args:
            category_id: Category to list (default: the rental category)
            slug: Only products also carrying a category with this slug
            status: Only products with this status (e.g. 'publish')
        """
        target = self.rental_category_id if category_id is None else int(category_id)
        if slug:
            rows = self.store.query_by_category_and_slug(target, slug)
            if status:
                wanted = status.strip().lower()
                rows = [r for r in rows if (r.status or "").lower() == wanted]
        else:
            rows = self.store.query_by_category(target, status)
        return [self._canonical(row) for row in rows]

    def _in_rental_category(self, row: PersistedProduct) -> bool:
        try:
            categories = parse_json_field("categories", row.categories, [])
        except ParseError:
            # Only the sync writes rows, and it checks membership first
            logger.warning(f"Unreadable categories for product {row.external_id}; assuming membership")
            return True
        for category in categories:
            if not isinstance(category, dict):
                continue
            try:
                if int(category.get("id")) == self.rental_category_id:
                    return True
            except (TypeError, ValueError):
                continue
        return False

    def get_by_id_or_external_id(self, identifier: Union[int, str]) -> Dict[str, Any]:
        """Canonical product by external id (preferred) or row id.

        Raises:
            NotFoundError: If nothing matches or the product is outside the rental category
        """
        row = self.store.query_by_external_or_row_id(identifier)
        if row is None or not self._in_rental_category(row):
            raise NotFoundError(f"Product {identifier} not found")
        return self._canonical(row)
