"""HTTP client for the remote WooCommerce catalog."""

import logging
import random
import time
from typing import Any, Dict, Iterator, List, Optional

import requests  # type: ignore[import-untyped]

from woosync.config import (
    HEADERS,
    MAX_RETRIES,
    MAX_RETRY_BACKOFF,
    PER_PAGE,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_BASE,
    RETRY_STATUS_CODES,
    SYNC_STATUS,
    Settings,
)
from woosync.errors import RemoteFetchError
from woosync.logging_config import get_logger, log_sync_event

__all__ = ["CatalogClient", "create_session"]

logger = get_logger("client")


def create_session() -> requests.Session:
    """Create a requests Session with connection pooling and JSON headers."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


class CatalogClient:
    """Fetches product and variation pages from the remote catalog.

    A page shorter than the requested page size is treated as the last one.
    """

    def __init__(
        self,
        base_url: str,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        per_page: int = PER_PAGE,
        max_retries: int = MAX_RETRIES,
        session: Optional[requests.Session] = None,
    ):
        if not base_url:
            raise ValueError("Remote catalog base URL is not configured (WOOCOMMERCE_API_BASE)")
        if per_page < 1:
            raise ValueError(f"per_page must be positive, got {per_page}")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.per_page = per_page
        self.max_retries = max(0, max_retries)
        self.session = session or create_session()
        if consumer_key and consumer_secret:
            self.auth = (consumer_key, consumer_secret)
        else:
            self.auth = None

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "CatalogClient":
        return cls(
            base_url=settings.api_base,
            consumer_key=settings.consumer_key,
            consumer_secret=settings.consumer_secret,
            timeout=settings.request_timeout,
            per_page=settings.per_page,
            max_retries=settings.max_retries,
            session=session,
        )

    def _backoff(self, attempt: int) -> float:
        return min(RETRY_BACKOFF_BASE ** attempt, MAX_RETRY_BACKOFF) + random.uniform(0, 1)

    def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        """GET a JSON document with exponential backoff on transient failures.

        Raises:
            RemoteFetchError: If the request fails after all retries
        """
        url = f"{self.base_url}/{path.lstrip('/')}"

        for attempt in range(self.max_retries + 1):
            retries_left = attempt < self.max_retries
            try:
                resp = self.session.get(url, params=params, auth=self.auth, timeout=self.timeout)

                if resp.status_code in RETRY_STATUS_CODES and retries_left:
                    backoff = self._backoff(attempt)
                    logger.warning(
                        f"Received {resp.status_code} from {url}, backing off {backoff:.1f}s "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(backoff)
                    continue

                resp.raise_for_status()
                return resp.json()

            except requests.exceptions.HTTPError as e:
                status_code = e.response.status_code if e.response is not None else None
                logger.error(f"HTTP error fetching {url}: {e}")
                raise RemoteFetchError(
                    f"HTTP Error {status_code or 'unknown'} fetching {url}",
                    url=url,
                    status_code=status_code,
                ) from e

            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                if retries_left:
                    backoff = self._backoff(attempt)
                    logger.warning(
                        f"{type(e).__name__} for {url}, backing off {backoff:.1f}s "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(backoff)
                    continue
                logger.error(f"Giving up on {url}: {e}")
                raise RemoteFetchError(f"Failed to fetch {url}: {e}", url=url) from e

            except requests.exceptions.RequestException as e:
                logger.error(f"Request error fetching {url}: {e}")
                raise RemoteFetchError(f"Failed to fetch {url}: {e}", url=url) from e

            except ValueError as e:
                # Body was not JSON
                raise RemoteFetchError(f"Invalid JSON from {url}: {e}", url=url) from e

        raise RemoteFetchError(f"Failed to fetch {url} after {self.max_retries} retries", url=url)

    @staticmethod
    def _as_page(payload: Any, what: str) -> List[Dict[str, Any]]:
        if isinstance(payload, list):
            return payload
        logger.warning(f"Expected a list of {what}, got {type(payload).__name__}; treating as empty page")
        return []

    def fetch_product_page(
        self,
        category_id: int,
        status: str = SYNC_STATUS,
        per_page: Optional[int] = None,
        page: int = 1,
    ) -> List[Dict[str, Any]]:
        """Fetch one page of products filtered by category and status."""
        params = {
            "category": category_id,
            "status": status,
            "per_page": per_page or self.per_page,
            "page": page,
        }
        return self._as_page(self._get_json("products", params), "products")

    def fetch_variation_page(
        self,
        product_id: int,
        per_page: Optional[int] = None,
        page: int = 1,
    ) -> List[Dict[str, Any]]:
        """Fetch one page of variations for a variable product."""
        params = {"per_page": per_page or self.per_page, "page": page}
        return self._as_page(self._get_json(f"products/{product_id}/variations", params), "variations")

    def iter_product_pages(
        self,
        category_id: int,
        status: str = SYNC_STATUS,
        per_page: Optional[int] = None,
    ) -> Iterator[List[Dict[str, Any]]]:
        """Yield product pages until an empty or short page.

        Raises:
            RemoteFetchError: If any page fails; pages already yielded stand
        """
        size = per_page or self.per_page
        page = 1
        while True:
            logger.info(f"Fetching products page {page} (category={category_id}, status={status})")
            products = self.fetch_product_page(category_id, status, size, page)
            if not products:
                break
            yield products
            if len(products) < size:
                break
            page += 1

    def fetch_all_variations(self, product_id: int, per_page: Optional[int] = None) -> List[Dict[str, Any]]:
        """Collect every variation of a product.

        A failing page ends the walk and whatever was gathered so far is
        returned, so one product's variations never abort a sync.
        """
        size = per_page or self.per_page
        page = 1
        variations: List[Dict[str, Any]] = []
        try:
            while True:
                batch = self.fetch_variation_page(product_id, size, page)
                if not batch:
                    break
                variations.extend(batch)
                if len(batch) < size:
                    break
                page += 1
        except RemoteFetchError as e:
            logger.error(f"Error fetching variations for product {product_id}: {e}")
            log_sync_event("variation_fetch_error", {
                "product_id": product_id,
                "page": page,
                "collected": len(variations),
                "error": str(e),
            }, level=logging.ERROR)
        return variations
