"""Shared fixtures for the woosync test suite."""

import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from woosync.db import CatalogStore, init_db
from woosync.errors import RemoteFetchError

RENTAL_ID = 319


@pytest.fixture
def temp_db():
    """Create a temporary database."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    init_db(db_path)
    yield db_path
    # Cleanup
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def store(temp_db):
    return CatalogStore(temp_db)


@pytest.fixture
def make_product():
    """Factory for remote product JSON in the rental category."""

    def _make(product_id: int = 101, **overrides: Any) -> Dict[str, Any]:
        product = {
            "id": product_id,
            "name": f"Bike {product_id}",
            "type": "simple",
            "status": "publish",
            "price": "25",
            "regular_price": "30",
            "stock_quantity": 4,
            "stock_status": "instock",
            "sku": f"SKU-{product_id}",
            "description": "<p>Long description</p>",
            "short_description": "Short description",
            "categories": [
                {"id": RENTAL_ID, "slug": "alugueres", "name": "Alugueres"},
                {"id": 320, "slug": "bicicletas", "name": "Bicicletas"},
            ],
            "images": [{"id": 1, "src": f"https://cdn.example.com/{product_id}.jpg"}],
            "acf": {},
            "meta_data": [],
            "variations": [],
        }
        product.update(overrides)
        return product

    return _make


class FakeCatalogClient:
    """In-memory stand-in for CatalogClient.

    product_pages is the list of pages iter_product_pages yields; an
    Exception instance in that list is raised when reached.
    """

    def __init__(
        self,
        product_pages: Optional[List[Any]] = None,
        variations: Optional[Dict[int, List[Dict[str, Any]]]] = None,
        per_page: int = 100,
    ):
        self.product_pages = product_pages or []
        self.variations = variations or {}
        self.per_page = per_page
        self.variation_calls: List[int] = []

    def iter_product_pages(self, category_id, status="publish", per_page=None):
        for page in self.product_pages:
            if isinstance(page, Exception):
                raise page
            yield page

    def fetch_all_variations(self, product_id, per_page=None):
        self.variation_calls.append(product_id)
        value = self.variations.get(product_id, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


@pytest.fixture
def fake_client_cls():
    return FakeCatalogClient


@pytest.fixture
def remote_error():
    return RemoteFetchError("HTTP Error 503 fetching https://shop.example.com/products", status_code=503)
