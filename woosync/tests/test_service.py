"""Tests for the canonical read path."""

import json

import pytest

from woosync.config import Settings
from woosync.errors import NotFoundError
from woosync.models import PersistedProduct
from woosync.service import CatalogService

RENTAL = {"id": 319, "slug": "alugueres"}


def _seed(store, external_id, slugs, name, status="publish", **extra):
    categories = [RENTAL] + [{"id": 400 + i, "slug": slug} for i, slug in enumerate(slugs)]
    product = PersistedProduct(
        external_id=external_id,
        name=name,
        status=status,
        price=10.0,
        categories=json.dumps(categories),
        **extra,
    )
    store.upsert_by_external_id(product)
    return product


@pytest.fixture
def service(store):
    _seed(store, 1, ["bicicletas"], "Alpha bike")
    _seed(store, 2, ["capacetes"], "Bravo helmet")
    _seed(store, 3, ["bicicletas"], "Charlie bike", status="draft")
    store.upsert_by_external_id(PersistedProduct(
        external_id=4,
        name="Outside",
        categories=json.dumps([{"id": 320, "slug": "bicicletas"}]),
    ))
    return CatalogService(store)


class TestListByCategory:
    def test_defaults_to_rental_category(self, service):
        names = [p["name"] for p in service.list_by_category()]
        assert names == ["Alpha bike", "Bravo helmet", "Charlie bike"]

    def test_status_filter(self, service):
        names = [p["name"] for p in service.list_by_category(status="publish")]
        assert names == ["Alpha bike", "Bravo helmet"]

    def test_slug_filter(self, service):
        products = service.list_by_category(slug="bicicletas")
        assert [p["name"] for p in products] == ["Alpha bike", "Charlie bike"]
        assert all(p["category"] == "bicicletas" for p in products)

    def test_slug_and_status(self, service):
        products = service.list_by_category(slug="bicicletas", status="Draft")
        assert [p["id"] for p in products] == ["3"]

    def test_unknown_slug_is_empty(self, service):
        assert service.list_by_category(slug="kayaks") == []

    def test_malformed_row_is_degraded_not_dropped(self, store, service):
        _seed(store, 5, ["bicicletas"], "Zulu", images="{not json")

        products = service.list_by_category()

        zulu = products[-1]
        assert len(products) == 4
        assert zulu["degraded"] is True
        assert zulu["id"] == "5"
        assert zulu["category"] == "general"


class TestGetById:
    def test_by_external_id(self, service):
        product = service.get_by_id_or_external_id("2")
        assert product["name"] == "Bravo helmet"
        assert product["category"] == "capacetes"

    def test_by_row_id(self, store, service):
        row_id = _seed(store, 9001, [], "Far away").id
        assert service.get_by_id_or_external_id(row_id)["id"] == "9001"

    def test_outside_rental_category_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.get_by_id_or_external_id(4)

    def test_missing_and_invalid(self, service):
        with pytest.raises(NotFoundError):
            service.get_by_id_or_external_id(12345)
        with pytest.raises(NotFoundError):
            service.get_by_id_or_external_id("abc")
        with pytest.raises(NotFoundError):
            service.get_by_id_or_external_id("99999999999999999999")

    def test_unreadable_categories_still_served(self, store, service):
        row = PersistedProduct(external_id=77, name="Broken", categories="[{")
        store.upsert_by_external_id(row)

        product = service.get_by_id_or_external_id(77)

        assert product["degraded"] is True
        assert product["name"] == "Broken"


def test_from_settings(store):
    settings = Settings(rental_category_id=7, rental_category_slug="rentals")
    service = CatalogService.from_settings(settings, store)
    assert service.rental_category_id == 7
    assert service.rental_category_slug == "rentals"
