"""Shared fixtures for the web API test suite."""

import json
from unittest.mock import MagicMock

import pytest

from web.app import create_app
from woosync.config import Settings
from woosync.db import CatalogStore
from woosync.models import PersistedProduct, SyncSummary


def _rental_product(external_id, name, slug, status="publish", **extra):
    categories = [
        {"id": 319, "slug": "alugueres", "name": "Alugueres"},
        {"id": 400, "slug": slug, "name": slug.title()},
    ]
    return PersistedProduct(
        external_id=external_id,
        name=name,
        status=status,
        price=25.0,
        regular_price=30.0,
        stock_quantity=3,
        categories=json.dumps(categories),
        images=json.dumps([{"src": f"https://cdn.example.com/{external_id}.jpg"}]),
        **extra,
    )


@pytest.fixture
def settings(tmp_path):
    return Settings(
        api_base="https://shop.example.com/wp-json/wc/v3",
        consumer_key="ck_test",
        consumer_secret="cs_test",
        db_path=str(tmp_path / "catalog.db"),
    )


@pytest.fixture
def store(settings):
    store = CatalogStore(settings.db_path)
    store.ensure_schema()
    store.upsert_by_external_id(_rental_product(101, "City bike", "bicicletas"))
    store.upsert_by_external_id(_rental_product(102, "Helmet", "capacetes"))
    store.upsert_by_external_id(_rental_product(103, "Old bike", "bicicletas", status="draft"))
    store.upsert_by_external_id(PersistedProduct(
        external_id=200,
        name="Spare tube",
        categories=json.dumps([{"id": 500, "slug": "pecas"}]),
    ))
    return store


@pytest.fixture
def orchestrator():
    """Stand-in for SyncOrchestrator; tests set run_sync.return_value."""
    orchestrator = MagicMock()
    orchestrator.run_sync.return_value = SyncSummary(fetched=3, synced=3).finish()
    return orchestrator


@pytest.fixture
def app(settings, store, orchestrator, monkeypatch):
    monkeypatch.delenv("SYNC_USER", raising=False)
    monkeypatch.delenv("SYNC_PASS", raising=False)
    app = create_app(settings, store, sync_factory=lambda: orchestrator)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    with app.test_client() as test_client:
        yield test_client
