"""API endpoints for the rental catalog.

Read endpoints serve canonical products with cache headers and ETags; the
sync endpoints run a catalog sync on demand and are never cached.
"""

import logging
from typing import Any, Dict, Tuple, Union

from flask import Blueprint, Response, current_app, jsonify, request

from woosync.client import CatalogClient
from woosync.errors import NotFoundError, StoreError
from woosync.sync import SyncOrchestrator

from .config import CACHE_MAX_AGE, CACHE_STALE_WHILE_REVALIDATE

__all__ = ["api", "SYNC_ENDPOINTS"]

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__)

# Endpoints guarded by the optional sync basic auth
SYNC_ENDPOINTS = {"api.sync_products", "api.sync"}


def _components() -> Dict[str, Any]:
    return current_app.extensions["woosync"]


def _cached(payload: Any) -> Response:
    """JSON response with public caching and conditional-GET support."""
    response = jsonify(payload)
    response.headers["Cache-Control"] = (
        f"public, max-age={CACHE_MAX_AGE}, stale-while-revalidate={CACHE_STALE_WHILE_REVALIDATE}"
    )
    response.add_etag()
    return response.make_conditional(request)


def _uncached(payload: Any, status: int = 200) -> Tuple[Response, int]:
    response = jsonify(payload)
    response.headers["Cache-Control"] = "no-store"
    return response, status


def _build_orchestrator() -> SyncOrchestrator:
    components = _components()
    if components["sync_factory"] is not None:
        return components["sync_factory"]()
    settings = components["settings"]
    client = CatalogClient.from_settings(settings)
    return SyncOrchestrator.from_settings(settings, client, components["store"])


# ---------- HEALTH ----------


@api.route("/health", methods=["GET"])
def health() -> Tuple[Response, int]:
    return _uncached({"status": "ok"})


# ---------- SYNC ----------


def _run_sync() -> Tuple[Response, int]:
    logger.info("Starting product sync (variations included)")
    try:
        orchestrator = _build_orchestrator()
        summary = orchestrator.run_sync()
        products = _components()["service"].list_by_category()
    except ValueError as e:
        # Missing remote configuration
        logger.error(f"Sync not configured: {e}")
        return _uncached({"error": str(e)}, 500)
    except StoreError as e:
        logger.error(f"Sync failed on the catalog store: {e}")
        return _uncached({"error": "Internal error during sync"}, 500)

    body = {
        "message": (
            f"Sync {summary.status}: {summary.synced} products synced, "
            f"{summary.errors} errors, {summary.fetched} products fetched."
        ),
        "summary": summary.to_dict(),
        "products": products,
    }
    if summary.failed:
        body["error"] = summary.error
        return _uncached(body, 502)
    return _uncached(body)


@api.route("/sync-products", methods=["GET"])
def sync_products() -> Tuple[Response, int]:
    """Run a sync (legacy GET route kept for existing cron callers)."""
    return _run_sync()


@api.route("/api/sync", methods=["POST"])
def sync() -> Tuple[Response, int]:
    return _run_sync()


@api.route("/api/sync/status", methods=["GET"])
def sync_status() -> Tuple[Response, int]:
    try:
        last = _components()["store"].get_last_sync_run()
    except StoreError:
        return _uncached({"error": "Internal error"}, 500)
    if last is None:
        return _uncached({"error": "No sync has run yet"}, 404)
    return _uncached(last)


# ---------- PRODUCTS ----------


@api.route("/api/products", methods=["GET"])
def list_products() -> Union[Response, Tuple[Response, int]]:
    """List rental products.

    Query params:
        category: sub-category slug filter (e.g. 'bicicletas')
        status: product status filter (e.g. 'publish')
    """
    slug = request.args.get("category") or None
    status = request.args.get("status") or None
    try:
        products = _components()["service"].list_by_category(slug=slug, status=status)
    except StoreError as e:
        logger.error(f"Error listing products: {e}")
        return _uncached({"error": "Internal error"}, 500)
    return _cached({"products": products, "count": len(products)})


@api.route("/api/products/<product_id>", methods=["GET"])
def get_product(product_id: str) -> Union[Response, Tuple[Response, int]]:
    try:
        product = _components()["service"].get_by_id_or_external_id(product_id)
    except NotFoundError:
        return _uncached({"error": "Product not found"}, 404)
    except StoreError as e:
        logger.error(f"Error loading product {product_id}: {e}")
        return _uncached({"error": "Internal error"}, 500)
    return _cached(product)
