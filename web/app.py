"""Flask app serving the mirrored rental catalog.

Thin HTTP layer over woosync: flask-cors for the frontend origins, optional
basic auth on the sync endpoints, and the API blueprint.
"""

import base64
import logging
import os
from typing import Optional

from flask import Flask, Response, request
from flask_cors import CORS

from woosync.config import Settings, load_settings
from woosync.db import CatalogStore
from woosync.errors import StoreError
from woosync.service import CatalogService

from .api import SYNC_ENDPOINTS, api
from .config import (
    CORS_ALLOWED_HEADERS,
    CORS_ALLOWED_METHODS,
    CORS_ALLOWED_ORIGINS,
    CORS_EXPOSED_HEADERS,
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
)

__all__ = ["create_app"]

logger = logging.getLogger(__name__)


# ---------- BASIC AUTH ----------


def _sync_auth_creds() -> tuple[Optional[str], Optional[str]]:
    """Get sync endpoint credentials from environment."""
    return os.getenv("SYNC_USER"), os.getenv("SYNC_PASS")


def _unauthorized() -> Response:
    return Response(
        "Authentication required",
        401,
        {"WWW-Authenticate": 'Basic realm="Catalog Sync"'},
    )


def require_sync_auth() -> Optional[Response]:
    """
    Enforce HTTP Basic Auth on the sync endpoints.
    Skips enforcement if credentials are not configured (SYNC_USER/SYNC_PASS unset).
    """
    if request.endpoint not in SYNC_ENDPOINTS or request.method == "OPTIONS":
        return None

    user, password = _sync_auth_creds()
    if not user or not password:
        return None  # auth disabled

    header = request.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return _unauthorized()

    try:
        decoded = base64.b64decode(header.split(" ", 1)[1]).decode("utf-8")
        username, passwd = decoded.split(":", 1)
    except (ValueError, UnicodeDecodeError):
        return _unauthorized()

    if username == user and passwd == password:
        return None
    return _unauthorized()


# ---------- CORS ----------


def log_blocked_origin(response: Response) -> Response:
    origin = request.headers.get("Origin")
    if origin and origin not in CORS_ALLOWED_ORIGINS:
        logger.warning(f"CORS blocked for origin: {origin}")
    return response


# ---------- APP FACTORY ----------


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CatalogStore] = None,
    sync_factory=None,
) -> Flask:
    """Build the Flask app with its collaborators attached.

    Args:
        settings: Runtime settings (default: from environment)
        store: Catalog store (default: SQLite at settings.db_path)
        sync_factory: Callable returning a SyncOrchestrator; defaults to one
            built from settings with a live CatalogClient
    """
    settings = settings or load_settings()
    store = store or CatalogStore(settings.db_path)

    try:
        store.ensure_schema()
    except StoreError as e:
        logger.error(f"Catalog store unavailable at startup: {e}")

    app = Flask(__name__)
    app.extensions["woosync"] = {
        "settings": settings,
        "store": store,
        "service": CatalogService.from_settings(settings, store),
        "sync_factory": sync_factory,
    }

    CORS(
        app,
        origins=CORS_ALLOWED_ORIGINS,
        methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
        expose_headers=CORS_EXPOSED_HEADERS,
        supports_credentials=True,
    )
    app.before_request(require_sync_auth)
    app.after_request(log_blocked_origin)
    app.register_blueprint(api)

    return app


if __name__ == "__main__":
    from woosync.logging_config import setup_logging

    setup_logging()
    logging.basicConfig(level=logging.INFO)
    create_app().run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
