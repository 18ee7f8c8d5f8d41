"""SQLite schema and gateway for the mirrored catalog."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Union

from woosync.config import DB_PATH
from woosync.errors import StoreError
from woosync.logging_config import get_logger
from woosync.models import PersistedProduct, SyncSummary

__all__ = [
    "DEFAULT_DB_PATH",
    "PRODUCT_COLUMNS",
    "get_connection",
    "init_db",
    "CatalogStore",
]

DEFAULT_DB_PATH = DB_PATH

logger = get_logger("db")

# Columns written by an upsert (store-owned id/timestamps excluded)
PRODUCT_COLUMNS = (
    "external_id",
    "name",
    "status",
    "price",
    "regular_price",
    "stock_quantity",
    "stock_status",
    "categories",
    "images",
    "description",
    "short_description",
    "variation_ids",
    "variation_stock",
    "custom_fields",
    "metadata",
    "sku",
    "price_tier_1",
    "price_tier_2",
    "price_tier_3",
)

# Containment test over the serialized category list. Rows whose categories
# column is not valid JSON never match instead of failing the whole query.
_CATEGORY_ID_MATCH = """
    EXISTS (
        SELECT 1
        FROM json_each(CASE WHEN json_valid(products.categories) THEN products.categories ELSE '[]' END) AS c
        WHERE json_type(c.value) = 'object'
          AND CAST(json_extract(c.value, '$.id') AS INTEGER) = ?
    )
"""

_CATEGORY_SLUG_MATCH = """
    EXISTS (
        SELECT 1
        FROM json_each(CASE WHEN json_valid(products.categories) THEN products.categories ELSE '[]' END) AS c
        WHERE json_type(c.value) = 'object'
          AND lower(json_extract(c.value, '$.slug')) = lower(?)
    )
"""

_ORDER_BY = " ORDER BY name COLLATE NOCASE, external_id"

SQLITE_MAX_INTEGER = 2**63 - 1


@contextmanager
def get_connection(db_path: str = DEFAULT_DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    # timeout doubles as busy timeout so overlapping syncs wait instead of failing
    conn = sqlite3.connect(db_path, timeout=30)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS products (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                external_id INTEGER UNIQUE NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                status TEXT NOT NULL DEFAULT 'publish',
                price REAL,
                regular_price REAL,
                stock_quantity INTEGER DEFAULT 0,
                stock_status TEXT DEFAULT 'instock',
                categories TEXT DEFAULT '[]',
                images TEXT DEFAULT '[]',
                description TEXT DEFAULT '',
                short_description TEXT DEFAULT '',
                variation_ids TEXT DEFAULT '[]',
                variation_stock TEXT DEFAULT '[]',
                custom_fields TEXT DEFAULT '{}',
                metadata TEXT DEFAULT '[]',
                sku TEXT DEFAULT '',
                price_tier_1 REAL,
                price_tier_2 REAL,
                price_tier_3 REAL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # One row per sync run
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS sync_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                started_at TIMESTAMP,
                finished_at TIMESTAMP,
                status TEXT NOT NULL,
                fetched INTEGER DEFAULT 0,
                synced INTEGER DEFAULT 0,
                errors INTEGER DEFAULT 0,
                skipped INTEGER DEFAULT 0,
                error TEXT
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_status ON products(status)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_sku ON products(sku)")

        conn.commit()


class CatalogStore:
    """Upsert and query access to the products table.

    Every write is keyed on external_id; nothing is ever deleted.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            with get_connection(self.db_path) as conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Database error ({self.db_path}): {e}")
            raise StoreError(f"Catalog store failure: {e}") from e

    def ensure_schema(self) -> None:
        try:
            init_db(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot initialize catalog store: {e}") from e

    def upsert_by_external_id(self, product: PersistedProduct) -> int:
        """Insert or update a product keyed on external_id, returning its row id.

        Concurrent writers for the same external_id resolve as last write wins.
        """
        columns = ", ".join(PRODUCT_COLUMNS)
        placeholders = ", ".join("?" for _ in PRODUCT_COLUMNS)
        updates = ", ".join(f"{col} = excluded.{col}" for col in PRODUCT_COLUMNS if col != "external_id")
        values = [getattr(product, col) for col in PRODUCT_COLUMNS]

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(f"""
                INSERT INTO products ({columns})
                VALUES ({placeholders})
                ON CONFLICT(external_id) DO UPDATE SET
                    {updates},
                    updated_at = CURRENT_TIMESTAMP
            """, values)
            cursor.execute("SELECT id FROM products WHERE external_id = ?", (product.external_id,))
            row_id = cursor.fetchone()["id"]
            conn.commit()

        product.id = row_id
        return row_id

    def _select(self, where: str, params: List[Any]) -> List[PersistedProduct]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT * FROM products WHERE {where}{_ORDER_BY}", params)
            return [PersistedProduct.from_row(row) for row in cursor.fetchall()]

    def query_by_category(self, category_id: int, status: Optional[str] = None) -> List[PersistedProduct]:
        """Products whose category list contains an entry with this id."""
        where = _CATEGORY_ID_MATCH
        params: List[Any] = [int(category_id)]
        if status:
            where += " AND status = ?"
            params.append(status.strip().lower())
        return self._select(where, params)

    def query_by_category_and_slug(self, category_id: int, slug: str) -> List[PersistedProduct]:
        """Products in the category that also carry a category with this slug."""
        where = f"{_CATEGORY_ID_MATCH} AND {_CATEGORY_SLUG_MATCH}"
        return self._select(where, [int(category_id), slug.strip()])

    def query_by_external_or_row_id(self, identifier: Union[int, str]) -> Optional[PersistedProduct]:
        """Look up by external id, falling back to row id.

        Returns None if absent or if the identifier is not a plain decimal
        number that fits an SQLite integer.
        """
        text = str(identifier).strip()
        if not (text.isascii() and text.isdigit()):
            return None
        key = int(text)
        if key > SQLITE_MAX_INTEGER:
            return None

        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM products
                WHERE external_id = ? OR id = ?
                ORDER BY CASE WHEN external_id = ? THEN 0 ELSE 1 END
                LIMIT 1
            """, (key, key, key))
            row = cursor.fetchone()
            return PersistedProduct.from_row(row) if row else None

    def count_products(self, category_id: Optional[int] = None) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            if category_id is not None:
                cursor.execute(
                    f"SELECT COUNT(*) AS count FROM products WHERE {_CATEGORY_ID_MATCH}",
                    (int(category_id),),
                )
            else:
                cursor.execute("SELECT COUNT(*) AS count FROM products")
            return cursor.fetchone()["count"]

    def record_sync_run(self, summary: SyncSummary) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO sync_runs (started_at, finished_at, status, fetched, synced, errors, skipped, error)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                summary.started_at,
                summary.finished_at,
                summary.status,
                summary.fetched,
                summary.synced,
                summary.errors,
                summary.skipped,
                summary.error,
            ))
            conn.commit()
            return cursor.lastrowid

    def get_last_sync_run(self) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM sync_runs ORDER BY id DESC LIMIT 1")
            row = cursor.fetchone()
            return dict(row) if row else None
