"""Conversion between remote products, persisted rows and API products.

Forward: a remote product (plus its variations and resolved pricing) becomes
a PersistedProduct row. Reverse: a PersistedProduct becomes the canonical
dict served to the frontend. The reverse direction never raises; a row with
a malformed JSON column comes back as a degraded record instead.
"""

import json
from typing import Any, Dict, List, Mapping, Optional, Sequence

from woosync.config import (
    DEFAULT_CATEGORY,
    DEFAULT_RENTAL_CATEGORY_ID,
    PLACEHOLDER_IMAGE,
    RENTAL_CATEGORY_SLUG,
    UNKNOWN_ID,
    UNNAMED_PRODUCT,
)
from woosync.errors import ParseError
from woosync.logging_config import get_logger
from woosync.models import TIER_KEYS, PersistedProduct
from woosync.pricing import resolve_pricing, tier_1_price, to_number

__all__ = [
    "is_variable",
    "snapshot_variation",
    "aggregate_stock",
    "to_persisted",
    "parse_json_field",
    "primary_category",
    "main_image",
    "surface_id",
    "to_canonical",
    "degraded_record",
]

logger = get_logger("normalizer")


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _to_int(value: Any) -> Optional[int]:
    number = to_number(value)
    return int(number) if number is not None else None


def _lower(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip().lower()
    return text or default


# ---------- FORWARD: remote -> persisted ----------


def is_variable(product: Mapping[str, Any]) -> bool:
    """True for 'variable' products or any product listing variation ids."""
    if str(product.get("type") or "").strip().lower() == "variable":
        return True
    variations = product.get("variations")
    return isinstance(variations, list) and len(variations) > 0


def snapshot_variation(variation: Mapping[str, Any]) -> Dict[str, Any]:
    """Reduce a remote variation to the stock snapshot embedded on the product."""
    return {
        "id": variation.get("id"),
        "sku": variation.get("sku") or None,
        "stock_quantity": _to_int(variation.get("stock_quantity")),
        "stock_status": variation.get("stock_status") or None,
        "price": variation.get("price"),
        "regular_price": variation.get("regular_price"),
        "attributes": variation.get("attributes") or [],
    }


def aggregate_stock(product: Mapping[str, Any], snapshots: Sequence[Mapping[str, Any]]) -> int:
    """Sum variation stock, or fall back to the product's own stock.

    Missing or non-numeric quantities count as 0.
    """
    if snapshots:
        return sum(_to_int(s.get("stock_quantity")) or 0 for s in snapshots)
    return _to_int(product.get("stock_quantity")) or 0


def to_persisted(
    product: Mapping[str, Any],
    variations: Sequence[Mapping[str, Any]],
    pricing: Mapping[str, float],
) -> PersistedProduct:
    """Normalize a remote product into the persisted row shape.

    Args:
        product: Raw product JSON from the remote catalog
        variations: Raw variation JSON records (empty for simple products)
        pricing: Tier prices from resolve_pricing()

    Raises:
        ValueError: If the product has no usable external id
    """
    external_id = _to_int(product.get("id"))
    if external_id is None:
        raise ValueError(f"Product has no valid id: {product.get('id')!r}")

    snapshots = [snapshot_variation(v) for v in variations]
    if snapshots:
        variation_ids = [s["id"] for s in snapshots]
    else:
        own = product.get("variations")
        variation_ids = list(own) if isinstance(own, list) else []

    tier_1 = tier_1_price(pricing)
    if tier_1 is not None:
        price = tier_1
    else:
        price = to_number(product.get("price")) or 0.0

    return PersistedProduct(
        external_id=external_id,
        name=str(product.get("name") or ""),
        status=_lower(product.get("status"), "publish"),
        price=price,
        regular_price=to_number(product.get("regular_price")) or 0.0,
        stock_quantity=aggregate_stock(product, snapshots),
        stock_status=_lower(product.get("stock_status"), "instock"),
        description=str(product.get("description") or ""),
        short_description=str(product.get("short_description") or ""),
        sku=str(product.get("sku") or ""),
        categories=_dumps(product.get("categories") or []),
        images=_dumps(product.get("images") or []),
        variation_ids=_dumps(variation_ids),
        variation_stock=_dumps(snapshots),
        custom_fields=_dumps(product.get("acf") or {}),
        metadata=_dumps(product.get("meta_data") or []),
        price_tier_1=pricing.get(TIER_KEYS[0]),
        price_tier_2=pricing.get(TIER_KEYS[1]),
        price_tier_3=pricing.get(TIER_KEYS[2]),
    )


# ---------- REVERSE: persisted -> canonical ----------


def parse_json_field(field: str, value: Any, fallback: Any) -> Any:
    """Decode a serialized column.

    None and empty strings give the fallback. Values already decoded are
    passed through. The decoded value must have the fallback's type
    (list or dict).

    Raises:
        ParseError: On malformed JSON or a value of the wrong shape
    """
    if value is None:
        return fallback
    if isinstance(value, (list, dict)):
        decoded = value
    elif isinstance(value, (str, bytes)):
        if not value.strip():
            return fallback
        try:
            decoded = json.loads(value)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(field, str(e)) from e
    else:
        raise ParseError(field, f"unexpected type {type(value).__name__}")

    if decoded is None:
        return fallback
    if not isinstance(decoded, type(fallback)):
        raise ParseError(field, f"expected {type(fallback).__name__}, got {type(decoded).__name__}")
    return decoded


def primary_category(
    categories: List[Any],
    rental_category_id: int = DEFAULT_RENTAL_CATEGORY_ID,
    rental_category_slug: str = RENTAL_CATEGORY_SLUG,
) -> str:
    """Slug of the first category that is not the rental category itself."""
    for category in categories:
        if not isinstance(category, Mapping):
            continue
        slug = category.get("slug")
        if not slug or slug == rental_category_slug:
            continue
        if _to_int(category.get("id")) == rental_category_id:
            continue
        return str(slug)
    return DEFAULT_CATEGORY


def main_image(images: List[Any]) -> str:
    if images and isinstance(images[0], Mapping):
        return images[0].get("src") or images[0].get("url") or PLACEHOLDER_IMAGE
    return PLACEHOLDER_IMAGE


def surface_id(row: PersistedProduct) -> str:
    """External id, else row id, else the 'unknown' sentinel. Never empty."""
    for candidate in (row.external_id, row.id):
        if candidate is not None and str(candidate).strip():
            return str(candidate)
    return UNKNOWN_ID


def _display_price(row: PersistedProduct, pricing: Mapping[str, float]) -> float:
    tier_1 = tier_1_price(pricing)
    if tier_1 is not None:
        return tier_1
    for value in (row.price, row.regular_price):
        if value is not None and value != "":
            number = to_number(value)
            if number is not None:
                return number
    return 0.0


def to_canonical(
    row: PersistedProduct,
    rental_category_id: int = DEFAULT_RENTAL_CATEGORY_ID,
    rental_category_slug: str = RENTAL_CATEGORY_SLUG,
) -> Dict[str, Any]:
    """Rebuild the frontend product from a persisted row.

    Never raises: parse failures yield degraded_record(row).
    """
    try:
        categories = parse_json_field("categories", row.categories, [])
        images = parse_json_field("images", row.images, [])
        custom_fields = parse_json_field("custom_fields", row.custom_fields, {})
        metadata = parse_json_field("metadata", row.metadata, [])
        variation_ids = parse_json_field("variation_ids", row.variation_ids, [])
        variation_stock = parse_json_field("variation_stock", row.variation_stock, [])

        # Tier 1 is re-derived from the blobs, not read from price_tier_1
        pricing = resolve_pricing(custom_fields, metadata)
        category = primary_category(categories, rental_category_id, rental_category_slug)
        stock = _to_int(row.stock_quantity) or 0

        return {
            "id": surface_id(row),
            "external_id": row.external_id,
            "name": row.name or "",
            "type": category,
            "category": category,
            "price": _display_price(row, pricing),
            "regular_price": to_number(row.regular_price) or 0.0,
            "available": stock,
            "stock_quantity": stock,
            "stock_status": row.stock_status or "instock",
            "image": main_image(images),
            "images": images,
            "description": row.short_description or row.description or "",
            "short_description": row.short_description or "",
            "categories": categories,
            "status": row.status or "publish",
            "custom_fields": custom_fields,
            "tiered_pricing": pricing,
            "metadata": metadata,
            "variation_ids": variation_ids,
            "variation_stock": variation_stock,
            "sku": row.sku or "",
            "degraded": False,
        }
    except Exception as e:
        logger.warning(f"Degrading product {surface_id(row)}: {e}")
        return degraded_record(row)


def degraded_record(row: PersistedProduct) -> Dict[str, Any]:
    """Minimal product used when a row cannot be fully decoded."""
    price = to_number(row.price) or to_number(row.regular_price) or 0.0
    stock = _to_int(row.stock_quantity) or 0
    return {
        "id": surface_id(row),
        "external_id": row.external_id,
        "name": row.name or UNNAMED_PRODUCT,
        "type": DEFAULT_CATEGORY,
        "category": DEFAULT_CATEGORY,
        "price": price,
        "available": stock,
        "image": PLACEHOLDER_IMAGE,
        "description": row.description or "",
        "status": row.status or "publish",
        "degraded": True,
    }
