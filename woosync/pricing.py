"""Tiered rental price resolution.

Tier prices can live in two places upstream: the ACF custom-fields map
(``acf``) or the generic ``meta_data`` list, where the keys may carry a
leading underscore. Custom fields win outright: if any tier is found there,
meta_data is never consulted, even for the tiers custom fields lack.
"""

import math
from typing import Any, Dict, Iterable, Mapping, Optional

from woosync.models import TIER_KEYS

__all__ = ["TIER_KEYS", "to_number", "resolve_pricing", "tier_1_price"]


def to_number(value: Any) -> Optional[float]:
    """Coerce an API value to a finite float, or None.

    Accepts ints, floats and numeric strings. Booleans, empty strings, NaN
    and infinities are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _positive(value: Any) -> Optional[float]:
    number = to_number(value)
    if number is None or number <= 0:
        return None
    return number


def _from_custom_fields(custom_fields: Any) -> Dict[str, float]:
    if not isinstance(custom_fields, Mapping):
        return {}
    pricing: Dict[str, float] = {}
    for key in TIER_KEYS:
        price = _positive(custom_fields.get(key))
        if price is not None:
            pricing[key] = price
    return pricing


def _meta_key_value(entry: Any) -> Optional[tuple]:
    if not isinstance(entry, Mapping):
        return None
    key = entry.get("key") or entry.get("name") or ""
    value = entry.get("value") if "value" in entry else entry.get("val")
    if not isinstance(key, str):
        return None
    return key, value


def _from_metadata(metadata: Any) -> Dict[str, float]:
    if not isinstance(metadata, Iterable) or isinstance(metadata, (str, bytes, Mapping)):
        return {}

    # Plain key beats the underscore-prefixed one; first valid entry per key wins
    found: Dict[str, float] = {}
    for entry in metadata:
        pair = _meta_key_value(entry)
        if pair is None:
            continue
        key, value = pair
        if key in found:
            continue
        if key in TIER_KEYS or (key.startswith("_") and key[1:] in TIER_KEYS):
            price = _positive(value)
            if price is not None:
                found[key] = price

    pricing: Dict[str, float] = {}
    for tier in TIER_KEYS:
        if tier in found:
            pricing[tier] = found[tier]
        elif f"_{tier}" in found:
            pricing[tier] = found[f"_{tier}"]
    return pricing


def resolve_pricing(custom_fields: Any, metadata: Any) -> Dict[str, float]:
    """Resolve up to three tier prices from custom fields, else metadata.

    Args:
        custom_fields: The product's ``acf`` map (anything else counts as empty)
        metadata: The product's ``meta_data`` list of {key, value} entries

    Returns:
        Dict with any of 'precio_1_2', 'precio_3_6', 'precio_7_mais' mapped to
        a positive float. Malformed values are left out, never raised.
    """
    pricing = _from_custom_fields(custom_fields)
    if pricing:
        return pricing
    return _from_metadata(metadata)


def tier_1_price(pricing: Mapping[str, float]) -> Optional[float]:
    """The 1-2 day price, which doubles as the display price."""
    return pricing.get(TIER_KEYS[0])
