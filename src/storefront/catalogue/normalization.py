"""Explicit input normalization for product payloads.

Runs before validation: strips strings, canonicalises enum-like values and
casts numeric strings. Anything that cannot be cast is reported as a
``ValidationError`` keyed by the offending field.
"""

from protean.exceptions import ValidationError

_LOWERCASE_FIELDS = ("status", "visibility")
_TEXT_FIELDS = ("title", "description", "short_description", "brand", "category", "sku", "slug")
_BOOLEAN_FIELDS = ("is_featured", "is_trending")

_PRICE_NUMBERS = ("original", "selling")
_DISCOUNT_NUMBERS = ("value",)
_STOCK_INTEGERS = ("quantity", "reserved", "low_stock_threshold")

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off", ""}


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _to_float(field: str, value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        raise ValidationError({field: [f"'{value}' is not a valid number"]}) from None


def _to_int(field: str, value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    number = _to_float(field, value)
    if number != int(number):
        raise ValidationError({field: [f"'{value}' is not a whole number"]})
    return int(number)


def _to_bool(field: str, value):
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ValidationError({field: [f"'{value}' is not a valid boolean"]})


def _normalize_keywords(value):
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    return [kw.strip().lower() for kw in value if isinstance(kw, str) and kw.strip()]


def normalize_product_input(data: dict) -> dict:
    """Return a normalized copy of a (possibly partial) product payload.

    Nested ``price``, ``discount`` and ``stock`` mappings are normalized in
    place of the originals; unknown keys pass through untouched.
    """
    result = dict(data)

    for name in _TEXT_FIELDS:
        if name in result:
            result[name] = _strip(result[name])

    for name in _LOWERCASE_FIELDS:
        if isinstance(result.get(name), str):
            result[name] = result[name].strip().lower()

    for name in _BOOLEAN_FIELDS:
        if name in result:
            result[name] = _to_bool(name, result[name])

    if "keywords" in result:
        result["keywords"] = _normalize_keywords(result["keywords"])

    if isinstance(result.get("price"), dict):
        price = dict(result["price"])
        for name in _PRICE_NUMBERS:
            if name in price:
                price[name] = _to_float(f"price.{name}", price[name])
        if isinstance(price.get("currency"), str):
            price["currency"] = price["currency"].strip().upper()
        result["price"] = price

    if isinstance(result.get("discount"), dict):
        discount = dict(result["discount"])
        for name in _DISCOUNT_NUMBERS:
            if name in discount:
                discount[name] = _to_float(f"discount.{name}", discount[name])
        if isinstance(discount.get("type"), str):
            discount["type"] = discount["type"].strip().lower()
        if "is_active" in discount:
            discount["is_active"] = _to_bool("discount.is_active", discount["is_active"])
        result["discount"] = discount

    if isinstance(result.get("stock"), dict):
        stock = dict(result["stock"])
        for name in _STOCK_INTEGERS:
            if name in stock:
                stock[name] = _to_int(f"stock.{name}", stock[name])
        if "track_inventory" in stock:
            stock["track_inventory"] = _to_bool("stock.track_inventory", stock["track_inventory"])
        result["stock"] = stock

    return result
