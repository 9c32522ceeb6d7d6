"""Human-readable identifiers: SKUs, slugs and order numbers."""

import random
import re
import time

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("base36 encoding requires a non-negative integer")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _millis() -> int:
    return int(time.time() * 1000)


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower())
    return slug.strip("-")


def generate_sku(title: str) -> str:
    """``SKU-<first three letters>-<base36 timestamp>``, upper-cased."""
    prefix = re.sub(r"[^A-Za-z0-9]", "", title or "")[:3].upper() or "PRD"
    return f"SKU-{prefix}-{to_base36(_millis()).upper()}"


def generate_order_number() -> str:
    """``ORD-<base36 timestamp>-<3 random digits>``, upper-cased."""
    suffix = f"{random.randint(0, 999):03d}"
    return f"ORD-{to_base36(_millis()).upper()}-{suffix}"


def unique_slug(text: str) -> str:
    """Slug with a short base36 timestamp suffix, for names that may repeat."""
    return f"{slugify(text)}-{to_base36(_millis())[-6:]}"
