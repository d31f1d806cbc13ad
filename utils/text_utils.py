"""
Text utilities for handling Portuguese catalog names with accents.

Used for slug generation and case-insensitive name lookups.
"""

import re
import unicodedata
from typing import Any, Optional


_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_PRICE_CHARS = re.compile(r"[^0-9,.\-]")


def strip_accents(text: str) -> str:
    """
    Remove accent marks while keeping the base letters.

    - "Sofá" → "Sofa"
    - "Cômoda" → "Comoda"
    """
    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


def slugify(name: str) -> str:
    """
    Build a URL-safe slug from a display name.

    - "Sofá 3 Lugares!" → "sofa-3-lugares"
    - "  Mesa de Jantar (6) " → "mesa-de-jantar-6"

    Args:
        name: Display name (may have accents, punctuation, mixed case)

    Returns:
        Lowercase ASCII slug, empty string if nothing alphanumeric remains
    """
    slug = strip_accents(name.lower())
    slug = _NON_ALNUM.sub("-", slug)
    return slug.strip("-")


def unique_slug(base: str, taken: set[str]) -> str:
    """
    Return base, or base with the first free numeric suffix.

    - ("mesa", {"mesa"}) → "mesa-2"
    - ("mesa", {"mesa", "mesa-2"}) → "mesa-3"

    Does not modify taken.
    """
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


def normalize_name(name: Optional[str]) -> str:
    """
    Key for case-insensitive name lookups.

    Trims and casefolds; accents are kept, so "Sofá" and "Sofa" are
    different keys.
    """
    if not name:
        return ""
    return " ".join(name.split()).casefold()


def parse_price(value: Any) -> float:
    """
    Convert a price cell to a float, 0.0 when unparseable.

    Handles currency symbols and Brazilian formatting:
    - "R$ 199,90" → 199.9
    - "1.299,00" → 1299.0
    - "1,299.00" → 1299.0
    - "R$ 1.299" → 1299.0 (one separator + three digits is a thousands group)
    - 49 → 49.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if value == value else 0.0  # NaN check

    text = _PRICE_CHARS.sub("", str(value))
    if not text:
        return 0.0

    # Last separator is the decimal one when both appear
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        if _is_thousands_group(text, ","):
            text = text.replace(",", "")
        else:
            text = text.replace(",", ".")
    elif text.count(".") > 1 or _is_thousands_group(text, "."):
        text = text.replace(".", "")  # "1.299.000", "R$ 1.299"

    try:
        return float(text)
    except ValueError:
        return 0.0


def _is_thousands_group(text: str, separator: str) -> bool:
    """The last separator is followed by exactly three digits, e.g. "1.299" or "1,299"."""
    whole, _, fraction = text.rpartition(separator)
    return len(fraction) == 3 and whole.lstrip("-") not in ("", "0")
