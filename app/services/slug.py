"""Brand slug normalization and the routes derived from it."""

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def strip_diacritics(value: str) -> str:
    """Drop combining marks after NFD decomposition ("Café" -> "Cafe")."""
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify_brand(value: str) -> str:
    """Turn a brand display name into its public key.

    Returns "" when the name has no ASCII letters or digits; callers must
    treat that as invalid.

    >>> slugify_brand("Café Luz")
    'cafe-luz'
    """
    lowered = strip_diacritics(value.lower())
    return _NON_ALNUM.sub("-", lowered).strip("-")


def build_admin_path(brand_slug: str) -> str:
    return f"/admin/{brand_slug}"


def build_store_path(brand_slug: str) -> str:
    return f"/{brand_slug}"
