"""Canonical taxonomy definitions for wardrobe items.

This module centralises the category labels used by the browser extension, the
color palette used for prompt projections and the keyword rules used to guess a
category when product extraction could not determine one.
"""

from typing import Dict, Iterable, List, Optional, Tuple


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_")


CATEGORIES: Tuple[str, ...] = (
    "tops",
    "bottoms",
    "shoes",
    "outerwear",
    "dresses",
    "accessories",
    "other",
)
DEFAULT_CATEGORY = "other"

CATEGORY_ALIASES: Dict[str, str] = {
    "top": "tops",
    "bottom": "bottoms",
    "shoe": "shoes",
    "dress": "dresses",
    "accessory": "accessories",
    "outer": "outerwear",
}

# Order matters: the first color found in a title wins.
COMMON_COLORS: List[str] = [
    "red",
    "blue",
    "green",
    "yellow",
    "orange",
    "purple",
    "pink",
    "black",
    "white",
    "gray",
    "grey",
    "brown",
    "navy",
    "beige",
    "maroon",
    "teal",
    "olive",
    "turquoise",
    "lavender",
    "cream",
    "tan",
    "khaki",
]

# Evaluated in order; dresses are checked after bottoms so "dress pants" stays a bottom.
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("tops", ("shirt", "top", "tee", "sweater", "blouse", "tank")),
    ("bottoms", ("pant", "jean", "skirt", "short", "trouser", "chino")),
    ("shoes", ("shoe", "boot", "sneaker", "sandal", "loafer", "heel")),
    ("dresses", ("dress",)),
    ("outerwear", ("jacket", "coat", "hoodie", "cardigan", "blazer")),
    (
        "accessories",
        ("hat", "scarf", "glove", "sock", "belt", "jewelry", "accessory", "bag", "purse", "watch"),
    ),
]


def normalize_category(value: Optional[str]) -> str:
    """Map a raw category label onto the canonical set, defaulting to ``other``."""

    if not value:
        return DEFAULT_CATEGORY
    key = _normalize_key(str(value))
    key = CATEGORY_ALIASES.get(key, key)
    return key if key in CATEGORIES else DEFAULT_CATEGORY


def validate_category(value: str) -> str:
    """Validate and normalise a category value.

    Raises a :class:`ValueError` if the category is not part of the canonical
    taxonomy.
    """

    key = _normalize_key(value)
    key = CATEGORY_ALIASES.get(key, key)
    if key not in CATEGORIES:
        raise ValueError(f"Unsupported category '{value}'. Allowed: {sorted(CATEGORIES)}")
    return key


def extract_color(text: Optional[str]) -> Optional[str]:
    """Return the first palette color mentioned in ``text``, if any."""

    if not text:
        return None
    lowered = text.lower()
    for color in COMMON_COLORS:
        if color in lowered:
            return color
    return None


def infer_category(texts: Iterable[Optional[str]]) -> str:
    """Guess a category from product text using keyword rules."""

    combined = " ".join(text for text in texts if text).lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in combined for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


__all__ = [
    "CATEGORIES",
    "CATEGORY_ALIASES",
    "COMMON_COLORS",
    "CATEGORY_KEYWORDS",
    "DEFAULT_CATEGORY",
    "normalize_category",
    "validate_category",
    "extract_color",
    "infer_category",
]
