"""Local outfit generation used whenever the model path cannot be trusted."""
from __future__ import annotations

import logging
import random
import re
from typing import Dict, Optional, Tuple

from logic.catalog_partition import CatalogPartition
from models.outfit import FallbackReason, OutfitResult, OutfitSource
from models.wardrobe_item import WardrobeItem

logger = logging.getLogger(__name__)

# Draw order is fixed so a seeded Random reproduces the same picks.
FALLBACK_CATEGORIES = ("tops", "bottoms", "shoes", "dresses", "accessories")

OCCASION_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("formal", ("formal", "wedding", "dinner")),
    ("casual", ("casual", "coffee", "everyday")),
    ("summer", ("summer", "hot", "beach")),
    ("winter", ("winter", "cold", "snow")),
)

OCCASION_REASONING: Dict[str, str] = {
    "formal": (
        "I've selected items that work well for a formal occasion, focusing on elegant "
        "pieces that create a polished look."
    ),
    "casual": (
        "I've created a relaxed, casual outfit that's comfortable yet stylish for everyday wear."
    ),
    "summer": (
        "I've selected light, breathable pieces that will keep you cool during the summer "
        "while looking stylish."
    ),
    "winter": (
        "I've chosen warm, layerable pieces that will keep you cozy in cold weather while "
        "maintaining a fashionable look."
    ),
    "versatile": (
        "I've selected versatile pieces that work well together and can be adapted for "
        "different settings."
    ),
}


def detect_occasion(intent: Optional[str]) -> str:
    """Return the first occasion family whose keywords start a word in ``intent``."""

    if not intent:
        return "versatile"
    lowered = intent.lower()
    for occasion, keywords in OCCASION_KEYWORDS:
        if any(re.search(rf"\b{keyword}", lowered) for keyword in keywords):
            return occasion
    return "versatile"


def generate_fallback_outfit(
    partition: CatalogPartition,
    intent: Optional[str] = None,
    rng: Optional[random.Random] = None,
    reason: Optional[FallbackReason] = None,
) -> OutfitResult:
    """Pick one random item per category; never raises.

    A dress stands in for both top and bottom. Outerwear is only layered on for
    cold-weather requests.
    """

    rng = rng or random.Random()
    occasion = detect_occasion(intent)

    picks: Dict[str, WardrobeItem] = {}
    for category in FALLBACK_CATEGORIES:
        bucket = partition.items_for(category)
        if bucket:
            picks[category] = bucket[rng.randrange(len(bucket))]

    if "dresses" in picks:
        picks.pop("tops", None)
        picks.pop("bottoms", None)

    if occasion == "winter":
        outerwear = partition.items_for("outerwear")
        if outerwear:
            picks["outerwear"] = outerwear[rng.randrange(len(outerwear))]

    logger.info(
        "Generated fallback outfit with %s items (occasion=%s, reason=%s)",
        len(picks),
        occasion,
        reason.value if reason else None,
    )
    return OutfitResult(
        items=picks,
        reasoning=OCCASION_REASONING[occasion],
        name=f"AI Generated {occasion.title()} Outfit",
        source=OutfitSource.FALLBACK,
        fallback_reason=reason,
    )


__all__ = [
    "FALLBACK_CATEGORIES",
    "OCCASION_KEYWORDS",
    "OCCASION_REASONING",
    "detect_occasion",
    "generate_fallback_outfit",
]
