"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.outfit import FallbackReason, OutfitResult, OutfitSource, SavedOutfit
from models.wardrobe_item import WardrobeItem, from_raw_metadata

__all__ = [
    "FallbackReason",
    "OutfitResult",
    "OutfitSource",
    "SavedOutfit",
    "WardrobeItem",
    "from_raw_metadata",
]
