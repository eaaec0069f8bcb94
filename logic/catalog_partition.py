"""Category partitioning of the wardrobe catalog."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from models.taxonomy import CATEGORIES
from models.wardrobe_item import WardrobeItem

logger = logging.getLogger(__name__)


class CatalogPartition:
    """Wardrobe items grouped by category.

    The same partition instance is handed to the prompt builder and the
    reconciler, so any identifier the model returns is resolved against exactly
    the items it was shown.
    """

    def __init__(self, buckets: Mapping[str, Sequence[WardrobeItem]]) -> None:
        self._buckets: Dict[str, Tuple[WardrobeItem, ...]] = {
            category: tuple(buckets.get(category, ())) for category in CATEGORIES
        }

    def items_for(self, category: str) -> Tuple[WardrobeItem, ...]:
        return self._buckets.get(category, ())

    def non_empty(self) -> Iterator[Tuple[str, Tuple[WardrobeItem, ...]]]:
        """Yield populated buckets in canonical category order."""

        for category in CATEGORIES:
            items = self._buckets[category]
            if items:
                yield category, items

    def categories(self) -> List[str]:
        return [category for category, _ in self.non_empty()]

    def find(self, category: str, item_id: str) -> Optional[WardrobeItem]:
        for item in self.items_for(category):
            if item.item_id == item_id:
                return item
        return None

    def all_items(self) -> List[WardrobeItem]:
        return [item for _, items in self.non_empty() for item in items]

    def item_ids(self) -> List[str]:
        return [item.item_id for item in self.all_items()]

    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        return sum(len(items) for items in self._buckets.values())

    def __repr__(self) -> str:
        counts = {category: len(items) for category, items in self.non_empty()}
        return f"CatalogPartition({counts})"


def partition_catalog(
    items: Iterable[WardrobeItem], max_per_category: Optional[int] = None
) -> CatalogPartition:
    """Group items by category, keeping the newest ``max_per_category`` per bucket."""

    if max_per_category is not None and max_per_category < 0:
        raise ValueError("max_per_category cannot be negative")

    grouped: Dict[str, List[WardrobeItem]] = {category: [] for category in CATEGORIES}
    total = 0
    for item in items:
        grouped.setdefault(item.category, []).append(item)
        total += 1

    if max_per_category is not None:
        for category, bucket in grouped.items():
            bucket.sort(key=lambda entry: entry.added_at, reverse=True)
            if len(bucket) > max_per_category:
                del bucket[max_per_category:]
                logger.debug("Bounded %s bucket to %s items", category, max_per_category)

    partition = CatalogPartition(grouped)
    logger.debug("Partitioned %s items into %r", total, partition)
    return partition


__all__ = ["CatalogPartition", "partition_catalog"]
