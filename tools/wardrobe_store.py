"""Key-value storage backends and the wardrobe repository built on them."""
from __future__ import annotations

import asyncio
import copy
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from models.outfit import SavedOutfit
from models.wardrobe_item import WardrobeItem, from_raw_metadata

logger = logging.getLogger(__name__)

WARDROBE_KEY = "wardrobe"
OUTFITS_KEY = "outfits"


class KeyValueStore:
    """Async get/set contract of the extension's local storage."""

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed store for tests and ephemeral runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class JSONFileKeyValueStore(KeyValueStore):
    """JSON-file-backed store suitable for local runs; one file per key."""

    def __init__(self, base_dir: str | Path = "data/closet") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def _read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        return json.loads(path.read_text())

    def _write(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(value, indent=2))
        tmp_path.replace(path)

    async def get(self, key: str) -> Optional[Any]:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)


class WardrobeRepository:
    """Reads and writes the wardrobe and saved outfits through a key-value store.

    The store enforces no schema, so records are validated on the way out;
    malformed entries are skipped with a warning.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    async def _load_records(self, key: str) -> List[Dict[str, Any]]:
        raw = await self.store.get(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring non-list value stored under %s", key)
            return []
        return [record for record in raw if isinstance(record, dict)]

    async def list_items(self) -> List[WardrobeItem]:
        items: List[WardrobeItem] = []
        for record in await self._load_records(WARDROBE_KEY):
            try:
                items.append(from_raw_metadata(record))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping wardrobe entry due to validation error: %s", exc)
        return items

    async def get_item(self, item_id: str) -> Optional[WardrobeItem]:
        for item in await self.list_items():
            if item.item_id == item_id:
                return item
        return None

    async def upsert_item(self, item: WardrobeItem) -> WardrobeItem:
        """Add ``item``, or replace the stored record for the same product.

        A replaced record keeps its original identifier and creation time.
        """

        items = await self.list_items()
        for index, existing in enumerate(items):
            if existing.same_product(item):
                stored = replace(item, item_id=existing.item_id, added_at=existing.added_at)
                items[index] = stored
                logger.info("Updated existing wardrobe item %s", stored.item_id)
                break
        else:
            stored = item
            items.append(stored)
            logger.info("Added new wardrobe item %s", stored.item_id)
        await self.replace_all(items)
        return stored

    async def remove_item(self, item_id: str) -> bool:
        items = await self.list_items()
        remaining = [item for item in items if item.item_id != item_id]
        if len(remaining) == len(items):
            return False
        await self.replace_all(remaining)
        return True

    async def replace_all(self, items: List[WardrobeItem]) -> None:
        await self.store.set(WARDROBE_KEY, [item.to_dict() for item in items])

    async def list_outfits(self) -> List[SavedOutfit]:
        outfits: List[SavedOutfit] = []
        for record in await self._load_records(OUTFITS_KEY):
            try:
                outfits.append(SavedOutfit.from_dict(record))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping saved outfit due to validation error: %s", exc)
        return outfits

    async def save_outfit(self, outfit: SavedOutfit) -> SavedOutfit:
        if not outfit.item_ids:
            raise ValueError("An outfit needs at least one item")
        outfits = await self.list_outfits()
        outfits.append(outfit)
        await self.store.set(OUTFITS_KEY, [entry.to_dict() for entry in outfits])
        return outfit

    async def delete_outfit(self, outfit_id: str) -> bool:
        outfits = await self.list_outfits()
        remaining = [entry for entry in outfits if entry.outfit_id != outfit_id]
        if len(remaining) == len(outfits):
            return False
        await self.store.set(OUTFITS_KEY, [entry.to_dict() for entry in remaining])
        return True


__all__ = [
    "InMemoryKeyValueStore",
    "JSONFileKeyValueStore",
    "KeyValueStore",
    "OUTFITS_KEY",
    "WARDROBE_KEY",
    "WardrobeRepository",
]
