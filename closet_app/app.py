"""Virtual Closet app bootstrap: the composition root of the outfit service."""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, Iterable, List, Mapping, Optional

from agents.outfit_stylist_agent import OutfitStylistAgent, WardrobeInput
from agents.wardrobe_ingestion import WardrobeIngestionAgent
from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging, get_logger, log_event
from logic.outfit_cache import OutfitCache
from models.outfit import OutfitResult, SavedOutfit
from tools.completion_client import (
    CompletionClient,
    GeminiCompletionClient,
    RelayCompletionClient,
)
from tools.product_extractor import ProductExtractor
from tools.wardrobe_store import (
    InMemoryKeyValueStore,
    JSONFileKeyValueStore,
    KeyValueStore,
    WardrobeRepository,
)

LOGGER = get_logger(__name__)


class VirtualClosetApp:
    """Wires the completion client, cache, storage and agents together."""

    def __init__(
        self,
        config: ClosetConfig | None = None,
        client: CompletionClient | None = None,
        store: KeyValueStore | None = None,
        cache: OutfitCache | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or ClosetConfig.from_env()
        configure_logging()

        self.client = client or self._build_client()
        self.extraction_client = client or self._build_extraction_client()
        self.store = store or self._build_store()
        self.cache = cache or OutfitCache(ttl_seconds=self.config.cache_ttl_seconds)
        self.repository = WardrobeRepository(self.store)
        self.outfit_stylist = OutfitStylistAgent(
            config=self.config, client=self.client, cache=self.cache, rng=rng
        )
        self.wardrobe_ingestion = WardrobeIngestionAgent(
            repository=self.repository, extractor=ProductExtractor(self.extraction_client)
        )

    def _build_client(self) -> CompletionClient:
        if self.config.relay_endpoint:
            return RelayCompletionClient(
                endpoint=self.config.relay_endpoint, timeout=self.config.request_timeout
            )
        return GeminiCompletionClient(
            model=self.config.model,
            api_key=self.config.api_key,
            timeout=self.config.request_timeout,
        )

    def _build_extraction_client(self) -> CompletionClient:
        """Extraction prompts use their own relay route when one is configured."""

        if self.config.relay_endpoint and self.config.extraction_endpoint:
            return RelayCompletionClient(
                endpoint=self.config.extraction_endpoint, timeout=self.config.request_timeout
            )
        return self.client

    def _build_store(self) -> KeyValueStore:
        if self.config.wardrobe_store_path:
            return JSONFileKeyValueStore(self.config.wardrobe_store_path)
        return InMemoryKeyValueStore()

    async def generate_outfit(
        self,
        wardrobe_items: Optional[Iterable[WardrobeInput]] = None,
        intent: Optional[str] = None,
    ) -> OutfitResult:
        """Generate an outfit; reads the stored wardrobe when no items are given."""

        if wardrobe_items is None:
            wardrobe_items = await self.repository.list_items()
        return await self.outfit_stylist.generate_outfit(wardrobe_items, intent)

    async def add_product(
        self, page_record: Mapping[str, Any], page_text: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self.wardrobe_ingestion.ingest_product(page_record, page_text)

    async def save_outfit(self, result: OutfitResult, name: Optional[str] = None) -> SavedOutfit:
        saved = await self.repository.save_outfit(SavedOutfit.from_result(result, name))
        log_event(
            LOGGER,
            logging.INFO,
            "outfit_saved",
            outfit_id=saved.outfit_id,
            item_count=len(saved.item_ids),
        )
        return saved

    async def list_outfits(self) -> List[SavedOutfit]:
        return await self.repository.list_outfits()

    def invalidate_outfit_cache(self) -> None:
        """Drop every cached outfit, e.g. after the user edits the wardrobe."""

        self.cache.clear()


__all__ = ["VirtualClosetApp"]
