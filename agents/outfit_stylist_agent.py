"""Outfit stylist agent: model-assisted selection with a local fallback."""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from closet_app.config import ClosetConfig
from closet_app.logging_config import get_logger, log_event, operation_context
from logic.catalog_partition import CatalogPartition, partition_catalog
from logic.fallback_outfit import generate_fallback_outfit
from logic.outfit_cache import OutfitCache, make_cache_key
from logic.prompt_builder import build_outfit_prompt
from logic.response_reconciler import ReconciliationError, reconcile_outfit_response
from models.outfit import FallbackReason, OutfitResult
from models.wardrobe_item import WardrobeItem, from_raw_metadata
from tools.completion_client import CompletionClient, CompletionError

logger = get_logger(__name__)

WardrobeInput = Union[WardrobeItem, Mapping[str, Any]]


class OutfitStylistAgent:
    """Builds one outfit per request from the user's wardrobe.

    The model sees a bounded view of the catalog; its reply is reconciled back
    to real items. Any failure along that path degrades to the local random
    generator, so :meth:`generate_outfit` always returns a result.
    """

    def __init__(
        self,
        config: ClosetConfig,
        client: CompletionClient,
        cache: Optional[OutfitCache] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.cache = cache or OutfitCache(ttl_seconds=config.cache_ttl_seconds)
        self.rng = rng or random.Random()
        self._inflight: Dict[str, asyncio.Future] = {}

    async def generate_outfit(
        self, wardrobe_items: Iterable[WardrobeInput], intent: Optional[str] = None
    ) -> OutfitResult:
        """Return an outfit for ``intent`` drawn from ``wardrobe_items``; never raises."""

        intent = str(intent or "").strip()
        items = self._coerce_items(wardrobe_items)
        key = make_cache_key(intent, [item.item_id for item in items])

        with operation_context("agent:stylist.generate_outfit") as correlation_id:
            cached = self.cache.get(key)
            if cached is not None:
                log_event(
                    logger,
                    logging.INFO,
                    "outfit_cache_hit",
                    agent="stylist",
                    correlation_id=correlation_id,
                    source=cached.source.value,
                )
                return cached

            pending = self._inflight.get(key)
            if pending is not None:
                try:
                    shared = await asyncio.shield(pending)
                    return shared.detached()
                except asyncio.CancelledError:
                    if not pending.cancelled():
                        raise
                    # The first caller went away; compute independently.

            future: asyncio.Future = asyncio.get_running_loop().create_future()
            self._inflight[key] = future
            try:
                result = await self._run_pipeline(items, intent, correlation_id)
            except BaseException:
                future.cancel()
                raise
            finally:
                if self._inflight.get(key) is future:
                    del self._inflight[key]

            if not result.used_fallback or self.config.cache_fallback_results:
                self.cache.put(key, result)
            future.set_result(result)
            return result

    async def _run_pipeline(
        self, items: List[WardrobeItem], intent: str, correlation_id: str
    ) -> OutfitResult:
        full_partition = partition_catalog(items)
        log_event(
            logger,
            logging.INFO,
            "agent_call_started",
            agent="stylist",
            method="generate_outfit",
            correlation_id=correlation_id,
            item_count=len(items),
            categories=full_partition.categories(),
        )

        try:
            prompt_partition = partition_catalog(items, self.config.max_items_per_category)
            if prompt_partition.is_empty():
                return self._fallback(
                    full_partition, intent, FallbackReason.EMPTY_CATALOG, correlation_id
                )
            prompt = build_outfit_prompt(prompt_partition, intent, self.config.prompt_char_limit)
            reply = await self.client.complete(prompt)
            result = reconcile_outfit_response(reply, prompt_partition)
        except (CompletionError, ReconciliationError) as exc:
            return self._fallback(full_partition, intent, exc.reason, correlation_id, str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure in outfit pipeline")
            return self._fallback(
                full_partition, intent, FallbackReason.UNEXPECTED_ERROR, correlation_id, str(exc)
            )

        log_event(
            logger,
            logging.INFO,
            "agent_call_completed",
            agent="stylist",
            method="generate_outfit",
            correlation_id=correlation_id,
            source=result.source.value,
            selected=result.item_ids(),
        )
        return result

    def _fallback(
        self,
        partition: CatalogPartition,
        intent: str,
        reason: FallbackReason,
        correlation_id: str,
        details: Optional[str] = None,
    ) -> OutfitResult:
        log_event(
            logger,
            logging.WARNING if reason is not FallbackReason.EMPTY_CATALOG else logging.INFO,
            "outfit_fallback_used",
            agent="stylist",
            correlation_id=correlation_id,
            reason=reason.value,
            details=details,
        )
        return generate_fallback_outfit(partition, intent, rng=self.rng, reason=reason)

    @staticmethod
    def _coerce_items(raw_items: Iterable[WardrobeInput]) -> List[WardrobeItem]:
        if raw_items is None:
            return []
        try:
            entries = iter(raw_items)
        except TypeError:
            logger.warning("Ignoring non-iterable wardrobe of type %s", type(raw_items).__name__)
            return []

        items: List[WardrobeItem] = []
        for raw in entries:
            if isinstance(raw, WardrobeItem):
                items.append(raw)
                continue
            try:
                items.append(from_raw_metadata(dict(raw)))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping wardrobe entry due to validation error: %s", exc)
        return items


__all__ = ["OutfitStylistAgent"]
