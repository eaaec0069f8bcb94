"""Wardrobe ingestion agent for turning captured product pages into WardrobeItems."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from closet_app.logging_config import get_logger, log_event, operation_context
from models.taxonomy import infer_category, normalize_category
from models.wardrobe_item import WardrobeItem, from_raw_metadata
from tools.completion_client import CompletionError
from tools.product_extractor import ProductExtractionError, ProductExtractor
from tools.wardrobe_store import WardrobeRepository

logger = get_logger(__name__)


class WardrobeIngestionAgent:
    """Stores products captured by the page extractor, enriched by the model.

    The page extractor hands over a best-effort record (image, url, maybe a
    title or price). When page text is available the model fills in structured
    metadata; when that fails the page record is stored as captured.
    """

    def __init__(self, repository: WardrobeRepository, extractor: Optional[ProductExtractor] = None) -> None:
        self.repository = repository
        self.extractor = extractor

    async def ingest_product(
        self, page_record: Mapping[str, Any], page_text: Optional[str] = None
    ) -> Dict[str, Any]:
        """Extract, merge and upsert one product; returns the stored record."""

        with operation_context("agent:wardrobe_ingestion.ingest_product") as correlation_id:
            record = {key: value for key, value in page_record.items() if value not in (None, "")}
            image_url = str(record.get("imageUrl") or record.get("image_url") or "")
            if not image_url:
                raise ValueError("Could not detect product information on this page.")

            enriched = False
            if self.extractor is not None and page_text:
                try:
                    metadata = await self.extractor.extract(page_text, image_url)
                except (CompletionError, ProductExtractionError) as exc:
                    log_event(
                        logger,
                        logging.WARNING,
                        "product_extraction_failed",
                        agent="wardrobe_ingestion",
                        correlation_id=correlation_id,
                        reason=type(exc).__name__,
                        details=str(exc),
                    )
                else:
                    record.update(metadata.model_dump(by_alias=True, exclude_none=True))
                    enriched = True

            item = self._build_item(record)
            stored = await self.repository.upsert_item(item)

            log_event(
                logger,
                logging.INFO,
                "agent_call_completed",
                agent="wardrobe_ingestion",
                method="ingest_product",
                correlation_id=correlation_id,
                item_id=stored.item_id,
                category=stored.category,
                enriched=enriched,
            )
            return {"success": True, "product": stored.to_dict(), "enriched": enriched}

    @staticmethod
    def _build_item(record: Dict[str, Any]) -> WardrobeItem:
        if normalize_category(record.get("category")) == "other":
            record["category"] = infer_category(
                [
                    record.get("title"),
                    record.get("description"),
                    record.get("detailedDescription"),
                ]
            )
        record.setdefault("id", uuid.uuid4().hex)
        return from_raw_metadata(record)


__all__ = ["WardrobeIngestionAgent"]
