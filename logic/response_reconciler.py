"""Turn a model reply into an outfit made only of real wardrobe items."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from logic.catalog_partition import CatalogPartition
from logic.prompt_builder import ID_PLACEHOLDER
from models.outfit import (
    DEFAULT_OUTFIT_NAME,
    DEFAULT_REASONING,
    FallbackReason,
    OutfitResult,
    OutfitSource,
)
from models.wardrobe_item import WardrobeItem

logger = logging.getLogger(__name__)

_NO_SELECTION_VALUES = {"", "null", "none", "no selection", ID_PLACEHOLDER.lower()}


class ReconciliationError(ValueError):
    """Raised when a reply cannot be turned into an outfit at all."""

    reason: FallbackReason = FallbackReason.INVALID_RESPONSE


class NoJsonFound(ReconciliationError):
    reason = FallbackReason.NO_JSON_FOUND


class MalformedJson(ReconciliationError):
    reason = FallbackReason.MALFORMED_JSON


class MissingOutfitKey(ReconciliationError):
    reason = FallbackReason.MISSING_OUTFIT_KEY


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Parse the span between the first ``{`` and the last ``}`` of ``text``.

    Raises:
        NoJsonFound: If the text holds no brace-delimited span.
        MalformedJson: If the span is not a JSON object.
    """

    text = text or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        raise NoJsonFound("Could not find JSON in the response")
    try:
        payload = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise MalformedJson(f"Response JSON could not be parsed: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise MalformedJson("Response JSON is not an object")
    return payload


def _selected_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        return None
    if value.strip().lower() in _NO_SELECTION_VALUES:
        return None
    return value


def _outfit_name(payload: Dict[str, Any], outfit: Dict[str, Any]) -> str:
    occasion = payload.get("occasion") or outfit.get("occasion")
    if isinstance(occasion, str) and occasion.strip():
        return f"AI Generated {occasion.strip().title()}"
    return DEFAULT_OUTFIT_NAME


def reconcile_outfit_response(text: Optional[str], partition: CatalogPartition) -> OutfitResult:
    """Resolve the categories chosen in ``text`` against ``partition``.

    Identifiers are matched exactly and only within their own category; unknown
    identifiers are dropped without failing the other categories.
    """

    payload = extract_json_object(text)
    outfit = payload.get("outfit")
    if not isinstance(outfit, dict):
        raise MissingOutfitKey("Response JSON has no 'outfit' object")

    items: Dict[str, WardrobeItem] = {}
    dropped: Dict[str, str] = {}
    for category, value in outfit.items():
        item_id = _selected_id(value)
        if item_id is None:
            continue
        match = partition.find(str(category), item_id)
        if match is None:
            dropped[str(category)] = item_id
            continue
        items[str(category)] = match

    if dropped:
        logger.info("Ignored %s unknown item ids in model reply: %s", len(dropped), sorted(dropped))

    reasoning = payload.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = DEFAULT_REASONING

    return OutfitResult(
        items=items,
        reasoning=reasoning.strip(),
        name=_outfit_name(payload, outfit),
        source=OutfitSource.REMOTE,
    )


__all__ = [
    "MalformedJson",
    "MissingOutfitKey",
    "NoJsonFound",
    "ReconciliationError",
    "extract_json_object",
    "reconcile_outfit_response",
]
