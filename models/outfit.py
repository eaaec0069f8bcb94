"""Outfit result and saved-outfit schemas."""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from models.wardrobe_item import WardrobeItem, format_timestamp, parse_timestamp

DEFAULT_REASONING = "These items complement each other well."
DEFAULT_OUTFIT_NAME = "AI Generated Outfit"


class OutfitSource(str, Enum):
    REMOTE = "remote"
    FALLBACK = "fallback"


class FallbackReason(str, Enum):
    """Why the local generator produced the outfit instead of the model."""

    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    SERVICE_ERROR = "service_error"
    INVALID_RESPONSE = "invalid_response"
    NO_JSON_FOUND = "no_json_found"
    MALFORMED_JSON = "malformed_json"
    MISSING_OUTFIT_KEY = "missing_outfit_key"
    EMPTY_CATALOG = "empty_catalog"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class OutfitResult:
    """One generated outfit; ``items`` is a read-only category -> item mapping."""

    items: Mapping[str, WardrobeItem]
    reasoning: str = DEFAULT_REASONING
    name: str = DEFAULT_OUTFIT_NAME
    source: OutfitSource = OutfitSource.REMOTE
    fallback_reason: Optional[FallbackReason] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", MappingProxyType(dict(self.items)))

    def detached(self) -> "OutfitResult":
        """Return an equal result whose items are copies, sharing nothing mutable."""

        return replace(self, items={category: copy.copy(item) for category, item in self.items.items()})

    @property
    def used_fallback(self) -> bool:
        return self.source is OutfitSource.FALLBACK

    @property
    def user_message(self) -> str:
        """Chat-panel text; fallback results get a softened notice, never an error."""

        if self.used_fallback:
            return f"I used a simplified outfit suggestion. {self.reasoning}"
        return f"I've created an outfit based on your request! {self.reasoning}"

    def item_ids(self) -> Dict[str, str]:
        return {category: item.item_id for category, item in self.items.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "reasoning": self.reasoning,
            "items": {category: item.to_dict() for category, item in self.items.items()},
            "source": self.source.value,
            "fallbackReason": self.fallback_reason.value if self.fallback_reason else None,
            "message": self.user_message,
        }


@dataclass
class SavedOutfit:
    """An outfit the user chose to keep, stored by item reference."""

    name: str
    item_ids: Dict[str, str]
    outfit_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: parse_timestamp(None))

    def __post_init__(self) -> None:
        self.name = (self.name or "").strip() or "Unnamed Outfit"
        self.created_at = parse_timestamp(self.created_at)

    @classmethod
    def from_result(cls, result: OutfitResult, name: Optional[str] = None) -> "SavedOutfit":
        return cls(name=name or result.name, item_ids=result.item_ids())

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "SavedOutfit":
        items = record.get("items") or {}
        item_ids = {
            str(category): str(value.get("id") if isinstance(value, Mapping) else value)
            for category, value in items.items()
            if value
        }
        return cls(
            name=str(record.get("name") or ""),
            item_ids=item_ids,
            outfit_id=str(record.get("id") or uuid.uuid4().hex),
            created_at=record.get("createdAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.outfit_id,
            "name": self.name,
            "items": dict(self.item_ids),
            "createdAt": format_timestamp(self.created_at),
        }


__all__ = [
    "DEFAULT_REASONING",
    "DEFAULT_OUTFIT_NAME",
    "FallbackReason",
    "OutfitResult",
    "OutfitSource",
    "SavedOutfit",
]
