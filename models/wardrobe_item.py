"""Wardrobe item data model and helpers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models.taxonomy import normalize_category

_OPTIONAL_TEXT_FIELDS = {
    "title": "title",
    "brand": "brand",
    "description": "description",
    "detailed_description": "detailedDescription",
    "price": "price",
    "original_price": "originalPrice",
    "color": "color",
    "material": "material",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Coerce ISO strings, epoch numbers or datetimes into an aware UTC datetime.

    Epoch values above 1e11 are treated as milliseconds, which is what browser
    ``Date.now()`` produces.
    """

    if value is None or value == "":
        return _utcnow()
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            seconds = value / 1000 if value > 1e11 else value
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"timestamp out of range: {value!r}") from exc
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in the ``2024-05-01T10:00:00.000Z`` browser style."""

    utc_value = value.astimezone(timezone.utc)
    return utc_value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc_value.microsecond // 1000:03d}Z"


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class WardrobeItem:
    """Represents one product the user collected into their closet."""

    item_id: str
    category: str = "other"
    title: Optional[str] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    detailed_description: Optional[str] = None
    price: Optional[str] = None
    original_price: Optional[str] = None
    color: Optional[str] = None
    material: Optional[str] = None
    image_url: str = ""
    source_url: str = ""
    added_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.item_id is None or not str(self.item_id).strip():
            raise ValueError("WardrobeItem requires a non-empty item_id")
        self.item_id = str(self.item_id)
        self.category = normalize_category(self.category)
        self.image_url = str(self.image_url or "")
        self.source_url = str(self.source_url or "")
        self.added_at = parse_timestamp(self.added_at)
        for attr in _OPTIONAL_TEXT_FIELDS:
            setattr(self, attr, _clean_text(getattr(self, attr)))

    def same_product(self, other: "WardrobeItem") -> bool:
        """Two records describe the same product when both urls match."""

        return self.source_url == other.source_url and self.image_url == other.image_url

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase record used by storage and the extension UI."""

        record: Dict[str, Any] = {
            "id": self.item_id,
            "category": self.category,
            "imageUrl": self.image_url,
            "sourceUrl": self.source_url,
            "addedAt": format_timestamp(self.added_at),
        }
        for attr, wire_name in _OPTIONAL_TEXT_FIELDS.items():
            record[wire_name] = getattr(self, attr)
        return record


def from_raw_metadata(metadata: Dict[str, Any]) -> WardrobeItem:
    """Factory to build a :class:`WardrobeItem` from a loose storage record.

    Accepts the camelCase keys written by the extension as well as the snake_case
    attribute names. Legacy records without an ``id`` are identified by their
    ``addedAt`` string; records with neither get a fresh identifier.
    """

    def pick(*keys: str) -> Any:
        for key in keys:
            if metadata.get(key) not in (None, ""):
                return metadata[key]
        return None

    raw_added_at = pick("addedAt", "added_at")
    item_id = pick("id", "item_id")
    if item_id is None:
        item_id = str(raw_added_at) if raw_added_at is not None else uuid.uuid4().hex

    optional = {
        attr: pick(wire_name, attr) for attr, wire_name in _OPTIONAL_TEXT_FIELDS.items()
    }
    return WardrobeItem(
        item_id=str(item_id),
        category=pick("category") or "other",
        image_url=pick("imageUrl", "image_url") or "",
        source_url=pick("sourceUrl", "source_url", "url") or "",
        added_at=raw_added_at,
        **optional,
    )


__all__ = ["WardrobeItem", "from_raw_metadata", "parse_timestamp", "format_timestamp"]
