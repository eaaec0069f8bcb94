"""Pydantic schemas for relay wire payloads and extracted product metadata."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.taxonomy import normalize_category


class CompletionRequest(BaseModel):
    """Body posted to the relay endpoint."""

    prompt: str = Field(min_length=1)


class CompletionResponse(BaseModel):
    """Relay reply: ``result`` on success, ``error`` otherwise."""

    success: bool
    result: Optional[str] = None
    error: Optional[str] = None


class ProductMetadata(BaseModel):
    """Fields the model extracts from a product page; unknown fields are null."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[str] = None
    original_price: Optional[str] = Field(default=None, alias="originalPrice")
    color: Optional[str] = None
    description: Optional[str] = None
    detailed_description: Optional[str] = Field(default=None, alias="detailedDescription")
    material: Optional[str] = None
    category: Optional[str] = None

    @field_validator(
        "title",
        "brand",
        "price",
        "original_price",
        "color",
        "description",
        "detailed_description",
        "material",
        "category",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            return None
        text = value.strip()
        if not text or text.lower() == "null":
            return None
        return text

    @field_validator("description")
    @classmethod
    def _clip_description(cls, value: Optional[str]) -> Optional[str]:
        return value[:200] if value else value

    @field_validator("detailed_description")
    @classmethod
    def _clip_detailed_description(cls, value: Optional[str]) -> Optional[str]:
        return value[:1000] if value else value

    @field_validator("category")
    @classmethod
    def _canonical_category(cls, value: Optional[str]) -> Optional[str]:
        return normalize_category(value) if value else None

    def present_fields(self) -> Dict[str, str]:
        """Return only the fields the model actually filled in, snake_case keyed."""

        return {key: value for key, value in self.model_dump().items() if value is not None}


class OutfitGenerationRequest(BaseModel):
    """HTTP request for the full outfit pipeline."""

    items: Optional[List[Dict[str, Any]]] = None
    intent: str = ""


class RelayPrompt(BaseModel):
    """Loose relay body; a missing prompt is answered with a 400, not a 422."""

    prompt: Optional[str] = None


__all__ = [
    "CompletionRequest",
    "CompletionResponse",
    "OutfitGenerationRequest",
    "ProductMetadata",
    "RelayPrompt",
]
