"""Model-assisted extraction of product metadata from page text."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from logic.response_reconciler import ReconciliationError, extract_json_object
from logic.validation import ProductMetadata
from models.taxonomy import infer_category
from tools.completion_client import CompletionClient
from tools.observability import instrument_tool

logger = logging.getLogger(__name__)

MAX_PAGE_TEXT_LENGTH = 6000


class ProductExtractionError(ValueError):
    """Raised when the model reply does not describe a product."""


def build_extraction_prompt(
    page_text: str, image_url: str, max_length: int = MAX_PAGE_TEXT_LENGTH
) -> str:
    """Build the extraction prompt, truncating long page text."""

    if len(page_text) > max_length:
        page_text = page_text[:max_length] + "...(truncated)"

    return f"""
You are an AI assistant specialized in extracting product information from e-commerce websites.
I need you to analyze the following text from a product page and extract structured product information.
Focus specifically on clothing or accessory product details.

Extract the following information in JSON format:
1. title: The name of the product
2. brand: The brand name if available
3. price: The price with currency symbol if available
4. originalPrice: If there's a sale, the original price before discount
5. color: The color of the product if mentioned
6. description: A concise description of the product (max 200 characters)
7. detailedDescription: A more complete description with features, material, etc. (max 1000 characters)
8. material: The fabric/material composition if available
9. category: Identify which category this belongs to: tops, bottoms, dresses, outerwear, shoes, accessories, or other

IMPORTANT: The image URL associated with this product is: {image_url}
Respond ONLY with valid JSON without any other text or explanations.
If you can't determine a specific field, use null for that field.

Here is the webpage content:
{page_text}
"""


def parse_extraction_response(text: Optional[str]) -> ProductMetadata:
    """Parse the model reply; a missing or ``other`` category is inferred from text.

    Raises:
        ProductExtractionError: If the reply holds no usable JSON object.
    """

    try:
        payload = extract_json_object(text)
    except ReconciliationError as exc:
        raise ProductExtractionError(str(exc)) from exc
    try:
        metadata = ProductMetadata.model_validate(payload)
    except ValidationError as exc:
        raise ProductExtractionError(f"Extracted product failed validation: {exc}") from exc

    if metadata.category in (None, "other"):
        inferred = infer_category(
            [metadata.title, metadata.description, metadata.detailed_description]
        )
        metadata = metadata.model_copy(update={"category": inferred})
    return metadata


class ProductExtractor:
    """Runs the extraction prompt through a completion client."""

    def __init__(self, client: CompletionClient, max_length: int = MAX_PAGE_TEXT_LENGTH) -> None:
        self.client = client
        self.max_length = max_length

    @instrument_tool("extract_product")
    async def extract(self, page_text: str, image_url: str) -> ProductMetadata:
        if not page_text or not page_text.strip():
            raise ProductExtractionError("No visible text found on page")
        prompt = build_extraction_prompt(page_text, image_url, self.max_length)
        reply = await self.client.complete(prompt)
        metadata = parse_extraction_response(reply)
        logger.info(
            "Extracted product metadata",
            extra={"fields": sorted(metadata.present_fields()), "category": metadata.category},
        )
        return metadata


__all__ = [
    "MAX_PAGE_TEXT_LENGTH",
    "ProductExtractionError",
    "ProductExtractor",
    "build_extraction_prompt",
    "parse_extraction_response",
]
