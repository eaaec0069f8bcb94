"""Prompt construction for model-assisted outfit selection."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import List, Optional

from logic.catalog_partition import CatalogPartition
from models.taxonomy import extract_color
from models.wardrobe_item import WardrobeItem

logger = logging.getLogger(__name__)

DEFAULT_INTENT = "Create a casual everyday outfit"
DEFAULT_PROMPT_CHAR_LIMIT = 6000
NO_SELECTION_TOKEN = "null"
ID_PLACEHOLDER = "ID_OF_SELECTED_ITEM_OR_NULL"
TRUNCATION_MARKER = "...(truncated)\n\n"


@dataclass(frozen=True)
class ItemProjection:
    """The few fields of an item the model needs to choose between them."""

    item_id: str
    title: str
    brand: str
    color: Optional[str]

    def render(self, position: int) -> str:
        details = ", ".join(part for part in (self.brand, self.color) if part)
        suffix = f" ({details})" if details else ""
        return f"{position}. {self.title}{suffix} - ID: {self.item_id}"


def project_item(item: WardrobeItem) -> ItemProjection:
    return ItemProjection(
        item_id=item.item_id,
        title=item.title or "Unnamed item",
        brand=item.brand or "",
        color=extract_color(item.title),
    )


def _header(intent: str) -> str:
    request = intent.strip().rstrip(".") or DEFAULT_INTENT
    return (
        f"You are a professional fashion stylist. {request}. Create an outfit from the "
        "following wardrobe items that meets this request. Select the best matching items "
        "that coordinate well together.\n\n"
    )


def _category_block(category: str, items: tuple) -> str:
    lines = [f"{category.upper()} (select 0-1):"]
    for position, item in enumerate(items, start=1):
        lines.append(project_item(item).render(position))
    return "\n".join(lines) + "\n\n"


def build_instruction(categories: List[str]) -> str:
    """Return the fixed reply-format instruction for the included categories."""

    example = {
        "outfit": {category: ID_PLACEHOLDER for category in categories},
        "reasoning": (
            "Brief explanation of why these items work well together and how they "
            "fulfill the request"
        ),
    }
    return (
        "Select appropriate items to create a cohesive outfit that matches the request. "
        "You can select 0 or 1 item from each category and nothing else. Use the exact ID "
        f'shown for an item, or "{NO_SELECTION_TOKEN}" to leave a category empty. '
        "Respond with a single JSON object in this format:\n"
        f"{json.dumps(example, indent=2)}"
    )


def _truncate_context(context: str, budget: int) -> str:
    if len(context) <= budget:
        return context
    room = budget - len(TRUNCATION_MARKER)
    if room <= 0:
        return ""
    cut = context.rfind("\n", 0, room)
    kept = context[: cut + 1] if cut >= 0 else context[:room]
    return kept + TRUNCATION_MARKER


def build_outfit_prompt(
    partition: CatalogPartition,
    intent: Optional[str],
    max_chars: int = DEFAULT_PROMPT_CHAR_LIMIT,
) -> str:
    """Render the stylist prompt for ``partition`` and the user's request.

    Only the descriptive context is shortened to fit ``max_chars``; the reply
    format instruction is always emitted whole.
    """

    instruction = build_instruction(partition.categories())
    context = _header(intent or "")
    for category, items in partition.non_empty():
        context += _category_block(category, items)

    budget = max_chars - len(instruction)
    trimmed = _truncate_context(context, budget)
    if trimmed is not context:
        logger.info(
            "Truncated outfit prompt context from %s to %s characters", len(context), len(trimmed)
        )
    return trimmed + instruction


__all__ = [
    "DEFAULT_INTENT",
    "DEFAULT_PROMPT_CHAR_LIMIT",
    "ID_PLACEHOLDER",
    "ItemProjection",
    "NO_SELECTION_TOKEN",
    "build_instruction",
    "build_outfit_prompt",
    "project_item",
]
