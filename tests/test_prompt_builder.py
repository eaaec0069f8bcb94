"""Prompt builder tests."""

from __future__ import annotations

import json

from logic.catalog_partition import partition_catalog
from logic.prompt_builder import (
    DEFAULT_INTENT,
    build_instruction,
    build_outfit_prompt,
    project_item,
)
from models.wardrobe_item import WardrobeItem


def _catalog():
    return [
        WardrobeItem(item_id="top-1", category="tops", title="Red Cotton Tee", brand="Gap"),
        WardrobeItem(item_id="bottom-1", category="bottoms", title="Slim Jeans"),
        WardrobeItem(item_id="shoe-1", category="shoes", brand="Vans"),
    ]


def test_prompt_lists_non_empty_categories_with_ids() -> None:
    prompt = build_outfit_prompt(partition_catalog(_catalog()), "Something for a picnic")

    assert prompt.startswith("You are a professional fashion stylist. Something for a picnic.")
    assert "TOPS (select 0-1):\n1. Red Cotton Tee (Gap, red) - ID: top-1" in prompt
    assert "BOTTOMS (select 0-1):\n1. Slim Jeans - ID: bottom-1" in prompt
    assert "1. Unnamed item (Vans) - ID: shoe-1" in prompt
    assert "DRESSES" not in prompt
    assert "0 or 1 item from each category" in prompt


def test_instruction_example_is_valid_json_for_included_categories() -> None:
    instruction = build_instruction(["tops", "shoes"])
    example = json.loads(instruction[instruction.index("{") :])
    assert set(example) == {"outfit", "reasoning"}
    assert list(example["outfit"]) == ["tops", "shoes"]


def test_empty_intent_uses_default_request() -> None:
    prompt = build_outfit_prompt(partition_catalog(_catalog()), "   ")
    assert DEFAULT_INTENT in prompt


def test_empty_catalog_still_produces_instruction() -> None:
    prompt = build_outfit_prompt(partition_catalog([]), "Beach day")
    example = json.loads(prompt[prompt.index("{") :])
    assert example["outfit"] == {}


def test_long_context_is_truncated_but_instruction_kept() -> None:
    items = [
        WardrobeItem(item_id=f"top-{index}", category="tops", title="Long title " * 10)
        for index in range(200)
    ]
    partition = partition_catalog(items)
    prompt = build_outfit_prompt(partition, "Office", max_chars=3000)

    assert len(prompt) <= 3000
    assert "...(truncated)" in prompt
    assert prompt.endswith(build_instruction(partition.categories()))


def test_project_item_reduces_fields() -> None:
    projection = project_item(
        WardrobeItem(item_id="x", category="tops", title="Navy Polo", description="long text")
    )
    assert projection.title == "Navy Polo"
    assert projection.color == "navy"
    assert projection.brand == ""
