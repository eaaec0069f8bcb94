"""End-to-end behaviour of the outfit stylist agent with fake completion clients."""

from __future__ import annotations

import asyncio
import json
import random

import pytest

from agents.outfit_stylist_agent import OutfitStylistAgent
from closet_app.config import ClosetConfig
from models.outfit import FallbackReason, OutfitSource
from tools.completion_client import (
    CompletionClient,
    CompletionNetworkError,
    CompletionServiceError,
    CompletionTimeout,
)


class ScriptedClient(CompletionClient):
    """Returns a fixed reply (or raises) and records every prompt."""

    def __init__(self, reply=None, error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class ExplodingClient(CompletionClient):
    async def complete(self, prompt: str) -> str:
        raise KeyError("bug in client")


WARDROBE = [
    {"id": "t1", "title": "Black Silk Blouse", "category": "tops", "brand": "COS"},
    {"id": "b1", "title": "Tailored Trousers", "category": "bottoms"},
    {"id": "s1", "title": "Pointed Heels", "category": "shoes"},
    {"id": "o1", "title": "Wool Coat", "category": "outerwear"},
]


def _agent(client, **config_overrides) -> OutfitStylistAgent:
    config = ClosetConfig(relay_endpoint=None, **config_overrides)
    return OutfitStylistAgent(config=config, client=client, rng=random.Random(7))


def _run(agent, items=WARDROBE, intent="Dinner party"):
    return asyncio.run(agent.generate_outfit(items, intent))


def test_remote_selection_is_resolved_to_wardrobe_items() -> None:
    reply = "Here you go: " + json.dumps(
        {
            "outfit": {"tops": "t1", "bottoms": "b1", "shoes": "s1", "outerwear": "null"},
            "reasoning": "Sleek and elegant.",
        }
    )
    client = ScriptedClient(reply=reply)
    result = _run(_agent(client))

    assert result.source is OutfitSource.REMOTE
    assert result.item_ids() == {"tops": "t1", "bottoms": "b1", "shoes": "s1"}
    assert result.items["tops"].brand == "COS"
    assert result.user_message == "I've created an outfit based on your request! Sleek and elegant."
    assert "Dinner party" in client.prompts[0]
    assert "Black Silk Blouse (COS, black) - ID: t1" in client.prompts[0]


def test_partially_hallucinated_reply_keeps_valid_categories() -> None:
    reply = json.dumps({"outfit": {"tops": "t1", "bottoms": "ghost-99"}, "reasoning": "Mixed."})
    result = _run(_agent(ScriptedClient(reply=reply)))

    assert result.source is OutfitSource.REMOTE
    assert result.item_ids() == {"tops": "t1"}


@pytest.mark.parametrize(
    "client, reason",
    [
        (ScriptedClient(error=CompletionNetworkError("offline")), FallbackReason.NETWORK_ERROR),
        (ScriptedClient(error=CompletionTimeout("slow")), FallbackReason.TIMEOUT),
        (ScriptedClient(error=CompletionServiceError("HTTP 500", 500)), FallbackReason.SERVICE_ERROR),
        (ScriptedClient(reply="Sorry, I can't do that."), FallbackReason.NO_JSON_FOUND),
        (ScriptedClient(reply="{not json}"), FallbackReason.MALFORMED_JSON),
        (ScriptedClient(reply='{"reasoning": "x"}'), FallbackReason.MISSING_OUTFIT_KEY),
        (ExplodingClient(), FallbackReason.UNEXPECTED_ERROR),
    ],
)
def test_failures_degrade_to_fallback(client, reason) -> None:
    result = _run(_agent(client))

    assert result.source is OutfitSource.FALLBACK
    assert result.fallback_reason is reason
    assert result.name == "AI Generated Formal Outfit"
    assert result.user_message.startswith("I used a simplified outfit suggestion.")
    known = {entry["id"] for entry in WARDROBE}
    assert {item.item_id for item in result.items.values()} <= known
    assert "outerwear" not in result.items


def test_empty_wardrobe_skips_remote_call() -> None:
    client = ScriptedClient(reply="{}")
    result = _run(_agent(client), items=[], intent="")

    assert client.prompts == []
    assert result.items == {}
    assert result.fallback_reason is FallbackReason.EMPTY_CATALOG
    assert result.name == "AI Generated Versatile Outfit"


def test_invalid_entries_are_skipped() -> None:
    reply = json.dumps({"outfit": {"tops": "t1"}})
    items = [{"title": "No id at all", "id": "   "}, WARDROBE[0]]
    result = _run(_agent(ScriptedClient(reply=reply)), items=items)
    assert result.item_ids() == {"tops": "t1"}


def test_results_are_cached_per_intent_and_snapshot() -> None:
    client = ScriptedClient(reply=json.dumps({"outfit": {"shoes": "s1"}}))
    agent = _agent(client)

    async def scenario():
        first = await agent.generate_outfit(WARDROBE, "Dinner party")
        second = await agent.generate_outfit(list(reversed(WARDROBE)), "  Dinner party ")
        third = await agent.generate_outfit(WARDROBE, "Lunch")
        return first, second, third

    first, second, third = asyncio.run(scenario())
    assert second == first
    assert third is not first
    assert len(client.prompts) == 2


def test_fallback_results_can_be_excluded_from_cache() -> None:
    client = ScriptedClient(error=CompletionNetworkError("offline"))
    agent = _agent(client, cache_fallback_results=False)

    async def scenario():
        await agent.generate_outfit(WARDROBE, "Dinner")
        await agent.generate_outfit(WARDROBE, "Dinner")

    asyncio.run(scenario())
    assert len(client.prompts) == 2


def test_concurrent_identical_requests_share_one_call() -> None:
    client = ScriptedClient(reply=json.dumps({"outfit": {"tops": "t1"}}), delay=0.05)
    agent = _agent(client)

    async def scenario():
        return await asyncio.gather(
            agent.generate_outfit(WARDROBE, "Dinner party"),
            agent.generate_outfit(WARDROBE, "Dinner party"),
            agent.generate_outfit(WARDROBE, "Dinner party"),
        )

    results = asyncio.run(scenario())
    assert len(client.prompts) == 1
    assert results[0] == results[1] == results[2]
    assert results[1] is not results[0]


def test_prompt_is_bounded_per_category() -> None:
    wardrobe = [
        {"id": f"t{index}", "title": f"Tee {index}", "category": "tops", "addedAt": 1714557600000 + index}
        for index in range(10)
    ]
    client = ScriptedClient(reply=json.dumps({"outfit": {"tops": "t0"}}))
    result = _run(_agent(client, max_items_per_category=3), items=wardrobe)

    prompt = client.prompts[0]
    assert "ID: t9" in prompt
    assert "ID: t0\n" not in prompt
    # t0 was not shown to the model, so it cannot be selected.
    assert result.items == {}


def test_timeout_with_tops_and_bottom_only() -> None:
    wardrobe = [
        {"id": "t1", "title": "Tee One", "category": "tops"},
        {"id": "t2", "title": "Tee Two", "category": "tops"},
        {"id": "b1", "title": "Shorts", "category": "bottoms"},
    ]
    result = _run(_agent(ScriptedClient(error=CompletionTimeout("slow"))), items=wardrobe)

    assert set(result.items) == {"tops", "bottoms"}
    assert result.items["tops"].item_id in {"t1", "t2"}
    assert result.items["bottoms"].item_id == "b1"
    assert result.fallback_reason is FallbackReason.TIMEOUT


def test_prose_wrapped_reply_with_null_selection() -> None:
    reply = (
        'Here you go: {"outfit":{"tops":"abc123","bottoms":"null"},'
        '"reasoning":"Great match"} Hope you like it!'
    )
    wardrobe = [
        {"id": "abc123", "title": "Cream Knit", "category": "tops"},
        {"id": "b1", "title": "Jeans", "category": "bottoms"},
    ]
    result = _run(_agent(ScriptedClient(reply=reply)), items=wardrobe)

    assert result.items["tops"].item_id == "abc123"
    assert "bottoms" not in result.items
    assert result.reasoning == "Great match"


def test_out_of_range_timestamps_are_skipped_not_raised() -> None:
    wardrobe = [
        {"id": "t1", "category": "tops", "addedAt": 1e30},
        {"id": "b1", "category": "bottoms"},
    ]
    result = _run(_agent(ScriptedClient(error=CompletionTimeout("slow"))), items=wardrobe, intent="casual")

    assert result.fallback_reason is FallbackReason.TIMEOUT
    assert result.item_ids() == {"bottoms": "b1"}


def test_returned_outfits_cannot_alter_cached_result() -> None:
    reply = json.dumps({"outfit": {"tops": "t1", "bottoms": "b1"}})
    client = ScriptedClient(reply=reply)
    agent = _agent(client)

    async def scenario():
        first = await agent.generate_outfit(WARDROBE, "Dinner party")
        with pytest.raises(TypeError):
            del first.items["tops"]
        first.items["tops"].title = "Edited by caller"
        second = await agent.generate_outfit(WARDROBE, "Dinner party")
        return second

    second = asyncio.run(scenario())
    assert set(second.items) == {"tops", "bottoms"}
    assert second.items["tops"].title == "Black Silk Blouse"
    assert len(client.prompts) == 1


@pytest.mark.parametrize("wardrobe", [None, 42, object()])
def test_non_iterable_wardrobe_is_treated_as_empty(wardrobe) -> None:
    client = ScriptedClient(reply="{}")
    result = _run(_agent(client), items=wardrobe)

    assert client.prompts == []
    assert result.items == {}
    assert result.fallback_reason is FallbackReason.EMPTY_CATALOG


def test_non_string_intent_is_coerced() -> None:
    client = ScriptedClient(error=CompletionNetworkError("offline"))
    result = _run(_agent(client), intent=2024)

    assert result.source is OutfitSource.FALLBACK
    assert "2024" in client.prompts[0]
