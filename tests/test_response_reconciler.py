"""Reconciliation of model replies against the catalog partition."""

from __future__ import annotations

import json

import pytest

from logic.catalog_partition import partition_catalog
from logic.response_reconciler import (
    MalformedJson,
    MissingOutfitKey,
    NoJsonFound,
    extract_json_object,
    reconcile_outfit_response,
)
from models.outfit import DEFAULT_REASONING, FallbackReason, OutfitSource
from models.wardrobe_item import WardrobeItem


@pytest.fixture
def partition():
    return partition_catalog(
        [
            WardrobeItem(item_id="t1", category="tops", title="White Oxford"),
            WardrobeItem(item_id="t2", category="tops", title="Grey Hoodie Tee"),
            WardrobeItem(item_id="b1", category="bottoms", title="Chinos"),
            WardrobeItem(item_id="s1", category="shoes", title="Loafers"),
        ]
    )


def test_reply_wrapped_in_prose_is_resolved(partition) -> None:
    reply = (
        "Sure! Here is your look:\n"
        + json.dumps({"outfit": {"tops": "t1", "bottoms": "b1", "shoes": "null"}, "reasoning": "Crisp."})
        + "\nEnjoy!"
    )
    result = reconcile_outfit_response(reply, partition)

    assert result.source is OutfitSource.REMOTE
    assert result.item_ids() == {"tops": "t1", "bottoms": "b1"}
    assert result.reasoning == "Crisp."
    assert result.name == "AI Generated Outfit"


def test_hallucinated_and_misplaced_ids_are_dropped(partition) -> None:
    reply = json.dumps(
        {
            "outfit": {
                "tops": "t2",
                "bottoms": "does-not-exist",
                "shoes": "t1",
                "hats": "s1",
                "accessories": None,
            },
            "reasoning": "Layered.",
        }
    )
    result = reconcile_outfit_response(reply, partition)

    assert result.item_ids() == {"tops": "t2"}
    assert all(item.item_id in {"t1", "t2", "b1", "s1"} for item in result.items.values())


def test_no_selection_markers_are_ignored(partition) -> None:
    reply = json.dumps(
        {
            "outfit": {
                "tops": "ID_OF_SELECTED_ITEM_OR_NULL",
                "bottoms": "",
                "shoes": "None",
            }
        }
    )
    result = reconcile_outfit_response(reply, partition)
    assert result.items == {}
    assert result.reasoning == DEFAULT_REASONING


def test_occasion_names_the_outfit(partition) -> None:
    reply = json.dumps({"outfit": {"tops": "t1"}, "occasion": "garden party"})
    assert reconcile_outfit_response(reply, partition).name == "AI Generated Garden Party"


def test_numeric_ids_match_string_identifiers() -> None:
    numeric = partition_catalog([WardrobeItem(item_id="42", category="shoes")])
    result = reconcile_outfit_response('{"outfit": {"shoes": 42}}', numeric)
    assert result.item_ids() == {"shoes": "42"}


@pytest.mark.parametrize(
    "reply, error, reason",
    [
        ("I cannot help with that.", NoJsonFound, FallbackReason.NO_JSON_FOUND),
        ("", NoJsonFound, FallbackReason.NO_JSON_FOUND),
        ('{"outfit": {"tops": "t1",}', MalformedJson, FallbackReason.MALFORMED_JSON),
        ('{"reasoning": "no outfit"}', MissingOutfitKey, FallbackReason.MISSING_OUTFIT_KEY),
        ('{"outfit": ["t1"]}', MissingOutfitKey, FallbackReason.MISSING_OUTFIT_KEY),
    ],
)
def test_unusable_replies_raise_typed_errors(partition, reply, error, reason) -> None:
    with pytest.raises(error) as excinfo:
        reconcile_outfit_response(reply, partition)
    assert excinfo.value.reason is reason


def test_extract_json_object_uses_outermost_braces() -> None:
    payload = extract_json_object('prefix {"a": {"b": 1}} suffix')
    assert payload == {"a": {"b": 1}}


def test_extract_json_object_rejects_non_objects() -> None:
    with pytest.raises(MalformedJson):
        extract_json_object('{"a": 1} and {"b": 2}')
