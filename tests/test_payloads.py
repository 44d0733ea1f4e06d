"""Tests for generated payload models and their persisted layout.

This module verifies:
- The ``kind`` tag selects the payload model
- One mapping per kind produces the catalog record fields
- History passed to the mapper lands in ``attributes.history``
"""

import pytest
from pydantic import ValidationError

from canonforge.payloads import (
    CreaturePayload,
    FactionPayload,
    ItemPayload,
    LocationPayload,
    NpcPayload,
    QuestPayload,
    build_npc_description,
    parse_payload,
    to_entity_draft,
)


class TestParsePayload:
    @pytest.mark.parametrize(
        "kind, model",
        [
            ("npc", NpcPayload),
            ("item", ItemPayload),
            ("location", LocationPayload),
            ("faction", FactionPayload),
            ("quest", QuestPayload),
            ("creature", CreaturePayload),
        ],
    )
    def test_kind_selects_model(self, kind, model):
        assert isinstance(parse_payload({"name": "X"}, kind), model)

    def test_explicit_kind_in_data_wins(self):
        assert isinstance(parse_payload({"name": "X", "kind": "item"}, "npc"), ItemPayload)

    def test_other_is_not_a_payload_kind(self):
        with pytest.raises(ValidationError):
            parse_payload({"name": "X"}, "other")

    def test_name_required(self):
        with pytest.raises(ValidationError):
            parse_payload({"race": "Elf"}, "npc")

    def test_model_passes_through(self):
        payload = NpcPayload(name="Tharivol")
        assert parse_payload(payload) is payload

    def test_open_kinds_keep_extra_fields(self):
        quest = parse_payload({"name": "The Sunfall Prophecy", "reward": "500 gp"}, "quest")
        assert quest.model_dump()["reward"] == "500 gp"


class TestMapping:
    """Per-kind persisted layout."""

    def test_npc(self):
        payload = NpcPayload(
            name="Tharivol",
            race="Elf",
            dm_slug="Elven smith",
            appearance="Tall",
            personality="Wry",
            motivation="Repay a debt",
            connection_hooks=("Owes the Iron Guild",),
        )

        draft = to_entity_draft(payload, [{"event": "forged"}])

        assert draft.entity_type == "npc"
        assert draft.subtype == "Elf"
        assert draft.summary == "Elven smith"
        assert draft.description == build_npc_description(payload)
        assert draft.description.split("\n\n") == [
            "**Appearance:** Tall",
            "**Personality:** Wry",
            "**Motivation:** Repay a debt",
        ]
        assert draft.attributes["connection_hooks"] == ["Owes the Iron Guild"]
        assert "appearance" in draft.attributes
        assert draft.attributes["history"] == [{"event": "forged"}]

    def test_npc_without_sections_keeps_description(self):
        draft = to_entity_draft(NpcPayload(name="Kael", description="Quiet."), [])
        assert draft.description == "Quiet."

    def test_item(self):
        payload = ItemPayload(
            name="Blade of Dusk",
            item_type="weapon",
            public_description="A dark blade.",
            secret_description="Drinks light.",
        )

        draft = to_entity_draft(payload, [])

        assert (draft.subtype, draft.summary, draft.description) == ("weapon", "A dark blade.", "Drinks light.")

    def test_location_defaults(self):
        read_aloud = "Lanterns sway. " * 20
        draft = to_entity_draft(LocationPayload(name="The Gilded Spire", read_aloud=read_aloud), [])

        assert draft.subtype == "building"
        assert draft.summary == read_aloud[:200]
        assert draft.description == read_aloud
        assert draft.attributes["brain"]["contains"] == []

    def test_faction(self):
        draft = to_entity_draft(FactionPayload(name="Iron Guild", faction_type="guild", goals=("Profit",)), [])

        assert draft.subtype == "guild"
        assert draft.attributes["goals"] == ["Profit"]

    def test_default_mapping_keeps_whole_payload(self):
        creature = parse_payload({"name": "Ash Wyrm", "challenge_rating": 9}, "creature")

        draft = to_entity_draft(creature, [])

        assert draft.entity_type == "creature"
        assert draft.attributes["challenge_rating"] == 9
        assert draft.attributes["name"] == "Ash Wyrm"
        assert draft.summary == ""

    def test_to_entity(self):
        entity = to_entity_draft(NpcPayload(name="Kael"), []).to_entity("e-1", "camp-1")

        assert (entity.id, entity.campaign_id, entity.name) == ("e-1", "camp-1", "Kael")
        assert entity.source_forge == "npc"
