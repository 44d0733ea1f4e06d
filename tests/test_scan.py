"""Tests for post-generation scanning against the catalog.

This module verifies:
- Canon score boundaries of the ratio formula
- Exact and partial catalog matches become existing-entity mentions
- Unmatched candidates become discoveries with a suggested type
- Scans are deterministic and exclude the entity being authored
- Generic-phrase filtering and per-type discovery limits
- A failing catalog query propagates as CatalogUnavailableError
- Payload text collection and structured sub-location/inhabitant discoveries
"""

import pytest

from canonforge.config import EngineConfig
from canonforge.entity import EntityKind
from canonforge.errors import CatalogUnavailableError
from canonforge.payloads import Inhabitant
from canonforge.scanning.scan import (
    CanonScore,
    ScanOptions,
    calculate_canon_score,
    contains_discoveries,
    extract_text_for_scanning,
    filter_generic_discoveries,
    index_by_name,
    inhabitant_discoveries,
    is_generic,
    limit_discoveries_by_type,
    match_name,
    scan_generated_content,
)
from tests.conftest import CAMPAIGN, FailingCatalogStorage, make_catalog_entity, make_discovery, seed

SCENARIO_TEXT = "The blacksmith forged by Tharivol waits in the city of Duskhollow."
FIVE_NAMES = "Mira Thornwood, Kael Varn, Oswin Blackbriar, Tessaly Moonwhisper and Garrick Holt met."


class TestCanonScore:
    """The coarse reuse-versus-invention signal."""

    def test_nothing_to_judge_is_high(self):
        assert calculate_canon_score(0, 0) == CanonScore.HIGH

    def test_mostly_existing_is_high(self):
        assert calculate_canon_score(2, 5) == CanonScore.HIGH

    def test_three_discoveries_is_never_high(self):
        """High needs at most two discoveries, whatever the ratio."""
        assert calculate_canon_score(3, 20) == CanonScore.MEDIUM

    def test_few_discoveries_is_medium(self):
        assert calculate_canon_score(2, 0) == CanonScore.MEDIUM
        assert calculate_canon_score(4, 0) == CanonScore.MEDIUM

    def test_balanced_is_medium(self):
        assert calculate_canon_score(6, 4) == CanonScore.MEDIUM

    def test_mostly_new_is_low(self):
        assert calculate_canon_score(5, 0) == CanonScore.LOW
        assert calculate_canon_score(7, 2) == CanonScore.LOW


class TestScanGeneratedContent:
    """Full scans over an in-memory catalog."""

    async def test_no_proper_nouns_is_high(self, catalog):
        result = await scan_generated_content(catalog, CAMPAIGN, "the rain fell on the quiet road all night.")

        assert result.discoveries == ()
        assert result.existing_entity_mentions == ()
        assert result.canon_score == CanonScore.HIGH

    async def test_empty_catalog_scenario(self, catalog):
        """Both names become discoveries with their suggested types."""
        result = await scan_generated_content(catalog, CAMPAIGN, SCENARIO_TEXT)

        found = {d.text: d.suggested_type for d in result.discoveries}
        assert found == {"Tharivol": EntityKind.NPC, "Duskhollow": EntityKind.LOCATION}
        assert result.existing_entity_mentions == ()
        # two discoveries, no existing mentions: the ratio formula gives medium
        assert result.canon_score == CanonScore.MEDIUM

    async def test_known_name_becomes_existing_mention(self, catalog):
        tharivol = make_catalog_entity("Tharivol", EntityKind.NPC)
        await seed(catalog, tharivol)

        result = await scan_generated_content(catalog, CAMPAIGN, SCENARIO_TEXT)

        assert [d.text for d in result.discoveries] == ["Duskhollow"]
        assert len(result.existing_entity_mentions) == 1
        mention = result.existing_entity_mentions[0]
        assert (mention.id, mention.name, mention.type) == (tharivol.id, "Tharivol", "npc")
        assert SCENARIO_TEXT[mention.start_index : mention.end_index] == "Tharivol"
        assert result.canon_score == CanonScore.MEDIUM

    async def test_match_is_case_insensitive(self, catalog):
        await seed(catalog, make_catalog_entity("THARIVOL"))

        result = await scan_generated_content(catalog, CAMPAIGN, SCENARIO_TEXT)

        assert [m.name for m in result.existing_entity_mentions] == ["THARIVOL"]

    async def test_partial_match_either_direction(self, catalog):
        """A candidate inside a known name, or a known name inside a candidate, is a reference."""
        keep = make_catalog_entity("Duskhollow Keep", EntityKind.LOCATION)
        await seed(catalog, keep, make_catalog_entity("Thari", EntityKind.NPC))

        result = await scan_generated_content(catalog, CAMPAIGN, SCENARIO_TEXT)

        assert result.discoveries == ()
        assert {m.name for m in result.existing_entity_mentions} == {"Duskhollow Keep", "Thari"}

    async def test_short_catalog_name_does_not_absorb_candidates(self, catalog):
        await seed(catalog, make_catalog_entity("Al"))

        result = await scan_generated_content(catalog, CAMPAIGN, "They rode into the city of Duskvale.")

        assert result.existing_entity_mentions == ()
        assert [d.text for d in result.discoveries] == ["Duskvale"]

    async def test_other_campaigns_are_invisible(self, catalog):
        await seed(catalog, make_catalog_entity("Tharivol", campaign_id="camp-2"))

        result = await scan_generated_content(catalog, CAMPAIGN, SCENARIO_TEXT)

        assert "Tharivol" in [d.text for d in result.discoveries]

    async def test_deterministic(self, catalog):
        """The same text and catalog snapshot give an identical result."""
        await seed(catalog, make_catalog_entity("Kael Varn"))

        first = await scan_generated_content(catalog, CAMPAIGN, FIVE_NAMES + " " + SCENARIO_TEXT)
        second = await scan_generated_content(catalog, CAMPAIGN, FIVE_NAMES + " " + SCENARIO_TEXT)

        assert first == second

    async def test_discovery_ids_survive_rescan_of_edited_text(self, catalog):
        first = await scan_generated_content(catalog, CAMPAIGN, SCENARIO_TEXT)
        second = await scan_generated_content(catalog, CAMPAIGN, "At dusk, " + SCENARIO_TEXT)

        assert {d.id for d in first.discoveries} <= {d.id for d in second.discoveries}

    async def test_current_entity_excluded(self, catalog):
        """The entity being authored is neither a discovery nor an existing mention."""
        await seed(catalog, make_catalog_entity("Tharivol"))

        result = await scan_generated_content(
            catalog, CAMPAIGN, SCENARIO_TEXT, ScanOptions(current_entity_name="Tharivol")
        )

        assert "Tharivol" not in [d.text for d in result.discoveries]
        assert result.existing_entity_mentions == ()

    async def test_word_overlap_with_current_entity_excluded(self, catalog):
        text = "Mira Thornwood is kin to Oswin Thornwood of the north."
        result = await scan_generated_content(
            catalog, CAMPAIGN, text, ScanOptions(current_entity_name="Mira Thornwood")
        )

        assert "Oswin Thornwood" not in [d.text for d in result.discoveries]

    async def test_five_discoveries_is_low(self, catalog):
        result = await scan_generated_content(catalog, CAMPAIGN, FIVE_NAMES)

        assert len(result.discoveries) == 5
        assert result.canon_score == CanonScore.LOW

    async def test_per_type_limit_applies(self, catalog):
        config = EngineConfig(discovery_limits={"npc": 2})
        result = await scan_generated_content(catalog, CAMPAIGN, FIVE_NAMES, config=config)

        assert [d.text for d in result.discoveries] == ["Oswin Blackbriar", "Tessaly Moonwhisper"]

    async def test_catalog_failure_propagates(self):
        with pytest.raises(CatalogUnavailableError):
            await scan_generated_content(FailingCatalogStorage(), CAMPAIGN, SCENARIO_TEXT)


class TestMatchName:
    """Catalog name matching shared by the scan and location reviews."""

    def test_exact_match_wins(self):
        full, short = make_catalog_entity("Mira Thornwood"), make_catalog_entity("Mira")
        by_name = index_by_name([full, short])

        assert match_name("mira", by_name) is short
        assert match_name("Thornwood", by_name) is full

    def test_short_names_match_only_exactly(self):
        al = make_catalog_entity("Al")
        by_name = index_by_name([al])

        assert match_name("Duskvale", by_name) is None
        assert match_name("AL", by_name) is al

    def test_blank_names_never_match(self):
        by_name = index_by_name([make_catalog_entity("  ")])

        assert by_name == {}
        assert match_name("", index_by_name([make_catalog_entity("Grak")])) is None


class TestDiscoveryFilters:
    """Generic-phrase filter and discovery caps."""

    @pytest.mark.parametrize(
        "text",
        ["The Guard", "The Captain", "A Stranger", "The Crossing", "Some Nobles", "Ash", "Guards", "Council"],
    )
    def test_generic_phrases(self, text):
        assert is_generic(text)

    @pytest.mark.parametrize("text", ["Mira Thornwood", "The Gilded Spire", "Duskhollow"])
    def test_specific_names_are_not_generic(self, text):
        assert not is_generic(text)

    def test_filter_generic_discoveries(self):
        kept = filter_generic_discoveries([make_discovery("The Guard"), make_discovery("Duskhollow")])
        assert [d.text for d in kept] == ["Duskhollow"]

    def test_longer_texts_win_and_order_is_restored(self):
        discoveries = [
            make_discovery("Kael Varn"),
            make_discovery("Tessaly Moonwhisper"),
            make_discovery("Duskhollow", EntityKind.LOCATION),
            make_discovery("Oswin Blackbriar"),
        ]
        config = EngineConfig(discovery_limits={"npc": 2, "location": 4})

        kept = limit_discoveries_by_type(discoveries, config)

        assert [d.text for d in kept] == ["Tessaly Moonwhisper", "Duskhollow", "Oswin Blackbriar"]

    def test_unlisted_type_uses_default_limit(self):
        discoveries = [make_discovery(f"Relic Number {n}", EntityKind.ITEM) for n in "ABCD"]
        config = EngineConfig(discovery_limits={}, default_discovery_limit=3)

        assert len(limit_discoveries_by_type(discoveries, config)) == 3

    def test_total_cap(self):
        discoveries = [make_discovery(f"Name{'x' * n}") for n in range(6)]
        config = EngineConfig(discovery_limits={"npc": 10}, max_discoveries=4)

        assert len(limit_discoveries_by_type(discoveries, config)) == 4


class TestPayloadHelpers:
    """Text collection and structured discoveries from payload fields."""

    def test_extract_text_keeps_long_strings(self):
        payload = {
            "name": "Tharivol",
            "description": "A tall elven smith of renown.",
            "stats": {"hp": 12},
            "hooks": ["Owes a debt to the Ashen Circle"],
        }
        assert extract_text_for_scanning(payload) == (
            "A tall elven smith of renown.\n\nOwes a debt to the Ashen Circle"
        )

    def test_extract_text_depth_limit(self):
        shallow = {"a": {"b": {"c": {"d": {"e": "depth five string"}}}}}
        deep = {"a": {"b": {"c": {"d": {"e": {"f": "depth six string"}}}}}}

        assert extract_text_for_scanning(shallow) == "depth five string"
        assert extract_text_for_scanning(deep) == ""

    def test_contains_discoveries(self):
        found = contains_discoveries(
            "The Gilded Spire",
            ["Shadowmarket - a bazaar under the docks", "Bell Tower", "shadowmarket"],
            known_names=["Bell Tower"],
        )

        assert len(found) == 1
        assert found[0].id == "contains-shadowmarket"
        assert found[0].text == "Shadowmarket"
        assert found[0].suggested_type == EntityKind.LOCATION
        assert found[0].context == "Sub-location within The Gilded Spire"

    def test_inhabitant_discoveries(self):
        found = inhabitant_discoveries(
            "The Gilded Spire",
            [Inhabitant(name="Gareth", role="Innkeeper"), {"name": "Lysa"}, {"name": ""}],
        )

        assert [d.id for d in found] == ["npc-gareth", "npc-lysa"]
        assert [d.context for d in found] == ["Innkeeper at The Gilded Spire", "Inhabitant of The Gilded Spire"]
        assert all(d.suggested_type == EntityKind.NPC for d in found)
