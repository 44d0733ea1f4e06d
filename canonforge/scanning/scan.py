"""Post-generation scan: candidate mentions resolved against the catalog.

``scan_generated_content`` is the only function here that performs I/O. It
takes one snapshot of the campaign catalog, runs the mention extractor,
and splits the candidates into references to existing entities and new
discoveries. Discoveries are then filtered (self-references, generic
phrases) and capped per type before the canon score is computed.
"""

import re
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from pydantic import BaseModel

from canonforge.config import DEFAULT_CONFIG, EngineConfig
from canonforge.entity import CandidateMention, CatalogEntity, EntityKind, ExistingEntityMention
from canonforge.errors import CatalogUnavailableError
from canonforge.logging import setup_logging
from canonforge.review import Conflict, Discovery, discovery_id
from canonforge.scanning.classify import guess_entity_type
from canonforge.scanning.mentions import extract_proper_nouns
from canonforge.scanning.vocab import should_ignore_term
from canonforge.storage.interfaces import CatalogStorageInterface

logger = setup_logging("scanning")

SCAN_DISCOVERY_PREFIX = "discovery"
CONTAINS_PREFIX = "contains"
INHABITANT_PREFIX = "npc"

# shorter names only match exactly
MIN_PARTIAL_MATCH_LENGTH = 4

FUNCTION_WORDS_FOR_OVERLAP = frozenset({"the", "of", "and", "a", "an", "in", "on", "at", "to", "for", "with", "from"})

GENERIC_PATTERNS = (
    re.compile(r"^the\s+(leader|enemy|guard|merchant|soldier|commander|captain)", re.IGNORECASE),
    re.compile(r"^(a|an)\s+\w+$", re.IGNORECASE),
    re.compile(r"^the\s+\w+$", re.IGNORECASE),
    re.compile(r"^(some|many|few|several)\s+", re.IGNORECASE),
)

GENERIC_GROUP_NOUNS = frozenset(
    {"guards", "soldiers", "mercenaries", "bandits", "villagers", "townsfolk", "citizens", "people", "council", "party"}
)


class CanonScore(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ScanOptions(BaseModel, frozen=True):
    current_entity_name: str | None = None


class ScanResult(BaseModel, frozen=True):
    """Everything one scan found.

    No two spans in ``discoveries`` and ``existing_entity_mentions`` overlap.
    """

    discoveries: tuple[Discovery, ...] = ()
    conflicts: tuple[Conflict, ...] = ()
    canon_score: CanonScore = CanonScore.HIGH
    existing_entity_mentions: tuple[ExistingEntityMention, ...] = ()


def calculate_canon_score(discovery_count: int, existing_count: int) -> CanonScore:
    total = discovery_count + existing_count
    if total == 0:
        return CanonScore.HIGH
    ratio = existing_count / total
    if ratio >= 0.7 and discovery_count <= 2:
        return CanonScore.HIGH
    if ratio >= 0.4 or discovery_count <= 4:
        return CanonScore.MEDIUM
    return CanonScore.LOW


def index_by_name(entities: Iterable[CatalogEntity]) -> dict[str, CatalogEntity]:
    """Lowercased name to entity; the first entity with a name wins."""
    by_name: dict[str, CatalogEntity] = {}
    for entity in entities:
        if entity.name.strip():
            by_name.setdefault(entity.name.lower(), entity)
    return by_name


def match_name(name: str, by_name: Mapping[str, CatalogEntity]) -> CatalogEntity | None:
    """Exact case-insensitive hit first, then substring either way.

    A substring match needs both names to be at least
    ``MIN_PARTIAL_MATCH_LENGTH`` characters long, so a two-letter catalog
    entry cannot absorb every longer word that happens to contain it.
    """
    lowered = name.strip().lower()
    if not lowered:
        return None
    if lowered in by_name:
        return by_name[lowered]
    if len(lowered) < MIN_PARTIAL_MATCH_LENGTH:
        return None
    for known, entity in by_name.items():
        if len(known) < MIN_PARTIAL_MATCH_LENGTH:
            continue
        if known in lowered or lowered in known:
            return entity
    return None


def match_candidate(
    candidate: CandidateMention,
    by_name: Mapping[str, CatalogEntity],
) -> CatalogEntity | None:
    return match_name(candidate.text, by_name)


def significant_words(text: str) -> set[str]:
    return {w for w in text.lower().split() if len(w) >= 3 and w not in FUNCTION_WORDS_FOR_OVERLAP}


def exclude_self_references(discoveries: Sequence[Discovery], current_entity_name: str | None) -> list[Discovery]:
    """Drop discoveries sharing a significant word with the entity being authored."""
    own = significant_words(current_entity_name) if current_entity_name else set()
    if not own:
        return list(discoveries)
    kept = []
    for d in discoveries:
        if significant_words(d.text) & own:
            logger.debug(f'Excluding self-reference "{d.text}" (matches "{current_entity_name}")')
            continue
        kept.append(d)
    return kept


def is_generic(text: str, min_length: int = DEFAULT_CONFIG.min_discovery_length) -> bool:
    stripped = text.strip()
    if len(stripped) < min_length:
        return True
    if any(p.search(stripped) for p in GENERIC_PATTERNS):
        return True
    return stripped.lower() in GENERIC_GROUP_NOUNS


def filter_generic_discoveries(discoveries: Sequence[Discovery], config: EngineConfig = DEFAULT_CONFIG) -> list[Discovery]:
    kept = [d for d in discoveries if not is_generic(d.text, config.min_discovery_length)]
    if len(kept) != len(discoveries):
        logger.debug(f"Filtered {len(discoveries) - len(kept)} generic discoveries")
    return kept


def limit_discoveries_by_type(discoveries: Sequence[Discovery], config: EngineConfig = DEFAULT_CONFIG) -> list[Discovery]:
    """Cap discoveries per type and in total.

    Longer (more specific) texts win a slot first; survivors keep their
    original order.
    """
    by_priority = sorted(range(len(discoveries)), key=lambda i: -len(discoveries[i].text))
    counts: dict[str, int] = {}
    chosen: list[int] = []
    for i in by_priority:
        kind = discoveries[i].suggested_type.value
        counts[kind] = counts.get(kind, 0) + 1
        if counts[kind] <= config.limit_for(kind):
            chosen.append(i)
        else:
            logger.debug(f'Limiting {kind}: skipping "{discoveries[i].text}"')
    chosen = chosen[: config.max_discoveries]
    return [discoveries[i] for i in sorted(chosen)]


def resolve_candidates(
    candidates: Iterable[CandidateMention],
    entities: Sequence[CatalogEntity],
) -> tuple[list[ExistingEntityMention], list[Discovery]]:
    by_name = index_by_name(entities)

    mentions: list[ExistingEntityMention] = []
    discoveries: list[Discovery] = []
    seen_ids: set[str] = set()
    for candidate in candidates:
        entity = match_candidate(candidate, by_name)
        if entity is not None:
            mentions.append(
                ExistingEntityMention(
                    id=entity.id,
                    name=entity.name,
                    type=entity.entity_type,
                    start_index=candidate.start_index,
                    end_index=candidate.end_index,
                )
            )
            continue
        ident = discovery_id(SCAN_DISCOVERY_PREFIX, candidate.text)
        if should_ignore_term(candidate.text) or ident in seen_ids:
            continue
        seen_ids.add(ident)
        discoveries.append(
            Discovery(
                id=ident,
                text=candidate.text,
                suggested_type=guess_entity_type(candidate.text, candidate.context),
                context=candidate.context,
            )
        )
    return mentions, discoveries


async def scan_generated_content(
    catalog: CatalogStorageInterface,
    campaign_id: str,
    text: str,
    options: ScanOptions | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> ScanResult:
    """Scan generated text for entity mentions.

    Raises:
        CatalogUnavailableError: if the catalog query fails. Discovery
            classification is meaningless without it, so the scan does not
            degrade.
    """
    options = options or ScanOptions()
    candidates = extract_proper_nouns(text, options.current_entity_name, config)
    logger.debug(f"Extracted {len(candidates)} candidates: {[c.text for c in candidates]}")

    try:
        entities = await catalog.list_entities(campaign_id)
    except Exception as e:
        raise CatalogUnavailableError(f"Catalog query failed for campaign {campaign_id}") from e

    mentions, discoveries = resolve_candidates(candidates, entities)
    discoveries = exclude_self_references(discoveries, options.current_entity_name)
    discoveries = filter_generic_discoveries(discoveries, config)
    discoveries = limit_discoveries_by_type(discoveries, config)

    score = calculate_canon_score(len(discoveries), len(mentions))
    logger.info(f"Scan of {len(text)} chars: {len(discoveries)} discoveries, {len(mentions)} existing, canon {score.value}")
    return ScanResult(
        discoveries=tuple(discoveries),
        canon_score=score,
        existing_entity_mentions=tuple(mentions),
    )


def extract_text_for_scanning(output: Any, max_depth: int = 5) -> str:
    """Collect the narrative strings of a generated payload.

    Strings of more than 10 characters are kept, nested up to ``max_depth``
    levels, and joined by blank lines.
    """
    if isinstance(output, BaseModel):
        output = output.model_dump(mode="json")
    fields: list[str] = []

    def walk(node: Any, depth: int) -> None:
        if depth > max_depth:
            return
        if isinstance(node, str):
            if len(node) > 10:
                fields.append(node)
        elif isinstance(node, Mapping):
            for value in node.values():
                walk(value, depth + 1)
        elif isinstance(node, (list, tuple)):
            for item in node:
                walk(item, depth + 1)

    walk(output, 0)
    return "\n\n".join(fields)


def _known(names: Iterable[str]) -> set[str]:
    return {n.lower() for n in names}


def contained_name(entry: str) -> str:
    """``"Shadowmarket - a bazaar under the docks"`` names ``Shadowmarket``."""
    return entry.split(" - ", 1)[0].strip()


def contains_discoveries(
    location_name: str,
    contains: Iterable[str],
    known_names: Iterable[str] = (),
) -> list[Discovery]:
    """Turn a location's sub-location list into reviewable discoveries.

    The name is the part of an entry before ``" - "``. Names in
    ``known_names`` and repeats are skipped.
    """
    seen = _known(known_names)
    results = []
    for raw in contains:
        name = contained_name(raw)
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        results.append(
            Discovery(
                id=discovery_id(CONTAINS_PREFIX, name),
                text=name,
                suggested_type=EntityKind.LOCATION,
                context=f"Sub-location within {location_name}",
            )
        )
    return results


def inhabitant_discoveries(
    location_name: str,
    inhabitants: Iterable[Mapping[str, Any] | BaseModel],
    known_names: Iterable[str] = (),
) -> list[Discovery]:
    """Named inhabitants of a location become ``npc-`` discoveries."""
    seen = _known(known_names)
    results = []
    for inhabitant in inhabitants:
        data = inhabitant.model_dump() if isinstance(inhabitant, BaseModel) else dict(inhabitant)
        name = str(data.get("name") or "").strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        role = data.get("role")
        results.append(
            Discovery(
                id=discovery_id(INHABITANT_PREFIX, name),
                text=name,
                suggested_type=EntityKind.NPC,
                context=f"{role} at {location_name}" if role else f"Inhabitant of {location_name}",
            )
        )
    return results
