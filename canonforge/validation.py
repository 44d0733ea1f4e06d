"""Pre-generation validation.

Runs before any text is generated and reports how the requested entity
would collide with the existing world. Every finding is data: conflicts
for the operator to resolve and advisory warnings. The validator never
writes.

Checks, in order:

1. duplicate or deceased name
2. referenced location missing from the catalog
3. leadership role already held in the same faction (characters only)
4. codex advisories (naming note, unknown faction)
5. codex content validation of the request itself
"""

from typing import Any, Awaitable, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict

from canonforge.codex import CampaignCodex, validate_against_codex
from canonforge.entity import CatalogEntity, EntityKind
from canonforge.errors import CatalogUnavailableError
from canonforge.logging import setup_logging
from canonforge.review import Conflict, ConflictType
from canonforge.storage.interfaces import CatalogStorageInterface, CodexStorageInterface

logger = setup_logging("validation")

T = TypeVar("T")

LEADERSHIP_ROLES = (
    "leader",
    "guild master",
    "guildmaster",
    "chief",
    "king",
    "queen",
    "lord",
    "lady",
    "captain",
    "commander",
    "high priest",
    "high priestess",
    "archon",
    "elder",
    "chairman",
    "chairwoman",
    "president",
    "director",
)

DUPLICATE_SUGGESTIONS = ("Edit existing", "Create anyway", "Use different name")
DECEASED_SUGGESTIONS = ("Create successor", "Retcon death", "Use different name")
LOCATION_SUGGESTIONS = ("Create location", "Choose existing", "Proceed anyway")
ROLE_SUGGESTIONS = ("Replace existing leader", "Make co-leaders", "Create rival faction", "Change role")


class PreGenerationInput(BaseModel):
    """The operator's request. Fields beyond these are kept for codex checks."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    location: str | None = None
    role: str | None = None
    faction: str | None = None


class PreValidationOptions(BaseModel, frozen=True):
    skip_id: str | None = None


class PreValidationResult(BaseModel, frozen=True):
    can_proceed: bool = True
    conflicts: tuple[Conflict, ...] = ()
    warnings: tuple[str, ...] = ()


def is_leadership_role(role: str | None) -> bool:
    lowered = (role or "").lower()
    return bool(lowered) and any(r in lowered for r in LEADERSHIP_ROLES)


async def _catalog_call(campaign_id: str, call: Awaitable[T]) -> T:
    try:
        return await call
    except Exception as e:
        raise CatalogUnavailableError(f"Catalog query failed for campaign {campaign_id}") from e


async def fetch_codex(codex_store: CodexStorageInterface | None, campaign_id: str) -> CampaignCodex | None:
    """Fetch the codex; any failure is logged and treated as no codex."""
    if codex_store is None:
        return None
    try:
        return await codex_store.get_codex(campaign_id)
    except Exception:
        logger.exception(f"Codex fetch failed for campaign {campaign_id}; continuing without codex")
        return None


async def check_duplicate_name(
    catalog: CatalogStorageInterface,
    campaign_id: str,
    name: str,
    skip_id: str | None = None,
) -> tuple[list[Conflict], list[str]]:
    rows = await _catalog_call(campaign_id, catalog.find_by_name(campaign_id, name, limit=5))
    rows = [e for e in rows if e.id != skip_id]
    exact = next((e for e in rows if e.name.lower() == name.lower()), None)
    if exact is not None:
        if exact.is_deceased:
            conflict = Conflict(
                id=f"dup-{exact.id}",
                type=ConflictType.DECEASED_ENTITY,
                description=f'"{exact.name}" exists but is marked as deceased. Create a successor or retcon?',
                existing_entity_id=exact.id,
                existing_entity_name=exact.name,
                suggestions=DECEASED_SUGGESTIONS,
            )
        else:
            conflict = Conflict(
                id=f"dup-{exact.id}",
                type=ConflictType.DUPLICATE_NAME,
                description=f'An entity named "{exact.name}" already exists.',
                existing_entity_id=exact.id,
                existing_entity_name=exact.name,
                suggestions=DUPLICATE_SUGGESTIONS,
            )
        return [conflict], []
    if rows:
        return [], [f"Similar names exist: {', '.join(e.name for e in rows)}"]
    return [], []


async def check_location_exists(
    catalog: CatalogStorageInterface,
    campaign_id: str,
    location: str,
) -> list[Conflict]:
    rows = await _catalog_call(
        campaign_id,
        catalog.find_by_name(campaign_id, location, entity_type=EntityKind.LOCATION.value),
    )
    if any(e.name.lower() == location.lower() for e in rows):
        return []
    return [
        Conflict(
            id=f"loc-missing-{location}",
            type=ConflictType.LOCATION_MISSING,
            description=f'Location "{location}" doesn\'t exist in your world.',
            suggestions=LOCATION_SUGGESTIONS,
        )
    ]


def find_current_leader(entities: list[CatalogEntity], faction: str) -> CatalogEntity | None:
    wanted = faction.lower()
    for entity in entities:
        if entity.entity_type != EntityKind.NPC.value:
            continue
        entity_faction = str(entity.attributes.get("faction") or "").lower()
        if wanted not in entity_faction:
            continue
        if is_leadership_role(str(entity.attributes.get("role") or "")):
            return entity
    return None


async def check_role_conflict(
    catalog: CatalogStorageInterface,
    campaign_id: str,
    role: str,
    faction: str,
) -> list[Conflict]:
    if not is_leadership_role(role):
        return []
    entities = await _catalog_call(campaign_id, catalog.list_entities(campaign_id))
    leader = find_current_leader(entities, faction)
    if leader is None:
        return []
    return [
        Conflict(
            id=f"role-{leader.id}",
            type=ConflictType.ROLE_CONFLICT,
            description=f"{leader.name} is already a leader of {faction}.",
            existing_entity_id=leader.id,
            existing_entity_name=leader.name,
            suggestions=ROLE_SUGGESTIONS,
        )
    ]


def codex_advisories(codex: CampaignCodex, request: PreGenerationInput) -> list[str]:
    warnings: list[str] = []
    conventions = codex.naming_conventions
    if conventions is not None and conventions.notes and request.name:
        warnings.append(f"Codex naming note: {conventions.notes}")
    if codex.factions and request.faction and not codex.knows_faction(request.faction):
        warnings.append(f'Faction "{request.faction}" is not in the codex. Consider adding it.')

    validation = validate_against_codex(request.model_dump(exclude_none=True), codex)
    if not validation.is_valid:
        warnings.extend(validation.warnings)
        warnings.extend(f"Suggestion: {s}" for s in validation.suggestions)
    return warnings


async def validate_pre_generation(
    catalog: CatalogStorageInterface,
    codex_store: CodexStorageInterface | None,
    campaign_id: str,
    kind: EntityKind | str,
    input: PreGenerationInput | Mapping[str, Any],
    options: PreValidationOptions | None = None,
) -> PreValidationResult:
    """Check a generation request against the current world state.

    Raises:
        CatalogUnavailableError: if a catalog query fails.
    """
    options = options or PreValidationOptions()
    kind = EntityKind(kind)
    request = input if isinstance(input, PreGenerationInput) else PreGenerationInput.model_validate(dict(input))

    conflicts: list[Conflict] = []
    warnings: list[str] = []

    if request.name:
        found, similar = await check_duplicate_name(catalog, campaign_id, request.name, options.skip_id)
        conflicts.extend(found)
        warnings.extend(similar)

    if request.location:
        conflicts.extend(await check_location_exists(catalog, campaign_id, request.location))

    if kind == EntityKind.NPC and request.role and request.faction:
        conflicts.extend(await check_role_conflict(catalog, campaign_id, request.role, request.faction))

    codex = await fetch_codex(codex_store, campaign_id)
    if codex is not None:
        warnings.extend(codex_advisories(codex, request))

    result = PreValidationResult(
        can_proceed=not any(c.is_blocking for c in conflicts),
        conflicts=tuple(conflicts),
        warnings=tuple(warnings),
    )
    logger.debug(result)
    return result
