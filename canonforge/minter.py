"""Entity minter: commit-time writes.

`save_forged_entity` runs a staged pipeline over the resolved review state:

1. **stubs**: one stub entity per ``create_stub`` discovery that has not
   been materialized yet
2. **primary**: the generated entity itself, inserted (or, when fleshing out
   a stub, updated in place)
3. **facts**: itemized facts from the payload
4. **relationships**: links to ``link_existing`` targets and to every stub
5. **enrichment**: kind-specific back-fill (locations record their staff
   and owner)
6. **metadata**: owner, location, faction and parent-location links

The writes are not atomic. A failure of the primary stage raises
`EntityPersistError` and nothing after it runs. Failures in every other
stage are logged, recorded as `StageError` entries on the `CommitResult`
and do not stop the remaining writes, so a partial commit can be finished
by a retry.
"""

import uuid
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict, Field

from canonforge.entity import CatalogEntity, EntityKind, FactRecord, HistoryEntry
from canonforge.errors import CommitBlockedError, EntityPersistError
from canonforge.logging import setup_logging
from canonforge.payloads import BasePayload, LocationPayload, parse_payload, to_entity_draft
from canonforge.relationship import (
    CONTAINS,
    INHABITED_BY,
    LOCATED_IN,
    LOCATED_WITHIN,
    MEMBER_OF,
    OWNED_BY,
    RELATED_TO,
    RelationshipRecord,
)
from canonforge.review import Conflict, Discovery, DiscoveryStatus, can_commit
from canonforge.scanning.scan import CONTAINS_PREFIX, INHABITANT_PREFIX
from canonforge.storage.interfaces import (
    CatalogStorageInterface,
    FactStorageInterface,
    RelationshipStorageInterface,
)

logger = setup_logging("minter")

OWNERSHIP_TITLES = (
    "owner",
    "proprietor",
    "innkeeper",
    "landlord",
    "landlady",
    "shopkeeper",
    "barkeep",
    "master",
    "mistress",
    "keeper",
    "abbot",
    "warden",
    "steward",
)


def new_entity_id() -> str:
    return str(uuid.uuid4())


class StubCreationContext(BaseModel, frozen=True):
    """Where a batch of stubs was discovered."""

    source_entity_id: str | None = None
    source_entity_name: str | None = None


class StubCreationResult(BaseModel, frozen=True):
    discovery_id: str
    entity_id: str
    name: str


class CommitMetadata(BaseModel, frozen=True):
    owner_id: str | None = None
    location_id: str | None = None
    faction_id: str | None = None
    parent_location_id: str | None = None


class CommitContext(BaseModel, frozen=True):
    """The resolved review state handed to the minter."""

    discoveries: tuple[Discovery, ...] = ()
    conflicts: tuple[Conflict, ...] = ()
    created_stubs: tuple[StubCreationResult, ...] = ()
    metadata: CommitMetadata = Field(default_factory=CommitMetadata)
    stub_id: str | None = Field(default=None, description="Stub being fleshed out; updated instead of inserted.")


class StageError(BaseModel, frozen=True):
    """A swallowed failure of one non-primary write."""

    stage: str
    target: str | None = None
    message: str


class CommitResult(BaseModel, frozen=True):
    """Outcome of a commit. ``errors`` lists every write that did not happen."""

    entity: CatalogEntity
    stubs: tuple[StubCreationResult, ...] = ()
    relationships: tuple[RelationshipRecord, ...] = ()
    facts_written: int = 0
    errors: tuple[StageError, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.errors


class CommitStores(BaseModel):
    """The three writers a commit needs."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    catalog: CatalogStorageInterface
    relationships: RelationshipStorageInterface
    facts: FactStorageInterface


def build_stub(
    discovery: Discovery,
    campaign_id: str,
    kind: EntityKind | str,
    context: StubCreationContext | None = None,
) -> CatalogEntity:
    context = context or StubCreationContext()
    note = (
        f"Discovered in {context.source_entity_name}"
        if context.source_entity_name
        else f"Auto-created from {EntityKind(kind).value} forge"
    )
    attributes: dict[str, Any] = {
        "is_stub": True,
        "needs_review": True,
        "stub_context": discovery.context,
        "history": [HistoryEntry(event="stub_created", note=note).to_attribute()],
    }
    if context.source_entity_id:
        attributes["source_entity_id"] = context.source_entity_id
    if context.source_entity_name:
        attributes["source_entity_name"] = context.source_entity_name
    return CatalogEntity(
        id=new_entity_id(),
        campaign_id=campaign_id,
        name=discovery.text,
        entity_type=discovery.suggested_type.value,
        summary=f'Stub entity - needs details. Context: "{discovery.context[:100]}..."',
        status="active",
        importance_tier="background",
        visibility="dm_only",
        attributes=attributes,
    )


async def _create_stubs(
    catalog: CatalogStorageInterface,
    campaign_id: str,
    discoveries: Sequence[Discovery],
    kind: EntityKind | str,
    context: StubCreationContext | None,
) -> tuple[list[StubCreationResult], list[StageError]]:
    results: list[StubCreationResult] = []
    errors: list[StageError] = []
    for discovery in discoveries:
        stub = build_stub(discovery, campaign_id, kind, context)
        try:
            entity_id = await catalog.add(stub)
        except Exception as e:
            logger.exception(f'Failed to create stub for "{discovery.text}"')
            errors.append(StageError(stage="stubs", target=discovery.text, message=str(e)))
            continue
        results.append(StubCreationResult(discovery_id=discovery.id, entity_id=entity_id, name=stub.name))
    return results, errors


async def create_stub_entities(
    catalog: CatalogStorageInterface,
    campaign_id: str,
    discoveries: Sequence[Discovery],
    kind: EntityKind | str,
    context: StubCreationContext | None = None,
) -> list[StubCreationResult]:
    """Create one stub per discovery. Failed inserts are logged and skipped."""
    results, _ = await _create_stubs(catalog, campaign_id, discoveries, kind, context)
    return results


async def add_history_entry(catalog: CatalogStorageInterface, entity_id: str, entry: HistoryEntry) -> bool:
    """Append ``entry`` to an entity's history. Returns False if the entity is gone."""
    entity = await catalog.get(entity_id)
    if entity is None:
        return False
    attributes = {**entity.attributes, "history": [*entity.history, entry.to_attribute()]}
    return await catalog.update(entity.model_copy(update={"attributes": attributes}))


def stub_relationship_type(discovery: Discovery | None, kind: EntityKind) -> str:
    """Relationship from the new entity to a stub, by discovery id prefix."""
    if discovery is None:
        return RELATED_TO
    if discovery.id_prefix == CONTAINS_PREFIX:
        return CONTAINS
    if discovery.id_prefix == INHABITANT_PREFIX and kind == EntityKind.LOCATION:
        return INHABITED_BY
    return RELATED_TO


def pick_owner(staff: Sequence[dict[str, Any]]) -> dict[str, Any] | None:
    """First staff member whose role names an ownership title, else the first one."""
    for member in staff:
        role = str(member.get("role") or "").lower()
        if any(title in role for title in OWNERSHIP_TITLES):
            return member
    return staff[0] if staff else None


class _Commit:
    """Mutable bookkeeping for one `save_forged_entity` call."""

    def __init__(self, stores: CommitStores, campaign_id: str, kind: EntityKind):
        self.stores = stores
        self.campaign_id = campaign_id
        self.kind = kind
        self.relationships: list[RelationshipRecord] = []
        self.errors: list[StageError] = []

    async def relate(self, source_id: str, target_id: str, relationship_type: str, description: str) -> None:
        record = RelationshipRecord(
            campaign_id=self.campaign_id,
            source_id=source_id,
            target_id=target_id,
            relationship_type=relationship_type,
            description=description,
        )
        try:
            await self.stores.relationships.add(record)
        except Exception as e:
            logger.exception(f"Failed to write {relationship_type} relationship {source_id} -> {target_id}")
            self.errors.append(StageError(stage="relationships", target=target_id, message=str(e)))
            return
        self.relationships.append(record)


async def _persist_primary(
    catalog: CatalogStorageInterface,
    campaign_id: str,
    kind: EntityKind,
    payload: BasePayload,
    stub_id: str | None,
) -> CatalogEntity:
    if stub_id:
        try:
            existing = await catalog.get(stub_id)
        except Exception as e:
            raise EntityPersistError(f"Could not load stub {stub_id}") from e
        if existing is None:
            raise EntityPersistError(f"Stub {stub_id} does not exist")
        entry = HistoryEntry(event="fleshed_out", note=f"Completed via {kind.value} forge")
        draft = to_entity_draft(payload, [*existing.history, entry.to_attribute()])
        attributes = {
            **existing.attributes,
            **draft.attributes,
            "is_stub": False,
            "needs_review": False,
        }
        entity = existing.model_copy(
            update={**draft.model_dump(exclude={"attributes", "importance_tier"}), "attributes": attributes}
        )
        try:
            updated = await catalog.update(entity)
        except Exception as e:
            raise EntityPersistError(f"Failed to update stub {stub_id}") from e
        if not updated:
            raise EntityPersistError(f"Stub {stub_id} disappeared before it could be updated")
        return entity

    prior_history = list(payload.attributes.get("history") or [])
    entry = HistoryEntry(event="forged", note=f"Created via {kind.value} forge")
    entity = to_entity_draft(payload, [*prior_history, entry.to_attribute()]).to_entity(new_entity_id(), campaign_id)
    try:
        entity_id = await catalog.add(entity)
    except Exception as e:
        raise EntityPersistError(f'Failed to save {kind.value} "{payload.name}"') from e
    if entity_id != entity.id:
        entity = entity.model_copy(update={"id": entity_id})
    return entity


async def _write_facts(commit: _Commit, entity: CatalogEntity, payload: BasePayload) -> int:
    if not payload.facts:
        return 0
    records = [
        FactRecord(
            entity_id=entity.id,
            campaign_id=commit.campaign_id,
            content=fact.content,
            category=fact.category,
            visibility=fact.visibility,
        )
        for fact in payload.facts
    ]
    try:
        return await commit.stores.facts.add_batch(records)
    except Exception as e:
        logger.exception(f"Failed to write {len(records)} facts for {entity.id}; entity kept without them")
        commit.errors.append(StageError(stage="facts", target=entity.id, message=str(e)))
        return 0


async def _enrich_location(
    commit: _Commit,
    entity: CatalogEntity,
    payload: LocationPayload,
    stubs: Sequence[StubCreationResult],
    by_discovery: dict[str, Discovery],
) -> CatalogEntity:
    roles = {i.name.lower(): i.role for i in payload.inhabitants}
    staff = []
    for stub in stubs:
        discovery = by_discovery.get(stub.discovery_id)
        if discovery is None or discovery.id_prefix != INHABITANT_PREFIX:
            continue
        staff.append({"id": stub.entity_id, "name": stub.name, "role": roles.get(stub.name.lower())})
    if not staff:
        return entity

    owner = pick_owner(staff)
    brain = dict(entity.attributes.get("brain") or {})
    brain["staff"] = [f"{m['name']} ({m['role']})" if m["role"] else m["name"] for m in staff]
    if owner is not None:
        brain["owner"] = owner["name"]
    attributes = {
        **entity.attributes,
        "brain": brain,
        "staff": staff,
        "owner_id": owner["id"] if owner else None,
    }
    enriched = entity.model_copy(update={"attributes": attributes})
    try:
        updated = await commit.stores.catalog.update(enriched)
    except Exception as e:
        logger.exception(f"Failed to back-fill staff for location {entity.id}")
        commit.errors.append(StageError(stage="enrichment", target=entity.id, message=str(e)))
        return entity
    if not updated:
        logger.warning(f"Location {entity.id} vanished before staff back-fill")
        commit.errors.append(StageError(stage="enrichment", target=entity.id, message="entity not found"))
        return entity
    return enriched


async def save_forged_entity(
    stores: CommitStores,
    campaign_id: str,
    kind: EntityKind | str,
    payload: BasePayload | dict[str, Any],
    commit_context: CommitContext,
) -> CommitResult:
    """Commit a reviewed generation to the store.

    Raises:
        CommitBlockedError: if any discovery or conflict is still pending.
        EntityPersistError: if the primary entity could not be written.
    """
    if not can_commit(commit_context.discoveries, commit_context.conflicts):
        raise CommitBlockedError("Resolve every discovery and conflict before committing")

    kind = EntityKind(kind)
    forged = parse_payload(payload, kind)
    commit = _Commit(stores, campaign_id, kind)
    by_discovery = {d.id: d for d in commit_context.discoveries}

    # stubs
    materialized = {s.discovery_id for s in commit_context.created_stubs}
    to_create = [
        d
        for d in commit_context.discoveries
        if d.status == DiscoveryStatus.CREATE_STUB and d.id not in materialized
    ]
    created, stub_errors = await _create_stubs(
        stores.catalog,
        campaign_id,
        to_create,
        kind,
        StubCreationContext(source_entity_id=commit_context.stub_id, source_entity_name=forged.name),
    )
    commit.errors.extend(stub_errors)
    stubs = [*commit_context.created_stubs, *created]

    # primary
    entity = await _persist_primary(stores.catalog, campaign_id, kind, forged, commit_context.stub_id)
    logger.info(f'Saved {kind.value} "{entity.name}" ({entity.id})')

    facts_written = await _write_facts(commit, entity, forged)

    for d in commit_context.discoveries:
        if d.status == DiscoveryStatus.LINK_EXISTING and d.linked_entity_id:
            await commit.relate(entity.id, d.linked_entity_id, RELATED_TO, f"Mentioned in {kind.value} description")

    for stub in stubs:
        rel_type = stub_relationship_type(by_discovery.get(stub.discovery_id), kind)
        description = "Sub-location" if rel_type == CONTAINS else f"Discovered via {kind.value} forge"
        await commit.relate(entity.id, stub.entity_id, rel_type, description)

    if isinstance(forged, LocationPayload):
        entity = await _enrich_location(commit, entity, forged, stubs, by_discovery)

    meta = commit_context.metadata
    if meta.owner_id:
        await commit.relate(entity.id, meta.owner_id, OWNED_BY, f"Assigned owner from {kind.value} forge")
    if meta.location_id:
        await commit.relate(entity.id, meta.location_id, LOCATED_IN, f"Assigned location from {kind.value} forge")
    if meta.faction_id:
        await commit.relate(entity.id, meta.faction_id, MEMBER_OF, f"Assigned faction from {kind.value} forge")
    if meta.parent_location_id:
        await commit.relate(entity.id, meta.parent_location_id, LOCATED_WITHIN, "Contained within parent location")

    if commit.errors:
        logger.warning(f"Commit of {entity.id} finished with {len(commit.errors)} failed writes")
    return CommitResult(
        entity=entity,
        stubs=tuple(stubs),
        relationships=tuple(commit.relationships),
        facts_written=facts_written,
        errors=tuple(commit.errors),
    )
