"""The canon engine facade.

`CanonEngine` holds the four storage collaborators and the engine settings,
and exposes the outward operations of the engine:

    - `validate_pre_generation` before any text is generated
    - `scan_generated_content` on the generated text
    - `create_stub_entities` for discoveries accepted ahead of commit
    - `save_forged_entity` once every discovery and conflict is resolved

`open_review` and `commit_review` wire a `ReviewSession` between the scan
and the commit.

Example usage:
    ```python
    engine = CanonEngine(
        catalog=InMemoryCatalogStorage(),
        codex_store=InMemoryCodexStorage(),
        relationships=InMemoryRelationshipStorage(),
        facts=InMemoryFactStorage(),
    )

    pre = await engine.validate_pre_generation("camp-1", "npc", {"name": "Tharivol"})
    session = await engine.open_review("camp-1", payload, pre)
    for d in session.pending_discoveries:
        session.apply_discovery_action(d.id, "create_stub")
    result = await engine.commit_review("camp-1", payload, session)
    ```
"""

from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from canonforge.config import DEFAULT_CONFIG, EngineConfig, load_config
from canonforge.entity import EntityKind, HistoryEntry
from canonforge.errors import CatalogUnavailableError
from canonforge.logging import LOGGER_PREFIX, setup_logging
from canonforge.minter import (
    CommitContext,
    CommitMetadata,
    CommitResult,
    CommitStores,
    StubCreationContext,
    StubCreationResult,
    add_history_entry,
    create_stub_entities,
    save_forged_entity,
)
from canonforge.payloads import BasePayload, LocationPayload, parse_payload
from canonforge.review import Discovery, ReviewSession, manual_link
from canonforge.scanning.scan import (
    ScanOptions,
    ScanResult,
    contained_name,
    contains_discoveries,
    extract_text_for_scanning,
    index_by_name,
    inhabitant_discoveries,
    match_name,
    scan_generated_content,
)
from canonforge.storage.interfaces import (
    CatalogStorageInterface,
    CodexStorageInterface,
    FactStorageInterface,
    RelationshipStorageInterface,
)
from canonforge.validation import (
    PreGenerationInput,
    PreValidationOptions,
    PreValidationResult,
    validate_pre_generation,
)

logger = setup_logging("engine")


class CanonEngine(BaseModel):
    """Collaborators and settings for one campaign store."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    catalog: CatalogStorageInterface
    codex_store: CodexStorageInterface | None = None
    relationships: RelationshipStorageInterface
    facts: FactStorageInterface
    config: EngineConfig = Field(default_factory=lambda: DEFAULT_CONFIG)

    def model_post_init(self, __context: Any) -> None:
        setup_logging(LOGGER_PREFIX, self.config.log_level)

    @classmethod
    def from_config_file(cls, path: str | None = None, **collaborators: Any) -> "CanonEngine":
        """Build an engine with settings read by `load_config`."""
        return cls(config=load_config(path), **collaborators)

    @property
    def stores(self) -> CommitStores:
        return CommitStores(catalog=self.catalog, relationships=self.relationships, facts=self.facts)

    async def validate_pre_generation(
        self,
        campaign_id: str,
        kind: EntityKind | str,
        input: PreGenerationInput | Mapping[str, Any],
        options: PreValidationOptions | None = None,
    ) -> PreValidationResult:
        return await validate_pre_generation(self.catalog, self.codex_store, campaign_id, kind, input, options)

    async def scan_generated_content(
        self,
        campaign_id: str,
        text: str,
        options: ScanOptions | None = None,
    ) -> ScanResult:
        return await scan_generated_content(self.catalog, campaign_id, text, options, self.config)

    async def create_stub_entities(
        self,
        campaign_id: str,
        discoveries: Sequence[Discovery],
        kind: EntityKind | str,
        context: StubCreationContext | None = None,
    ) -> list[StubCreationResult]:
        return await create_stub_entities(self.catalog, campaign_id, discoveries, kind, context)

    async def save_forged_entity(
        self,
        campaign_id: str,
        kind: EntityKind | str,
        payload: BasePayload | dict[str, Any],
        commit_context: CommitContext,
    ) -> CommitResult:
        return await save_forged_entity(self.stores, campaign_id, kind, payload, commit_context)

    async def add_history_entry(self, entity_id: str, entry: HistoryEntry) -> bool:
        return await add_history_entry(self.catalog, entity_id, entry)

    async def open_review(
        self,
        campaign_id: str,
        payload: BasePayload | dict[str, Any],
        pre_validation: PreValidationResult | None = None,
        kind: EntityKind | str | None = None,
    ) -> ReviewSession:
        """Scan a generated payload and collect everything the operator must resolve.

        Locations also contribute their ``contains`` entries and named
        inhabitants. Entries the catalog already holds come back as
        ``link_existing`` discoveries; the others are pending discoveries.
        """
        forged = parse_payload(payload, kind)
        text = extract_text_for_scanning(forged)
        scan = await self.scan_generated_content(campaign_id, text, ScanOptions(current_entity_name=forged.name))

        session = ReviewSession(
            conflicts=[*(pre_validation.conflicts if pre_validation else ()), *scan.conflicts],
        )
        # structured entries first so their id prefixes survive the merge
        if isinstance(forged, LocationPayload):
            await self._add_location_discoveries(campaign_id, forged, session)
        session.add_discoveries(scan.discoveries)
        logger.info(
            f'Review for "{forged.name}": {len(session.discoveries)} discoveries, '
            f"{len(session.conflicts)} conflicts, canon {scan.canon_score.value}"
        )
        return session

    async def _add_location_discoveries(
        self,
        campaign_id: str,
        location: LocationPayload,
        session: ReviewSession,
    ) -> None:
        """Link sub-locations and inhabitants the catalog already has; the rest become discoveries."""
        try:
            entities = await self.catalog.list_entities(campaign_id)
        except Exception as e:
            raise CatalogUnavailableError(f"Catalog query failed for campaign {campaign_id}") from e
        by_name = index_by_name(entities)

        names = [contained_name(raw) for raw in location.brain.contains]
        names.extend(i.name for i in location.inhabitants)
        known: list[str] = []
        for name in names:
            entity = match_name(name, by_name)
            if entity is None:
                continue
            known.append(name)
            session.add_discoveries([manual_link(entity)])
        if known:
            logger.debug(f'Linked structured entries of "{location.name}" to the catalog: {known}')

        session.add_discoveries(contains_discoveries(location.name, location.brain.contains, known))
        session.add_discoveries(inhabitant_discoveries(location.name, location.inhabitants, known))

    async def commit_review(
        self,
        campaign_id: str,
        payload: BasePayload | dict[str, Any],
        session: ReviewSession,
        metadata: CommitMetadata | None = None,
        created_stubs: Sequence[StubCreationResult] = (),
        stub_id: str | None = None,
        kind: EntityKind | str | None = None,
    ) -> CommitResult:
        """Commit a resolved review session.

        Raises:
            CommitBlockedError: if anything in the session is still pending.
            EntityPersistError: if the primary entity could not be written.
        """
        session.require_committable()
        forged = parse_payload(payload, kind)
        context = CommitContext(
            discoveries=tuple(session.discoveries),
            conflicts=tuple(session.conflicts),
            created_stubs=tuple(created_stubs),
            metadata=metadata or CommitMetadata(),
            stub_id=stub_id,
        )
        return await self.save_forged_entity(campaign_id, forged.kind, forged, context)  # type: ignore[attr-defined]
