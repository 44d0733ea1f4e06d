"""In-memory storage implementations for testing and development.

This module provides dictionary-based implementations of the storage
interfaces that keep all data in memory. These implementations are
suitable for:

- **Unit testing**: Fast, isolated tests without a database
- **Development**: Exercising the engine before wiring a real store
- **Demos**: Small campaigns that fit comfortably in RAM

**Not recommended for production**: there is no persistence, no
concurrency control and every search is a linear scan.
"""

import uuid
from typing import Sequence

from canonforge.codex import CampaignCodex
from canonforge.entity import CatalogEntity, FactRecord
from canonforge.relationship import RelationshipRecord
from canonforge.storage.interfaces import (
    CatalogStorageInterface,
    CodexStorageInterface,
    FactStorageInterface,
    RelationshipStorageInterface,
)


class InMemoryCatalogStorage(CatalogStorageInterface):
    """In-memory catalog keyed by entity id.

    Deleted entities stay in the dictionary but are hidden from every read,
    the way a ``deleted_at`` column hides rows in a real store.

    Example:
        ```python
        catalog = InMemoryCatalogStorage()
        await catalog.add(entity)
        names = [e.name for e in await catalog.list_entities("camp-1")]
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty catalog."""
        self._entities: dict[str, CatalogEntity] = {}
        self._deleted: set[str] = set()

    def _live(self, campaign_id: str) -> list[CatalogEntity]:
        """Non-deleted entities of one campaign."""
        return [
            e
            for eid, e in self._entities.items()
            if e.campaign_id == campaign_id and eid not in self._deleted
        ]

    async def list_entities(self, campaign_id: str) -> list[CatalogEntity]:
        """Lists every non-deleted entity of the campaign, in insertion order."""
        return self._live(campaign_id)

    async def find_by_name(
        self,
        campaign_id: str,
        name: str,
        entity_type: str | None = None,
        limit: int = 5,
    ) -> list[CatalogEntity]:
        """Case-insensitive containment search, exact matches first. O(n)."""
        name_lower = name.lower()
        exact: list[CatalogEntity] = []
        partial: list[CatalogEntity] = []
        for entity in self._live(campaign_id):
            if entity_type is not None and entity.entity_type != entity_type:
                continue
            entity_name = entity.name.lower()
            if entity_name == name_lower:
                exact.append(entity)
            elif name_lower in entity_name:
                partial.append(entity)
        return (exact + partial)[:limit]

    async def get(self, entity_id: str) -> CatalogEntity | None:
        """Retrieves an entity by its ID.

        Args:
            entity_id: The ID of the entity to retrieve.

        Returns:
            The entity, or None if it was never added or has been deleted.
        """
        if entity_id in self._deleted:
            return None
        return self._entities.get(entity_id)

    async def add(self, entity: CatalogEntity) -> str:
        """Insert an entity; an existing entity with the same id is overwritten."""
        self._entities[entity.id] = entity
        self._deleted.discard(entity.id)
        return entity.id

    async def update(self, entity: CatalogEntity) -> bool:
        """Replaces a live entity. Returns False for unknown or deleted IDs."""
        if entity.id not in self._entities or entity.id in self._deleted:
            return False
        self._entities[entity.id] = entity
        return True

    async def delete(self, entity_id: str) -> bool:
        """Soft-deletes an entity.

        Args:
            entity_id: The ID of the entity to delete.

        Returns:
            True if a live entity was hidden, False if there was nothing to delete.
        """
        if entity_id not in self._entities or entity_id in self._deleted:
            return False
        self._deleted.add(entity_id)
        return True


class InMemoryCodexStorage(CodexStorageInterface):
    """Codex snapshots keyed by campaign id."""

    def __init__(self, codices: dict[str, CampaignCodex] | None = None) -> None:
        """Initialize with optional per-campaign codices."""
        self._codices: dict[str, CampaignCodex] = dict(codices or {})

    def put(self, campaign_id: str, codex: CampaignCodex) -> None:
        """Stores or replaces the codex snapshot of a campaign."""
        self._codices[campaign_id] = codex

    async def get_codex(self, campaign_id: str) -> CampaignCodex | None:
        """Returns the campaign's codex, or None if none was stored."""
        return self._codices.get(campaign_id)


class InMemoryRelationshipStorage(RelationshipStorageInterface):
    """Relationships kept in insertion order, keyed by a generated id."""

    def __init__(self) -> None:
        """Initialize an empty relationship storage."""
        self._relationships: dict[str, RelationshipRecord] = {}

    async def add(self, relationship: RelationshipRecord) -> str:
        """Stores a relationship under a fresh UUID and returns that ID."""
        rel_id = str(uuid.uuid4())
        self._relationships[rel_id] = relationship
        return rel_id

    async def get_by_source(
        self,
        source_id: str,
        relationship_type: str | None = None,
    ) -> list[RelationshipRecord]:
        """Finds relationships leaving ``source_id``, optionally of one type only."""
        return [
            r
            for r in self._relationships.values()
            if r.source_id == source_id and (relationship_type is None or r.relationship_type == relationship_type)
        ]

    async def count(self) -> int:
        """Total number of stored relationships."""
        return len(self._relationships)

    def all(self) -> list[RelationshipRecord]:
        """All relationships in insertion order."""
        return list(self._relationships.values())


class InMemoryFactStorage(FactStorageInterface):
    """Facts kept in a flat list."""

    def __init__(self) -> None:
        """Initialize an empty fact storage."""
        self._facts: list[FactRecord] = []

    async def add_batch(self, facts: Sequence[FactRecord]) -> int:
        """Appends the facts and returns how many were written."""
        self._facts.extend(facts)
        return len(facts)

    async def get_by_entity(self, entity_id: str, current_only: bool = True) -> list[FactRecord]:
        """Facts of one entity; superseded facts only when ``current_only`` is False."""
        return [f for f in self._facts if f.entity_id == entity_id and (f.is_current or not current_only)]
