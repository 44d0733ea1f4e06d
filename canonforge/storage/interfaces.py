"""Storage interface definitions for the canon engine.

The engine does not own the campaign store. It talks to four collaborators,
each declared here as an abstract async interface:

- `CatalogStorageInterface`: named entities of a campaign (read and write)
- `CodexStorageInterface`: the campaign codex snapshot (read only)
- `RelationshipStorageInterface`: the relationship writer
- `FactStorageInterface`: the fact writer

Implementations signal transport or storage failures by raising; the
engine decides per call site whether a failure aborts or is recorded.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from canonforge.codex import CampaignCodex
from canonforge.entity import CatalogEntity, FactRecord
from canonforge.relationship import RelationshipRecord


class CatalogStorageInterface(ABC):
    """Abstract interface for the campaign entity catalog."""

    @abstractmethod
    async def list_entities(self, campaign_id: str) -> list[CatalogEntity]:
        """Return all non-deleted entities of the campaign."""

    @abstractmethod
    async def find_by_name(
        self,
        campaign_id: str,
        name: str,
        entity_type: str | None = None,
        limit: int = 5,
    ) -> list[CatalogEntity]:
        """Find non-deleted entities whose name contains ``name``, case-insensitively.

        Optionally filter by entity type. Exact matches, when present, come first.
        """

    @abstractmethod
    async def get(self, entity_id: str) -> CatalogEntity | None:
        """Retrieve an entity by ID, or None if not found or deleted."""

    @abstractmethod
    async def add(self, entity: CatalogEntity) -> str:
        """Insert an entity and return its ID."""

    @abstractmethod
    async def update(self, entity: CatalogEntity) -> bool:
        """Replace an existing entity.

        Returns True if the entity was found and updated, False otherwise.
        """

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """Soft-delete an entity. Returns True if found and deleted."""


class CodexStorageInterface(ABC):
    """Abstract interface for fetching the campaign codex."""

    @abstractmethod
    async def get_codex(self, campaign_id: str) -> CampaignCodex | None:
        """Return the codex snapshot for a campaign, or None if it has none."""


class RelationshipStorageInterface(ABC):
    """Abstract interface for the relationship writer."""

    @abstractmethod
    async def add(self, relationship: RelationshipRecord) -> str:
        """Store a relationship and return an identifier."""

    @abstractmethod
    async def get_by_source(
        self,
        source_id: str,
        relationship_type: str | None = None,
    ) -> list[RelationshipRecord]:
        """Get all relationships whose source is the given entity.

        Optionally filter by relationship type.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return total number of stored relationships."""


class FactStorageInterface(ABC):
    """Abstract interface for the fact writer."""

    @abstractmethod
    async def add_batch(self, facts: Sequence[FactRecord]) -> int:
        """Store a batch of facts and return how many were written."""

    @abstractmethod
    async def get_by_entity(self, entity_id: str, current_only: bool = True) -> list[FactRecord]:
        """Return the facts scoped to an entity."""
