"""Test fixtures and storage doubles.

This module provides:
- Pytest fixtures that instantiate the in-memory storage implementations
  and a `CanonEngine` wired to them
- Failing storage doubles used to exercise the error paths of the
  validator, the scanner and the minter
- Helper factory functions for creating catalog entities and discoveries

All fixtures are function-scoped, so every test starts from an empty store.
"""

import uuid
from typing import Any, Sequence

import pytest

from canonforge.codex import CampaignCodex
from canonforge.engine import CanonEngine
from canonforge.entity import CatalogEntity, EntityKind, FactRecord
from canonforge.minter import CommitStores
from canonforge.relationship import RelationshipRecord
from canonforge.review import Discovery, DiscoveryStatus, discovery_id
from canonforge.storage.interfaces import CodexStorageInterface
from canonforge.storage.memory import (
    InMemoryCatalogStorage,
    InMemoryCodexStorage,
    InMemoryFactStorage,
    InMemoryRelationshipStorage,
)

CAMPAIGN = "camp-1"


# --- Storage doubles ---


class FailingCatalogStorage(InMemoryCatalogStorage):
    """Catalog whose reads always fail, as if the store were unreachable."""

    async def list_entities(self, campaign_id: str) -> list[CatalogEntity]:
        raise ConnectionError("catalog unreachable")

    async def find_by_name(self, campaign_id, name, entity_type=None, limit=5) -> list[CatalogEntity]:
        raise ConnectionError("catalog unreachable")


class RejectingCatalogStorage(InMemoryCatalogStorage):
    """Catalog that refuses inserts of the listed entity types."""

    def __init__(self, rejected_types: Sequence[str]) -> None:
        super().__init__()
        self.rejected_types = set(rejected_types)

    async def add(self, entity: CatalogEntity) -> str:
        if entity.entity_type in self.rejected_types:
            raise RuntimeError(f"insert of {entity.entity_type} rejected")
        return await super().add(entity)


class FailingCodexStorage(CodexStorageInterface):
    async def get_codex(self, campaign_id: str) -> CampaignCodex | None:
        raise TimeoutError("codex service timed out")


class FlakyRelationshipStorage(InMemoryRelationshipStorage):
    """Relationship writer that fails for the listed relationship types only."""

    def __init__(self, failing_types: Sequence[str]) -> None:
        super().__init__()
        self.failing_types = set(failing_types)

    async def add(self, relationship: RelationshipRecord) -> str:
        if relationship.relationship_type in self.failing_types:
            raise RuntimeError(f"{relationship.relationship_type} insert failed")
        return await super().add(relationship)


class FailingFactStorage(InMemoryFactStorage):
    async def add_batch(self, facts: Sequence[FactRecord]) -> int:
        raise RuntimeError("fact table locked")


# --- Factories ---


def make_catalog_entity(
    name: str,
    entity_type: str | EntityKind = EntityKind.NPC,
    campaign_id: str = CAMPAIGN,
    entity_id: str | None = None,
    status: str = "active",
    attributes: dict[str, Any] | None = None,
) -> CatalogEntity:
    """Create a catalog entity with sensible defaults."""
    return CatalogEntity(
        id=entity_id or str(uuid.uuid4()),
        campaign_id=campaign_id,
        name=name,
        entity_type=EntityKind(entity_type).value,
        status=status,
        attributes=attributes or {},
    )


def make_discovery(
    text: str,
    suggested_type: str | EntityKind = EntityKind.NPC,
    prefix: str = "discovery",
    status: str | DiscoveryStatus = DiscoveryStatus.PENDING,
    linked_entity_id: str | None = None,
    context: str = "",
) -> Discovery:
    """Create a discovery directly in the given state, bypassing transitions."""
    return Discovery(
        id=discovery_id(prefix, text),
        text=text,
        suggested_type=EntityKind(suggested_type),
        context=context or f"...{text}...",
        status=DiscoveryStatus(status),
        linked_entity_id=linked_entity_id,
    )


async def seed(catalog: InMemoryCatalogStorage, *entities: CatalogEntity) -> None:
    for entity in entities:
        await catalog.add(entity)


# --- Fixtures ---


@pytest.fixture
def catalog() -> InMemoryCatalogStorage:
    """Provide a fresh, empty in-memory catalog."""
    return InMemoryCatalogStorage()


@pytest.fixture
def codex_store() -> InMemoryCodexStorage:
    return InMemoryCodexStorage()


@pytest.fixture
def relationship_storage() -> InMemoryRelationshipStorage:
    return InMemoryRelationshipStorage()


@pytest.fixture
def fact_storage() -> InMemoryFactStorage:
    return InMemoryFactStorage()


@pytest.fixture
def stores(
    catalog: InMemoryCatalogStorage,
    relationship_storage: InMemoryRelationshipStorage,
    fact_storage: InMemoryFactStorage,
) -> CommitStores:
    """Bundle the three writers the minter needs."""
    return CommitStores(catalog=catalog, relationships=relationship_storage, facts=fact_storage)


@pytest.fixture
def engine(
    catalog: InMemoryCatalogStorage,
    codex_store: InMemoryCodexStorage,
    relationship_storage: InMemoryRelationshipStorage,
    fact_storage: InMemoryFactStorage,
) -> CanonEngine:
    """Provide a CanonEngine wired to the in-memory fixtures."""
    return CanonEngine(
        catalog=catalog,
        codex_store=codex_store,
        relationships=relationship_storage,
        facts=fact_storage,
    )
