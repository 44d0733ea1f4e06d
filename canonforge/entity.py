"""Entity models for the canon engine.

This module defines the records the engine reads from and writes to the
campaign store:

- **EntityKind**: The closed set of categories an entity or discovery can have
- **CatalogEntity**: A named, non-deleted entity as returned by the catalog query
- **CandidateMention**: A span of generated text that may name an entity
- **ExistingEntityMention**: A candidate span that matched the catalog
- **HistoryEntry**: One append-only provenance event on an entity
- **FactRecord**: An itemized fact scoped to an entity

**Mention Lifecycle:**

1. **Extraction**: The mention extractor finds `CandidateMention` spans in
   generated text, each carrying a fixed-radius context window.

2. **Matching**: The catalog matcher compares each candidate with the
   campaign's `CatalogEntity` names. Hits become `ExistingEntityMention`s,
   misses become discoveries for the operator to review.

3. **Minting**: Accepted discoveries are written back as stub
   `CatalogEntity` records carrying a `HistoryEntry` of their origin.

Catalog records are frozen pydantic models; use `model_copy(update=...)` to
derive a changed record.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EntityKind(str, Enum):
    """Category of a world entity."""

    NPC = "npc"
    LOCATION = "location"
    ITEM = "item"
    FACTION = "faction"
    QUEST = "quest"
    ENCOUNTER = "encounter"
    CREATURE = "creature"
    OTHER = "other"


def as_kind(value: str | EntityKind | None) -> EntityKind:
    """Coerce a stored entity_type string to EntityKind, OTHER when unknown."""
    try:
        return EntityKind(value)
    except ValueError:
        return EntityKind.OTHER


class EntityStatus(str, Enum):
    """Lifecycle status stored on a catalog entity."""

    ACTIVE = "active"
    DECEASED = "deceased"
    DESTROYED = "destroyed"
    MISSING = "missing"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryEntry(BaseModel, frozen=True):
    """A provenance event appended to an entity's ``attributes.history``.

    Entries are never rewritten; new events are appended to the end.
    """

    event: str = Field(description="Event name, e.g. 'forged', 'stub_created', 'fleshed_out'.")
    note: str | None = Field(default=None, description="Human readable note.")
    timestamp: datetime = Field(default_factory=utc_now)
    entity_id: str | None = None
    entity_name: str | None = None

    def to_attribute(self) -> dict[str, Any]:
        """Serialize for storage inside an entity's attributes bag."""
        return self.model_dump(mode="json", exclude_none=True)


class CatalogEntity(BaseModel):
    """A non-deleted entity of a campaign.

    ``attributes`` is the free-form bag the store keeps per entity; stubs
    carry ``is_stub``, ``needs_review``, ``stub_context`` and ``history``
    keys inside it.
    """

    model_config = {"frozen": True}

    id: str = Field(description="Store-assigned identifier.")
    campaign_id: str
    name: str = Field(description="Display name; catalog matching is case-insensitive on this field.")
    entity_type: str = Field(description="One of the EntityKind values.")
    status: str = Field(default=EntityStatus.ACTIVE.value)
    subtype: str | None = None
    summary: str | None = None
    description: str | None = None
    importance_tier: str = "minor"
    visibility: str = "dm_only"
    source_forge: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_stub(self) -> bool:
        return bool(self.attributes.get("is_stub"))

    @property
    def is_deceased(self) -> bool:
        return self.status == EntityStatus.DECEASED.value

    @property
    def history(self) -> list[dict[str, Any]]:
        return list(self.attributes.get("history") or [])


class CandidateMention(BaseModel, frozen=True):
    """A raw span found in generated text, before catalog matching.

    Attributes:
        text: The exact text of the span.
        start_index: Offset of the first character of the span.
        end_index: Offset one past the last character of the span.
        context: Surrounding characters, used only for classification.
        source_pass: Name of the extraction pass that produced the span.
    """

    text: str
    start_index: int = Field(ge=0)
    end_index: int = Field(ge=0)
    context: str = ""
    source_pass: str = ""

    def overlaps(self, other: "CandidateMention") -> bool:
        return self.start_index < other.end_index and other.start_index < self.end_index


class ExistingEntityMention(BaseModel, frozen=True):
    """A span of generated text that refers to an existing catalog entity."""

    id: str
    name: str
    type: str
    start_index: int
    end_index: int


class FactRecord(BaseModel, frozen=True):
    """An itemized fact written alongside a minted entity."""

    entity_id: str
    campaign_id: str
    content: str
    category: str = "lore"
    visibility: str = "dm_only"
    is_current: bool = True
    source_type: str = "generated"
