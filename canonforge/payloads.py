"""Generated payloads, one model per entity kind.

A generator returns a differently shaped payload for every kind of entity.
Each shape is a pydantic model tagged by ``kind``; `ForgedPayload` is the
discriminated union of all of them. One mapping function per kind turns a
payload into an `EntityDraft`, the persisted record minus its store id.

Example:
    ```python
    payload = parse_payload({"name": "Tharivol", "race": "Elf"}, kind="npc")
    draft = to_entity_draft(payload, history=[entry.to_attribute()])
    entity = draft.to_entity(entity_id, campaign_id)
    ```
"""

from typing import Annotated, Any, Callable, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from canonforge.entity import CatalogEntity, EntityKind


class FactItem(BaseModel, frozen=True):
    content: str
    category: str = "lore"
    visibility: str = "dm_only"


class Inhabitant(BaseModel, frozen=True):
    name: str
    role: str | None = None
    hook: str | None = None


class BasePayload(BaseModel):
    """Fields every generated payload shares."""

    model_config = ConfigDict(frozen=True)

    name: str
    summary: str | None = None
    description: str | None = None
    facts: tuple[FactItem, ...] = ()
    attributes: dict[str, Any] = Field(
        default_factory=dict, description="Attributes carried over from an earlier record, e.g. history."
    )


class NpcPayload(BasePayload):
    kind: Literal["npc"] = "npc"
    race: str | None = None
    gender: str | None = None
    role: str | None = None
    faction: str | None = None
    appearance: str | None = None
    personality: str | None = None
    voice_and_mannerisms: str | None = None
    motivation: str | None = None
    secret: str | None = None
    plot_hook: str | None = None
    dm_slug: str | None = None
    loot: str | None = None
    combat_stats: dict[str, Any] | None = None
    connection_hooks: tuple[str, ...] = ()


class ItemPayload(BasePayload):
    kind: Literal["item"] = "item"
    item_type: str | None = None
    rarity: str | None = None
    magical_aura: str | None = None
    is_identified: bool | None = None
    public_description: str | None = None
    secret_description: str | None = None
    mechanical_properties: dict[str, Any] | None = None
    origin_history: str | None = None
    value_gp: float | None = None
    weight: str | None = None
    secret: str | None = None


class LocationBrain(BaseModel, frozen=True):
    purpose: str | None = None
    history: str | None = None
    secret: str | None = None
    conflict: str | None = None
    opportunity: str | None = None
    contains: tuple[str, ...] = ()


class LocationPayload(BasePayload):
    kind: Literal["location"] = "location"
    sub_type: str | None = None
    read_aloud: str | None = None
    dm_slug: str | None = None
    brain: LocationBrain = Field(default_factory=LocationBrain)
    soul: dict[str, Any] = Field(default_factory=dict)
    mechanics: dict[str, Any] = Field(default_factory=dict)
    inhabitants: tuple[Inhabitant, ...] = ()


class FactionPayload(BasePayload):
    kind: Literal["faction"] = "faction"
    faction_type: str | None = None
    goals: tuple[str, ...] = ()
    resources: tuple[str, ...] = ()
    leadership: str | None = None
    membership: str | None = None
    secrets: tuple[str, ...] = ()


class QuestPayload(BasePayload):
    model_config = ConfigDict(frozen=True, extra="allow")

    kind: Literal["quest"] = "quest"


class CreaturePayload(BasePayload):
    model_config = ConfigDict(frozen=True, extra="allow")

    kind: Literal["creature"] = "creature"


class EncounterPayload(BasePayload):
    model_config = ConfigDict(frozen=True, extra="allow")

    kind: Literal["encounter"] = "encounter"


ForgedPayload = Annotated[
    Union[
        NpcPayload,
        ItemPayload,
        LocationPayload,
        FactionPayload,
        QuestPayload,
        CreaturePayload,
        EncounterPayload,
    ],
    Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter[ForgedPayload] = TypeAdapter(ForgedPayload)


def parse_payload(data: Mapping[str, Any] | BasePayload, kind: EntityKind | str | None = None) -> BasePayload:
    """Validate raw generator output into the payload model for its kind.

    ``kind`` fills in a missing ``kind`` key; it does not override one that
    is present.
    """
    if isinstance(data, BasePayload):
        return data
    raw = dict(data)
    if kind is not None:
        raw.setdefault("kind", EntityKind(kind).value)
    return _payload_adapter.validate_python(raw)


class EntityDraft(BaseModel, frozen=True):
    """A catalog record before the store assigns it an id."""

    name: str
    entity_type: str
    status: str = "active"
    subtype: str | None = None
    summary: str | None = None
    description: str | None = None
    importance_tier: str = "minor"
    visibility: str = "dm_only"
    source_forge: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    def to_entity(self, entity_id: str, campaign_id: str) -> CatalogEntity:
        return CatalogEntity(id=entity_id, campaign_id=campaign_id, **self.model_dump())


def build_npc_description(payload: NpcPayload) -> str:
    parts = []
    if payload.appearance:
        parts.append(f"**Appearance:** {payload.appearance}")
    if payload.personality:
        parts.append(f"**Personality:** {payload.personality}")
    if payload.motivation:
        parts.append(f"**Motivation:** {payload.motivation}")
    return "\n\n".join(parts)


def _draft(payload: BasePayload, history: list[dict[str, Any]], **fields: Any) -> EntityDraft:
    attributes = {**fields.pop("attributes", {}), "history": history}
    return EntityDraft(
        name=payload.name,
        entity_type=payload.kind,  # type: ignore[attr-defined]
        source_forge=payload.kind,  # type: ignore[attr-defined]
        attributes=attributes,
        **fields,
    )


def map_npc(payload: NpcPayload, history: list[dict[str, Any]]) -> EntityDraft:
    return _draft(
        payload,
        history,
        subtype=payload.race,
        summary=payload.dm_slug or payload.summary,
        description=build_npc_description(payload) or payload.description,
        attributes=payload.model_dump(
            mode="json",
            exclude={"kind", "name", "summary", "description", "facts", "attributes"},
            exclude_none=True,
        ),
    )


def map_item(payload: ItemPayload, history: list[dict[str, Any]]) -> EntityDraft:
    return _draft(
        payload,
        history,
        subtype=payload.item_type,
        summary=payload.public_description or payload.summary,
        description=payload.secret_description or payload.description,
        attributes=payload.model_dump(
            mode="json",
            exclude={"kind", "name", "summary", "description", "facts", "attributes"},
            exclude_none=True,
        ),
    )


def map_location(payload: LocationPayload, history: list[dict[str, Any]]) -> EntityDraft:
    summary = payload.dm_slug or payload.summary or (payload.read_aloud or "")[:200] or None
    return _draft(
        payload,
        history,
        subtype=payload.sub_type or "building",
        summary=summary,
        description=payload.read_aloud or payload.description,
        attributes={
            "sub_type": payload.sub_type or "building",
            "read_aloud": payload.read_aloud,
            "dm_slug": payload.dm_slug,
            "brain": payload.brain.model_dump(mode="json"),
            "soul": payload.soul,
            "mechanics": payload.mechanics,
            "inhabitants": [i.model_dump(mode="json", exclude_none=True) for i in payload.inhabitants],
        },
    )


def map_faction(payload: FactionPayload, history: list[dict[str, Any]]) -> EntityDraft:
    return _draft(
        payload,
        history,
        subtype=payload.faction_type,
        summary=payload.summary,
        description=payload.description,
        attributes=payload.model_dump(
            mode="json",
            exclude={"kind", "name", "summary", "description", "facts", "attributes"},
            exclude_none=True,
        ),
    )


def map_default(payload: BasePayload, history: list[dict[str, Any]]) -> EntityDraft:
    """Quests, creatures and encounters keep their whole payload as attributes."""
    return _draft(
        payload,
        history,
        summary=payload.summary or "",
        description=payload.description or "",
        attributes=payload.model_dump(mode="json", exclude={"kind", "facts", "attributes"}, exclude_none=True),
    )


MAPPERS: dict[str, Callable[[Any, list[dict[str, Any]]], EntityDraft]] = {
    "npc": map_npc,
    "item": map_item,
    "location": map_location,
    "faction": map_faction,
    "quest": map_default,
    "creature": map_default,
    "encounter": map_default,
}


def to_entity_draft(payload: BasePayload, history: list[dict[str, Any]]) -> EntityDraft:
    """Map a payload to its persisted shape; ``history`` becomes ``attributes.history``."""
    return MAPPERS[payload.kind](payload, history)  # type: ignore[attr-defined]
