"""Operator review of discoveries and conflicts.

A scan produces `Discovery` records and the validators produce `Conflict`
records. Both live only for one review session. The operator moves each of
them out of ``pending`` through a small state machine, and the entity
minter may run only once nothing is pending.

Discovery transitions::

    pending     -> create_stub | link_existing | ignore
    ignore      -> create_stub
    create_stub -> ignore

Conflict transitions::

    pending -> keep_new | keep_existing | merge | rename | ignore

Conflict resolutions are one-way; `Conflict.reopen()` exists for callers
that explicitly want to revisit a decision.
"""

import re
from enum import Enum
from typing import Iterable, Sequence

from pydantic import BaseModel, Field

from canonforge.entity import CatalogEntity, EntityKind, as_kind
from canonforge.errors import CommitBlockedError, InvalidTransitionError
from canonforge.logging import setup_logging

logger = setup_logging("review")


class DiscoveryStatus(str, Enum):
    PENDING = "pending"
    CREATE_STUB = "create_stub"
    LINK_EXISTING = "link_existing"
    IGNORE = "ignore"


class ConflictType(str, Enum):
    DUPLICATE_NAME = "duplicate_name"
    DECEASED_ENTITY = "deceased_entity"
    LOCATION_MISSING = "location_missing"
    ROLE_CONFLICT = "role_conflict"
    CODEX_CONFLICT = "codex_conflict"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ConflictResolution(str, Enum):
    PENDING = "pending"
    KEEP_NEW = "keep_new"
    KEEP_EXISTING = "keep_existing"
    MERGE = "merge"
    RENAME = "rename"
    IGNORE = "ignore"


DISCOVERY_TRANSITIONS: dict[DiscoveryStatus, frozenset[DiscoveryStatus]] = {
    DiscoveryStatus.PENDING: frozenset(
        {DiscoveryStatus.CREATE_STUB, DiscoveryStatus.LINK_EXISTING, DiscoveryStatus.IGNORE}
    ),
    DiscoveryStatus.IGNORE: frozenset({DiscoveryStatus.CREATE_STUB}),
    DiscoveryStatus.CREATE_STUB: frozenset({DiscoveryStatus.IGNORE}),
    DiscoveryStatus.LINK_EXISTING: frozenset(),
}

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def discovery_id(prefix: str, text: str) -> str:
    """Build a discovery id keyed by the normalized mention text.

    The same name always yields the same id, so ids survive rescans of
    edited text. The prefix carries meaning for the minter
    (``contains-`` for sub-locations, ``npc-`` for inhabitants).
    """
    slug = _SLUG_RE.sub("-", text.lower()).strip("-")
    return f"{prefix}-{slug}"


class Discovery(BaseModel, frozen=True):
    """A proper noun from generated text that matched nothing in the catalog."""

    id: str
    text: str
    suggested_type: EntityKind = EntityKind.NPC
    context: str = ""
    status: DiscoveryStatus = DiscoveryStatus.PENDING
    linked_entity_id: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == DiscoveryStatus.PENDING

    @property
    def id_prefix(self) -> str:
        return self.id.split("-", 1)[0]

    def resolve(self, status: DiscoveryStatus | str, linked_entity_id: str | None = None) -> "Discovery":
        """Return a copy moved to ``status``.

        Raises:
            InvalidTransitionError: if the move is not allowed, or if
                ``link_existing`` is chosen without a target entity id.
        """
        target = DiscoveryStatus(status)
        if target == self.status and target != DiscoveryStatus.LINK_EXISTING:
            return self
        if target not in DISCOVERY_TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Discovery {self.id!r} cannot move from {self.status.value} to {target.value}"
            )
        if target == DiscoveryStatus.LINK_EXISTING and not linked_entity_id:
            raise InvalidTransitionError(f"Discovery {self.id!r} needs a target entity id to link")
        return self.model_copy(
            update={
                "status": target,
                "linked_entity_id": linked_entity_id if target == DiscoveryStatus.LINK_EXISTING else None,
            }
        )

    def with_type(self, kind: EntityKind | str) -> "Discovery":
        """Return a copy with the operator's choice of entity type."""
        return self.model_copy(update={"suggested_type": EntityKind(kind)})


class Conflict(BaseModel, frozen=True):
    """An inconsistency between requested content and existing world state."""

    id: str
    type: ConflictType
    description: str
    severity: Severity = Severity.WARNING
    existing_entity_id: str | None = None
    existing_entity_name: str | None = None
    suggestions: tuple[str, ...] = ()
    resolution: ConflictResolution = ConflictResolution.PENDING

    @property
    def is_pending(self) -> bool:
        return self.resolution == ConflictResolution.PENDING

    @property
    def is_blocking(self) -> bool:
        return self.severity == Severity.ERROR

    def resolve(self, resolution: ConflictResolution | str) -> "Conflict":
        target = ConflictResolution(resolution)
        if target == ConflictResolution.PENDING:
            raise InvalidTransitionError(f"Conflict {self.id!r} cannot be resolved back to pending")
        if not self.is_pending:
            raise InvalidTransitionError(
                f"Conflict {self.id!r} is already resolved as {self.resolution.value}"
            )
        return self.model_copy(update={"resolution": target})

    def reopen(self) -> "Conflict":
        return self.model_copy(update={"resolution": ConflictResolution.PENDING})


def can_commit(discoveries: Iterable[Discovery], conflicts: Iterable[Conflict]) -> bool:
    """True iff every discovery and every conflict has left ``pending``."""
    return all(not d.is_pending for d in discoveries) and all(not c.is_pending for c in conflicts)


def manual_discovery(text: str, kind: EntityKind | str) -> Discovery:
    """A discovery the operator selected by hand in the generated text."""
    return Discovery(
        id=discovery_id("manual", text),
        text=text,
        suggested_type=EntityKind(kind),
        context="Manually selected by user",
    )


def manual_link(entity: CatalogEntity) -> Discovery:
    """A discovery the operator linked by hand to an existing entity."""
    return Discovery(
        id=f"link-{entity.id}",
        text=entity.name,
        suggested_type=as_kind(entity.entity_type),
        context="Manually linked by user",
        status=DiscoveryStatus.LINK_EXISTING,
        linked_entity_id=entity.id,
    )


class ReviewSession(BaseModel):
    """Discoveries and conflicts under review for one generation.

    Items are replaced, never mutated in place; lookups are by id.
    """

    discoveries: list[Discovery] = Field(default_factory=list)
    conflicts: list[Conflict] = Field(default_factory=list)

    @property
    def can_commit(self) -> bool:
        return can_commit(self.discoveries, self.conflicts)

    @property
    def pending_discoveries(self) -> list[Discovery]:
        return [d for d in self.discoveries if d.is_pending]

    @property
    def pending_conflicts(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.is_pending]

    def _discovery_index(self, discovery_id_: str) -> int:
        for i, d in enumerate(self.discoveries):
            if d.id == discovery_id_:
                return i
        raise KeyError(discovery_id_)

    def _conflict_index(self, conflict_id: str) -> int:
        for i, c in enumerate(self.conflicts):
            if c.id == conflict_id:
                return i
        raise KeyError(conflict_id)

    def apply_discovery_action(
        self,
        discovery_id_: str,
        status: DiscoveryStatus | str,
        linked_entity_id: str | None = None,
    ) -> Discovery:
        i = self._discovery_index(discovery_id_)
        updated = self.discoveries[i].resolve(status, linked_entity_id)
        self.discoveries[i] = updated
        logger.debug(f"Discovery {updated.id} -> {updated.status.value}")
        return updated

    def change_discovery_type(self, discovery_id_: str, kind: EntityKind | str) -> Discovery:
        i = self._discovery_index(discovery_id_)
        self.discoveries[i] = self.discoveries[i].with_type(kind)
        return self.discoveries[i]

    def resolve_conflict(self, conflict_id: str, resolution: ConflictResolution | str) -> Conflict:
        i = self._conflict_index(conflict_id)
        self.conflicts[i] = self.conflicts[i].resolve(resolution)
        logger.debug(f"Conflict {conflict_id} -> {self.conflicts[i].resolution.value}")
        return self.conflicts[i]

    def add_discoveries(self, discoveries: Sequence[Discovery]) -> list[Discovery]:
        """Merge new discoveries in, skipping texts already under review."""
        seen = {d.text.lower() for d in self.discoveries}
        added: list[Discovery] = []
        for d in discoveries:
            if d.text.lower() in seen:
                continue
            seen.add(d.text.lower())
            self.discoveries.append(d)
            added.append(d)
        return added

    def require_committable(self) -> None:
        if not self.can_commit:
            raise CommitBlockedError(
                f"{len(self.pending_discoveries)} discoveries and "
                f"{len(self.pending_conflicts)} conflicts are still pending"
            )
