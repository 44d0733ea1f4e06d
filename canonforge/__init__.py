"""
Canon Forge - Canon Discovery and Consistency Engine.

Checks generated world content against a campaign's existing canon. Before
generation it reports conflicts (duplicate names, missing locations,
leadership collisions, codex advisories); after generation it scans the
text for proper nouns, splits them into references to known entities and
new discoveries, and once an operator has resolved every item it mints
stubs and relationships in the campaign store.
"""

from canonforge.codex import CampaignCodex, CodexValidation, validate_against_codex
from canonforge.config import EngineConfig, load_config
from canonforge.engine import CanonEngine
from canonforge.entity import (
    CandidateMention,
    CatalogEntity,
    EntityKind,
    EntityStatus,
    ExistingEntityMention,
    FactRecord,
    HistoryEntry,
)
from canonforge.errors import (
    CanonForgeError,
    CatalogUnavailableError,
    CommitBlockedError,
    EntityPersistError,
    InvalidTransitionError,
)
from canonforge.minter import (
    CommitContext,
    CommitMetadata,
    CommitResult,
    CommitStores,
    StageError,
    StubCreationContext,
    StubCreationResult,
    add_history_entry,
    create_stub_entities,
    save_forged_entity,
)
from canonforge.payloads import ForgedPayload, parse_payload
from canonforge.relationship import RelationshipRecord
from canonforge.review import (
    Conflict,
    ConflictResolution,
    ConflictType,
    Discovery,
    DiscoveryStatus,
    ReviewSession,
    Severity,
    can_commit,
    manual_discovery,
    manual_link,
)
from canonforge.scanning import (
    CanonScore,
    ScanOptions,
    ScanResult,
    calculate_canon_score,
    extract_proper_nouns,
    guess_entity_type,
    scan_generated_content,
)
from canonforge.validation import (
    PreGenerationInput,
    PreValidationOptions,
    PreValidationResult,
    validate_pre_generation,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "CanonEngine",
    "EngineConfig",
    "load_config",
    # Records
    "CandidateMention",
    "CatalogEntity",
    "EntityKind",
    "EntityStatus",
    "ExistingEntityMention",
    "FactRecord",
    "HistoryEntry",
    "RelationshipRecord",
    # Review
    "Conflict",
    "ConflictResolution",
    "ConflictType",
    "Discovery",
    "DiscoveryStatus",
    "ReviewSession",
    "Severity",
    "can_commit",
    "manual_discovery",
    "manual_link",
    # Validation
    "CampaignCodex",
    "CodexValidation",
    "PreGenerationInput",
    "PreValidationOptions",
    "PreValidationResult",
    "validate_against_codex",
    "validate_pre_generation",
    # Scanning
    "CanonScore",
    "ScanOptions",
    "ScanResult",
    "calculate_canon_score",
    "extract_proper_nouns",
    "guess_entity_type",
    "scan_generated_content",
    # Minting
    "CommitContext",
    "CommitMetadata",
    "CommitResult",
    "CommitStores",
    "ForgedPayload",
    "StageError",
    "StubCreationContext",
    "StubCreationResult",
    "add_history_entry",
    "create_stub_entities",
    "parse_payload",
    "save_forged_entity",
    # Errors
    "CanonForgeError",
    "CatalogUnavailableError",
    "CommitBlockedError",
    "EntityPersistError",
    "InvalidTransitionError",
]
