"""Tests for the discovery and conflict state machines.

This module verifies:
- Allowed and rejected discovery transitions
- link_existing requires a target entity id
- Conflict resolutions are one-way unless explicitly reopened
- The commit gate: nothing may be pending
- ReviewSession bookkeeping and operator-made discoveries
"""

import pytest

from canonforge.entity import EntityKind
from canonforge.errors import CommitBlockedError, InvalidTransitionError
from canonforge.review import (
    Conflict,
    ConflictResolution,
    ConflictType,
    DiscoveryStatus,
    ReviewSession,
    Severity,
    can_commit,
    discovery_id,
    manual_discovery,
    manual_link,
)
from tests.conftest import make_catalog_entity, make_discovery


def make_conflict(conflict_id: str = "dup-1", resolution: ConflictResolution = ConflictResolution.PENDING) -> Conflict:
    return Conflict(
        id=conflict_id,
        type=ConflictType.DUPLICATE_NAME,
        description="An entity named Grak already exists.",
        resolution=resolution,
    )


class TestDiscoveryTransitions:
    @pytest.mark.parametrize("target", ["create_stub", "ignore"])
    def test_pending_to_terminal(self, target):
        d = make_discovery("Duskhollow").resolve(target)
        assert d.status == DiscoveryStatus(target)
        assert not d.is_pending

    def test_link_existing_needs_target(self):
        with pytest.raises(InvalidTransitionError):
            make_discovery("Duskhollow").resolve(DiscoveryStatus.LINK_EXISTING)

    def test_link_existing_records_target(self):
        d = make_discovery("Duskhollow").resolve(DiscoveryStatus.LINK_EXISTING, linked_entity_id="loc-7")
        assert d.linked_entity_id == "loc-7"

    def test_ignored_can_opt_back_in(self):
        d = make_discovery("Duskhollow", status=DiscoveryStatus.IGNORE).resolve(DiscoveryStatus.CREATE_STUB)
        assert d.status == DiscoveryStatus.CREATE_STUB

    def test_stub_can_be_ignored_again(self):
        d = make_discovery("Duskhollow", status=DiscoveryStatus.CREATE_STUB).resolve(DiscoveryStatus.IGNORE)
        assert d.status == DiscoveryStatus.IGNORE

    @pytest.mark.parametrize(
        "start, target",
        [
            (DiscoveryStatus.CREATE_STUB, DiscoveryStatus.PENDING),
            (DiscoveryStatus.IGNORE, DiscoveryStatus.LINK_EXISTING),
            (DiscoveryStatus.LINK_EXISTING, DiscoveryStatus.IGNORE),
            (DiscoveryStatus.CREATE_STUB, DiscoveryStatus.LINK_EXISTING),
        ],
    )
    def test_rejected_transitions(self, start, target):
        d = make_discovery("Duskhollow", status=start, linked_entity_id="e-1")
        with pytest.raises(InvalidTransitionError):
            d.resolve(target, linked_entity_id="e-2")

    def test_same_state_is_a_no_op(self):
        d = make_discovery("Duskhollow", status=DiscoveryStatus.IGNORE)
        assert d.resolve(DiscoveryStatus.IGNORE) is d

    def test_leaving_link_clears_target(self):
        """Only link_existing carries a linked entity id."""
        d = make_discovery("Duskhollow").resolve(DiscoveryStatus.CREATE_STUB, linked_entity_id="e-1")
        assert d.linked_entity_id is None

    def test_type_override(self):
        d = make_discovery("Duskhollow").with_type("location")
        assert d.suggested_type == EntityKind.LOCATION
        assert d.is_pending


class TestConflictResolution:
    def test_resolve_once(self):
        c = make_conflict().resolve(ConflictResolution.KEEP_NEW)

        assert c.resolution == ConflictResolution.KEEP_NEW
        with pytest.raises(InvalidTransitionError):
            c.resolve(ConflictResolution.MERGE)

    def test_cannot_resolve_to_pending(self):
        with pytest.raises(InvalidTransitionError):
            make_conflict().resolve(ConflictResolution.PENDING)

    def test_reopen(self):
        c = make_conflict(resolution=ConflictResolution.RENAME).reopen()

        assert c.is_pending
        assert c.resolve("ignore").resolution == ConflictResolution.IGNORE

    def test_default_severity_is_advisory(self):
        assert make_conflict().severity == Severity.WARNING
        assert not make_conflict().is_blocking

    def test_error_severity_blocks(self):
        assert make_conflict().model_copy(update={"severity": Severity.ERROR}).is_blocking


class TestCommitGate:
    def test_one_pending_discovery_blocks(self):
        """One pending discovery among ten resolved ones blocks the commit."""
        resolved = [make_discovery(f"Name{'x' * i}", status=DiscoveryStatus.IGNORE) for i in range(10)]

        assert can_commit(resolved, []) is True
        assert can_commit([*resolved, make_discovery("Duskhollow")], []) is False

    def test_pending_conflict_blocks(self):
        resolved = [make_discovery("Duskhollow", status=DiscoveryStatus.CREATE_STUB)]

        assert can_commit(resolved, [make_conflict()]) is False
        assert can_commit(resolved, [make_conflict(resolution=ConflictResolution.KEEP_NEW)]) is True

    def test_empty_review_can_commit(self):
        assert can_commit([], []) is True


class TestReviewSession:
    def test_apply_actions_by_id(self):
        session = ReviewSession(discoveries=[make_discovery("Duskhollow")], conflicts=[make_conflict()])
        assert not session.can_commit

        session.apply_discovery_action("discovery-duskhollow", "create_stub")
        session.resolve_conflict("dup-1", "keep_new")

        assert session.can_commit
        session.require_committable()

    def test_require_committable_raises(self):
        session = ReviewSession(discoveries=[make_discovery("Duskhollow")])

        with pytest.raises(CommitBlockedError):
            session.require_committable()

    def test_unknown_id(self):
        with pytest.raises(KeyError):
            ReviewSession().apply_discovery_action("discovery-nope", "ignore")

    def test_change_discovery_type(self):
        session = ReviewSession(discoveries=[make_discovery("Duskhollow")])

        updated = session.change_discovery_type("discovery-duskhollow", EntityKind.LOCATION)

        assert session.discoveries[0] == updated
        assert updated.suggested_type == EntityKind.LOCATION

    def test_add_discoveries_skips_texts_under_review(self):
        session = ReviewSession(discoveries=[make_discovery("Shadowmarket", prefix="contains")])

        added = session.add_discoveries([make_discovery("shadowmarket"), make_discovery("Duskhollow")])

        assert [d.text for d in added] == ["Duskhollow"]
        assert [d.id for d in session.discoveries] == ["contains-shadowmarket", "discovery-duskhollow"]


class TestOperatorDiscoveries:
    def test_discovery_id_is_text_keyed(self):
        assert discovery_id("discovery", "The Black Rose!") == "discovery-the-black-rose"

    def test_manual_discovery(self):
        d = manual_discovery("The Black Rose", "faction")

        assert d.id == "manual-the-black-rose"
        assert d.suggested_type == EntityKind.FACTION
        assert d.is_pending

    def test_manual_link(self):
        entity = make_catalog_entity("Duskhollow", EntityKind.LOCATION, entity_id="loc-9")

        d = manual_link(entity)

        assert d.id == "link-loc-9"
        assert d.status == DiscoveryStatus.LINK_EXISTING
        assert d.linked_entity_id == "loc-9"
        assert d.suggested_type == EntityKind.LOCATION
