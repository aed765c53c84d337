"""
Unit tests for ledger state: the two membership variants and the
transactional ledger handles.
"""

import pytest

from shielded_access_poc.shielded.commitments import nullifier
from shielded_access_poc.shielded.config import DeploymentConfig
from shielded_access_poc.shielded.exceptions import (
    NullifierAlreadyPresent,
    SlotAlreadyOccupied,
)
from shielded_access_poc.shielded.interfaces import MembershipScheme
from shielded_access_poc.shielded.ledger import (
    AccessControlLedger,
    OwnableLedger,
    OwnerSlot,
    RoleRegistry,
)
from shielded_access_poc.shielded.security import ZERO_BYTES32
from shielded_access_poc.shielded.types import DEFAULT_ADMIN_ROLE, role_id_from_int

C1 = b"\x01" * 32
C2 = b"\x02" * 32


def _publish_and_check(scheme: MembershipScheme, commitment: bytes, slot: int, witness=None) -> bool:
    scheme.commit(commitment, slot)
    return scheme.verify(commitment, witness)


class TestRoleRegistry:
    """Test tree-backed membership."""

    def test_commit_and_verify(self):
        """Test a committed leaf verifies with its path."""
        registry = RoleRegistry(depth=4)
        registry.commit(C1, 0)
        path = registry.tree.path_for_leaf(0, C1)
        assert registry.verify(C1, path)

    def test_verify_needs_witness(self):
        """Test membership needs an authentication path."""
        registry = RoleRegistry(depth=4)
        registry.commit(C1, 0)
        assert registry.verify(C1) is False

    def test_verify_rejects_path_for_other_leaf(self):
        """Test the path must carry the commitment being checked."""
        registry = RoleRegistry(depth=4)
        registry.commit(C1, 0)
        registry.commit(C2, 1)
        assert registry.verify(C2, registry.tree.path_for_leaf(0, C1)) is False

    def test_retract_is_final(self):
        """Test a retracted commitment never verifies again."""
        registry = RoleRegistry(depth=4)
        registry.commit(C1, 0)
        registry.retract(C1)
        assert registry.is_nullified(C1)
        assert nullifier(C1) in registry.nullifiers
        assert registry.verify(C1, registry.tree.path_for_leaf(0, C1)) is False
        # leaf stays in the tree
        assert registry.tree.contains(0, C1)

    def test_double_retract_rejected(self):
        """Test the nullifier set rejects duplicates."""
        registry = RoleRegistry(depth=4)
        registry.commit(C1, 0)
        registry.retract(C1)
        with pytest.raises(NullifierAlreadyPresent):
            registry.retract(C1)

    def test_membership_scheme(self):
        """Test the registry satisfies the shared capability."""
        registry = RoleRegistry(depth=4)
        registry.commit(C2, 0)
        assert _publish_and_check(registry, C1, 1, None) is False
        assert registry.verify(C1, registry.tree.path_for_leaf(1, C1))


class TestOwnerSlot:
    """Test single-commitment membership."""

    def test_initial_state(self):
        """Test a fresh slot holds the zero commitment."""
        slot = OwnerSlot()
        assert slot.commitment == ZERO_BYTES32
        assert slot.counter == 0

    def test_commit_overwrites(self):
        """Test each commit replaces the stored commitment."""
        slot = OwnerSlot()
        assert _publish_and_check(slot, C1, 1)
        slot.commit(C2, 2)
        assert slot.verify(C2)
        assert not slot.verify(C1)
        assert slot.counter == 2

    def test_commit_must_advance_counter(self):
        """Test the slot index must be counter + 1."""
        slot = OwnerSlot()
        with pytest.raises(ValueError, match="advance by one"):
            slot.commit(C1, 3)

    def test_retract(self):
        """Test retracting the stored commitment zeroes the slot."""
        slot = OwnerSlot()
        slot.commit(C1, 1)
        slot.retract(C2)
        assert slot.verify(C1)
        slot.retract(C1)
        assert slot.commitment == ZERO_BYTES32
        assert slot.counter == 1


class TestAccessControlLedger:
    """Test the access control ledger handle."""

    def test_role_admin_defaults(self):
        """Test unset admin roles fall back to DEFAULT_ADMIN_ROLE."""
        ledger = AccessControlLedger()
        role = role_id_from_int(1)
        assert ledger.get_role_admin(role) == DEFAULT_ADMIN_ROLE
        ledger.set_role_admin(role, role_id_from_int(2))
        assert ledger.get_role_admin(role) == role_id_from_int(2)

    def test_uses_configured_depth(self):
        """Test the tree depth follows the deployment config."""
        ledger = AccessControlLedger(DeploymentConfig(tree_depth=3))
        assert ledger.roles.depth == 3
        assert ledger.current_index == 0

    def test_transaction_commits(self):
        """Test writes persist when the block succeeds."""
        ledger = AccessControlLedger()
        with ledger.transaction():
            ledger.registry.commit(C1, 0)
        assert ledger.current_index == 1

    def test_transaction_rolls_back(self):
        """Test a failing block leaves no partial writes."""
        ledger = AccessControlLedger()
        ledger.registry.commit(C1, 0)
        root = ledger.roles.root()

        with pytest.raises(SlotAlreadyOccupied):
            with ledger.transaction():
                ledger.registry.commit(C2, 1)
                ledger.registry.retract(C1)
                ledger.set_role_admin(role_id_from_int(1), role_id_from_int(2))
                ledger.registry.commit(b"\x03" * 32, 0)

        assert ledger.current_index == 1
        assert ledger.roles.root() == root
        assert len(ledger.nullifiers) == 0
        assert ledger.role_admins == {}

    def test_snapshot_is_detached(self):
        """Test snapshots do not follow later writes."""
        ledger = AccessControlLedger()
        ledger.registry.commit(C1, 0)
        snapshot = ledger.snapshot()
        ledger.registry.commit(C2, 1)
        assert snapshot.current_index == 1
        assert ledger.current_index == 2


class TestOwnableLedger:
    """Test the ownable ledger handle."""

    def test_transaction_rolls_back(self):
        """Test a failing block restores owner and counter."""
        ledger = OwnableLedger()
        ledger.slot.commit(C1, 1)
        with pytest.raises(RuntimeError):
            with ledger.transaction():
                ledger.slot.commit(C2, 2)
                raise RuntimeError("abort")
        assert ledger.owner == C1
        assert ledger.counter == 1

    def test_instance_salt_from_config(self):
        """Test the salt comes from the deployment config."""
        salt = b"\x42" * 32
        assert OwnableLedger(DeploymentConfig(instance_salt=salt)).instance_salt == salt
