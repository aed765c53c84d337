"""
⚠️ DRAFT — requires crypto review before production use

Public ledger state for the shielded access contracts.

The host platform owns this state; here it is simulated in-process. All
mutation goes through an explicit ledger handle, and every protocol
operation runs inside ``transaction()`` so a failing operation leaves no
partial writes behind.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from .commitments import nullifier
from .config import DEFAULT_TREE_DEPTH, DeploymentConfig
from .merkle import IndexedAppendTree
from .nullifiers import NullifierSet
from .security import ZERO_BYTES32, constant_time_compare, require_bytes32
from .types import DEFAULT_ADMIN_ROLE, MerkleTreePath

logger = logging.getLogger(__name__)


# ============================================================================
# MULTI-SLOT: ROLE REGISTRY
# ============================================================================


class RoleRegistry:
    """
    Role commitments as tree leaves, revoked through nullifiers.

    A commitment is valid iff it sits in the tree (proved by a path against
    the live root) and its nullifier is absent.
    """

    def __init__(self, depth: int = DEFAULT_TREE_DEPTH):
        self.tree = IndexedAppendTree(depth)
        self.nullifiers = NullifierSet()

    def commit(self, commitment: bytes, slot: int) -> bool:
        return self.tree.insert(slot, commitment)

    def verify(
        self, commitment: bytes, witness: Optional[MerkleTreePath] = None
    ) -> bool:
        if witness is None:
            return False
        if not constant_time_compare(witness.leaf, commitment):
            return False
        if not self.tree.verify(witness):
            return False
        return not self.is_nullified(commitment)

    def retract(self, commitment: bytes) -> None:
        self.nullifiers.insert(nullifier(commitment))

    def is_nullified(self, commitment: bytes) -> bool:
        return self.nullifiers.member(nullifier(commitment))

    def copy(self) -> "RoleRegistry":
        clone = RoleRegistry.__new__(RoleRegistry)
        clone.tree = self.tree.copy()
        clone.nullifiers = self.nullifiers.copy()
        return clone


# ============================================================================
# SINGLE-SLOT: OWNER SLOT
# ============================================================================


class OwnerSlot:
    """One stored commitment, overwritten on every transfer."""

    def __init__(self) -> None:
        self.commitment = ZERO_BYTES32
        self.counter = 0

    def commit(self, commitment: bytes, slot: int) -> bool:
        if slot != self.counter + 1:
            raise ValueError(
                f"owner slot must advance by one: counter {self.counter}, got {slot}"
            )
        self.counter = slot
        self.commitment = require_bytes32(commitment, "commitment")
        return True

    def verify(self, commitment: bytes, witness: Optional[object] = None) -> bool:
        return constant_time_compare(self.commitment, commitment)

    def retract(self, commitment: bytes) -> None:
        if self.verify(commitment):
            self.commitment = ZERO_BYTES32

    def copy(self) -> "OwnerSlot":
        clone = OwnerSlot()
        clone.commitment = self.commitment
        clone.counter = self.counter
        return clone


# ============================================================================
# LEDGER HANDLES
# ============================================================================


class AccessControlLedger:
    """
    Public state of a shielded access control contract.

    Attributes:
        registry: Role commitment tree and nullifier set
        role_admins: role id -> admin role id (unset means DEFAULT_ADMIN_ROLE)
    """

    def __init__(self, config: Optional[DeploymentConfig] = None):
        self.config = config or DeploymentConfig()
        self.registry = RoleRegistry(self.config.tree_depth)
        self.role_admins: Dict[bytes, bytes] = {}

    @property
    def roles(self) -> IndexedAppendTree:
        return self.registry.tree

    @property
    def nullifiers(self) -> NullifierSet:
        return self.registry.nullifiers

    @property
    def current_index(self) -> int:
        """Next free slot in the role tree."""
        return self.registry.tree.frontier

    def get_role_admin(self, role_id: bytes) -> bytes:
        return self.role_admins.get(require_bytes32(role_id, "role_id"), DEFAULT_ADMIN_ROLE)

    def set_role_admin(self, role_id: bytes, admin_role: bytes) -> None:
        self.role_admins[require_bytes32(role_id, "role_id")] = require_bytes32(
            admin_role, "admin_role"
        )

    def snapshot(self) -> "AccessControlLedger":
        """Detached copy, for witnesses computed ahead of submission."""
        clone = AccessControlLedger.__new__(AccessControlLedger)
        clone.config = self.config
        clone.registry = self.registry.copy()
        clone.role_admins = dict(self.role_admins)
        return clone

    def _restore(self, saved: "AccessControlLedger") -> None:
        self.registry = saved.registry
        self.role_admins = saved.role_admins

    @contextmanager
    def transaction(self) -> Iterator["AccessControlLedger"]:
        saved = self.snapshot()
        try:
            yield self
        except Exception:
            logger.debug("transaction rolled back")
            self._restore(saved)
            raise


class OwnableLedger:
    """Public state of a shielded ownable contract."""

    def __init__(self, config: Optional[DeploymentConfig] = None):
        self.config = config or DeploymentConfig()
        self.slot = OwnerSlot()

    @property
    def instance_salt(self) -> bytes:
        return self.config.instance_salt

    @property
    def owner(self) -> bytes:
        return self.slot.commitment

    @property
    def counter(self) -> int:
        return self.slot.counter

    def snapshot(self) -> "OwnableLedger":
        clone = OwnableLedger.__new__(OwnableLedger)
        clone.config = self.config
        clone.slot = self.slot.copy()
        return clone

    @contextmanager
    def transaction(self) -> Iterator["OwnableLedger"]:
        saved = self.slot.copy()
        try:
            yield self
        except Exception:
            logger.debug("transaction rolled back")
            self.slot = saved
            raise
