"""Public API for the shielded access protocol."""
from __future__ import annotations

from .access_control import (
    CallContext,
    assert_only_role,
    check_role,
    get_role_admin,
    grant_role,
    has_role,
    renounce_role,
    revoke_role,
)
from .commitments import derive_id, nullifier, owner_commitment, role_commitment
from .config import DeploymentConfig, load_config
from .exceptions import (
    BadConfirmation,
    InvalidIdentity,
    InvalidIndex,
    NullifierAlreadyPresent,
    ProtocolError,
    RoleAccessAlreadyRevoked,
    ShieldedAccessError,
    SlotAlreadyOccupied,
    UnauthorizedAccount,
    UnsupportedAccountKind,
)
from .interfaces import MembershipScheme
from .ledger import AccessControlLedger, OwnableLedger, OwnerSlot, RoleRegistry
from .merkle import IndexedAppendTree
from .nullifiers import NullifierSet
from .ownable import (
    OwnableContext,
    assert_only_owner,
    renounce_ownership,
    transfer_ownership,
)
from .simulator import ShieldedAccessControlSimulator, ShieldedOwnableSimulator
from .types import (
    DEFAULT_ADMIN_ROLE,
    Account,
    AccountKind,
    MerkleTreePath,
    RoleCheck,
    role_id_from_int,
    role_id_from_label,
)
from .witnesses import (
    OwnablePrivateState,
    OwnableWitnesses,
    RolesPrivateState,
    RoleWitnesses,
    find_path,
    find_slot,
    recover_roles,
    request_role,
)

__all__ = [
    "CallContext",
    "assert_only_role",
    "check_role",
    "get_role_admin",
    "grant_role",
    "has_role",
    "renounce_role",
    "revoke_role",
    "derive_id",
    "nullifier",
    "owner_commitment",
    "role_commitment",
    "DeploymentConfig",
    "load_config",
    "BadConfirmation",
    "InvalidIdentity",
    "InvalidIndex",
    "NullifierAlreadyPresent",
    "ProtocolError",
    "RoleAccessAlreadyRevoked",
    "ShieldedAccessError",
    "SlotAlreadyOccupied",
    "UnauthorizedAccount",
    "UnsupportedAccountKind",
    "MembershipScheme",
    "AccessControlLedger",
    "OwnableLedger",
    "OwnerSlot",
    "RoleRegistry",
    "IndexedAppendTree",
    "NullifierSet",
    "OwnableContext",
    "assert_only_owner",
    "renounce_ownership",
    "transfer_ownership",
    "ShieldedAccessControlSimulator",
    "ShieldedOwnableSimulator",
    "DEFAULT_ADMIN_ROLE",
    "Account",
    "AccountKind",
    "MerkleTreePath",
    "RoleCheck",
    "role_id_from_int",
    "role_id_from_label",
    "OwnablePrivateState",
    "OwnableWitnesses",
    "RolesPrivateState",
    "RoleWitnesses",
    "find_path",
    "find_slot",
    "recover_roles",
    "request_role",
]
