"""
⚠️ DRAFT — requires crypto review before production use

Off-chain witness provider.

Given an actor's private state and a snapshot of public ledger state, the
witness provider reconstructs what an operation needs but the ledger never
stores: the secret nonce, the tree slot holding the actor's commitment, and
the authentication path for it.

Everything here is read-only with respect to the ledger and may be run any
number of times (e.g. speculatively, against a stale snapshot). The
protocol operations re-validate the results against live state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from .commitments import derive_id, nullifier, role_commitment
from .ledger import AccessControlLedger
from .security import (
    RandomnessSource,
    derive_role_nonce,
    fmt_hex,
    require_bytes32,
)
from .types import DEFAULT_ADMIN_ROLE, Account, MerkleTreePath

logger = logging.getLogger(__name__)


def _issued_key(role_id: bytes, account: Account) -> str:
    return f"{role_id.hex()}:{account.hex()}"


# ============================================================================
# PRIVATE STATE
# ============================================================================


@dataclass
class RolesPrivateState:
    """
    Private state of one actor of a shielded access control contract.

    Attributes:
        roles: role id (hex) -> the actor's own secret nonce for that role
        issued: "role_hex:account_hex" -> nonce this actor chose when granting
            a role to someone else; must reach the grantee out of band
        secret_key: Optional long-lived key for deterministic nonces
    """

    roles: Dict[str, bytes] = field(default_factory=dict)
    issued: Dict[str, bytes] = field(default_factory=dict)
    secret_key: Optional[bytes] = None

    @classmethod
    def generate(cls) -> "RolesPrivateState":
        """Fresh state with a random nonce for DEFAULT_ADMIN_ROLE."""
        state = cls()
        state.set_role(DEFAULT_ADMIN_ROLE, RandomnessSource().get_nonce())
        return state

    @classmethod
    def with_role_and_nonce(cls, role_id: bytes, nonce: bytes) -> "RolesPrivateState":
        state = cls()
        state.set_role(role_id, nonce)
        return state

    @classmethod
    def with_secret_key(cls, secret_key: bytes) -> "RolesPrivateState":
        if not isinstance(secret_key, bytes) or not secret_key:
            raise ValueError("secret_key must be non-empty bytes")
        return cls(secret_key=secret_key)

    def set_role(self, role_id: bytes, nonce: bytes) -> "RolesPrivateState":
        self.roles[require_bytes32(role_id, "role_id").hex()] = require_bytes32(
            nonce, "nonce"
        )
        return self

    def get_role_nonce(self, role_id: bytes) -> Optional[bytes]:
        return self.roles.get(bytes(role_id).hex())

    def record_issued(self, role_id: bytes, account: Account, nonce: bytes) -> None:
        self.issued[_issued_key(require_bytes32(role_id, "role_id"), account)] = (
            require_bytes32(nonce, "nonce")
        )

    def issued_nonce(self, role_id: bytes, account: Account) -> Optional[bytes]:
        return self.issued.get(_issued_key(role_id, account))

    def copy(self) -> "RolesPrivateState":
        return RolesPrivateState(
            roles=dict(self.roles), issued=dict(self.issued), secret_key=self.secret_key
        )


@dataclass
class OwnablePrivateState:
    """Private state of a shielded ownable owner: one 32-byte secret nonce."""

    secret_nonce: bytes

    def __post_init__(self) -> None:
        self.secret_nonce = require_bytes32(self.secret_nonce, "secret_nonce")

    @classmethod
    def generate(cls) -> "OwnablePrivateState":
        return cls(secret_nonce=RandomnessSource().get_nonce())


# ============================================================================
# PURE RECONSTRUCTION
# ============================================================================


def find_slot(
    snapshot: AccessControlLedger, nonce: bytes, role_id: bytes, account: Account
) -> int:
    """
    Locate the tree slot holding the active commitment for (role, account).

    Scans indices 0..frontier-1, recomputing the candidate commitment for
    each index and checking it against the tree. Matches whose nullifier is
    present are skipped.

    Args:
        snapshot: Public ledger state (live or a detached snapshot)
        nonce: Secret nonce for (role, account)
        role_id: Role identifier
        account: Role holder

    Returns:
        Index of the first active match, or the frontier if there is none
        (the slot the next grant would use)
    """
    account_id = derive_id(account, nonce)
    tree = snapshot.roles
    frontier = tree.frontier
    logger.debug("scanning %d role slots", frontier)

    for index in range(frontier):
        candidate = role_commitment(role_id, account_id, nonce, index)
        path = tree.path_for_leaf(index, candidate)
        if not tree.verify(path):
            continue
        if snapshot.nullifiers.member(nullifier(candidate)):
            logger.debug("skipping revoked commitment at index %d", index)
            continue
        return index

    logger.debug("commitment not found, returning frontier %d", frontier)
    return frontier


def find_path(snapshot: AccessControlLedger, commitment: bytes) -> MerkleTreePath:
    """
    Authentication path for ``commitment``.

    Returns the all-zero default path when the commitment is not in the tree.
    """
    path = snapshot.roles.find_path_for_leaf(commitment)
    if path is None:
        return MerkleTreePath.default(snapshot.roles.depth)
    return path


# ============================================================================
# WITNESS PROVIDERS
# ============================================================================


class RoleWitnesses:
    """
    Witness functions for one actor of a shielded access control contract.

    Args:
        private_state: The actor's private state
        account: The actor's own account
        salt: Salt for deterministic nonce derivation (when a secret key is set)

    Nonces missing from the private state are created on first use: derived
    from the secret key if one is set, random otherwise. Nonces for other
    accounts land in ``private_state.issued`` only when asked to issue them
    (the grant path); queries keep them in this provider and leave the
    private state untouched.
    """

    def __init__(
        self,
        private_state: RolesPrivateState,
        account: Account,
        salt: bytes = b"",
    ):
        self.private_state = private_state
        self.account = account
        self.salt = salt
        self._rng = RandomnessSource()
        self._index_cache: Dict[Tuple[str, str], int] = {}
        self._provisional: Dict[Tuple[str, str], bytes] = {}

    def _new_nonce(self, role_id: bytes, account: Account) -> bytes:
        if self.private_state.secret_key is not None:
            return derive_role_nonce(
                self.private_state.secret_key, role_id, self.salt, account.to_bytes()
            )
        return self._rng.get_nonce()

    def get_secret_nonce(
        self, role_id: bytes, account: Account, issue: bool = False
    ) -> bytes:
        if account == self.account:
            nonce = self.private_state.get_role_nonce(role_id)
            if nonce is None:
                nonce = self._new_nonce(role_id, account)
                self.private_state.set_role(role_id, nonce)
            return nonce

        nonce = self.private_state.issued_nonce(role_id, account)
        if nonce is not None:
            return nonce

        key = (role_id.hex(), account.hex())
        nonce = self._provisional.get(key)
        if nonce is None:
            nonce = self._new_nonce(role_id, account)
        if not issue:
            self._provisional[key] = nonce
        else:
            self._provisional.pop(key, None)
            self.private_state.record_issued(role_id, account, nonce)
            logger.debug(
                "issued new nonce for role %s to account %s",
                fmt_hex(role_id),
                fmt_hex(account.to_bytes()),
            )
        return nonce

    def get_role_index(
        self, snapshot: AccessControlLedger, role_id: bytes, account: Account
    ) -> int:
        nonce = self.get_secret_nonce(role_id, account)
        key = (role_id.hex(), account.hex())

        cached = self._index_cache.get(key)
        if cached is not None and cached < snapshot.roles.frontier:
            candidate = role_commitment(
                role_id, derive_id(account, nonce), nonce, cached
            )
            if snapshot.roles.contains(cached, candidate) and not (
                snapshot.nullifiers.member(nullifier(candidate))
            ):
                return cached

        index = find_slot(snapshot, nonce, role_id, account)
        if index < snapshot.roles.frontier:
            self._index_cache[key] = index
        else:
            self._index_cache.pop(key, None)
        return index

    def get_role_commitment_path(
        self, snapshot: AccessControlLedger, commitment: bytes
    ) -> MerkleTreePath:
        return find_path(snapshot, commitment)


class OwnableWitnesses:
    def __init__(self, private_state: OwnablePrivateState):
        self.private_state = private_state

    def get_secret_nonce(self) -> bytes:
        return self.private_state.secret_nonce


# ============================================================================
# ROLE RECOVERY / REQUESTS
# ============================================================================


def request_role(
    private_state: RolesPrivateState,
    role_id: bytes,
    account: Account,
    salt: bytes = b"",
) -> bytes:
    """
    Prepare a role request.

    Derives the requester's nonce for ``role_id`` from its secret key and
    records it as an own role nonce. The returned nonce is what the requester
    hands to an admin (out of band), who records it with
    ``RolesPrivateState.record_issued`` before granting.
    """
    if private_state.secret_key is None:
        raise ValueError("request_role needs a private state with a secret_key")
    nonce = derive_role_nonce(
        private_state.secret_key, role_id, salt, account.to_bytes()
    )
    private_state.set_role(role_id, nonce)
    return nonce


def recover_roles(
    snapshot: AccessControlLedger,
    secret_key: bytes,
    account: Account,
    role_ids: Iterable[bytes],
    salt: bytes = b"",
) -> RolesPrivateState:
    """
    Rebuild an actor's private state from its secret key.

    For each candidate role the nonce is re-derived and the ledger is
    scanned for an active commitment. Only roles actually held end up in
    the returned state.
    """
    recovered = RolesPrivateState.with_secret_key(secret_key)
    for role_id in role_ids:
        nonce = derive_role_nonce(secret_key, role_id, salt, account.to_bytes())
        if find_slot(snapshot, nonce, role_id, account) < snapshot.roles.frontier:
            recovered.set_role(role_id, nonce)
    logger.info("recovered %d role(s) from secret key", len(recovered.roles))
    return recovered


__all__ = [
    "RolesPrivateState",
    "OwnablePrivateState",
    "RoleWitnesses",
    "OwnableWitnesses",
    "find_slot",
    "find_path",
    "request_role",
    "recover_roles",
]
