"""
⚠️ DRAFT — requires crypto review before production use

Common types for the shielded access protocol.

This module provides:
1. AccountKind / Account - the caller and grantee references
2. MerkleTreePath - authentication path into the role commitment tree
3. RoleCheck - result of a role membership query
4. Role id helpers (DEFAULT_ADMIN_ROLE, role_id_from_int, role_id_from_label)
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

from .config import FIELD_SIZE_BYTES
from .security import ZERO_BYTES32, encode_uint, require_bytes32

# ============================================================================
# ACCOUNTS
# ============================================================================


class AccountKind(Enum):
    """
    Kinds of account reference.

    Only PUBLIC_KEY accounts can derive shielded ids; CONTRACT accounts
    are rejected by the protocol operations.
    """

    PUBLIC_KEY = "public_key"
    CONTRACT = "contract"


@dataclass(frozen=True)
class Account:
    """
    Account reference (public key or contract address).

    Attributes:
        kind: AccountKind
        key: 32-byte public key or contract address

    Example:
        >>> alice = Account.public_key(b"\\x01" * 32)
        >>> alice.is_public_key
        True
    """

    kind: AccountKind
    key: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", require_bytes32(self.key, "key"))
        if not isinstance(self.kind, AccountKind):
            raise TypeError(f"kind must be AccountKind, got {type(self.kind)}")

    @classmethod
    def public_key(cls, key: bytes) -> "Account":
        return cls(AccountKind.PUBLIC_KEY, key)

    @classmethod
    def contract(cls, address: bytes) -> "Account":
        return cls(AccountKind.CONTRACT, address)

    @classmethod
    def from_label(cls, label: str, is_contract: bool = False) -> "Account":
        """
        Build a test account from a short label.

        The label is ASCII-encoded and right-padded to 32 bytes, so the same
        label always gives the same account.
        """
        raw = label.encode("ascii")
        if len(raw) > FIELD_SIZE_BYTES:
            raise ValueError(f"label too long: {label!r}")
        key = raw.ljust(FIELD_SIZE_BYTES, b"\x00")
        return cls.contract(key) if is_contract else cls.public_key(key)

    @property
    def is_public_key(self) -> bool:
        return self.kind is AccountKind.PUBLIC_KEY

    def to_bytes(self) -> bytes:
        return self.key

    def hex(self) -> str:
        return self.key.hex()


# ============================================================================
# MERKLE PATH
# ============================================================================


@dataclass(frozen=True)
class MerkleTreePath:
    """
    Authentication path for one leaf of the role tree.

    Attributes:
        leaf: Leaf value (commitment) the path claims to authenticate
        siblings: [(sibling_hash, is_left), ...] from leaf level upward;
            is_left=True means the sibling sits on the left

    The leaf position is implied by the sibling directions (see ``index``).
    """

    leaf: bytes
    siblings: Tuple[Tuple[bytes, bool], ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "leaf", require_bytes32(self.leaf, "leaf"))
        object.__setattr__(
            self,
            "siblings",
            tuple(
                (require_bytes32(sibling, "sibling"), bool(is_left))
                for sibling, is_left in self.siblings
            ),
        )

    @property
    def depth(self) -> int:
        return len(self.siblings)

    @property
    def index(self) -> int:
        """Leaf position reconstructed from sibling directions."""
        position = 0
        for level, (_, is_left) in enumerate(self.siblings):
            if is_left:
                position |= 1 << level
        return position

    @classmethod
    def default(cls, depth: int) -> "MerkleTreePath":
        """All-zero path, returned when a commitment is not in the tree."""
        return cls(
            leaf=ZERO_BYTES32,
            siblings=tuple((ZERO_BYTES32, False) for _ in range(depth)),
        )

    def as_list(self) -> List[Tuple[bytes, bool]]:
        return list(self.siblings)


# ============================================================================
# ROLE CHECK RESULT
# ============================================================================


@dataclass(frozen=True)
class RoleCheck:
    """
    Result of ``has_role``.

    Attributes:
        is_approved: Commitment present at the witness index with a valid
            path and no nullifier
        commitment: Candidate commitment derived for (role, account)
        nullifier: Nullifier of that commitment
    """

    is_approved: bool
    commitment: bytes
    nullifier: bytes


# ============================================================================
# ROLE IDS
# ============================================================================

DEFAULT_ADMIN_ROLE = ZERO_BYTES32


def role_id_from_int(value: int) -> bytes:
    """Role id for a small integer label (1 -> 0x01 00 .. 00)."""
    return encode_uint(value)


def role_id_from_label(label: str) -> bytes:
    """Role id for a human-readable name, e.g. ``"MINTER_ROLE"``."""
    if not label:
        raise ValueError("label cannot be empty")
    return hashlib.sha256(label.encode("utf-8")).digest()
