"""
⚠️ DRAFT — requires crypto review before production use

Identity, commitment and nullifier construction.

All values are hashes over 32-byte fields with a trailing domain tag:

    id                 = H(account, nonce)
    role commitment    = H(role_id, id, nonce, index, DOMAIN_ROLE)
    owner commitment   = H(id, instance_salt, counter, DOMAIN_OWNER)
    nullifier          = H(commitment, DOMAIN_NULLIFIER)

Every function here is pure; anyone holding the private inputs can
re-derive the public value.
"""

from typing import Optional

from .exceptions import SCOPE_ACCESS_CONTROL, UnsupportedAccountKind
from .security import domain, encode_uint, persistent_hash, require_bytes32
from .types import Account

DOMAIN_ROLE = domain("role_commitment")
DOMAIN_NULLIFIER = domain("role_nullifier")
DOMAIN_OWNER = domain("owner_commitment")


def derive_id(
    account: Account, nonce: bytes, scope: Optional[str] = None
) -> bytes:
    """
    Derive the opaque identifier of an account.

    Args:
        account: Account reference (must be a public-key account)
        nonce: 32-byte secret nonce
        scope: Error scope prefix (defaults to ShieldedAccessControl)

    Returns:
        32-byte id, reproducible only with the nonce

    Raises:
        UnsupportedAccountKind: If account is a contract address
    """
    if not account.is_public_key:
        raise UnsupportedAccountKind(scope or SCOPE_ACCESS_CONTROL)
    return persistent_hash(account.to_bytes(), require_bytes32(nonce, "nonce"))


def role_commitment(
    role_id: bytes, account_id: bytes, nonce: bytes, index: int
) -> bytes:
    """
    Commitment binding an id to a role at one tree slot.

    Args:
        role_id: 32-byte role identifier
        account_id: Output of derive_id
        nonce: Secret nonce used for account_id
        index: Tree slot the commitment is written to

    Returns:
        32-byte commitment
    """
    return persistent_hash(
        require_bytes32(role_id, "role_id"),
        require_bytes32(account_id, "account_id"),
        require_bytes32(nonce, "nonce"),
        encode_uint(index),
        DOMAIN_ROLE,
    )


def owner_commitment(account_id: bytes, instance_salt: bytes, counter: int) -> bytes:
    """
    Commitment to the current owner.

    The counter is bumped on every transfer, so the same id produces a new
    commitment each time and old commitments cannot be replayed.
    """
    return persistent_hash(
        require_bytes32(account_id, "account_id"),
        require_bytes32(instance_salt, "instance_salt"),
        encode_uint(counter),
        DOMAIN_OWNER,
    )


def nullifier(commitment: bytes) -> bytes:
    """Nullifier marking ``commitment`` as revoked."""
    return persistent_hash(require_bytes32(commitment, "commitment"), DOMAIN_NULLIFIER)
