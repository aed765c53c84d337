"""
⚠️ DRAFT — requires crypto review before production use

Shielded ownable (single-slot variant).

The ledger stores one commitment to the current owner:

    owner = H(H(account, nonce), instance_salt, counter, DOMAIN_OWNER)

Every transfer bumps ``counter``, so a new commitment is published even when
ownership is transferred to the same id. Renouncing stores the all-zero
commitment, which no real id derives to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .commitments import derive_id, owner_commitment
from .exceptions import SCOPE_OWNABLE, InvalidIdentity, UnauthorizedAccount
from .ledger import OwnableLedger
from .security import fmt_hex, is_zero, require_bytes32
from .types import Account
from .witnesses import OwnableWitnesses

logger = logging.getLogger(__name__)


@dataclass
class OwnableContext:
    ledger: OwnableLedger
    caller: Account
    witnesses: OwnableWitnesses


def initialize(ledger: OwnableLedger, initial_owner_id: bytes) -> None:
    """
    Set the first owner.

    Raises:
        InvalidIdentity: If initial_owner_id is all-zero
    """
    if is_zero(require_bytes32(initial_owner_id, "initial_owner_id")):
        raise InvalidIdentity(SCOPE_OWNABLE)
    with ledger.transaction():
        _transfer_ownership(ledger, initial_owner_id)


def owner(ctx: OwnableContext) -> bytes:
    return ctx.ledger.owner


def compute_owner_id(account: Account, nonce: bytes) -> bytes:
    return derive_id(account, nonce, SCOPE_OWNABLE)


def compute_owner_commitment(ledger: OwnableLedger, owner_id: bytes, counter: int) -> bytes:
    return owner_commitment(owner_id, ledger.instance_salt, counter)


def assert_only_owner(ctx: OwnableContext) -> None:
    """
    Raise unless the caller, with its secret nonce, opens the stored commitment.

    Raises:
        UnsupportedAccountKind: If the caller is a contract address
        UnauthorizedAccount: If the commitment does not match
    """
    caller_id = compute_owner_id(ctx.caller, ctx.witnesses.get_secret_nonce())
    commitment = compute_owner_commitment(ctx.ledger, caller_id, ctx.ledger.counter)
    if not ctx.ledger.slot.verify(commitment):
        raise UnauthorizedAccount(SCOPE_OWNABLE)


def transfer_ownership(ctx: OwnableContext, new_owner_id: bytes) -> None:
    """
    Transfer ownership to ``new_owner_id`` (precomputed off chain by the new
    owner as ``H(account, nonce)``).

    Raises:
        UnauthorizedAccount: If the caller is not the owner
        InvalidIdentity: If new_owner_id is all-zero
    """
    with ctx.ledger.transaction():
        assert_only_owner(ctx)
        if is_zero(require_bytes32(new_owner_id, "new_owner_id")):
            raise InvalidIdentity(SCOPE_OWNABLE)
        _transfer_ownership(ctx.ledger, new_owner_id)


def renounce_ownership(ctx: OwnableContext) -> None:
    """Leave the contract without an owner. Only the owner may call this."""
    with ctx.ledger.transaction():
        assert_only_owner(ctx)
        ctx.ledger.slot.retract(ctx.ledger.owner)
        logger.info("ownership renounced")


def _transfer_ownership(ledger: OwnableLedger, new_owner_id: bytes) -> None:
    """Unchecked transfer; accepts any id, including all-zero."""
    counter = ledger.counter + 1
    commitment = compute_owner_commitment(ledger, new_owner_id, counter)
    ledger.slot.commit(commitment, counter)
    logger.info("ownership transferred: commitment %s (counter %d)", fmt_hex(commitment), counter)


__all__ = [
    "OwnableContext",
    "initialize",
    "owner",
    "compute_owner_id",
    "compute_owner_commitment",
    "assert_only_owner",
    "transfer_ownership",
    "renounce_ownership",
]
