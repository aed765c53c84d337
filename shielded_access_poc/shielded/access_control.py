"""
⚠️ DRAFT — requires crypto review before production use

Shielded access control (multi-slot variant).

Role holders are published only as commitments in an append-only tree:

    commitment = H(role_id, H(account, nonce), nonce, index, DOMAIN_ROLE)

Holding a role means being able to reproduce a commitment that sits in the
tree at the witness-supplied index (valid path against the live root) and
whose nullifier is absent. Revocation publishes the nullifier; the leaf
stays in the tree forever.

Operations take an explicit CallContext: the live ledger, the caller, and the
caller's witness provider. Witness queries may be answered from a detached
snapshot (``CallContext.snapshot``); validation always uses the live ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .commitments import derive_id, nullifier, role_commitment
from .exceptions import (
    SCOPE_ACCESS_CONTROL,
    BadConfirmation,
    RoleAccessAlreadyRevoked,
    UnauthorizedAccount,
    UnsupportedAccountKind,
)
from .ledger import AccessControlLedger
from .security import fmt_hex, require_bytes32
from .types import Account, MerkleTreePath, RoleCheck
from .witnesses import RoleWitnesses

logger = logging.getLogger(__name__)


@dataclass
class CallContext:
    """
    Execution context of one protocol call.

    Attributes:
        ledger: Live public state (validated and mutated)
        caller: Account submitting the call
        witnesses: Caller's witness provider
        snapshot: Optional public state the witnesses were built against;
            defaults to the live ledger
    """

    ledger: AccessControlLedger
    caller: Account
    witnesses: RoleWitnesses
    snapshot: Optional[AccessControlLedger] = None

    def public_view(self) -> AccessControlLedger:
        return self.snapshot if self.snapshot is not None else self.ledger


@dataclass(frozen=True)
class _ResolvedRole:
    index: int
    commitment: bytes
    path: MerkleTreePath


def _resolve(
    ctx: CallContext, role_id: bytes, account: Account, issue: bool = False
) -> _ResolvedRole:
    if not account.is_public_key:
        raise UnsupportedAccountKind(SCOPE_ACCESS_CONTROL)

    role_id = require_bytes32(role_id, "role_id")
    view = ctx.public_view()

    nonce = ctx.witnesses.get_secret_nonce(role_id, account, issue=issue)
    account_id = derive_id(account, nonce)
    index = ctx.witnesses.get_role_index(view, role_id, account)
    commitment = role_commitment(role_id, account_id, nonce, index)
    path = ctx.witnesses.get_role_commitment_path(view, commitment)
    return _ResolvedRole(index=index, commitment=commitment, path=path)


def _is_approved(ledger: AccessControlLedger, resolved: _ResolvedRole) -> bool:
    if resolved.path.index != resolved.index:
        return False
    return ledger.registry.verify(resolved.commitment, resolved.path)


def _is_revoked(ledger: AccessControlLedger, resolved: _ResolvedRole) -> bool:
    registry = ledger.registry
    return registry.tree.contains(
        resolved.index, resolved.commitment
    ) and registry.is_nullified(resolved.commitment)


# ============================================================================
# QUERIES
# ============================================================================


def has_role(ctx: CallContext, role_id: bytes, account: Account) -> RoleCheck:
    """
    Check whether ``account`` holds ``role_id``.

    Returns:
        RoleCheck(is_approved, commitment, nullifier) for the candidate
        commitment rebuilt from the caller's witnesses

    Raises:
        UnsupportedAccountKind: If account is a contract address
    """
    resolved = _resolve(ctx, role_id, account)
    return RoleCheck(
        is_approved=_is_approved(ctx.ledger, resolved),
        commitment=resolved.commitment,
        nullifier=nullifier(resolved.commitment),
    )


def check_role(ctx: CallContext, role_id: bytes, account: Account) -> None:
    """Raise UnauthorizedAccount unless ``account`` holds ``role_id``."""
    if not has_role(ctx, role_id, account).is_approved:
        raise UnauthorizedAccount(SCOPE_ACCESS_CONTROL)


def assert_only_role(ctx: CallContext, role_id: bytes) -> None:
    """Raise UnauthorizedAccount unless the caller holds ``role_id``."""
    check_role(ctx, role_id, ctx.caller)


def get_role_admin(ctx: CallContext, role_id: bytes) -> bytes:
    return ctx.ledger.get_role_admin(role_id)


# ============================================================================
# ADMIN-GATED OPERATIONS
# ============================================================================


def grant_role(ctx: CallContext, role_id: bytes, account: Account) -> bool:
    """
    Grant ``role_id`` to ``account``. Caller must hold the role's admin role.

    Returns:
        True if a new commitment was written, False if the account already
        holds the role
    """
    with ctx.ledger.transaction():
        assert_only_role(ctx, get_role_admin(ctx, role_id))
        return _grant_role(ctx, role_id, account)


def revoke_role(ctx: CallContext, role_id: bytes, account: Account) -> bool:
    """
    Revoke ``role_id`` from ``account``. Caller must hold the role's admin role.

    Returns:
        True if a nullifier was published, False if the account did not
        hold the role
    """
    with ctx.ledger.transaction():
        assert_only_role(ctx, get_role_admin(ctx, role_id))
        return _revoke_role(ctx, role_id, account)


def renounce_role(
    ctx: CallContext, role_id: bytes, caller_confirmation: Account
) -> bool:
    """
    Give up a role held by the caller.

    Args:
        caller_confirmation: Must be the caller's own account

    Raises:
        BadConfirmation: If caller_confirmation is not the caller
    """
    with ctx.ledger.transaction():
        if caller_confirmation != ctx.caller:
            raise BadConfirmation(SCOPE_ACCESS_CONTROL)
        return _revoke_role(ctx, role_id, ctx.caller)


# ============================================================================
# UNCHECKED INTERNALS
# ============================================================================


def _grant_role(ctx: CallContext, role_id: bytes, account: Account) -> bool:
    """
    Write the role commitment without checking the caller.

    Raises:
        RoleAccessAlreadyRevoked: If the witness points at a nullified
            commitment
        SlotAlreadyOccupied / InvalidIndex: If the witness index no longer
            matches the live frontier
    """
    resolved = _resolve(ctx, role_id, account, issue=True)
    if _is_approved(ctx.ledger, resolved):
        return False
    if _is_revoked(ctx.ledger, resolved):
        raise RoleAccessAlreadyRevoked(SCOPE_ACCESS_CONTROL)

    written = ctx.ledger.registry.commit(resolved.commitment, resolved.index)
    if written:
        logger.info(
            "role %s granted: commitment %s at index %d",
            fmt_hex(role_id),
            fmt_hex(resolved.commitment),
            resolved.index,
        )
    return written


def _revoke_role(ctx: CallContext, role_id: bytes, account: Account) -> bool:
    """
    Publish the nullifier of the account's active commitment.

    Raises:
        RoleAccessAlreadyRevoked: If the witness points at a nullified
            commitment
    """
    resolved = _resolve(ctx, role_id, account)
    if _is_revoked(ctx.ledger, resolved):
        raise RoleAccessAlreadyRevoked(SCOPE_ACCESS_CONTROL)
    if not _is_approved(ctx.ledger, resolved):
        return False

    ctx.ledger.registry.retract(resolved.commitment)
    logger.info(
        "role %s revoked: nullifier %s",
        fmt_hex(role_id),
        fmt_hex(nullifier(resolved.commitment)),
    )
    return True


def _set_role_admin(ctx: CallContext, role_id: bytes, admin_role: bytes) -> None:
    ctx.ledger.set_role_admin(role_id, admin_role)
    logger.info("admin of role %s set to %s", fmt_hex(role_id), fmt_hex(admin_role))
