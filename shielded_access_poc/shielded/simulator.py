"""
Caller-scoped drivers for the shielded contracts.

A simulator binds a live ledger to the current caller and the caller's
private state, so tests and the CLI can invoke operations as a sequence of
plain method calls. ``set_caller`` switches identity (and private state);
``override_witness`` swaps one witness function, e.g. to feed a bad index.
"""

from __future__ import annotations

from typing import Callable, Optional

from . import access_control, ownable
from .config import DeploymentConfig
from .ledger import AccessControlLedger, OwnableLedger
from .types import Account, RoleCheck
from .witnesses import (
    OwnablePrivateState,
    OwnableWitnesses,
    RolesPrivateState,
    RoleWitnesses,
)


class ShieldedAccessControlSimulator:
    """
    Drive a shielded access control ledger as one caller at a time.

    Example:
        >>> sim = ShieldedAccessControlSimulator(admin, RolesPrivateState.generate())
        >>> sim._grant_role(DEFAULT_ADMIN_ROLE, admin)
        True
        >>> sim.has_role(DEFAULT_ADMIN_ROLE, admin).is_approved
        True
    """

    def __init__(
        self,
        caller: Account,
        private_state: Optional[RolesPrivateState] = None,
        ledger: Optional[AccessControlLedger] = None,
        config: Optional[DeploymentConfig] = None,
    ):
        self.ledger = ledger if ledger is not None else AccessControlLedger(config)
        self.snapshot: Optional[AccessControlLedger] = None
        self.set_caller(caller, private_state or RolesPrivateState.generate())

    # ------------------------------------------------------------------
    # Context handling
    # ------------------------------------------------------------------

    def set_caller(
        self, caller: Account, private_state: Optional[RolesPrivateState] = None
    ) -> None:
        """Switch caller; keeps the current private state unless one is given."""
        if private_state is None:
            private_state = self.witnesses.private_state
        self.caller = caller
        self.witnesses = RoleWitnesses(
            private_state, caller, salt=self.ledger.config.instance_salt
        )

    @property
    def private_state(self) -> RolesPrivateState:
        return self.witnesses.private_state

    def inject_secret_nonce(self, role_id: bytes, nonce: bytes) -> RolesPrivateState:
        return self.private_state.set_role(role_id, nonce)

    def get_current_secret_nonce(self, role_id: bytes) -> Optional[bytes]:
        return self.private_state.get_role_nonce(role_id)

    def override_witness(self, name: str, fn: Callable) -> None:
        if not hasattr(self.witnesses, name):
            raise AttributeError(f"unknown witness: {name}")
        setattr(self.witnesses, name, fn)

    def pin_snapshot(self) -> AccessControlLedger:
        """Answer witness queries from a frozen copy of the current ledger."""
        self.snapshot = self.ledger.snapshot()
        return self.snapshot

    def unpin_snapshot(self) -> None:
        self.snapshot = None

    @property
    def context(self) -> access_control.CallContext:
        return access_control.CallContext(
            ledger=self.ledger,
            caller=self.caller,
            witnesses=self.witnesses,
            snapshot=self.snapshot,
        )

    # ------------------------------------------------------------------
    # Circuits
    # ------------------------------------------------------------------

    def has_role(self, role_id: bytes, account: Account) -> RoleCheck:
        return access_control.has_role(self.context, role_id, account)

    def check_role(self, role_id: bytes, account: Account) -> None:
        access_control.check_role(self.context, role_id, account)

    def assert_only_role(self, role_id: bytes) -> None:
        access_control.assert_only_role(self.context, role_id)

    def get_role_admin(self, role_id: bytes) -> bytes:
        return access_control.get_role_admin(self.context, role_id)

    def grant_role(self, role_id: bytes, account: Account) -> bool:
        return access_control.grant_role(self.context, role_id, account)

    def revoke_role(self, role_id: bytes, account: Account) -> bool:
        return access_control.revoke_role(self.context, role_id, account)

    def renounce_role(self, role_id: bytes, caller_confirmation: Account) -> bool:
        return access_control.renounce_role(self.context, role_id, caller_confirmation)

    def _grant_role(self, role_id: bytes, account: Account) -> bool:
        with self.ledger.transaction():
            return access_control._grant_role(self.context, role_id, account)

    def _revoke_role(self, role_id: bytes, account: Account) -> bool:
        with self.ledger.transaction():
            return access_control._revoke_role(self.context, role_id, account)

    def _set_role_admin(self, role_id: bytes, admin_role: bytes) -> None:
        access_control._set_role_admin(self.context, role_id, admin_role)


class ShieldedOwnableSimulator:
    """
    Drive a shielded ownable ledger.

    Args:
        initial_owner_id: H(account, nonce) of the first owner
        private_state: Private state of the initial caller
        config: Deployment parameters (instance salt)
    """

    def __init__(
        self,
        initial_owner_id: bytes,
        private_state: Optional[OwnablePrivateState] = None,
        config: Optional[DeploymentConfig] = None,
        caller: Optional[Account] = None,
    ):
        self.ledger = OwnableLedger(config)
        ownable.initialize(self.ledger, initial_owner_id)
        self.witnesses = OwnableWitnesses(private_state or OwnablePrivateState.generate())
        self.caller = caller or Account.from_label("DEPLOYER")

    def set_caller(
        self, caller: Account, private_state: Optional[OwnablePrivateState] = None
    ) -> None:
        self.caller = caller
        if private_state is not None:
            self.witnesses = OwnableWitnesses(private_state)

    def inject_secret_nonce(self, nonce: bytes) -> OwnablePrivateState:
        self.witnesses = OwnableWitnesses(OwnablePrivateState(secret_nonce=nonce))
        return self.witnesses.private_state

    def get_current_secret_nonce(self) -> bytes:
        return self.witnesses.get_secret_nonce()

    @property
    def context(self) -> ownable.OwnableContext:
        return ownable.OwnableContext(
            ledger=self.ledger, caller=self.caller, witnesses=self.witnesses
        )

    def owner(self) -> bytes:
        return ownable.owner(self.context)

    def assert_only_owner(self) -> None:
        ownable.assert_only_owner(self.context)

    def transfer_ownership(self, new_owner_id: bytes) -> None:
        ownable.transfer_ownership(self.context, new_owner_id)

    def renounce_ownership(self) -> None:
        ownable.renounce_ownership(self.context)

    def _transfer_ownership(self, new_owner_id: bytes) -> None:
        with self.ledger.transaction():
            ownable._transfer_ownership(self.ledger, new_owner_id)

    def _compute_owner_commitment(self, owner_id: bytes, counter: int) -> bytes:
        return ownable.compute_owner_commitment(self.ledger, owner_id, counter)

    def _compute_owner_id(self, account: Account, nonce: bytes) -> bytes:
        return ownable.compute_owner_id(account, nonce)
