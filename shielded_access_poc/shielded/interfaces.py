"""
Shared capability of the two shielded membership variants.

``RoleRegistry`` (tree + nullifier set) and ``OwnerSlot`` (single stored
commitment) both implement this protocol. Callers use the concrete class
they need; the protocol only pins down the common shape.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol


class MembershipScheme(Protocol):
    def commit(self, commitment: bytes, slot: int) -> bool:
        """Publish ``commitment`` at ``slot``; True if state changed."""
        ...

    def verify(self, commitment: bytes, witness: Optional[Any] = None) -> bool:
        """True if ``commitment`` is currently valid."""
        ...

    def retract(self, commitment: bytes) -> None:
        """Make ``commitment`` permanently invalid."""
        ...
