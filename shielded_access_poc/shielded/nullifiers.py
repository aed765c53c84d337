"""Ledger-held nullifier set. Membership is permanent: there is no removal."""

from typing import Iterator, Set

from .exceptions import NullifierAlreadyPresent
from .security import fmt_hex, require_bytes32


class NullifierSet:
    def __init__(self) -> None:
        self._values: Set[bytes] = set()

    def member(self, value: bytes) -> bool:
        return bytes(value) in self._values

    __contains__ = member

    def insert(self, value: bytes) -> None:
        """
        Add a nullifier.

        Raises:
            NullifierAlreadyPresent: If value is already in the set; callers
                must check membership first
        """
        value = require_bytes32(value, "nullifier")
        if value in self._values:
            raise NullifierAlreadyPresent(f"nullifier {fmt_hex(value)} already present")
        self._values.add(value)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[bytes]:
        # Sorted so encoded snapshots are deterministic
        return iter(sorted(self._values))

    def copy(self) -> "NullifierSet":
        clone = NullifierSet()
        clone._values = set(self._values)
        return clone
