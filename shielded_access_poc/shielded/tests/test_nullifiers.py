import pytest

from shielded_access_poc.shielded.exceptions import NullifierAlreadyPresent
from shielded_access_poc.shielded.nullifiers import NullifierSet


def test_insert_and_member() -> None:
    nullifiers = NullifierSet()
    value = b"\x05" * 32
    assert not nullifiers.member(value)
    nullifiers.insert(value)
    assert nullifiers.member(value)
    assert value in nullifiers
    assert len(nullifiers) == 1


def test_duplicate_insert_rejected() -> None:
    nullifiers = NullifierSet()
    nullifiers.insert(b"\x05" * 32)
    with pytest.raises(NullifierAlreadyPresent, match="already present"):
        nullifiers.insert(b"\x05" * 32)
    assert len(nullifiers) == 1


def test_wrong_width_rejected() -> None:
    with pytest.raises(ValueError):
        NullifierSet().insert(b"\x05" * 31)


def test_iteration_is_sorted() -> None:
    nullifiers = NullifierSet()
    for value in (b"\x09" * 32, b"\x01" * 32, b"\x05" * 32):
        nullifiers.insert(value)
    assert list(nullifiers) == [b"\x01" * 32, b"\x05" * 32, b"\x09" * 32]


def test_copy_is_independent() -> None:
    nullifiers = NullifierSet()
    nullifiers.insert(b"\x01" * 32)
    clone = nullifiers.copy()
    nullifiers.insert(b"\x02" * 32)
    assert len(clone) == 1
    assert not clone.member(b"\x02" * 32)
