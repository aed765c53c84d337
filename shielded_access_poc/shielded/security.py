"""
⚠️ DRAFT — requires crypto review before production use

Security utilities: randomness, domain-separated hashing, nonce derivation.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.
"""

import hashlib
import hmac
import os
import secrets

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .config import (
    DOMAIN_TAGS,
    FIELD_SIZE_BYTES,
    HASH_FUNCTION,
    INTEGER_BYTE_ORDER,
    ROLE_NONCE_INFO,
)

ZERO_BYTES32 = bytes(FIELD_SIZE_BYTES)


# ============================================================================
# RANDOMNESS SOURCE (Fork-Safe)
# ============================================================================


class RandomnessSource:
    """
    Cryptographically secure randomness with fork detection.

    Prevents catastrophic nonce reuse if process forks.

    Example:
        >>> rng = RandomnessSource()
        >>> nonce = rng.get_nonce()
    """

    def __init__(self):
        self._pid = os.getpid()
        self._rng = secrets.SystemRandom()

    def get_random_bytes(self, n: int) -> bytes:
        """
        Get n cryptographically secure random bytes.

        Args:
            n: Number of bytes to generate

        Returns:
            n random bytes
        """
        if os.getpid() != self._pid:
            self.__init__()
        return secrets.token_bytes(n)

    def get_nonce(self) -> bytes:
        """Fresh 32-byte secret nonce (never all-zero)."""
        nonce = self.get_random_bytes(FIELD_SIZE_BYTES)
        while nonce == ZERO_BYTES32:
            nonce = self.get_random_bytes(FIELD_SIZE_BYTES)
        return nonce


# ============================================================================
# FIELD ENCODING
# ============================================================================


def require_bytes32(value: bytes, name: str = "value") -> bytes:
    """
    Check that value is exactly one 32-byte field.

    Raises:
        TypeError: If value is not bytes
        ValueError: If value has the wrong length
    """
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"{name} must be bytes, got {type(value)}")
    if len(value) != FIELD_SIZE_BYTES:
        raise ValueError(
            f"{name} must be {FIELD_SIZE_BYTES} bytes, got {len(value)}"
        )
    return bytes(value)


def encode_uint(value: int) -> bytes:
    """
    Encode a non-negative integer as a 32-byte field.

    Raises:
        ValueError: If value is negative or does not fit in 256 bits
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"value must be int, got {type(value)}")
    if value < 0:
        raise ValueError(f"value must be non-negative, got {value}")
    try:
        return value.to_bytes(FIELD_SIZE_BYTES, INTEGER_BYTE_ORDER)
    except OverflowError as exc:
        raise ValueError(f"value does not fit in {FIELD_SIZE_BYTES} bytes") from exc


def decode_uint(field: bytes) -> int:
    return int.from_bytes(require_bytes32(field, "field"), INTEGER_BYTE_ORDER)


def pad_domain(tag: str) -> bytes:
    """
    Encode a domain tag as a zero-padded 32-byte field.

    Example:
        >>> pad_domain("ShieldedAccessControl:shield:")[:6]
        b'Shield'
    """
    raw = tag.encode("ascii")
    if len(raw) > FIELD_SIZE_BYTES:
        raise ValueError(f"Domain tag too long ({len(raw)} bytes): {tag!r}")
    return raw.ljust(FIELD_SIZE_BYTES, b"\x00")


def domain(name: str) -> bytes:
    """Padded domain tag registered under ``name`` in DOMAIN_TAGS."""
    if name not in DOMAIN_TAGS:
        raise ValueError(f"Unknown domain tag: {name}")
    return pad_domain(DOMAIN_TAGS[name])


def is_zero(value: bytes) -> bool:
    return constant_time_compare(value, ZERO_BYTES32)


def fmt_hex(value: bytes) -> str:
    """Shortened hex for log lines: ``abcd...ef01``."""
    text = bytes(value).hex()
    return f"{text[:4]}...{text[-4:]}"


# ============================================================================
# HASH FUNCTIONS
# ============================================================================


def persistent_hash(*fields: bytes) -> bytes:
    """
    Hash a vector of 32-byte fields.

    Args:
        fields: One or more 32-byte values (domain tag included by caller)

    Returns:
        32-byte digest

    Raises:
        ValueError: If no fields are given or a field has the wrong width
    """
    if not fields:
        raise ValueError("persistent_hash needs at least one field")

    h = hashlib.sha3_256() if HASH_FUNCTION == "SHA3-256" else hashlib.sha256()
    for i, field in enumerate(fields):
        h.update(require_bytes32(field, f"field[{i}]"))
    return h.digest()


# ============================================================================
# NONCE DERIVATION
# ============================================================================


def derive_role_nonce(
    secret_key: bytes, role_id: bytes, salt: bytes, account: bytes
) -> bytes:
    """
    Derive a role nonce deterministically from a long-lived secret key.

    HKDF-SHA256(ikm=secret_key, salt=salt, info="role-nonce" || role_id || account)

    Args:
        secret_key: Holder's secret key (must be non-empty)
        role_id: 32-byte role identifier
        salt: Salt value (usually the contract instance salt)
        account: 32-byte account public key

    Returns:
        32-byte nonce unique to (secret_key, role_id, account)
    """
    if not isinstance(secret_key, bytes) or not secret_key:
        raise ValueError("secret_key must be non-empty bytes")
    if not isinstance(salt, bytes):
        raise TypeError(f"salt must be bytes, got {type(salt)}")

    info = (
        ROLE_NONCE_INFO
        + require_bytes32(role_id, "role_id")
        + require_bytes32(account, "account")
    )
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=FIELD_SIZE_BYTES,
        salt=salt,
        info=info,
    )
    return hkdf.derive(secret_key)


# ============================================================================
# CONSTANT-TIME OPERATIONS
# ============================================================================


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """
    Constant-time comparison to prevent timing attacks.

    Args:
        a: First byte string
        b: Second byte string

    Returns:
        True if a == b, False otherwise
    """
    return hmac.compare_digest(a, b)
