"""
⚠️ DRAFT — requires crypto review before production use

Protocol configuration for shielded access control.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .exceptions import ConfigurationError

# ============================================================================
# HASH FUNCTIONS
# ============================================================================

# Persistent hash over fixed-width fields (host ledger's persistentHash)
HASH_FUNCTION = "SHA256"
HASH_OUTPUT_BITS = 256

# Every hashed field is exactly this many bytes
FIELD_SIZE_BYTES = 32

# Integers (indices, counters) are encoded before hashing
INTEGER_BYTE_ORDER = "little"

# ============================================================================
# DOMAIN TAGS
# ============================================================================

# ASCII, right-padded with zero bytes to FIELD_SIZE_BYTES
DOMAIN_TAGS = {
    "role_commitment": "ShieldedAccessControl:shield:",
    "role_nullifier": "ShieldedAccessControl:nullify:",
    "owner_commitment": "ShieldedOwnable:shield:",
    "merkle_leaf": "ShieldedAccessControl:mt-leaf:",
    "merkle_node": "ShieldedAccessControl:mt-node:",
}

# HKDF info prefix for deterministic role nonces
ROLE_NONCE_INFO = b"role-nonce"

# ============================================================================
# TREE PARAMETERS
# ============================================================================

DEFAULT_TREE_DEPTH = 10  # 1024 role slots
MIN_TREE_DEPTH = 1
MAX_TREE_DEPTH = 32

# ============================================================================
# SERIALIZATION
# ============================================================================

SERIALIZATION_FORMAT = "CBOR"
STATE_VERSION = 1  # Increment for breaking changes
MAX_STATE_BYTES = 4 * 1024 * 1024

# ============================================================================
# DEPLOYMENT CONFIG
# ============================================================================

CONFIG_ENV_VAR = "SHIELDED_ACCESS_CONFIG"

# Placeholder salt for local simulation only; real deployments pick their own
DEFAULT_INSTANCE_SALT = bytes([0x08]) * FIELD_SIZE_BYTES


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Per-deployment parameters.

    Attributes:
        tree_depth: Depth of the role commitment tree (capacity 2**depth)
        instance_salt: 32-byte salt mixed into ownership commitments
    """

    tree_depth: int = DEFAULT_TREE_DEPTH
    instance_salt: bytes = DEFAULT_INSTANCE_SALT

    def __post_init__(self) -> None:
        if not isinstance(self.tree_depth, int) or isinstance(self.tree_depth, bool):
            raise ConfigurationError(
                f"tree_depth must be int, got {type(self.tree_depth)}"
            )
        if not MIN_TREE_DEPTH <= self.tree_depth <= MAX_TREE_DEPTH:
            raise ConfigurationError(
                f"tree_depth must be in [{MIN_TREE_DEPTH}, {MAX_TREE_DEPTH}], "
                f"got {self.tree_depth}"
            )
        if not isinstance(self.instance_salt, bytes):
            raise ConfigurationError("instance_salt must be bytes")
        if len(self.instance_salt) != FIELD_SIZE_BYTES:
            raise ConfigurationError(
                f"instance_salt must be {FIELD_SIZE_BYTES} bytes, "
                f"got {len(self.instance_salt)}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        if not isinstance(data, dict):
            raise ConfigurationError("deployment config must be a mapping")

        unknown = set(data) - {"tree_depth", "instance_salt"}
        if unknown:
            raise ConfigurationError(
                f"Unknown config keys: {', '.join(sorted(unknown))}"
            )

        kwargs: Dict[str, Any] = {}
        if "tree_depth" in data:
            kwargs["tree_depth"] = data["tree_depth"]
        if "instance_salt" in data:
            salt = data["instance_salt"]
            if isinstance(salt, str):
                try:
                    salt = bytes.fromhex(salt.removeprefix("0x"))
                except ValueError as exc:
                    raise ConfigurationError(
                        f"instance_salt is not valid hex: {salt!r}"
                    ) from exc
            kwargs["instance_salt"] = salt
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tree_depth": self.tree_depth,
            "instance_salt": self.instance_salt.hex(),
        }


def load_config(path: Optional[Union[str, Path]] = None) -> DeploymentConfig:
    """
    Load deployment parameters from a YAML file.

    Args:
        path: Config file. Falls back to $SHIELDED_ACCESS_CONFIG, then defaults.

    Returns:
        DeploymentConfig

    Raises:
        ConfigurationError: If the file cannot be read or holds invalid values
    """
    if path is None:
        env_value = os.getenv(CONFIG_ENV_VAR)
        if not env_value:
            return DeploymentConfig()
        path = env_value

    config_path = Path(path)
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

    if raw is None:
        return DeploymentConfig()
    return DeploymentConfig.from_dict(raw)


# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert HASH_FUNCTION in ["SHA256", "SHA3-256"], "Invalid hash function"
    assert HASH_OUTPUT_BITS == FIELD_SIZE_BYTES * 8, "Digest must fill one field"
    assert INTEGER_BYTE_ORDER in ["little", "big"], "Invalid byte order"
    assert MIN_TREE_DEPTH <= DEFAULT_TREE_DEPTH <= MAX_TREE_DEPTH, "Invalid depth"

    for name, tag in DOMAIN_TAGS.items():
        assert len(tag.encode("ascii")) <= FIELD_SIZE_BYTES, f"Tag too long: {name}"
    assert len(set(DOMAIN_TAGS.values())) == len(DOMAIN_TAGS), "Tags must be unique"

    return True


# Auto-validate on import
validate_config()
