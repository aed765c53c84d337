"""CBOR encoding of ledger snapshots and private state."""

from __future__ import annotations

from typing import Any, Dict

import cbor2

from .config import MAX_STATE_BYTES, STATE_VERSION, DeploymentConfig
from .exceptions import ConfigurationError, LedgerError, SchemaError
from .ledger import AccessControlLedger, OwnableLedger
from .merkle import IndexedAppendTree
from .witnesses import RolesPrivateState

KIND_ACCESS_CONTROL = "access_control"
KIND_OWNABLE = "ownable"
KIND_ROLES_PRIVATE = "roles_private"


def _require_bytes(value: Any, field: str, length: int = 32) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise SchemaError(f"{field} must be bytes")
    if length and len(value) != length:
        raise SchemaError(f"{field} must be {length} bytes")
    return bytes(value)


def _require_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaError(f"{field} must be int")
    return value


def _dump(payload: Dict[str, Any]) -> bytes:
    blob = cbor2.dumps(payload)
    if len(blob) > MAX_STATE_BYTES:
        raise SchemaError("state too large")
    return blob


def _load(blob: bytes, kind: str) -> Dict[str, Any]:
    if not isinstance(blob, (bytes, bytearray)):
        raise SchemaError("state blob must be bytes")
    blob_bytes = bytes(blob)
    if len(blob_bytes) > MAX_STATE_BYTES:
        raise SchemaError("state too large")
    try:
        payload = cbor2.loads(blob_bytes)
    except cbor2.CBORDecodeError as exc:
        raise SchemaError(f"invalid CBOR: {exc}") from exc
    if not isinstance(payload, dict):
        raise SchemaError("state payload must be a dict")
    if payload.get("v") != STATE_VERSION:
        raise SchemaError("unsupported state version")
    if payload.get("kind") != kind:
        raise SchemaError(f"expected {kind} state, got {payload.get('kind')!r}")
    return payload


def _decode_config(payload: Dict[str, Any]) -> DeploymentConfig:
    try:
        return DeploymentConfig(
            tree_depth=_require_int(payload.get("depth"), "depth"),
            instance_salt=_require_bytes(payload.get("salt"), "salt"),
        )
    except ConfigurationError as exc:
        raise SchemaError(str(exc)) from exc


# ============================================================================
# ACCESS CONTROL LEDGER
# ============================================================================


def encode_access_control_ledger(ledger: AccessControlLedger) -> bytes:
    payload = {
        "v": STATE_VERSION,
        "kind": KIND_ACCESS_CONTROL,
        "depth": ledger.config.tree_depth,
        "salt": ledger.config.instance_salt,
        "leaves": ledger.roles.leaves(),
        "nullifiers": list(ledger.nullifiers),
        "admins": [[role, admin] for role, admin in sorted(ledger.role_admins.items())],
    }
    return _dump(payload)


def decode_access_control_ledger(blob: bytes) -> AccessControlLedger:
    payload = _load(blob, KIND_ACCESS_CONTROL)
    ledger = AccessControlLedger(_decode_config(payload))

    leaves = payload.get("leaves")
    nullifiers = payload.get("nullifiers")
    admins = payload.get("admins")
    if not isinstance(leaves, list):
        raise SchemaError("leaves must be a list")
    if not isinstance(nullifiers, list):
        raise SchemaError("nullifiers must be a list")
    if not isinstance(admins, list):
        raise SchemaError("admins must be a list")

    try:
        ledger.registry.tree = IndexedAppendTree.from_leaves(
            [_require_bytes(leaf, "leaf") for leaf in leaves],
            ledger.config.tree_depth,
        )
        for value in nullifiers:
            ledger.nullifiers.insert(_require_bytes(value, "nullifier"))
    except LedgerError as exc:
        raise SchemaError(f"inconsistent ledger state: {exc}") from exc

    for entry in admins:
        if not isinstance(entry, list) or len(entry) != 2:
            raise SchemaError("admin entry must be [role, admin]")
        ledger.set_role_admin(
            _require_bytes(entry[0], "role"), _require_bytes(entry[1], "admin")
        )
    return ledger


# ============================================================================
# OWNABLE LEDGER
# ============================================================================


def encode_ownable_ledger(ledger: OwnableLedger) -> bytes:
    payload = {
        "v": STATE_VERSION,
        "kind": KIND_OWNABLE,
        "depth": ledger.config.tree_depth,
        "salt": ledger.config.instance_salt,
        "owner": ledger.owner,
        "counter": ledger.counter,
    }
    return _dump(payload)


def decode_ownable_ledger(blob: bytes) -> OwnableLedger:
    payload = _load(blob, KIND_OWNABLE)
    ledger = OwnableLedger(_decode_config(payload))
    counter = _require_int(payload.get("counter"), "counter")
    if counter < 0:
        raise SchemaError("counter must be >= 0")
    ledger.slot.commitment = _require_bytes(payload.get("owner"), "owner")
    ledger.slot.counter = counter
    return ledger


# ============================================================================
# PRIVATE STATE
# ============================================================================


def _decode_nonce_map(value: Any, field: str) -> Dict[str, bytes]:
    if not isinstance(value, dict):
        raise SchemaError(f"{field} must be a dict")
    result = {}
    for key, nonce in value.items():
        if not isinstance(key, str):
            raise SchemaError(f"{field} keys must be strings")
        result[key] = _require_bytes(nonce, f"{field} nonce")
    return result


def encode_roles_private_state(state: RolesPrivateState) -> bytes:
    payload = {
        "v": STATE_VERSION,
        "kind": KIND_ROLES_PRIVATE,
        "roles": dict(state.roles),
        "issued": dict(state.issued),
        "secret_key": state.secret_key,
    }
    return _dump(payload)


def decode_roles_private_state(blob: bytes) -> RolesPrivateState:
    payload = _load(blob, KIND_ROLES_PRIVATE)
    secret_key = payload.get("secret_key")
    if secret_key is not None:
        secret_key = _require_bytes(secret_key, "secret_key", length=0)
        if not secret_key:
            raise SchemaError("secret_key cannot be empty")
    return RolesPrivateState(
        roles=_decode_nonce_map(payload.get("roles", {}), "roles"),
        issued=_decode_nonce_map(payload.get("issued", {}), "issued"),
        secret_key=secret_key,
    )
