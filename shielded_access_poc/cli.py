"""
Command-Line Interface for the Shielded Access Toolkit

Provides commands to derive identities and commitments, and to drive a
locally persisted shielded access control ledger (CBOR files).
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shielded_access_poc import __version__, print_disclaimer
from shielded_access_poc.shielded import access_control
from shielded_access_poc.shielded.codec import (
    decode_access_control_ledger,
    decode_roles_private_state,
    encode_access_control_ledger,
    encode_roles_private_state,
)
from shielded_access_poc.shielded.commitments import (
    derive_id,
    nullifier,
    role_commitment,
)
from shielded_access_poc.shielded.config import load_config
from shielded_access_poc.shielded.exceptions import ShieldedAccessError
from shielded_access_poc.shielded.ledger import AccessControlLedger
from shielded_access_poc.shielded.security import derive_role_nonce, fmt_hex
from shielded_access_poc.shielded.types import (
    DEFAULT_ADMIN_ROLE,
    Account,
    role_id_from_int,
    role_id_from_label,
)
from shielded_access_poc.shielded.witnesses import RolesPrivateState, RoleWitnesses


def _parse_hex32(value: str, name: str) -> bytes:
    text = value[2:] if value.startswith("0x") else value
    try:
        raw = bytes.fromhex(text)
    except ValueError:
        raise click.BadParameter(f"{name} must be hex")
    if len(raw) != 32:
        raise click.BadParameter(f"{name} must be 32 bytes (64 hex chars)")
    return raw


def _parse_role(value: str) -> bytes:
    """DEFAULT_ADMIN_ROLE, 64 hex chars, a small integer, or a role label.

    The 64 hex char form wins over the integer form, so ids printed by
    ``inspect`` parse back to the same role even when they are all digits.
    """
    if value.upper() in ("DEFAULT_ADMIN_ROLE", "DEFAULT"):
        return DEFAULT_ADMIN_ROLE
    text = value[2:] if value.startswith("0x") else value
    if len(text) == 64:
        try:
            return bytes.fromhex(text)
        except ValueError:
            pass
    if value.isdigit():
        # 2**256 - 1 has 78 decimal digits
        if len(value) > 78:
            raise click.BadParameter("role integer must fit in 256 bits")
        try:
            return role_id_from_int(int(value))
        except ValueError:
            raise click.BadParameter("role integer must fit in 256 bits")
    return role_id_from_label(value)


def _account(key: str, is_contract: bool = False) -> Account:
    raw = _parse_hex32(key, "account")
    return Account.contract(raw) if is_contract else Account.public_key(raw)


def _read_state(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as e:
        _fail(f"cannot read state file {path}: {e.strerror or e}")


def _load_ledger(path: str) -> AccessControlLedger:
    return decode_access_control_ledger(_read_state(path))


def _save_ledger(path: str, ledger: AccessControlLedger) -> None:
    Path(path).write_bytes(encode_access_control_ledger(ledger))


def _load_private(path: str) -> RolesPrivateState:
    return decode_roles_private_state(_read_state(path))


def _save_private(path: str, state: RolesPrivateState) -> None:
    Path(path).write_bytes(encode_roles_private_state(state))


def _context(
    ledger: AccessControlLedger, state: RolesPrivateState, caller: Account
) -> access_control.CallContext:
    witnesses = RoleWitnesses(state, caller, salt=ledger.config.instance_salt)
    return access_control.CallContext(ledger=ledger, caller=caller, witnesses=witnesses)


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(1)


ledger_option = click.option(
    "--ledger", "ledger_path", type=click.Path(dir_okay=False), required=True,
    help="Ledger state file (CBOR)",
)
private_option = click.option(
    "--private", "private_path", type=click.Path(dir_okay=False), required=True,
    help="Caller private state file (CBOR)",
)
caller_option = click.option(
    "--caller", required=True, help="Caller public key (64 hex chars)"
)
role_option = click.option(
    "--role", required=True, help="Role: DEFAULT_ADMIN_ROLE, integer, hex, or label"
)
account_option = click.option(
    "--account", required=True, help="Target account public key (64 hex chars)"
)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(verbose):
    """
    Shielded Access Toolkit - Proof of Concept

    Privacy-preserving role membership and ownership checks over a public
    append-only ledger.

    ⚠️  PROOF OF CONCEPT - NOT PRODUCTION READY
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# PURE HELPERS
# ============================================================================


@main.command("derive-id")
@click.option("--account", required=True, help="Account public key (64 hex chars)")
@click.option("--nonce", required=True, help="Secret nonce (64 hex chars)")
@click.option("--contract", is_flag=True, help="Treat account as a contract address")
def derive_id_cmd(account, nonce, contract):
    """Derive the shielded id H(account, nonce)."""
    try:
        click.echo(derive_id(_account(account, contract), _parse_hex32(nonce, "nonce")).hex())
    except ShieldedAccessError as e:
        _fail(str(e))


@main.command("role-commitment")
@role_option
@click.option("--account-id", required=True, help="Id from derive-id (64 hex chars)")
@click.option("--nonce", required=True, help="Secret nonce (64 hex chars)")
@click.option("--index", type=click.IntRange(min=0), required=True, help="Tree slot")
def role_commitment_cmd(role, account_id, nonce, index):
    """Compute a role commitment."""
    click.echo(
        role_commitment(
            _parse_role(role),
            _parse_hex32(account_id, "account-id"),
            _parse_hex32(nonce, "nonce"),
            index,
        ).hex()
    )


@main.command("nullifier")
@click.argument("commitment")
def nullifier_cmd(commitment):
    """Compute the nullifier of a role commitment."""
    click.echo(nullifier(_parse_hex32(commitment, "commitment")).hex())


@main.command("role-nonce")
@click.option("--secret-key", required=True, help="Secret key (hex)")
@role_option
@account_option
@click.option("--salt", default="", help="Salt (hex, default empty)")
def role_nonce_cmd(secret_key, role, account, salt):
    """Derive a deterministic role nonce with HKDF-SHA256."""
    try:
        key = bytes.fromhex(secret_key)
        salt_bytes = bytes.fromhex(salt)
    except ValueError:
        raise click.BadParameter("secret-key and salt must be hex")
    if not key:
        raise click.BadParameter("secret-key cannot be empty")
    click.echo(
        derive_role_nonce(
            key, _parse_role(role), salt_bytes, _parse_hex32(account, "account")
        ).hex()
    )


# ============================================================================
# LEDGER COMMANDS
# ============================================================================


@main.command()
@ledger_option
@private_option
@click.option("--admin", required=True, help="Initial admin public key (64 hex chars)")
@click.option("--nonce", help="Admin secret nonce (64 hex chars, default random)")
@click.option(
    "--config", "config_path", type=click.Path(exists=True, dir_okay=False),
    help="Deployment config (YAML)",
)
def init(ledger_path, private_path, admin, nonce, config_path):
    """Deploy a ledger and grant DEFAULT_ADMIN_ROLE to the initial admin."""
    print_disclaimer()
    try:
        config = load_config(config_path)
        ledger = AccessControlLedger(config)
        admin_account = _account(admin)
        if nonce:
            state = RolesPrivateState.with_role_and_nonce(
                DEFAULT_ADMIN_ROLE, _parse_hex32(nonce, "nonce")
            )
        else:
            state = RolesPrivateState.generate()

        ctx = _context(ledger, state, admin_account)
        with ledger.transaction():
            access_control._grant_role(ctx, DEFAULT_ADMIN_ROLE, admin_account)

        _save_ledger(ledger_path, ledger)
        _save_private(private_path, state)
    except (ShieldedAccessError, OSError) as e:
        _fail(str(e))

    click.echo(click.style("✓ Ledger initialized", fg="green"))
    click.echo(f"  Depth: {config.tree_depth}")
    click.echo(f"  Root: {ledger.roles.root().hex()}")


@main.command()
@ledger_option
@private_option
@caller_option
@role_option
@account_option
@click.option("--nonce", help="Nonce to bind for the grantee (default: issue one)")
def grant(ledger_path, private_path, caller, role, account, nonce):
    """Grant a role. Prints the grantee nonce to deliver out of band."""
    try:
        ledger = _load_ledger(ledger_path)
        state = _load_private(private_path)
        caller_account = _account(caller)
        target = _account(account)
        role_id = _parse_role(role)
        if nonce and target != caller_account:
            state.record_issued(role_id, target, _parse_hex32(nonce, "nonce"))
        elif nonce:
            state.set_role(role_id, _parse_hex32(nonce, "nonce"))

        ctx = _context(ledger, state, caller_account)
        granted = access_control.grant_role(ctx, role_id, target)
        _save_ledger(ledger_path, ledger)
        _save_private(private_path, state)
    except (ShieldedAccessError, OSError) as e:
        _fail(str(e))

    if granted:
        click.echo(click.style(f"✓ Role {fmt_hex(role_id)} granted", fg="green"))
    else:
        click.echo(click.style("⚠️  Account already holds role", fg="yellow"))
    if target != caller_account:
        click.echo(f"  Grantee nonce: {state.issued_nonce(role_id, target).hex()}")


@main.command()
@ledger_option
@private_option
@caller_option
@role_option
@account_option
def revoke(ledger_path, private_path, caller, role, account):
    """Revoke a role by publishing its nullifier."""
    try:
        ledger = _load_ledger(ledger_path)
        state = _load_private(private_path)
        ctx = _context(ledger, state, _account(caller))
        revoked = access_control.revoke_role(ctx, _parse_role(role), _account(account))
        _save_ledger(ledger_path, ledger)
        _save_private(private_path, state)
    except (ShieldedAccessError, OSError) as e:
        _fail(str(e))

    if revoked:
        click.echo(click.style("✓ Role revoked", fg="green"))
    else:
        click.echo(click.style("⚠️  Account did not hold role", fg="yellow"))


@main.command("has-role")
@ledger_option
@private_option
@caller_option
@role_option
@account_option
def has_role_cmd(ledger_path, private_path, caller, role, account):
    """Check role membership with the caller's private state."""
    try:
        ledger = _load_ledger(ledger_path)
        state = _load_private(private_path)
        ctx = _context(ledger, state, _account(caller))
        check = access_control.has_role(ctx, _parse_role(role), _account(account))
    except (ShieldedAccessError, OSError) as e:
        _fail(str(e))

    status = click.style("approved", fg="green") if check.is_approved else click.style(
        "not approved", fg="red"
    )
    click.echo(f"Role: {status}")
    click.echo(f"  Commitment: {check.commitment.hex()}")
    click.echo(f"  Nullifier: {check.nullifier.hex()}")
    if not check.is_approved:
        sys.exit(2)


@main.command()
@ledger_option
def inspect(ledger_path):
    """Show the public ledger state."""
    try:
        ledger = _load_ledger(ledger_path)
    except (ShieldedAccessError, OSError) as e:
        _fail(str(e))

    console = Console()
    summary = Table(title="Shielded access control ledger", show_header=False)
    summary.add_row("Tree depth", str(ledger.roles.depth))
    summary.add_row("Current index", f"{ledger.current_index}/{ledger.roles.capacity}")
    summary.add_row("Root", ledger.roles.root().hex())
    summary.add_row("Nullifiers", str(len(ledger.nullifiers)))
    console.print(summary)

    leaves = Table(title="Role commitments")
    leaves.add_column("Index", justify="right")
    leaves.add_column("Commitment")
    leaves.add_column("Revoked")
    for index, leaf in enumerate(ledger.roles.leaves()):
        revoked = "yes" if ledger.registry.is_nullified(leaf) else "no"
        leaves.add_row(str(index), leaf.hex(), revoked)
    console.print(leaves)

    if ledger.role_admins:
        admins = Table(title="Role admins")
        admins.add_column("Role")
        admins.add_column("Admin role")
        for role_id, admin_role in sorted(ledger.role_admins.items()):
            admins.add_row(role_id.hex(), admin_role.hex())
        console.print(admins)


@main.command()
def version():
    """Show version information"""
    click.echo(f"\nShielded Access Toolkit v{__version__}")
    click.echo("Proof of Concept - Not Production Ready\n")


if __name__ == "__main__":
    main()
