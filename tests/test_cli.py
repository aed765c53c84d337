"""
Test CLI commands.

Runs the click commands in-process with CliRunner against CBOR state files in
a temporary directory.
"""

import click
import pytest
from click.testing import CliRunner

from shielded_access_poc import cli
from shielded_access_poc.shielded.codec import decode_access_control_ledger
from shielded_access_poc.shielded.commitments import (
    derive_id,
    nullifier,
    role_commitment,
)
from shielded_access_poc.shielded.security import derive_role_nonce
from shielded_access_poc.shielded.types import (
    Account,
    role_id_from_int,
    role_id_from_label,
)

ADMIN_HEX = "0a" * 32
ALICE_HEX = "0b" * 32
BOB_HEX = "0c" * 32
NONCE_HEX = "11" * 32


def _init(runner, tmp_path, *extra):
    ledger = str(tmp_path / "ledger.cbor")
    private = str(tmp_path / "admin.cbor")
    result = runner.invoke(
        cli.main,
        ["init", "--ledger", ledger, "--private", private, "--admin", ADMIN_HEX, *extra],
    )
    assert result.exit_code == 0, result.output
    return ledger, private


def _role_args(ledger, private, caller, account, role="MINTER_ROLE"):
    return [
        "--ledger", ledger, "--private", private,
        "--caller", caller, "--role", role, "--account", account,
    ]


def test_cli_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output

    result = runner.invoke(cli.main, ["version"])
    assert result.exit_code == 0
    assert "Shielded Access Toolkit" in result.output


def test_cli_derive_id() -> None:
    result = CliRunner().invoke(
        cli.main, ["derive-id", "--account", ADMIN_HEX, "--nonce", NONCE_HEX]
    )
    assert result.exit_code == 0
    expected = derive_id(
        Account.public_key(bytes.fromhex(ADMIN_HEX)), bytes.fromhex(NONCE_HEX)
    )
    assert result.output.strip() == expected.hex()


def test_cli_derive_id_contract_rejected() -> None:
    result = CliRunner().invoke(
        cli.main, ["derive-id", "--account", ADMIN_HEX, "--nonce", NONCE_HEX, "--contract"]
    )
    assert result.exit_code == 1
    assert "contract address roles are not yet supported" in result.output


def test_cli_bad_hex() -> None:
    result = CliRunner().invoke(
        cli.main, ["derive-id", "--account", "zz", "--nonce", NONCE_HEX]
    )
    assert result.exit_code != 0
    assert "account must be hex" in result.output


def test_cli_nullifier() -> None:
    commitment = "22" * 32
    result = CliRunner().invoke(cli.main, ["nullifier", commitment])
    assert result.exit_code == 0
    assert result.output.strip() == nullifier(bytes.fromhex(commitment)).hex()


def test_cli_role_nonce() -> None:
    result = CliRunner().invoke(
        cli.main,
        ["role-nonce", "--secret-key", "aabb", "--role", "MINTER_ROLE", "--account", ALICE_HEX],
    )
    assert result.exit_code == 0
    expected = derive_role_nonce(
        bytes.fromhex("aabb"),
        role_id_from_label("MINTER_ROLE"),
        b"",
        bytes.fromhex(ALICE_HEX),
    )
    assert result.output.strip() == expected.hex()


def test_cli_grant_check_revoke(tmp_path) -> None:
    runner = CliRunner()
    ledger, private = _init(runner, tmp_path)

    result = runner.invoke(cli.main, ["grant", *_role_args(ledger, private, ADMIN_HEX, ALICE_HEX)])
    assert result.exit_code == 0, result.output
    assert "granted" in result.output
    assert "Grantee nonce:" in result.output

    result = runner.invoke(cli.main, ["grant", *_role_args(ledger, private, ADMIN_HEX, ALICE_HEX)])
    assert result.exit_code == 0
    assert "already holds role" in result.output

    result = runner.invoke(cli.main, ["has-role", *_role_args(ledger, private, ADMIN_HEX, ALICE_HEX)])
    assert result.exit_code == 0
    assert "approved" in result.output

    result = runner.invoke(cli.main, ["revoke", *_role_args(ledger, private, ADMIN_HEX, ALICE_HEX)])
    assert result.exit_code == 0
    assert "Role revoked" in result.output

    result = runner.invoke(cli.main, ["has-role", *_role_args(ledger, private, ADMIN_HEX, ALICE_HEX)])
    assert result.exit_code == 2
    assert "not approved" in result.output

    with open(ledger, "rb") as fh:
        state = decode_access_control_ledger(fh.read())
    assert state.current_index == 2
    assert len(state.nullifiers) == 1


def test_cli_unauthorized_grant(tmp_path) -> None:
    runner = CliRunner()
    ledger, private = _init(runner, tmp_path)
    result = runner.invoke(cli.main, ["grant", *_role_args(ledger, private, BOB_HEX, ALICE_HEX)])
    assert result.exit_code == 1
    assert "unauthorized account" in result.output


def test_cli_init_with_config(tmp_path) -> None:
    config_path = tmp_path / "deploy.yaml"
    config_path.write_text("tree_depth: 4\n")
    runner = CliRunner()
    ledger, _ = _init(runner, tmp_path, "--config", str(config_path), "--nonce", NONCE_HEX)
    with open(ledger, "rb") as fh:
        state = decode_access_control_ledger(fh.read())
    assert state.roles.depth == 4
    assert state.current_index == 1


def test_cli_inspect(tmp_path) -> None:
    runner = CliRunner()
    ledger, private = _init(runner, tmp_path)
    runner.invoke(cli.main, ["grant", *_role_args(ledger, private, ADMIN_HEX, ALICE_HEX)])
    result = runner.invoke(cli.main, ["inspect", "--ledger", ledger])
    assert result.exit_code == 0, result.output
    assert "Role commitments" in result.output
    assert "Nullifiers" in result.output


def test_cli_inspect_rejects_garbage(tmp_path) -> None:
    path = tmp_path / "garbage.cbor"
    path.write_bytes(b"\x58\x20\x00")
    result = CliRunner().invoke(cli.main, ["inspect", "--ledger", str(path)])
    assert result.exit_code == 1
    assert "invalid CBOR" in result.output


def test_cli_parse_role_hex_wins_over_integer() -> None:
    role = role_id_from_int(1)
    assert role.hex().isdigit()
    assert cli._parse_role(role.hex()) == role
    assert cli._parse_role("0x" + role.hex()) == role
    assert cli._parse_role("1") == role
    assert cli._parse_role("MINTER_ROLE") == role_id_from_label("MINTER_ROLE")


def test_cli_parse_role_rejects_oversized_integer() -> None:
    with pytest.raises(click.BadParameter, match="256 bits"):
        cli._parse_role(str(2**256))
    with pytest.raises(click.BadParameter, match="256 bits"):
        cli._parse_role("9" * 500)


def test_cli_role_commitment_accepts_inspect_hex() -> None:
    role = role_id_from_int(1)
    account_id = "33" * 32
    result = CliRunner().invoke(
        cli.main,
        [
            "role-commitment", "--role", role.hex(), "--account-id", account_id,
            "--nonce", NONCE_HEX, "--index", "3",
        ],
    )
    assert result.exit_code == 0, result.output
    expected = role_commitment(
        role, bytes.fromhex(account_id), bytes.fromhex(NONCE_HEX), 3
    )
    assert result.output.strip() == expected.hex()


def test_cli_missing_ledger_file(tmp_path) -> None:
    missing = str(tmp_path / "missing.cbor")
    result = CliRunner().invoke(cli.main, ["inspect", "--ledger", missing])
    assert result.exit_code == 1
    assert "cannot read state file" in result.output


def test_cli_missing_private_file(tmp_path) -> None:
    runner = CliRunner()
    ledger, _ = _init(runner, tmp_path)
    missing = str(tmp_path / "nobody.cbor")
    for command in ("grant", "revoke", "has-role"):
        result = runner.invoke(
            cli.main, [command, *_role_args(ledger, missing, ADMIN_HEX, ALICE_HEX)]
        )
        assert result.exit_code == 1, command
        assert "cannot read state file" in result.output
