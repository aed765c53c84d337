"""
Shielded access toolkit - proof of concept.

Privacy-preserving role membership and ownership over a public append-only
ledger.
"""

import click

__version__ = "0.1.0"

DISCLAIMER = (
    "⚠️  PROOF OF CONCEPT - NOT PRODUCTION READY\n"
    "Commitment scheme and witness handling require crypto review before use."
)


def print_disclaimer() -> None:
    click.secho(DISCLAIMER, fg="yellow", err=True)
