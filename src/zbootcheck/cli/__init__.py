"""zbootcheck CLI - will this pool still boot?

Commands:
    check       - Verify boot code on one or more disks against a pool
    features    - List the feature catalog and scan tokens
    pool-state  - Show which catalog features a pool needs
    scan        - Search one artifact for capability tokens
"""
from __future__ import annotations

import logging
import sys

import click

from .check_cmd import check_command
from .features_cmd import features_command, pool_state_command, scan_command

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


@click.group()
@click.version_option(package_name="zbootcheck")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr")
def cli(verbose: bool) -> None:
    """Check that ZFS boot code can read the features a pool has enabled.

    \b
    Exit codes (check):
        0  compliant, or boot method is not legacy BIOS
        1  WARNING  - some disks fail
        2  CRITICAL - every disk fails
        3  precondition failed (reference boot code, config)
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


cli.add_command(check_command)
cli.add_command(features_command)
cli.add_command(pool_state_command)
cli.add_command(scan_command)


def main() -> None:
    """Entry point for the zbootcheck command."""
    cli()


__all__ = ["cli", "main"]
