"""zbootcheck check - verify boot code on disks against a pool.

Usage:
    zbootcheck check zroot /dev/ada0p1
    zbootcheck check zroot /dev/ada0p1 /dev/ada1p1 --json
"""
from __future__ import annotations

import sys
from pathlib import Path

import click

from ..config import load_settings
from ..errors import BootCheckError
from ..verifier import run_check
from .output import echo_header, echo_json, echo_result, print_table


@click.command("check")
@click.argument("pool")
@click.argument("disks", nargs=-1, required=True)
@click.option("--reference", "-r", default=None,
              help="Installed boot code to compare against (default: /boot/gptzfsboot)")
@click.option("--no-identity", is_flag=True, help="Skip the identity (hash) check")
@click.option("--scan-limit", type=click.IntRange(min=1), default=None,
              help="Bytes to scan from the start of each disk (default: 1MiB)")
@click.option("--feature", "features", multiple=True,
              help="Only check this catalog feature (repeatable)")
@click.option("--parallel", is_flag=True, default=None, help="Scan disks concurrently")
@click.option("--force", is_flag=True, help="Run even if the boot method is not BIOS")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Config file (JSON)")
@click.option("--json", "output_json", is_flag=True, help="Output JSON")
@click.option("--table", "output_table", is_flag=True, help="Also print a per-disk table")
def check_command(
    pool: str,
    disks: tuple[str, ...],
    reference: str | None,
    no_identity: bool,
    scan_limit: int | None,
    features: tuple[str, ...],
    parallel: bool | None,
    force: bool,
    config_path: Path | None,
    output_json: bool,
    output_table: bool,
) -> None:
    """Check that the boot code on DISKS can read every feature POOL uses.

    \b
    Examples:
        zbootcheck check zroot /dev/ada0p1
        zbootcheck check zroot /dev/ada0p1 /dev/ada1p1 --no-identity
        zbootcheck check zroot disk.img --force --reference ./gptzfsboot
    """
    try:
        settings = load_settings(config_path).replace(
            reference_path=reference,
            identity_check=False if no_identity else None,
            scan_limit=scan_limit,
            parallel=parallel or None,
        )
    except BootCheckError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(e.exit_code.value)

    if not output_json:
        echo_header(pool, list(disks), settings.reference_path if settings.identity_check else None)

    try:
        result = run_check(pool, list(disks), settings, features=features or None, force=force)
    except BootCheckError as e:
        click.echo(f"[FATAL] {e}", err=True)
        raise SystemExit(e.exit_code.value)

    if output_json:
        echo_json(result)
    else:
        echo_result(result)
        if output_table and result.applicable:
            print_table(result)

    sys.exit(result.exit_code.value)
