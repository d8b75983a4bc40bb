"""Rendering of run results - plain lines, JSON, rich tables."""
from __future__ import annotations

import json

import click

from ..contracts import Severity
from ..verifier import RunResult

BANNER = "=== ZFS Boot Diagnostic ==="

SEVERITY_LINE = {
    Severity.OK: "[OK] All {total} disk(s) can boot pool {pool}.",
    Severity.WARNING: "[WARNING] {failed} of {total} disk(s) cannot boot pool {pool}.",
    Severity.CRITICAL: "[CRITICAL] No disk can boot pool {pool} ({failed} of {total} failed). System may NOT BOOT.",
}


def echo_json(result: RunResult) -> None:
    click.echo(json.dumps(result.to_dict(), indent=2))


def echo_header(pool: str, disks: list[str], reference: str | None) -> None:
    click.echo(BANNER)
    click.echo(f"Target Pool: {pool}")
    for disk in disks:
        click.echo(f"Target Disk: {disk}")
    if reference:
        click.echo(f"Reference:   {reference}")
    click.echo("")


def echo_result(result: RunResult) -> None:
    """Human-readable per-disk lines followed by the tier line."""
    if not result.applicable:
        click.echo(f"[SKIP] Boot method is {result.boot_method or 'unknown'}, not legacy BIOS. Skipping checks.")
        return

    needed = result.pool_state.needed() if result.pool_state else []
    if needed:
        click.echo(f"[INFO] Pool {result.pool} needs: {', '.join(needed)}")
    else:
        click.echo(f"[INFO] Pool {result.pool} uses no catalogued features. Boot code capability irrelevant.")

    if result.reference is not None:
        lacking = result.reference.lacking()
        if lacking:
            click.echo(
                f"[WARN] Installed boot code {result.reference.path} itself lacks: {', '.join(lacking)}. "
                "Reinstalling it will not help; update the OS first.",
                err=True,
            )

    for outcome in result.outcomes:
        if outcome.passed:
            click.echo(f"[PASS] {outcome.path}")
            continue
        kinds = ", ".join(f.value.replace("_", " ").upper() for f in outcome.failures)
        click.echo(f"[FAIL] {outcome.path}: {kinds} - {outcome.detail}")
        if outcome.missing_features:
            click.echo(f"   missing: {', '.join(outcome.missing_features)}")
        for kind in outcome.failures:
            click.echo(f"   ACTION: {kind.remediation}")

    click.echo("")
    click.echo(SEVERITY_LINE[result.severity].format(
        pool=result.pool, total=result.total, failed=result.failed_count,
    ))


def print_table(result: RunResult) -> None:
    """Per-disk table using Rich."""
    from rich.box import ROUNDED
    from rich.console import Console
    from rich.table import Table

    console = Console()
    style = {Severity.OK: "green", Severity.WARNING: "yellow", Severity.CRITICAL: "red bold"}[result.severity]
    table = Table(
        title=f"[{style}]{result.severity.value}[/{style}]  pool {result.pool}",
        box=ROUNDED,
        border_style="cyan",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Disk", style="white", min_width=16)
    table.add_column("Result", min_width=6)
    table.add_column("Failure", min_width=12)
    table.add_column("Missing features")

    for outcome in result.outcomes:
        if outcome.passed:
            table.add_row(outcome.path, "[green]PASS[/green]", "", "")
        else:
            table.add_row(
                outcome.path,
                "[red]FAIL[/red]",
                ", ".join(f.value for f in outcome.failures),
                ", ".join(outcome.missing_features),
            )

    console.print()
    console.print(table)
