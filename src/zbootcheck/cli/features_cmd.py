"""Catalog and evidence inspection commands."""
from __future__ import annotations

import json
from pathlib import Path

import click

from ..config import load_settings
from ..contracts import ExitCode
from ..errors import BootCheckError
from ..evidence import scan_tokens
from ..oracle import ZpoolOracle
from ..verifier import Verifier


def _settings(config_path: Path | None):
    try:
        return load_settings(config_path)
    except BootCheckError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(e.exit_code.value)


@click.command("features")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Config file (JSON)")
@click.option("--json", "output_json", is_flag=True, help="Output JSON")
def features_command(config_path: Path | None, output_json: bool) -> None:
    """List catalogued features and the token searched for in boot code."""
    catalog = _settings(config_path).catalog()
    if output_json:
        click.echo(json.dumps([f.to_dict() for f in catalog], indent=2))
        return

    from rich.box import ROUNDED
    from rich.console import Console
    from rich.table import Table

    table = Table(title="FEATURE CATALOG", box=ROUNDED, border_style="cyan", header_style="bold")
    table.add_column("Feature", style="white")
    table.add_column("Scan token")
    for feature in catalog:
        table.add_row(feature.name, feature.token.decode("utf-8", errors="replace"))
    Console().print(table)


@click.command("pool-state")
@click.argument("pool")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Config file (JSON)")
@click.option("--json", "output_json", is_flag=True, help="Output JSON")
def pool_state_command(pool: str, config_path: Path | None, output_json: bool) -> None:
    """Show which catalogued features POOL has enabled or active."""
    settings = _settings(config_path)
    oracle = ZpoolOracle(settings.zpool_command, settings.zpool_timeout)
    state = Verifier.from_settings(settings, oracle).collect_pool_state(pool)
    if output_json:
        click.echo(json.dumps({"pool": pool, "features": state.to_dict()}, indent=2))
        return
    for name, needed in state.flags:
        click.echo(f"  {name + ':':<16}{'needed' if needed else '-'}")


@click.command("scan")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--token", "tokens", multiple=True,
              help="Token to search for (default: every catalog token)")
@click.option("--scan-limit", type=click.IntRange(min=1), default=None,
              help="Bytes to scan from the start of PATH")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Config file (JSON)")
@click.option("--json", "output_json", is_flag=True, help="Output JSON")
def scan_command(path: str, tokens: tuple[str, ...], scan_limit: int | None,
                 config_path: Path | None, output_json: bool) -> None:
    """Search the first bytes of PATH for capability tokens."""
    settings = _settings(config_path)
    limit = scan_limit or settings.scan_limit
    if tokens:
        wanted = {t: t.encode("utf-8") for t in tokens}
    else:
        wanted = {f.name: f.token for f in settings.catalog()}

    found = scan_tokens(path, list(wanted.values()), limit, settings.chunk_size)
    if found is None:
        click.echo(f"Error: could not read {path}", err=True)
        raise SystemExit(ExitCode.PRECONDITION_FAILED.value)

    report = {label: found[token] for label, token in wanted.items()}
    if output_json:
        click.echo(json.dumps({"path": path, "scan_limit": limit, "tokens": report}, indent=2))
        return
    for label, present in report.items():
        click.echo(f"  {label + ':':<16}{'found' if present else 'absent'}")
