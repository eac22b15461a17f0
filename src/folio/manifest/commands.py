"""
Static project manifest CLI commands.

The public site reads public/projects.json. ``export`` regenerates it from the
published projects in the store; ``validate`` checks an existing file.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from folio.config.commands import get_config_value
from folio.core.backup import DEFAULT_KEEP_COUNT, safe_write_json
from folio.core.config import get_paths
from folio.core.database import Store
from folio.core.projects import manifest_entries
from folio.site.manifest import validate_manifest

console = Console()


def _get_keep_count() -> int:
    """Get configured keep_count value."""
    return int(get_config_value("backup.keep_count", DEFAULT_KEEP_COUNT))


@click.group()
def manifest():
    """Validate and export the static projects.json manifest."""
    pass


@manifest.command(name="validate")
@click.argument("path", type=click.Path(path_type=Path), required=False)
def validate_cmd(path: Path | None):
    """Check a manifest for missing ids, duplicate ids, bad types, and bad dates.

    Defaults to public/projects.json under the site root.
    """
    if path is None:
        path = get_paths().manifest

    if not path.exists():
        console.print(f"[red]Manifest not found: {path}[/red]")
        raise SystemExit(1)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]{path} is not valid JSON: {e}[/red]")
        raise SystemExit(1) from e

    issues = validate_manifest(data)
    if issues:
        console.print(f"[red]{len(issues)} problem(s) in {path}:[/red]")
        for issue in issues:
            console.print(f"  [red]✗[/red] {issue}")
        raise SystemExit(1)

    count = len(data.get("projects", []))
    console.print(f"[green]✓[/green] {path} is valid ({count} projects)")


@manifest.command(name="export")
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Write here instead of public/projects.json")
@click.option("--no-backup", is_flag=True, help="Don't back up the previous manifest")
@click.pass_obj
def export_cmd(ctx, output: Path | None, no_backup: bool):
    """Write published projects from the store to the manifest."""
    paths = get_paths()
    output = output or paths.manifest
    dry_run = ctx.dry_run if ctx else False

    store = Store(paths.db)
    with store.connection() as conn:
        entries = manifest_entries(conn)

    table = Table(title=f"Manifest ({len(entries)} projects)", show_header=True, header_style="bold cyan")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Type", style="dim")
    table.add_column("Date", style="dim")
    for entry in entries:
        table.add_row(entry["id"], entry["title"], entry["type"], entry["date"])
    console.print(table)

    if dry_run:
        console.print(f"[yellow]Would write {len(entries)} projects to {output}[/yellow]")
        return

    backup_path = safe_write_json(
        output,
        {"projects": entries},
        create_backup_first=not no_backup,
        backup_dir=paths.backups,
        keep_backups=_get_keep_count(),
    )
    if backup_path:
        console.print(f"[dim]Backed up previous manifest to {backup_path}[/dim]")
    console.print(f"[green]Wrote {len(entries)} projects to {output}[/green]")
