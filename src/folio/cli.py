"""
Main CLI dispatcher for folio.

Usage:
    folio init                           # Initialize .folio/ and the database
    folio serve                          # Run the API
    folio config [show|get|set|reset|path]
    folio manifest [validate|export]
    folio users [add|list|remove]
    folio audit
"""

import logging

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from folio import __version__

console = Console()


class Context:
    """Shared context for all commands."""

    def __init__(self, verbose: bool = False, dry_run: bool = False):
        self.verbose = verbose
        self.dry_run = dry_run
        self.console = console


pass_context = click.make_pass_decorator(Context, ensure=True)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("-n", "--dry-run", is_flag=True, help="Preview without making changes")
@click.pass_context
def main(ctx: click.Context, verbose: bool, dry_run: bool) -> None:
    """Portfolio site tools.

    Run the content API, manage admin users, and publish the project manifest.
    """
    ctx.ensure_object(dict)
    ctx.obj = Context(verbose=verbose, dry_run=dry_run)

    if dry_run:
        console.print("[yellow]DRY RUN MODE - No changes will be made[/yellow]")


@main.command()
@click.option("--force", "-f", is_flag=True, help="Re-run even if .folio/ already exists")
@click.pass_obj
def init(ctx, force: bool) -> None:
    """Initialize .folio/ directory structure and the database schema."""
    from pathlib import Path

    from folio.core.config import get_paths, get_site_root
    from folio.core.database import Store

    dry_run = ctx.dry_run if ctx else False

    try:
        site_root = get_site_root()
    except FileNotFoundError:
        # For init, use cwd as the site root since .folio/ doesn't exist yet
        site_root = Path.cwd()

    paths = get_paths(site_root)

    if paths.folio_dir.exists() and not force:
        console.print(f"[yellow].folio/ directory already exists at {paths.folio_dir}[/yellow]")
        console.print("[dim]Use --force to reinitialize.[/dim]")
        return

    console.print(f"[cyan]Initializing .folio/ directory at {site_root}[/cyan]")

    for dir_path in (paths.folio_dir, paths.media, paths.backups, paths.public):
        if not dry_run:
            dir_path.mkdir(parents=True, exist_ok=True)
        console.print(f"  [green]Created[/green] {dir_path.relative_to(site_root)}")

    if not dry_run:
        Store(paths.db).init_schema()
    console.print(f"  [green]Created[/green] {paths.db.relative_to(site_root)}")

    gitignore_path = site_root / ".gitignore"
    gitignore_entries = [".folio/folio.db", ".folio/media/", ".folio/backups/"]
    content = gitignore_path.read_text() if gitignore_path.exists() else ""
    missing = [entry for entry in gitignore_entries if entry not in content]
    if missing:
        if not dry_run:
            with open(gitignore_path, "a") as f:
                f.write("\n# folio data\n" + "\n".join(missing) + "\n")
        console.print(f"  [green]Updated[/green] .gitignore with {', '.join(missing)}")

    console.print()
    if dry_run:
        console.print("[yellow]DRY RUN - no changes made[/yellow]")
    else:
        console.print("[green]Done![/green] .folio/ directory initialized.")


@main.command()
@click.option("--host", help="Interface to bind (default: server.host)")
@click.option("--port", type=int, help="Port to listen on (default: server.port)")
@click.option("--debug", is_flag=True, help="Run Flask in debug mode with the reloader")
@click.pass_obj
def serve(ctx, host: str | None, port: int | None, debug: bool) -> None:
    """Run the content API."""
    from folio.api import create_app
    from folio.core.config import ADMIN_TOKEN_ENV, get_paths, load_settings

    setup_logging(ctx.verbose if ctx else False)

    try:
        paths = get_paths()
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        return

    if not paths.db.exists():
        console.print("[red]No database yet. Run 'folio init' first.[/red]")
        return

    settings = load_settings(paths)
    if not settings.admin_token:
        console.print(f"[dim]{ADMIN_TOKEN_ENV} is not set; admin access needs the identity header.[/dim]")

    app = create_app(settings=settings, paths=paths)
    host = host or settings.host
    port = port or settings.port
    console.print(f"[cyan]Serving {paths.root} on http://{host}:{port}[/cyan]")
    app.run(host=host, port=port, debug=debug)


@main.command()
@click.option("-n", "--limit", type=int, default=50, help="Number of entries to show")
@click.option("--entity", help="Only show this entity type (project, media_asset, ...)")
def audit(limit: int, entity: str | None) -> None:
    """Show the most recent audit log entries."""
    from folio.core.config import get_paths
    from folio.core.database import Store

    try:
        paths = get_paths()
    except FileNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        return

    rows = Store(paths.db).recent_audit(limit if not entity else 500)
    if entity:
        rows = [row for row in rows if row["entity_type"] == entity][:limit]

    if not rows:
        console.print("[dim]No audit entries.[/dim]")
        return

    table = Table(title="Audit log", show_header=True, header_style="bold cyan")
    table.add_column("When", style="dim")
    table.add_column("Action")
    table.add_column("Entity")
    table.add_column("ID")
    table.add_column("Actor", style="green")
    for row in rows:
        table.add_row(
            row["created_at"],
            row["action"],
            row["entity_type"],
            row["entity_id"] or "",
            row["actor_email"] or "",
        )
    console.print(table)


# Import and register command groups (imports after main definition intentional)
from folio.config.commands import config  # noqa: E402
from folio.manifest.commands import manifest  # noqa: E402
from folio.users.commands import users  # noqa: E402

main.add_command(config)
main.add_command(manifest)
main.add_command(users)


if __name__ == "__main__":
    main()
