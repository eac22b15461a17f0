"""
Admin user CLI commands.

Users are the emails the upstream identity proxy may present in production.
Their role decides what the admin API lets them do: owners and editors can
write, viewers can only read.
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from folio.api.auth import ROLES
from folio.core.config import get_paths
from folio.core.database import Store

console = Console()


def _store() -> Store:
    return Store(get_paths().db)


@click.group()
def users():
    """Manage admin users and roles."""
    pass


@users.command(name="add")
@click.argument("email")
@click.option("-r", "--role", type=click.Choice(ROLES), default="viewer", show_default=True)
@click.pass_obj
def add_cmd(ctx, email: str, role: str):
    """Add a user, or change an existing user's role."""
    email = email.strip().lower()
    if "@" not in email:
        console.print(f"[red]Not an email address: {email}[/red]")
        return

    if ctx and ctx.dry_run:
        console.print(f"[yellow]Would set {email} to {role}[/yellow]")
        return

    _store().upsert_user(email, role)
    console.print(f"[green]{email} is now {role}[/green]")


@users.command(name="list")
def list_cmd():
    """List admin users."""
    rows = _store().list_users()
    if not rows:
        console.print("[dim]No users yet. Add one with 'folio users add EMAIL --role owner'.[/dim]")
        return

    table = Table(title="Users", show_header=True, header_style="bold cyan")
    table.add_column("Email")
    table.add_column("Role", style="green")
    table.add_column("Added", style="dim")
    for row in rows:
        table.add_row(row["email"], row["role"], row["created_at"])
    console.print(table)


@users.command(name="remove")
@click.argument("email")
@click.option("--force", "-f", is_flag=True, help="Skip confirmation prompt")
@click.pass_obj
def remove_cmd(ctx, email: str, force: bool):
    """Remove a user."""
    if ctx and ctx.dry_run:
        console.print(f"[yellow]Would remove {email}[/yellow]")
        return

    if not force and not click.confirm(f"Remove {email}?"):
        console.print("[yellow]Cancelled[/yellow]")
        return

    if _store().remove_user(email):
        console.print(f"[green]Removed {email}[/green]")
    else:
        console.print(f"[yellow]No such user: {email}[/yellow]")
