"""Typer-based CLI for Veridis Core."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import VeridisConfig
from .core import VeridisCore
from .errors import AuthzError, PersistenceFailure
from .models.authz import InviteCodeRecord, UserRecord

app = typer.Typer(
    name="veridis",
    help="Veridis Core - event hub with role-based authorization",
    add_completion=False,
)

console = Console()

STORE_OPTION_HELP = "Path to authz store (default: VERIDIS_AUTHZ_STORE_PATH env or state/authz.json)"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable debug logging"),
):
    """Veridis Core command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_core(store_path: Optional[str]) -> VeridisCore:
    try:
        config = VeridisConfig.from_env(store_path=store_path)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
    return VeridisCore(config)


def _print_user(user: UserRecord) -> None:
    console.print(f"  [dim]External ID:[/dim] {user.external_id}")
    console.print(f"  [dim]Role:[/dim]        [magenta]{user.role.value}[/magenta]")
    if user.name:
        console.print(f"  [dim]Name:[/dim]        {user.name}")
    if user.origin:
        console.print(f"  [dim]Origin:[/dim]      {user.origin}")
    console.print(f"  [dim]Updated:[/dim]     {user.updated_at.strftime('%Y-%m-%d %H:%M:%S')} UTC")


def _print_invite(invite: InviteCodeRecord) -> None:
    console.print(f"  [dim]Code:[/dim]    [bold cyan]{invite.code}[/bold cyan]")
    console.print(f"  [dim]Grants:[/dim]  {invite.role_grant}")
    console.print(f"  [dim]Expires:[/dim] {invite.expires_at.strftime('%Y-%m-%d %H:%M:%S')} UTC")


def _fail(error: Exception) -> None:
    if isinstance(error, AuthzError):
        console.print(f"[red]Refused ({error.code}): {error.message}[/red]")
    elif isinstance(error, PersistenceFailure):
        console.print(f"[red]Store error: {error.message}[/red]")
    else:
        console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(code=1)


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address (default: HOST env or 0.0.0.0)"),
    port: int = typer.Option(None, "--port", "-p", help="Port (default: PORT env or 3001)"),
    store_path: str = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
):
    """Run the HTTP binding in the foreground."""
    from .api import serve as serve_http

    core = _load_core(store_path)
    try:
        core.boot()
    except PersistenceFailure as e:
        _fail(e)

    bind_host = host or core.config.host
    bind_port = port if port is not None else core.config.port
    console.print(f"[green]Veridis Core running on[/green] http://{bind_host}:{bind_port}")
    try:
        serve_http(core, bind_host, bind_port)
    except KeyboardInterrupt:
        console.print("[yellow]Stopped[/yellow]")


authz_app = typer.Typer(help="Authorization commands")
app.add_typer(authz_app, name="authz")


@authz_app.command("onboard")
def authz_onboard(
    external_id: str = typer.Argument(..., help="External identity (e.g. Telegram user id)"),
    name: str = typer.Option(None, "--name", "-n", help="Display name"),
    origin: str = typer.Option(None, "--origin", "-o", help="Where the user came from"),
    store_path: str = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
):
    """Create or update a user record."""
    core = _load_core(store_path)
    try:
        user = core.onboard_user(external_id, name=name, origin=origin)
    except (AuthzError, PersistenceFailure, ValueError) as e:
        _fail(e)
    console.print("[green]Onboarded:[/green]")
    _print_user(user)


@authz_app.command("invite")
def authz_invite(
    creator: str = typer.Argument(..., help="External id of the issuing god user"),
    ttl_hours: float = typer.Option(None, "--ttl-hours", "-t", help="Lifetime in hours (default: 12)"),
    store_path: str = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
):
    """Issue a single-use dev invite code (god only)."""
    core = _load_core(store_path)
    try:
        invite = core.create_invite(creator, ttl_hours=ttl_hours)
    except (AuthzError, PersistenceFailure, ValueError) as e:
        _fail(e)
    console.print("[green]Invite code created:[/green]")
    _print_invite(invite)


@authz_app.command("redeem")
def authz_redeem(
    external_id: str = typer.Argument(..., help="External id redeeming the code"),
    code: str = typer.Argument(..., help="Invite code, e.g. DEV-AB23CD45"),
    store_path: str = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
):
    """Redeem an invite code for the dev role."""
    core = _load_core(store_path)
    try:
        user = core.redeem_invite(external_id, code)
    except (AuthzError, PersistenceFailure, ValueError) as e:
        _fail(e)
    console.print("[green]Invite redeemed:[/green]")
    _print_user(user)


@authz_app.command("check")
def authz_check(
    external_id: str = typer.Argument(..., help="External id to check"),
    action: str = typer.Argument(..., help="Action name, e.g. video.pipeline.run"),
    store_path: str = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
):
    """Check whether a user may perform an action. Exits 1 when denied."""
    core = _load_core(store_path)
    try:
        result = core.check_permission(external_id, action)
    except PersistenceFailure as e:
        _fail(e)
    if result.allowed:
        console.print(f"[green]allowed[/green] ({result.role.value})")
    else:
        console.print(f"[red]denied[/red] ({result.role.value})")
        raise typer.Exit(code=1)


@authz_app.command("role")
def authz_role(
    external_id: str = typer.Argument(..., help="External id to resolve"),
    store_path: str = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
):
    """Print the effective role of a user."""
    core = _load_core(store_path)
    try:
        role = core.authz.role_of(external_id)
    except PersistenceFailure as e:
        _fail(e)
    console.print(role.value)


@authz_app.command("users")
def authz_users(
    store_path: str = typer.Option(None, "--store", "-s", help=STORE_OPTION_HELP),
):
    """List stored users."""
    core = _load_core(store_path)
    try:
        users = core.authz.list_users()
    except PersistenceFailure as e:
        _fail(e)

    if not users:
        console.print("[dim]No users in store[/dim]")
        return

    table = Table(title=f"{len(users)} User(s)")
    table.add_column("External ID", style="cyan", no_wrap=True)
    table.add_column("Role", style="magenta")
    table.add_column("Name")
    table.add_column("Origin", style="dim")
    table.add_column("Updated (UTC)", style="dim")

    for user in sorted(users, key=lambda u: u.created_at):
        table.add_row(
            user.external_id,
            user.role.value,
            user.name or "-",
            user.origin or "-",
            user.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)


if __name__ == "__main__":
    app()
