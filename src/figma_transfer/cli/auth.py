"""CLI: figma-transfer auth login|status|logout"""

import click
from rich.console import Console

console = Console()


def _run(coro):
    from figma_transfer.cli.main import _run
    return _run(coro)


def _get_remote(ctx):
    from figma_transfer.cli.main import _get_remote
    return _get_remote(ctx)


def _mask(token: str) -> str:
    return f"{token[:4]}…{token[-4:]}" if len(token) > 10 else "****"


@click.group()
def auth():
    """Authentication commands."""


@auth.command("login")
@click.option("--token", default=None, help="Personal access token (prompted when omitted)")
@click.pass_context
def auth_login(ctx, token):
    """Validate and store a personal access token."""

    async def _login():
        value = token or click.prompt("Personal access token", hide_input=True)
        async with _get_remote(ctx) as remote:
            with console.status("Validating token..."):
                identity, scopes = await remote.auth.validate_token(value)
        console.print(f"[green]Token validated{scopes.scope_message}. Logged in as {identity.user_label}.[/green]")
        console.print(f"[dim]Token saved to {remote.store.path}[/dim]")

    _run(_login())


@auth.command("status")
@click.option("--check", is_flag=True, help="Re-validate the stored token against the API")
@click.pass_context
def auth_status(ctx, check):
    """Show current auth status."""
    store = ctx.obj["store"]
    token = store.get_token()
    if not token:
        console.print("[yellow]Not logged in. Run `figma-transfer auth login`.[/yellow]")
        return
    scopes = store.get_scopes()
    access = "read/write" if scopes and scopes.has_write_access else "read-only" if scopes else "unknown"
    console.print(f"[green]Token stored[/green] {_mask(token)} ({access})")

    if check:
        async def _check():
            async with _get_remote(ctx) as remote:
                return await remote.auth.check_stored_token()

        result = _run(_check())
        if result is None:
            console.print("[red]Stored token is no longer valid.[/red]")
            raise SystemExit(1)
        console.print(f"[green]Valid — {result[0].user_label}[/green]")


@auth.command("logout")
@click.pass_context
def auth_logout(ctx):
    """Clear the stored token."""
    ctx.obj["store"].clear()
    console.print("[green]Logged out.[/green]")
