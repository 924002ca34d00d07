"""
figma-transfer CLI — `figma-transfer` command.

Commands:
  figma-transfer auth login|status|logout    Manage the stored API token
  figma-transfer files recent|pages          Browse files and their pages
  figma-transfer relay pending|send|drop     Inspect and manage relayed transfers
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

try:
    import click
    from rich.console import Console
    from rich.logging import RichHandler
except ImportError:
    raise SystemExit("CLI requires extras: pip install figma-transfer[cli]")

from figma_transfer.auth import Auth
from figma_transfer.credentials import CONFIG_FILE, CredentialStore
from figma_transfer.errors import TransferError
from figma_transfer.files import FilesAPI
from figma_transfer.relay import RelayChannel
from figma_transfer.transport.http import DEFAULT_BASE_URL, HttpClient

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )


class Remote:
    """REST clients for one CLI invocation."""

    def __init__(self, store: CredentialStore, base_url: str = DEFAULT_BASE_URL):
        self.store = store
        self.http = HttpClient(base_url=base_url, token=store.get_token())
        self.auth = Auth(self.http, store)
        self.files = FilesAPI(self.http)
        self.relay = RelayChannel(self.files)

    async def __aenter__(self) -> "Remote":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.http.close()


def _get_store(ctx: click.Context) -> CredentialStore:
    return ctx.obj["store"]


def _get_remote(ctx: click.Context) -> Remote:
    return Remote(ctx.obj["store"], ctx.obj["base_url"])


def _require_token(ctx: click.Context) -> str:
    token = _get_store(ctx).get_token()
    if not token:
        console.print("[red]Not logged in. Run `figma-transfer auth login` first.[/red]")
        raise SystemExit(1)
    return token


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except TransferError as e:
        console.print(f"[red]{e.message}[/red]")
        raise SystemExit(1)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help=f"Config file (default: {CONFIG_FILE})")
@click.option("--base-url", default=DEFAULT_BASE_URL, show_default=True, help="Figma API base URL")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: Optional[Path], base_url: str):
    """figma-transfer CLI — move designs between Figma files."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["store"] = CredentialStore(config_path or CONFIG_FILE)
    ctx.obj["base_url"] = base_url


# Register subcommands from separate modules
from figma_transfer.cli.auth import auth  # noqa: E402
from figma_transfer.cli.files import files  # noqa: E402
from figma_transfer.cli.relay import relay  # noqa: E402

main.add_command(auth)
main.add_command(files)
main.add_command(relay)


if __name__ == "__main__":
    main()
