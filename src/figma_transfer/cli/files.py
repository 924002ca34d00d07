"""CLI: figma-transfer files recent|pages"""

from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from figma_transfer.models.files import FileEntry

console = Console()


def _run(coro):
    from figma_transfer.cli.main import _run
    return _run(coro)


def _get_remote(ctx):
    from figma_transfer.cli.main import _get_remote
    return _get_remote(ctx)


def _require_token(ctx):
    from figma_transfer.cli.main import _require_token
    return _require_token(ctx)


@click.group()
def files():
    """Files and pages."""


@files.command("recent")
@click.pass_context
def files_recent(ctx):
    """List recently used destination files."""
    entries = ctx.obj["store"].recent_files()
    if not entries:
        console.print("[dim]No recent files.[/dim]")
        return
    table = Table(title=f"Recent files ({len(entries)})")
    table.add_column("Key", style="bold")
    table.add_column("Name")
    table.add_column("Last used")
    for entry in entries:
        table.add_row(entry.key, entry.name, entry.last_modified or "")
    console.print(table)


@files.command("pages")
@click.argument("file_key")
@click.pass_context
def files_pages(ctx, file_key):
    """List the pages of a file and remember it as a recent file."""
    token = _require_token(ctx)

    async def _pages():
        async with _get_remote(ctx) as remote:
            with console.status("Fetching file..."):
                return await remote.files.fetch_document(file_key, token)

    document = _run(_pages())
    ctx.obj["store"].add_recent_file(FileEntry(
        key=file_key, name=document.name,
        last_modified=datetime.now(timezone.utc).isoformat(),
    ))
    table = Table(title=f"{document.name} — {len(document.pages)} page(s)")
    table.add_column("Page ID", style="bold")
    table.add_column("Name")
    for page in document.pages:
        table.add_row(page.id, page.name)
    console.print(table)
