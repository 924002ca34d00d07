"""CLI: figma-transfer relay pending|send|drop"""

import json
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from figma_transfer.models.envelope import PendingTransfer
from figma_transfer.models.node import PortableNode
from figma_transfer.relay import select_latest
from figma_transfer.transport.envelope import build_envelope

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
def relay():
    """Relayed transfers in a file's comments feed."""


@relay.command("pending")
@click.argument("file_key")
@click.option("--json-output", "--json", is_flag=True)
@click.pass_context
def relay_pending(ctx, file_key, json_output):
    """List transfers waiting to be applied in FILE_KEY."""
    token = _require_token(ctx)

    async def _pending() -> list[PendingTransfer]:
        async with _get_remote(ctx) as remote:
            return await remote.relay.list_pending(file_key, token)

    pending = _run(_pending())
    if json_output:
        click.echo(json.dumps([p.model_dump(mode="json", exclude_none=True) for p in pending], indent=2))
        return
    if not pending:
        console.print("[dim]No pending transfers.[/dim]")
        return
    latest = select_latest(pending)
    table = Table(title=f"Pending transfers ({len(pending)})")
    table.add_column("Message", style="bold")
    table.add_column("Element")
    table.add_column("From")
    table.add_column("Target page")
    table.add_column("Nodes", justify="right")
    table.add_column("Created")
    for item in pending:
        env = item.envelope
        marker = " [cyan](next)[/cyan]" if item is latest else ""
        table.add_row(
            item.message_id + marker, env.source_label, env.source_document_label,
            env.target_page_id, str(env.payload.count()), env.created_at.isoformat(),
        )
    console.print(table)


@relay.command("send")
@click.argument("file_key")
@click.argument("page_id")
@click.argument("node_json", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--source-label", default=None, help="Display name of the element")
@click.option("--source-file", "source_document_label", default="", help="Display name of the source file")
@click.pass_context
def relay_send(ctx, file_key, page_id, node_json, source_label, source_document_label):
    """Publish a serialized node (NODE_JSON) to PAGE_ID of FILE_KEY."""
    try:
        payload = PortableNode.model_validate_json(node_json.read_text())
    except ValidationError as e:
        console.print(f"[red]{node_json} is not a valid portable node: {e.error_count()} error(s)[/red]")
        raise SystemExit(1)
    token = _require_token(ctx)

    async def _send():
        async with _get_remote(ctx) as remote:
            document = await remote.files.fetch_document(file_key, token)
            if document.find_page(page_id) is None:
                return None, document.name
            envelope = build_envelope(
                payload, target_page_id=page_id,
                source_label=source_label or payload.name,
                source_document_label=source_document_label,
            )
            return await remote.relay.publish(file_key, envelope, token), document.name

    with console.status("Publishing..."):
        message_id, file_name = _run(_send())
    if message_id is None:
        console.print(f"[red]Page {page_id} not found in {file_name}.[/red]")
        raise SystemExit(1)
    console.print(f"[green]Published to {file_name} as message {message_id}.[/green]")


@relay.command("drop")
@click.argument("file_key")
@click.argument("message_id")
@click.pass_context
def relay_drop(ctx, file_key, message_id):
    """Delete a pending transfer without applying it."""
    token = _require_token(ctx)

    async def _drop() -> bool:
        async with _get_remote(ctx) as remote:
            pending = await remote.relay.list_pending(file_key, token)
            match = next((p for p in pending if p.message_id == message_id), None)
            if match is None:
                return False
            await remote.relay.consume(file_key, match, token)
            return True

    if not _run(_drop()):
        console.print(f"[yellow]No pending transfer with id {message_id}.[/yellow]")
        raise SystemExit(1)
    console.print(f"[green]Transfer {message_id} dropped.[/green]")
