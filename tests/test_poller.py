"""Polling consumer and poller handle."""

import asyncio
import json

import pytest

from fakes import MemoryDocument, sample_frame

from figma_transfer.client import AsyncFigmaTransfer
from figma_transfer.orchestrator import Placement, TransferRequest
from figma_transfer.poller import CycleOutcome, PollerHandle
from figma_transfer.transport.envelope import TRANSFER_MARKER


async def relay_card(document, source_client, page_id="5:1"):
    document.selection = [sample_frame(document)]
    return await source_client.orchestrator.transfer(TransferRequest("DEST", page_id=page_id))


class TestPollingConsumer:
    @pytest.mark.asyncio
    async def test_applies_relayed_transfer(self, api, document, destination, source_client, dest_client):
        await relay_card(document, source_client)

        outcome = await dest_client.check_pending()

        assert outcome is CycleOutcome.APPLIED
        inbox = destination.page("Inbox")
        [node] = inbox.children
        assert node.type == "FRAME"
        assert node.name == "Card"
        assert [c.name for c in node.children] == ["Background", "Label"]
        assert node.children[1].attributes["text"]["characters"] == "Hi"
        assert destination.current_page is inbox
        assert destination.selection == [node]
        assert api.comments["DEST"] == []
        assert await dest_client.check_pending() is CycleOutcome.IDLE

    @pytest.mark.asyncio
    async def test_only_transfer_messages_are_touched(self, api, document, destination, source_client, dest_client):
        api.add_comment("DEST", "Please align the header")
        await relay_card(document, source_client)

        assert await dest_client.check_pending() is CycleOutcome.APPLIED

        assert [c["message"] for c in api.comments["DEST"]] == ["Please align the header"]
        assert len(destination.page("Inbox").children) == 1

    @pytest.mark.asyncio
    async def test_stay_placement_leaves_view(self, api, document, destination, store, source_client):
        client = AsyncFigmaTransfer(destination, store=store, transport=api.transport(), placement=Placement.STAY)
        await relay_card(document, source_client, page_id="5:2")

        assert await client.check_pending() is CycleOutcome.APPLIED
        assert len(destination.page("Archive").children) == 1
        assert destination.current_page is destination.page("Inbox")
        assert destination.selection == []

    @pytest.mark.asyncio
    async def test_skipped_without_token(self, api, destination, store, dest_client):
        store.clear()
        assert await dest_client.check_pending() is CycleOutcome.SKIPPED
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_skipped_without_file_key(self, api, store):
        unsaved = MemoryDocument(file_key=None)
        client = AsyncFigmaTransfer(unsaved, store=store, transport=api.transport())
        assert await client.check_pending() is CycleOutcome.SKIPPED
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_idle_on_empty_feed(self, dest_client):
        assert await dest_client.check_pending() is CycleOutcome.IDLE

    @pytest.mark.asyncio
    async def test_failed_reconstruction_leaves_message(self, api, document, destination, source_client, dest_client):
        await relay_card(document, source_client)
        destination.fail_create_at = {1}

        assert await dest_client.check_pending() is CycleOutcome.FAILED
        assert len(api.comments["DEST"]) == 1
        assert destination.page("Inbox").children == []

        destination.fail_create_at = set()
        assert await dest_client.check_pending() is CycleOutcome.APPLIED
        assert api.comments["DEST"] == []

    @pytest.mark.asyncio
    async def test_view_switch_failure_still_consumes(self, api, document, destination, source_client, dest_client):
        await relay_card(document, source_client)

        async def refuse(page):
            raise RuntimeError("page is locked")

        def broken_notify(message):
            raise RuntimeError("toast unavailable")

        destination.set_current_page = refuse
        destination.notify = broken_notify

        assert await dest_client.check_pending() is CycleOutcome.APPLIED
        assert await dest_client.check_pending() is CycleOutcome.IDLE
        assert len(destination.page("Inbox").children) == 1
        assert api.comments["DEST"] == []

    @pytest.mark.asyncio
    async def test_unknown_nested_kind_is_applied_as_frame(self, api, destination, dest_client):
        api.add_comment("DEST", TRANSFER_MARKER + "\n" + json.dumps({
            "type": "DESIGN_TRANSFER",
            "payload": {"kind": "FRAME", "name": "Icon", "children": [
                {"kind": "VECTOR", "name": "Path", "geometry": {"width": 12.0, "height": 12.0}},
            ]},
            "source_label": "Icon",
            "source_document_label": "Library",
            "target_page_id": "5:1",
            "created_at": "2026-03-01T12:00:00Z",
        }))

        assert await dest_client.check_pending() is CycleOutcome.APPLIED

        [icon] = destination.page("Inbox").children
        [path] = icon.children
        assert (path.type, path.name) == ("FRAME", "Path")
        assert api.comments["DEST"] == []

    @pytest.mark.asyncio
    async def test_missing_target_page_leaves_message(self, api, document, store, source_client):
        api.add_file("DEST", "Destination", [("5:1", "Inbox"), ("5:9", "Removed later")])
        await relay_card(document, source_client, page_id="5:9")
        destination = MemoryDocument("DEST", "Destination", pages=[("5:1", "Inbox")])
        client = AsyncFigmaTransfer(destination, store=store, transport=api.transport())

        assert await client.check_pending() is CycleOutcome.FAILED
        assert len(api.comments["DEST"]) == 1

    @pytest.mark.asyncio
    async def test_network_errors_are_swallowed(self, api, document, source_client, dest_client):
        await relay_card(document, source_client)
        api.unavailable = True

        assert await dest_client.check_pending() is CycleOutcome.FAILED

    @pytest.mark.asyncio
    async def test_concurrent_claims_duplicate_instead_of_losing(self, api, document, destination, store,
                                                                 source_client, dest_client):
        await relay_card(document, source_client)
        token = store.get_token()
        relay = dest_client.relay
        inbox = destination.page("Inbox")

        first = await relay.claim_latest("DEST", token)
        second = await relay.claim_latest("DEST", token)
        assert first.message_id == second.message_id

        await dest_client.codec.deserialize(first.envelope.payload, inbox)
        await relay.consume("DEST", first, token)
        await dest_client.codec.deserialize(second.envelope.payload, inbox)
        await relay.consume("DEST", second, token)

        assert len(inbox.children) == 2
        assert api.comments["DEST"] == []


class _SlowConsumer:
    def __init__(self):
        self.active = 0
        self.max_active = 0
        self.calls = 0

    async def run_cycle(self) -> CycleOutcome:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.005)
        self.active -= 1
        return CycleOutcome.IDLE


class TestPollerHandle:
    @pytest.mark.asyncio
    async def test_start_and_stop_are_idempotent(self):
        consumer = _SlowConsumer()
        handle = PollerHandle(consumer, initial_delay=0.0, interval=0.001)

        handle.start()
        handle.start()
        assert handle.running
        await asyncio.sleep(0.05)
        await handle.stop()
        await handle.stop()

        assert not handle.running
        assert consumer.calls >= 2
        assert consumer.max_active == 1
        calls = consumer.calls
        await asyncio.sleep(0.02)
        assert consumer.calls == calls

    @pytest.mark.asyncio
    async def test_restart_after_stop(self):
        handle = PollerHandle(_SlowConsumer(), initial_delay=0.0, interval=0.001)
        handle.start()
        await handle.stop()
        handle.start()
        assert handle.running
        await handle.stop()

    @pytest.mark.asyncio
    async def test_background_polling_applies_transfer(self, api, document, destination, source_client, dest_client):
        await relay_card(document, source_client)

        dest_client.start_polling()
        for _ in range(100):
            if destination.page("Inbox").children:
                break
            await asyncio.sleep(0.01)
        await dest_client.close()

        assert len(destination.page("Inbox").children) == 1
        assert api.comments["DEST"] == []
        assert not dest_client.poller.running
