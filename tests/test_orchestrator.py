"""Transfer orchestrator: validation, same-file and cross-file paths."""

import pytest

from fakes import sample_frame

from figma_transfer.client import AsyncFigmaTransfer
from figma_transfer.errors import AuthError, NetworkError, PreconditionError
from figma_transfer.orchestrator import Placement, TransferRequest, TransferState
from figma_transfer.transport.envelope import parse_message


def select_card(document):
    frame = sample_frame(document)
    document.selection = [frame]
    return frame


class TestValidation:
    @pytest.mark.asyncio
    async def test_empty_selection(self, api, source_client):
        with pytest.raises(PreconditionError):
            await source_client.orchestrator.transfer(TransferRequest("DEST", page_id="5:1"))
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_multiple_selection(self, api, document, source_client):
        document.selection = [sample_frame(document), sample_frame(document)]
        with pytest.raises(PreconditionError) as exc:
            await source_client.orchestrator.transfer(TransferRequest("DEST", page_id="5:1"))
        assert exc.value.details == {"selected": 2}
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_unsupported_type(self, api, document, source_client):
        document.selection = [document.make("RECTANGLE", "Box", document.current_page)]
        with pytest.raises(PreconditionError):
            await source_client.orchestrator.transfer(TransferRequest("current", page_id="0:2"))
        assert api.requests == []

    def test_describe_selection(self, document, source_client):
        assert source_client.describe_selection().message == "No frame or component selected"
        frame = select_card(document)
        info = source_client.describe_selection()
        assert info.has_selection
        assert (info.node_name, info.node_type, info.node_id) == ("Card", "FRAME", frame.id)
        document.selection = [frame, frame]
        assert not source_client.describe_selection().has_selection


class TestSameFile:
    @pytest.mark.asyncio
    async def test_clone_lands_on_existing_page(self, api, document, source_client):
        original = select_card(document)
        drafts = document.page("Drafts")

        result = await source_client.orchestrator.transfer(TransferRequest("current", page_id="0:2"))

        assert result.success
        assert result.state is TransferState.DONE
        assert drafts.children == [result.node]
        clone = result.node
        assert clone is not original
        assert clone.type == "FRAME"
        assert [c.name for c in clone.children] == ["Background", "Label"]
        assert clone.children[1].attributes["text"]["characters"] == "Hi"
        assert document.page("Page 1").children == [original]
        assert document.current_page is drafts
        assert document.selection == [clone]
        assert document.viewport == [clone]
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_own_file_key_counts_as_same_file(self, document, source_client):
        select_card(document)
        result = await source_client.orchestrator.transfer(TransferRequest("SRC", page_id="0:2"))
        assert result.page_name == "Drafts"

    @pytest.mark.asyncio
    async def test_stay_in_place(self, document, source_client):
        original = select_card(document)
        start_page = document.current_page

        result = await source_client.orchestrator.transfer(
            TransferRequest("current", page_id="0:2", placement=Placement.STAY),
        )

        assert document.page("Drafts").children == [result.node]
        assert document.current_page is start_page
        assert document.selection == [original]
        assert document.viewport == []

    @pytest.mark.asyncio
    async def test_new_page(self, document, source_client):
        select_card(document)
        result = await source_client.orchestrator.transfer(TransferRequest("current", new_page_name="Handoff"))

        page = document.page("Handoff")
        assert page.children == [result.node]
        assert result.page_id == page.id

    @pytest.mark.asyncio
    async def test_missing_page_discards_clone(self, document, source_client):
        select_card(document)
        with pytest.raises(PreconditionError):
            await source_client.orchestrator.transfer(TransferRequest("current", page_id="9:9"))
        assert len(document.page("Page 1").children) == 1

    @pytest.mark.asyncio
    async def test_view_switch_failure_keeps_single_copy(self, document, source_client):
        original = select_card(document)
        drafts = document.page("Drafts")

        async def refuse(page):
            raise RuntimeError("page is locked")

        document.set_current_page = refuse
        result = await source_client.transfer("current", page_id="0:2")

        assert result.success
        assert drafts.children == [result.node]
        assert document.page("Page 1").children == [original]

    @pytest.mark.asyncio
    async def test_progress_milestones(self, document, source_client):
        select_card(document)
        seen = []
        await source_client.orchestrator.transfer(
            TransferRequest("current", page_id="0:2"), on_progress=seen.append,
        )
        assert [p.percent for p in seen] == [0, 10, 30, 50, 70, 90, 100]
        assert seen[-1].state is TransferState.DONE


class TestCrossFile:
    @pytest.mark.asyncio
    async def test_publishes_and_discards_clone(self, api, document, source_client):
        select_card(document)
        seen = []

        result = await source_client.orchestrator.transfer(
            TransferRequest("DEST", page_id="5:1"), on_progress=seen.append,
        )

        assert result.success
        assert (result.file_name, result.page_name) == ("Destination", "Inbox")
        assert len(document.page("Page 1").children) == 1
        assert [p.state for p in seen] == [
            TransferState.VALIDATING,
            TransferState.CLONING,
            TransferState.SERIALIZING,
            TransferState.VALIDATING_DESTINATION,
            TransferState.PUBLISHING,
            TransferState.CLEANUP,
            TransferState.DONE,
        ]
        [comment] = api.comments["DEST"]
        assert comment["id"] == result.message_id
        envelope = parse_message(comment["message"])
        assert envelope.target_page_id == "5:1"
        assert envelope.source_label == "Card"
        assert envelope.source_document_label == "Source File"
        assert [c.name for c in envelope.payload.children] == ["Background", "Label"]
        assert [f.key for f in source_client.store.recent_files()] == ["DEST"]

    @pytest.mark.asyncio
    async def test_read_only_token_fails_before_any_call(self, api, document, read_only_store):
        client = AsyncFigmaTransfer(document, store=read_only_store, transport=api.transport())
        select_card(document)

        with pytest.raises(AuthError) as exc:
            await client.orchestrator.transfer(TransferRequest("DEST", page_id="5:1"))

        assert exc.value.code == "insufficient_scope"
        assert api.count("POST") == 0
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_missing_token(self, api, document, store):
        store.clear()
        client = AsyncFigmaTransfer(document, store=store, transport=api.transport())
        select_card(document)
        with pytest.raises(AuthError):
            await client.orchestrator.transfer(TransferRequest("DEST", page_id="5:1"))
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_new_page_is_not_supported(self, api, document, source_client):
        select_card(document)
        with pytest.raises(PreconditionError) as exc:
            await source_client.orchestrator.transfer(TransferRequest("DEST", new_page_name="Fresh"))
        assert "not supported" in str(exc.value)
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_unknown_destination_page(self, api, document, source_client):
        select_card(document)
        with pytest.raises(PreconditionError):
            await source_client.orchestrator.transfer(TransferRequest("DEST", page_id="7:7"))
        assert api.count("POST") == 0
        assert len(document.page("Page 1").children) == 1

    @pytest.mark.asyncio
    async def test_network_failure_discards_clone(self, api, document, source_client):
        select_card(document)
        api.unavailable = True
        with pytest.raises(NetworkError):
            await source_client.orchestrator.transfer(TransferRequest("DEST", page_id="5:1"))
        assert len(document.page("Page 1").children) == 1

    @pytest.mark.asyncio
    async def test_handle_transfer_reports_instead_of_raising(self, api, document, source_client):
        select_card(document)
        api.unavailable = True

        result = await source_client.transfer("DEST", page_id="5:1")

        assert not result.success
        assert result.state is TransferState.FAILED
        assert isinstance(result.error, NetworkError)
        assert document.notifications[-1].startswith("Failed to transfer")

    @pytest.mark.asyncio
    async def test_broken_notify_does_not_escape(self, api, document, source_client):
        select_card(document)
        api.unavailable = True

        def broken_notify(message):
            raise RuntimeError("toast unavailable")

        document.notify = broken_notify
        failed = await source_client.transfer("DEST", page_id="5:1")
        assert not failed.success
        assert failed.state is TransferState.FAILED

        api.unavailable = False
        done = await source_client.transfer("DEST", page_id="5:1")
        assert done.success

    @pytest.mark.asyncio
    async def test_failed_discard_does_not_mask_publish(self, api, document, source_client):
        frame = select_card(document)

        def clone():
            copy = type(frame).clone(frame)

            def refuse():
                raise RuntimeError("locked")

            copy.remove = refuse
            return copy

        frame.clone = clone
        result = await source_client.orchestrator.transfer(TransferRequest("DEST", page_id="5:1"))

        assert result.success
        assert len(api.comments["DEST"]) == 1


class TestFilePicker:
    @pytest.mark.asyncio
    async def test_current_file_first_then_recent(self, document, source_client):
        await source_client.list_pages("DEST")
        files = source_client.list_files()
        assert [f.key for f in files] == ["SRC", "DEST"]
        assert files[0].name == "Source File (Current File)"

    @pytest.mark.asyncio
    async def test_current_file_pages_come_from_host(self, api, document, source_client):
        info = await source_client.list_pages("current")
        assert [p.name for p in info.pages] == ["Page 1", "Drafts"]
        assert document.pages_loaded
        assert api.requests == []

    @pytest.mark.asyncio
    async def test_remote_pages(self, source_client):
        info = await source_client.list_pages("DEST")
        assert info.name == "Destination"
        assert [(p.id, p.name) for p in info.pages] == [("5:1", "Inbox"), ("5:2", "Archive")]
