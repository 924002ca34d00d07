"""
AsyncFigmaTransfer — main entry point wiring the transfer core to one open file.
"""

from pathlib import Path
from typing import Optional

import httpx

from figma_transfer.auth import Auth
from figma_transfer.codec import TreeCodec
from figma_transfer.credentials import CONFIG_FILE, CredentialStore
from figma_transfer.files import FilesAPI
from figma_transfer.host import HostDocument
from figma_transfer.models.files import DocumentInfo, FileEntry, Identity, TokenScopes
from figma_transfer.orchestrator import (
    Placement,
    ProgressCallback,
    SelectionInfo,
    TransferOrchestrator,
    TransferRequest,
    TransferResult,
    describe_selection,
)
from figma_transfer.poller import (
    DEFAULT_INITIAL_DELAY_S,
    DEFAULT_POLL_INTERVAL_S,
    CycleOutcome,
    PollerHandle,
    PollingConsumer,
)
from figma_transfer.relay import RelayChannel
from figma_transfer.transport.http import DEFAULT_BASE_URL, HttpClient


class AsyncFigmaTransfer:
    """Async transfer session bound to one host document."""

    def __init__(
        self,
        document: HostDocument,
        store: Optional[CredentialStore] = None,
        config_path: Path = CONFIG_FILE,
        base_url: str = DEFAULT_BASE_URL,
        placement: Placement = Placement.FOCUS,
        poll_initial_delay: float = DEFAULT_INITIAL_DELAY_S,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.document = document
        self.store = store or CredentialStore(config_path)

        self.http = HttpClient(base_url=base_url, token=self.store.get_token(), transport=transport)
        self.auth = Auth(self.http, self.store)
        self.files = FilesAPI(self.http)
        self.relay = RelayChannel(self.files)
        self.codec = TreeCodec(document)
        self.orchestrator = TransferOrchestrator(
            document, self.codec, self.relay, self.files, self.store, placement=placement,
        )
        self.consumer = PollingConsumer(document, self.codec, self.relay, self.store, placement=placement)
        self.poller = PollerHandle(self.consumer, initial_delay=poll_initial_delay, interval=poll_interval)

    async def validate_token(self, token: str) -> tuple[Identity, TokenScopes]:
        return await self.auth.validate_token(token)

    async def check_stored_token(self) -> Optional[tuple[Identity, TokenScopes]]:
        return await self.auth.check_stored_token()

    def describe_selection(self) -> SelectionInfo:
        return describe_selection(self.document)

    def list_files(self) -> list[FileEntry]:
        return self.orchestrator.list_files()

    async def list_pages(self, file_key: str) -> DocumentInfo:
        return await self.orchestrator.list_pages(file_key)

    async def transfer(
        self,
        file_key: str,
        page_id: Optional[str] = None,
        new_page_name: Optional[str] = None,
        placement: Optional[Placement] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """Transfer the current selection. Failures are reported in the result."""
        request = TransferRequest(file_key, page_id=page_id, new_page_name=new_page_name, placement=placement)
        return await self.orchestrator.handle_transfer(request, on_progress=on_progress)

    async def check_pending(self) -> CycleOutcome:
        """Run a single poll cycle now."""
        return await self.consumer.run_cycle()

    def start_polling(self) -> None:
        self.poller.start()

    async def stop_polling(self) -> None:
        await self.poller.stop()

    async def close(self) -> None:
        await self.poller.stop()
        await self.http.close()

    async def __aenter__(self) -> "AsyncFigmaTransfer":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
