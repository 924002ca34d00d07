"""
Transfer orchestrator — same-file moves and cross-file relays.

Per request:

  IDLE -> VALIDATING -> CLONING -> PLACING -> DONE                (same file)
  IDLE -> VALIDATING -> CLONING -> SERIALIZING
       -> VALIDATING_DESTINATION -> PUBLISHING -> CLEANUP -> DONE  (other file)

FAILED is reachable from every non-terminal state. Progress percentages are
advisory. Whatever happens, a clone made in the source file is removed again
unless it was placed by a same-file transfer. Once placed, the clone stays and
the transfer succeeds even if the view cannot be switched to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from figma_transfer.codec import TreeCodec
from figma_transfer.credentials import CredentialStore
from figma_transfer.errors import AuthError, PreconditionError, TransferError
from figma_transfer.files import FilesAPI
from figma_transfer.host import HostDocument, HostNode, HostPage
from figma_transfer.models.files import DocumentInfo, FileEntry, PageInfo
from figma_transfer.relay import RelayChannel
from figma_transfer.transport.envelope import build_envelope

logger = logging.getLogger(__name__)

CURRENT_FILE_KEY = "current"

# Host node types a user may pick as the element to transfer.
TRANSFERABLE_TYPES = ("FRAME", "COMPONENT", "COMPONENT_SET", "INSTANCE", "GROUP")


class Placement(str, Enum):
    FOCUS = "focus"  # switch to the target page, select and frame the new node
    STAY = "stay"    # place the node, leave the user's view alone


class TransferState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    CLONING = "cloning"
    PLACING = "placing"
    SERIALIZING = "serializing"
    VALIDATING_DESTINATION = "validating_destination"
    PUBLISHING = "publishing"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TransferRequest:
    file_key: str
    page_id: Optional[str] = None
    new_page_name: Optional[str] = None
    placement: Optional[Placement] = None


@dataclass
class TransferProgress:
    state: TransferState
    percent: int
    message: str


@dataclass
class TransferResult:
    success: bool
    message: str
    state: TransferState
    file_key: Optional[str] = None
    file_name: Optional[str] = None
    page_id: Optional[str] = None
    page_name: Optional[str] = None
    message_id: Optional[str] = None
    node: Optional[HostNode] = None
    error: Optional[TransferError] = None
    history: list[TransferProgress] = field(default_factory=list)


@dataclass
class SelectionInfo:
    has_selection: bool
    message: str = ""
    node_name: Optional[str] = None
    node_type: Optional[str] = None
    node_id: Optional[str] = None


ProgressCallback = Callable[[TransferProgress], None]


def describe_selection(document: HostDocument) -> SelectionInfo:
    """Selection echo for a picker UI, with the same rules transfer() enforces."""
    selection = list(document.selection)
    if not selection:
        return SelectionInfo(False, "No frame or component selected")
    if len(selection) > 1:
        return SelectionInfo(False, "Please select only one frame or component")
    node = selection[0]
    if node.type not in TRANSFERABLE_TYPES:
        return SelectionInfo(False, "Please select a frame, component, or group")
    return SelectionInfo(True, "", node_name=node.name, node_type=node.type, node_id=node.id)


async def focus_on(document: HostDocument, page: HostPage, node: HostNode) -> None:
    """Switch to `page`, select `node` and bring it into view.

    Runs after `node` is already placed, so a failure here is logged and the
    placement stands.
    """
    try:
        await document.set_current_page(page)
        document.select([node])
        document.scroll_and_zoom_into_view([node])
    except Exception as e:
        logger.warning(f"Could not bring {getattr(node, 'name', '?')!r} into view: {e}")


class _Run:
    """State tracking for one transfer request."""

    def __init__(self, on_progress: Optional[ProgressCallback]):
        self.state = TransferState.IDLE
        self.history: list[TransferProgress] = []
        self._on_progress = on_progress

    def enter(self, state: TransferState, percent: int, message: str) -> None:
        self.state = state
        progress = TransferProgress(state, percent, message)
        self.history.append(progress)
        logger.debug(f"[{percent:3d}%] {state.value}: {message}")
        if self._on_progress is not None:
            try:
                self._on_progress(progress)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")


class TransferOrchestrator:
    def __init__(
        self,
        document: HostDocument,
        codec: TreeCodec,
        relay: RelayChannel,
        files: FilesAPI,
        store: CredentialStore,
        placement: Placement = Placement.FOCUS,
    ):
        self._document = document
        self._codec = codec
        self._relay = relay
        self._files = files
        self._store = store
        self._placement = placement

    def is_current_file(self, file_key: str) -> bool:
        return file_key == CURRENT_FILE_KEY or (
            self._document.file_key is not None and file_key == self._document.file_key
        )

    # -- file picker support --------------------------------------------------

    def list_files(self) -> list[FileEntry]:
        """The current file first, then the recent-files list."""
        files = [FileEntry(
            key=self._document.file_key or CURRENT_FILE_KEY,
            name=f"{self._document.name} (Current File)",
            last_modified=datetime.now(timezone.utc).isoformat(),
        )]
        for entry in self._store.recent_files():
            if all(f.key != entry.key for f in files):
                files.append(entry)
        return files

    async def list_pages(self, file_key: str, token: Optional[str] = None) -> DocumentInfo:
        if self.is_current_file(file_key):
            await self._document.load_all_pages()
            return DocumentInfo(
                key=file_key,
                name=self._document.name,
                pages=[PageInfo(id=p.id, name=p.name) for p in self._document.pages],
            )
        document = await self._files.fetch_document(file_key, self._require_token(token))
        self._remember_file(document)
        return document

    def _remember_file(self, document: DocumentInfo) -> None:
        self._store.add_recent_file(FileEntry(
            key=document.key,
            name=document.name,
            last_modified=datetime.now(timezone.utc).isoformat(),
        ))

    # -- transfer ---------------------------------------------------------------

    async def handle_transfer(
        self,
        request: TransferRequest,
        token: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """Run a transfer and report the outcome instead of raising."""
        run = _Run(on_progress)
        try:
            result = await self._transfer(run, request, token)
        except TransferError as e:
            run.enter(TransferState.FAILED, 100, e.message)
            logger.error(f"Transfer failed ({e.code}): {e.message}")
            self._notify(f"Failed to transfer: {e.message}")
            return TransferResult(False, e.message, run.state, file_key=request.file_key,
                                  page_id=request.page_id, error=e, history=run.history)
        except Exception as e:
            logger.exception("Unexpected transfer failure")
            message = str(e) or "Transfer failed"
            run.enter(TransferState.FAILED, 100, message)
            self._notify(f"Failed to transfer: {message}")
            return TransferResult(False, message, run.state, file_key=request.file_key,
                                  page_id=request.page_id, history=run.history)
        self._notify(result.message)
        return result

    def _notify(self, message: str) -> None:
        try:
            self._document.notify(message)
        except Exception as e:
            logger.warning(f"Could not show notification: {e}")

    async def transfer(
        self,
        request: TransferRequest,
        token: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TransferResult:
        """Run a transfer. Raises PreconditionError, AuthError or NetworkError."""
        run = _Run(on_progress)
        try:
            return await self._transfer(run, request, token)
        except Exception as e:
            run.enter(TransferState.FAILED, 100, str(e))
            raise

    async def _transfer(self, run: _Run, request: TransferRequest, token: Optional[str]) -> TransferResult:
        run.enter(TransferState.VALIDATING, 0, "Checking selection...")
        node = self._validate_selection()
        if self.is_current_file(request.file_key):
            if not request.page_id and not request.new_page_name:
                raise PreconditionError("No target page specified")
            return await self._transfer_within_file(run, node, request)

        token = self._validate_cross_file(request, token)
        return await self._transfer_to_other_file(run, node, request, token)

    def _validate_selection(self) -> HostNode:
        selection = list(self._document.selection)
        if len(selection) != 1:
            raise PreconditionError(
                "Please select exactly one frame or component",
                {"selected": len(selection)},
            )
        node = selection[0]
        if node.type not in TRANSFERABLE_TYPES:
            raise PreconditionError(
                "Please select a frame, component, or group",
                {"type": node.type},
            )
        return node

    def _validate_cross_file(self, request: TransferRequest, token: Optional[str]) -> str:
        token = self._require_token(token)
        scopes = self._store.get_scopes()
        if scopes is None or not scopes.has_write_access:
            raise AuthError(
                "Your token does not have file_write permission. Cross-file transfers require "
                "write access. Please generate a new token with file_write scope.",
                code="insufficient_scope",
            )
        if request.new_page_name:
            raise PreconditionError(
                "Creating new pages via API is not supported. Please select an existing page."
            )
        if not request.page_id:
            raise PreconditionError("No target page specified")
        return token

    def _require_token(self, token: Optional[str]) -> str:
        token = token or self._store.get_token()
        if not token:
            raise AuthError("No API token stored. Please enter a token first.", code="missing_token")
        return token

    async def _transfer_within_file(self, run: _Run, node: HostNode, request: TransferRequest) -> TransferResult:
        clone: Optional[HostNode] = None
        try:
            run.enter(TransferState.CLONING, 10, "Loading pages...")
            await self._document.load_all_pages()

            run.enter(TransferState.CLONING, 30, "Cloning element...")
            clone = node.clone()

            run.enter(TransferState.PLACING, 50, "Preparing target page...")
            page = await self._resolve_local_page(request)

            run.enter(TransferState.PLACING, 70, "Transferring to page...")
            page.append_child(clone)
        except Exception:
            if clone is not None:
                self._discard(clone)
            raise

        run.enter(TransferState.PLACING, 90, "Finalizing...")
        if (request.placement or self._placement) is Placement.FOCUS:
            await focus_on(self._document, page, clone)

        message = f'Successfully transferred "{node.name}" to page "{page.name}"'
        run.enter(TransferState.DONE, 100, "Transfer complete!")
        logger.info(message)
        return TransferResult(
            True, message, run.state,
            file_key=request.file_key, file_name=self._document.name,
            page_id=page.id, page_name=page.name, node=clone, history=run.history,
        )

    async def _resolve_local_page(self, request: TransferRequest) -> HostPage:
        if request.new_page_name:
            page = self._document.create_page(request.new_page_name)
            logger.info(f"Created page {request.new_page_name!r}")
            return page
        page = next((p for p in self._document.pages if p.id == request.page_id), None)
        if page is None:
            raise PreconditionError("Target page not found", {"page_id": request.page_id})
        await page.load()
        return page

    async def _transfer_to_other_file(
        self, run: _Run, node: HostNode, request: TransferRequest, token: str,
    ) -> TransferResult:
        clone: Optional[HostNode] = None
        try:
            run.enter(TransferState.CLONING, 10, "Starting cross-file transfer...")
            clone = node.clone()

            run.enter(TransferState.SERIALIZING, 30, "Preparing element data...")
            payload = self._codec.serialize(clone)

            run.enter(TransferState.VALIDATING_DESTINATION, 50, "Validating destination file...")
            destination = await self._files.fetch_document(request.file_key, token)
            page = destination.find_page(request.page_id or "")
            if page is None:
                raise PreconditionError(
                    "Target page not found in destination file.",
                    {"file_key": request.file_key, "page_id": request.page_id},
                )
            self._remember_file(destination)

            run.enter(TransferState.PUBLISHING, 70, "Storing transfer data in destination file...")
            envelope = build_envelope(
                payload,
                target_page_id=page.id,
                source_label=node.name,
                source_document_label=self._document.name,
            )
            message_id = await self._relay.publish(request.file_key, envelope, token)

            run.enter(TransferState.CLEANUP, 90, "Cleaning up...")
        finally:
            if clone is not None:
                self._discard(clone)

        message = f"Element transferred to {destination.name} - it will be applied when that file is open"
        run.enter(TransferState.DONE, 100, "Transfer complete!")
        logger.info(f"Relayed {node.name!r} to {request.file_key} page {page.name!r}")
        return TransferResult(
            True, message, run.state,
            file_key=request.file_key, file_name=destination.name,
            page_id=page.id, page_name=page.name, message_id=message_id, history=run.history,
        )

    @staticmethod
    def _discard(node: HostNode) -> None:
        try:
            node.remove()
        except Exception as e:
            logger.error(f"Could not discard cloned node {node.name!r}: {e}")

