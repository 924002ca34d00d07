"""
Polling consumer — applies transfers relayed into the open file.

One cycle: list the feed, claim the newest transfer, rebuild it on its target
page, then delete the message. A failed cycle leaves the message in the feed for
a later attempt and is only logged. PollerHandle runs cycles back to back on a
single asyncio task, so a cycle never overlaps the next one.
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from figma_transfer.codec import TreeCodec
from figma_transfer.credentials import CredentialStore
from figma_transfer.errors import AuthError, NetworkError
from figma_transfer.host import HostDocument
from figma_transfer.orchestrator import Placement, focus_on
from figma_transfer.relay import RelayChannel

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_DELAY_S = 0.1
DEFAULT_POLL_INTERVAL_S = 2.0


class CycleOutcome(str, Enum):
    SKIPPED = "skipped"  # no token or no file key
    IDLE = "idle"        # nothing pending
    APPLIED = "applied"
    FAILED = "failed"


class PollingConsumer:
    def __init__(
        self,
        document: HostDocument,
        codec: TreeCodec,
        relay: RelayChannel,
        store: CredentialStore,
        placement: Placement = Placement.FOCUS,
    ):
        self._document = document
        self._codec = codec
        self._relay = relay
        self._store = store
        self._placement = placement

    async def run_cycle(self) -> CycleOutcome:
        """Run one poll cycle. Never raises."""
        token = self._store.get_token()
        file_key = self._document.file_key
        if not token or not file_key:
            logger.debug("No token or file key available for transfer check")
            return CycleOutcome.SKIPPED

        try:
            return await self._cycle(file_key, token)
        except (AuthError, NetworkError) as e:
            logger.warning(f"Transfer check against {file_key} failed: {e}")
        except Exception:
            logger.exception(f"Error checking transfers for {file_key}")
        return CycleOutcome.FAILED

    async def _cycle(self, file_key: str, token: str) -> CycleOutcome:
        message = await self._relay.claim_latest(file_key, token)
        if message is None:
            logger.debug("No pending transfers")
            return CycleOutcome.IDLE

        envelope = message.envelope
        logger.info(
            f"Processing transfer {message.message_id}: {envelope.source_label!r} "
            f"from {envelope.source_document_label!r}"
        )
        await self._document.load_all_pages()
        page = next((p for p in self._document.pages if p.id == envelope.target_page_id), None)
        if page is None:
            logger.warning(f"Target page not found: {envelope.target_page_id}; leaving message {message.message_id}")
            return CycleOutcome.FAILED

        node = await self._codec.deserialize(envelope.payload, page)
        if node is None:
            logger.warning(f"Could not rebuild {envelope.source_label!r}; leaving message {message.message_id}")
            return CycleOutcome.FAILED

        # placed: from here on the message must be consumed
        if self._placement is Placement.FOCUS:
            await focus_on(self._document, page, node)
        try:
            self._document.notify(f'Transfer applied! Element placed on page "{page.name}"')
        except Exception as e:
            logger.warning(f"Could not show notification: {e}")

        await self._relay.consume(file_key, message, token)
        return CycleOutcome.APPLIED


class PollerHandle:
    """Owns the background poll task for one session."""

    def __init__(
        self,
        consumer: PollingConsumer,
        initial_delay: float = DEFAULT_INITIAL_DELAY_S,
        interval: float = DEFAULT_POLL_INTERVAL_S,
    ):
        self._consumer = consumer
        self._initial_delay = initial_delay
        self._interval = interval
        self._task: Optional[asyncio.Task[None]] = None
        self.cycles = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling on the running loop. No-op when already running."""
        if self.running:
            return
        logger.info(f"Starting transfer polling every {self._interval}s")
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        """Stop polling and wait for the task to finish. No-op when stopped."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Stopped transfer polling")

    async def _loop(self) -> None:
        await asyncio.sleep(self._initial_delay)
        while True:
            outcome = await self._consumer.run_cycle()
            self.cycles += 1
            logger.debug(f"Poll cycle {self.cycles}: {outcome.value}")
            await asyncio.sleep(self._interval)
