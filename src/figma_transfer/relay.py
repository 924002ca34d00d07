"""
Relay channel over a file's comments feed.

The feed has no locking primitive: deletion after a successful apply is the only
acknowledgement, so two consumers can both read and apply the same message.
"""

import logging
from typing import Optional, Sequence

from figma_transfer.errors import DecodeError, NotFoundError
from figma_transfer.files import FilesAPI
from figma_transfer.models.envelope import PendingTransfer, TransferEnvelope
from figma_transfer.transport.envelope import build_message, parse_message

logger = logging.getLogger(__name__)


def select_latest(pending: Sequence[PendingTransfer]) -> Optional[PendingTransfer]:
    """Most recently created envelope; on equal timestamps the later feed entry wins."""
    latest: Optional[PendingTransfer] = None
    for item in pending:
        if latest is None or (item.envelope.created_at, item.feed_index) >= (
            latest.envelope.created_at, latest.feed_index,
        ):
            latest = item
    return latest


class RelayChannel:
    def __init__(self, files: FilesAPI):
        self._files = files

    async def publish(self, file_key: str, envelope: TransferEnvelope, token: str) -> str:
        """Append one transfer message to the destination feed. Returns the message id."""
        comment = await self._files.post_message(file_key, token, build_message(envelope))
        message_id = str((comment or {}).get("id", ""))
        logger.info(
            f"Published transfer of {envelope.source_label!r} to {file_key} "
            f"page {envelope.target_page_id} as message {message_id or '?'}"
        )
        return message_id

    async def list_pending(self, file_key: str, token: str) -> list[PendingTransfer]:
        """Transfer messages in feed order. Foreign or malformed comments are skipped."""
        comments = await self._files.list_messages(file_key, token)
        pending: list[PendingTransfer] = []
        for index, comment in enumerate(comments):
            try:
                envelope = parse_message(comment.get("message"))
            except DecodeError as e:
                logger.debug(f"Ignoring comment {comment.get('id')}: {e}")
                continue
            pending.append(PendingTransfer(
                message_id=str(comment.get("id", "")),
                envelope=envelope,
                feed_index=index,
                posted_at=comment.get("created_at"),
            ))
        return pending

    async def claim_latest(self, file_key: str, token: str) -> Optional[PendingTransfer]:
        """Pick the single newest pending transfer. Not a lock."""
        return select_latest(await self.list_pending(file_key, token))

    async def consume(self, file_key: str, message: PendingTransfer, token: str) -> None:
        """Acknowledge a transfer by deleting it. Already-deleted messages are fine."""
        try:
            await self._files.delete_message(file_key, message.message_id, token)
        except NotFoundError:
            logger.debug(f"Message {message.message_id} already removed from {file_key}")
            return
        logger.info(f"Consumed transfer message {message.message_id} in {file_key}")
