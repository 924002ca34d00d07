"""
Transfer envelope — one relayed transfer as stored in the destination feed.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from figma_transfer.models.node import PortableNode


class TransferEnvelope(BaseModel):
    type: Literal["DESIGN_TRANSFER"] = "DESIGN_TRANSFER"
    payload: PortableNode
    source_label: str = ""
    source_document_label: str = ""
    target_page_id: str = Field(min_length=1)
    created_at: datetime

    model_config = {"frozen": True}

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # naive timestamps must stay comparable with aware ones
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class PendingTransfer(BaseModel):
    """A decoded transfer message found in a feed listing."""
    message_id: str
    envelope: TransferEnvelope
    feed_index: int = 0
    posted_at: Optional[str] = None
