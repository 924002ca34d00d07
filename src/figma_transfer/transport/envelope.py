"""
Relay message construction and parsing.

A transfer message is plain comment text: the reserved marker, a newline, then
the JSON-encoded TransferEnvelope.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from figma_transfer.errors import DecodeError
from figma_transfer.models.envelope import TransferEnvelope
from figma_transfer.models.node import PortableNode

TRANSFER_MARKER = "[FIGMA_DESIGN_TRANSFER]"


def build_envelope(
    payload: PortableNode,
    target_page_id: str,
    source_label: str = "",
    source_document_label: str = "",
    created_at: Optional[datetime] = None,
) -> TransferEnvelope:
    return TransferEnvelope(
        payload=payload,
        source_label=source_label,
        source_document_label=source_document_label,
        target_page_id=target_page_id,
        created_at=created_at or datetime.now(timezone.utc),
    )


def build_message(envelope: TransferEnvelope) -> str:
    """Encode an envelope as comment text."""
    body = envelope.model_dump_json(exclude_none=True)
    return f"{TRANSFER_MARKER}\n{body}"


def is_transfer_message(text: Any) -> bool:
    return isinstance(text, str) and text.startswith(TRANSFER_MARKER)


def parse_message(text: Any) -> TransferEnvelope:
    """Decode comment text into an envelope. Raises DecodeError for anything else."""
    if not is_transfer_message(text):
        raise DecodeError("Message does not carry the transfer marker")
    body = text[len(TRANSFER_MARKER):].lstrip("\n")
    try:
        raw = json.loads(body)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Transfer message is not valid JSON: {e}") from e
    try:
        return TransferEnvelope.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"Transfer message does not match the envelope schema: {e.error_count()} error(s)") from e
