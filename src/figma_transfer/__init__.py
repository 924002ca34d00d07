"""
figma-transfer — copy design elements between pages and files.

Same-file transfers clone in place. Cross-file transfers serialize the element,
relay it through the destination file's comments feed, and a poller running in
the destination file rebuilds it.
"""

from figma_transfer.client import AsyncFigmaTransfer
from figma_transfer.codec import TreeCodec
from figma_transfer.credentials import CredentialStore
from figma_transfer.errors import (
    AuthError,
    DecodeError,
    NetworkError,
    NotFoundError,
    PreconditionError,
    ReconstructionError,
    RemoteUnavailable,
    TransferError,
)
from figma_transfer.models.envelope import PendingTransfer, TransferEnvelope
from figma_transfer.models.node import NodeKind, PortableNode
from figma_transfer.orchestrator import Placement, TransferOrchestrator, TransferRequest, TransferResult
from figma_transfer.poller import CycleOutcome, PollerHandle, PollingConsumer
from figma_transfer.relay import RelayChannel

__version__ = "0.1.0"
__all__ = [
    "AsyncFigmaTransfer",
    "TreeCodec",
    "CredentialStore",
    "RelayChannel",
    "TransferOrchestrator",
    "TransferRequest",
    "TransferResult",
    "Placement",
    "PollingConsumer",
    "PollerHandle",
    "CycleOutcome",
    "NodeKind",
    "PortableNode",
    "TransferEnvelope",
    "PendingTransfer",
    "TransferError",
    "PreconditionError",
    "AuthError",
    "NetworkError",
    "RemoteUnavailable",
    "NotFoundError",
    "ReconstructionError",
    "DecodeError",
]
