"""
figma-transfer error types.

PreconditionError and AuthError are always surfaced to the user. NetworkError is
surfaced on the interactive path and logged by the poller. ReconstructionError is
contained per subtree, DecodeError is ignored by feed scanning.
"""

from typing import Any, Optional


class TransferError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class PreconditionError(TransferError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("precondition_error", message, details)


class AuthError(TransferError):
    def __init__(self, message: str, code: str = "auth_error"):
        super().__init__(code, message)


class NetworkError(TransferError):
    def __init__(self, message: str, code: str = "network_error", status_code: Optional[int] = None):
        super().__init__(code, message, {"status_code": status_code} if status_code else None)
        self.status_code = status_code


RemoteUnavailable = NetworkError


class NotFoundError(NetworkError):
    def __init__(self, message: str):
        super().__init__(message, code="not_found", status_code=404)


class ReconstructionError(TransferError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("reconstruction_error", message, details)


class DecodeError(TransferError):
    def __init__(self, message: str):
        super().__init__("decode_error", message)
