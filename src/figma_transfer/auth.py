"""
Auth module — personal access token validation.

A token that authenticates against /v1/me is treated as having read and write
access to files; the endpoint does not report scopes.
"""

from typing import Optional

from figma_transfer.credentials import CredentialStore
from figma_transfer.errors import AuthError, NetworkError
from figma_transfer.models.files import Identity, TokenScopes
from figma_transfer.transport.http import HttpClient

FULL_ACCESS = TokenScopes(
    has_read_access=True,
    has_write_access=True,
    scope_message=" (Full access: read and write)",
)


class Auth:
    def __init__(self, http: HttpClient, store: CredentialStore):
        self._http = http
        self._store = store

    async def fetch_identity(self, token: str) -> Identity:
        """Resolve the user behind a token."""
        try:
            data = await self._http.get("/me", token=token)
        except AuthError:
            raise AuthError("Invalid API token. Please check your token and try again.")
        return Identity.model_validate(data or {})

    async def validate_token(self, token: str) -> tuple[Identity, TokenScopes]:
        """Validate a token and persist it with its scope summary."""
        identity = await self.fetch_identity(token)
        self._store.set_token(token, FULL_ACCESS)
        self._http.set_token(token)
        return identity, FULL_ACCESS

    async def check_stored_token(self) -> Optional[tuple[Identity, TokenScopes]]:
        """Re-validate the stored token. Returns None when absent or no longer valid."""
        token = self._store.get_token()
        if not token:
            return None
        try:
            identity = await self.fetch_identity(token)
        except (AuthError, NetworkError):
            return None
        self._http.set_token(token)
        return identity, self._store.get_scopes() or FULL_ACCESS
