"""
REST HTTP client for the Figma API.

Every call takes the personal access token explicitly, so one client can serve the
current user's token and any token handed in by a caller.
"""

import logging
from typing import Any, Optional

import httpx

from figma_transfer.errors import AuthError, NetworkError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.figma.com"


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/v1",
            headers={"User-Agent": "figma-transfer/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _auth_headers(self, token: Optional[str]) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        token = token or self._token
        if not token:
            raise AuthError("No API token available. Validate a token first.", code="missing_token")
        headers["X-Figma-Token"] = token
        return headers

    @staticmethod
    def _check(method: str, path: str, resp: httpx.Response) -> Any:
        if resp.status_code in (401, 403):
            raise AuthError(f"HTTP {resp.status_code} on {method} {path}: token rejected or lacks access")
        if resp.status_code == 404:
            raise NotFoundError(f"HTTP 404 on {method} {path}: not found")
        if resp.status_code >= 400:
            raise NetworkError(
                f"HTTP {resp.status_code} on {method} {path}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return None

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        headers = self._auth_headers(token)
        logger.debug(f"{method} {path}")
        try:
            resp = await self._client.request(method, path, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e
        return self._check(method, path, resp)

    async def get(self, path: str, token: Optional[str] = None) -> Any:
        return await self._request("GET", path, token)

    async def post(self, path: str, body: Optional[dict[str, Any]] = None, token: Optional[str] = None) -> Any:
        return await self._request("POST", path, token, body)

    async def delete(self, path: str, token: Optional[str] = None) -> Any:
        return await self._request("DELETE", path, token)

    async def close(self) -> None:
        await self._client.aclose()
