"""
Files REST API — document pages and the comments feed.
"""

from __future__ import annotations

from typing import Any

from figma_transfer.models.files import DocumentInfo, PageInfo
from figma_transfer.transport.http import HttpClient


class FilesAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def fetch_document(self, file_key: str, token: str) -> DocumentInfo:
        """Fetch a file and keep only its pages (CANVAS children)."""
        data = await self._http.get(f"/files/{file_key}?depth=1", token=token)
        document = (data or {}).get("document", {})
        pages = [
            PageInfo(id=child["id"], name=child.get("name", ""))
            for child in document.get("children", [])
            if child.get("type") == "CANVAS"
        ]
        return DocumentInfo(key=file_key, name=(data or {}).get("name", ""), pages=pages)

    async def fetch_document_pages(self, file_key: str, token: str) -> list[PageInfo]:
        return (await self.fetch_document(file_key, token)).pages

    async def post_message(self, file_key: str, token: str, text: str) -> dict[str, Any]:
        """Post a comment. Returns the created comment ({id, ...})."""
        return await self._http.post(f"/files/{file_key}/comments", {"message": text}, token=token)

    async def list_messages(self, file_key: str, token: str) -> list[dict[str, Any]]:
        """List comments in feed order as {id, message, created_at, ...} dicts."""
        data = await self._http.get(f"/files/{file_key}/comments", token=token)
        return list((data or {}).get("comments", []))

    async def delete_message(self, file_key: str, message_id: str, token: str) -> None:
        await self._http.delete(f"/files/{file_key}/comments/{message_id}", token=token)
