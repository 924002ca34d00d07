"""
Remote file, page and identity models.
"""

from typing import Optional

from pydantic import BaseModel

RECENT_FILES_LIMIT = 20


class PageInfo(BaseModel):
    id: str
    name: str


class DocumentInfo(BaseModel):
    key: str
    name: str = ""
    pages: list[PageInfo] = []

    def find_page(self, page_id: str) -> Optional[PageInfo]:
        return next((p for p in self.pages if p.id == page_id), None)


class FileEntry(BaseModel):
    key: str
    name: str = ""
    last_modified: Optional[str] = None


class Identity(BaseModel):
    id: Optional[str] = None
    handle: Optional[str] = None
    email: Optional[str] = None

    @property
    def user_label(self) -> str:
        return self.handle or self.email or "User"


class TokenScopes(BaseModel):
    has_read_access: bool = False
    has_write_access: bool = False
    scope_message: str = ""


def push_recent(entries: list[FileEntry], entry: FileEntry, limit: int = RECENT_FILES_LIMIT) -> list[FileEntry]:
    """Return a new MRU list with `entry` first, de-duplicated by key."""
    updated = [entry] + [e for e in entries if e.key != entry.key]
    return updated[:limit]
