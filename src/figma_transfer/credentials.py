"""
Local credential store — one API token, its scope summary and the recent-files
list, persisted as JSON.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from figma_transfer.models.files import FileEntry, TokenScopes, push_recent

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".figma-transfer" / "config.json"

TOKEN_KEY = "figmaApiToken"
SCOPES_KEY = "tokenScopes"
RECENT_FILES_KEY = "recentFiles"


class CredentialStore:
    def __init__(self, path: Path = CONFIG_FILE):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        try:
            return json.loads(self._path.read_text())
        except (FileNotFoundError, json.JSONDecodeError):
            return {}

    def save(self, cfg: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(cfg, indent=2))

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        cfg = self.load()
        cfg[key] = value
        self.save(cfg)

    def get_token(self) -> Optional[str]:
        return self.get(TOKEN_KEY) or None

    def set_token(self, token: str, scopes: TokenScopes) -> None:
        cfg = self.load()
        cfg[TOKEN_KEY] = token
        cfg[SCOPES_KEY] = scopes.model_dump()
        self.save(cfg)

    def get_scopes(self) -> Optional[TokenScopes]:
        raw = self.get(SCOPES_KEY)
        if not isinstance(raw, dict):
            return None
        return TokenScopes.model_validate(raw)

    def clear(self) -> None:
        """Forget the token and scopes. Recent files are kept."""
        cfg = self.load()
        cfg.pop(TOKEN_KEY, None)
        cfg.pop(SCOPES_KEY, None)
        self.save(cfg)

    def recent_files(self) -> list[FileEntry]:
        entries = []
        for raw in self.get(RECENT_FILES_KEY, []):
            try:
                entries.append(FileEntry.model_validate(raw))
            except ValueError:
                logger.debug(f"Dropping malformed recent-file entry: {raw!r}")
        return entries

    def add_recent_file(self, entry: FileEntry) -> list[FileEntry]:
        updated = push_recent(self.recent_files(), entry)
        self.set(RECENT_FILES_KEY, [e.model_dump() for e in updated])
        return updated
