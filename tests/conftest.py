import pytest

from fakes import FakeFigmaAPI, MemoryDocument

from figma_transfer.auth import FULL_ACCESS
from figma_transfer.client import AsyncFigmaTransfer
from figma_transfer.credentials import CredentialStore
from figma_transfer.models.files import TokenScopes

TOKEN = "figd_test"


@pytest.fixture
def api() -> FakeFigmaAPI:
    api = FakeFigmaAPI({TOKEN})
    api.add_file("DEST", "Destination", [("5:1", "Inbox"), ("5:2", "Archive")])
    return api


@pytest.fixture
def store(tmp_path) -> CredentialStore:
    store = CredentialStore(tmp_path / "config.json")
    store.set_token(TOKEN, FULL_ACCESS)
    return store


@pytest.fixture
def read_only_store(tmp_path) -> CredentialStore:
    store = CredentialStore(tmp_path / "readonly.json")
    store.set_token(TOKEN, TokenScopes(has_read_access=True, has_write_access=False))
    return store


@pytest.fixture
def document() -> MemoryDocument:
    return MemoryDocument("SRC", "Source File", pages=[("0:1", "Page 1"), ("0:2", "Drafts")])


@pytest.fixture
def destination() -> MemoryDocument:
    return MemoryDocument("DEST", "Destination", pages=[("5:1", "Inbox"), ("5:2", "Archive")])


@pytest.fixture
def source_client(document, store, api) -> AsyncFigmaTransfer:
    return AsyncFigmaTransfer(document, store=store, transport=api.transport())


@pytest.fixture
def dest_client(destination, store, api) -> AsyncFigmaTransfer:
    return AsyncFigmaTransfer(
        destination, store=store, transport=api.transport(),
        poll_initial_delay=0.0, poll_interval=0.01,
    )
