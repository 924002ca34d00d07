"""
Host document interface.

The live document API (node creation, attribute access, selection, viewport) is
provided by whatever embeds this package; these protocols name the primitives
the transfer core calls.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from figma_transfer.models.node import FontName, NodeKind


class HostNode(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def type(self) -> str:
        """Host node type, e.g. "FRAME" or "INSTANCE"."""
        ...

    name: str

    @property
    def children(self) -> Sequence[HostNode]: ...

    def get_attributes(self, group: str) -> dict[str, Any]:
        """Read one attribute group ("geometry", "paint", "text", "layout")."""
        ...

    def set_attributes(self, group: str, values: dict[str, Any]) -> None: ...

    def resize(self, width: float, height: float) -> None: ...

    def append_child(self, child: HostNode) -> None: ...

    def remove(self) -> None: ...

    def clone(self) -> HostNode:
        """Deep copy placed next to the original."""
        ...


class HostPage(Protocol):
    @property
    def id(self) -> str: ...

    name: str

    @property
    def children(self) -> Sequence[HostNode]: ...

    def append_child(self, child: HostNode) -> None: ...

    async def load(self) -> None: ...


class HostDocument(Protocol):
    @property
    def file_key(self) -> Optional[str]: ...

    @property
    def name(self) -> str: ...

    @property
    def pages(self) -> Sequence[HostPage]: ...

    @property
    def current_page(self) -> HostPage: ...

    @property
    def supported_kinds(self) -> frozenset[NodeKind]: ...

    @property
    def selection(self) -> Sequence[HostNode]: ...

    async def load_all_pages(self) -> None: ...

    def create_page(self, name: str) -> HostPage: ...

    def create_node(self, kind: NodeKind) -> HostNode:
        """Create a detached, empty node of the given kind."""
        ...

    async def load_font(self, font_name: FontName) -> None: ...

    def select(self, nodes: Sequence[HostNode]) -> None: ...

    async def set_current_page(self, page: HostPage) -> None: ...

    def scroll_and_zoom_into_view(self, nodes: Sequence[HostNode]) -> None: ...

    def notify(self, message: str) -> None: ...
