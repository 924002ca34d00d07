"""
Portable node models — the wire shape of a copied element tree.

Every group is optional and only present when the source element had that
capability. Identity fields are never carried.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, field_validator


class NodeKind(str, Enum):
    FRAME = "FRAME"
    RECTANGLE = "RECTANGLE"
    ELLIPSE = "ELLIPSE"
    TEXT = "TEXT"
    GROUP = "GROUP"
    COMPONENT = "COMPONENT"
    OTHER = "OTHER"

    @classmethod
    def from_type(cls, node_type: str) -> "NodeKind":
        """Map a host node type (e.g. "INSTANCE") onto the closed kind set."""
        try:
            return cls(node_type)
        except ValueError:
            return cls.OTHER


class Geometry(BaseModel):
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    rotation: Optional[float] = None
    visible: Optional[bool] = None
    locked: Optional[bool] = None


class Paint(BaseModel):
    opacity: Optional[float] = None
    blend_mode: Optional[str] = None
    fills: Optional[list[dict[str, Any]]] = None
    strokes: Optional[list[dict[str, Any]]] = None
    stroke_weight: Optional[float] = None
    stroke_align: Optional[str] = None
    effects: Optional[list[dict[str, Any]]] = None
    corner_radius: Optional[float] = None


class FontName(BaseModel):
    family: str
    style: str = "Regular"


class TextContent(BaseModel):
    characters: Optional[str] = None
    font_size: Optional[float] = None
    font_name: Optional[FontName] = None


class Layout(BaseModel):
    layout_mode: Optional[str] = None  # "NONE" | "HORIZONTAL" | "VERTICAL"
    primary_axis_sizing_mode: Optional[str] = None
    counter_axis_sizing_mode: Optional[str] = None
    padding_left: Optional[float] = None
    padding_right: Optional[float] = None
    padding_top: Optional[float] = None
    padding_bottom: Optional[float] = None
    item_spacing: Optional[float] = None


class PortableNode(BaseModel):
    kind: NodeKind
    name: str = ""
    geometry: Optional[Geometry] = None
    paint: Optional[Paint] = None
    text: Optional[TextContent] = None
    layout: Optional[Layout] = None
    children: list[PortableNode] = []

    @field_validator("kind", mode="before")
    @classmethod
    def _known_kind(cls, v: Any) -> Any:
        # kinds this version does not know are rebuilt as the general container
        if isinstance(v, str):
            return NodeKind.from_type(v)
        return v

    def count(self) -> int:
        """Number of nodes in this subtree, root included."""
        return 1 + sum(child.count() for child in self.children)
