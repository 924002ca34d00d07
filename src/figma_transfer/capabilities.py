"""
Capability records per node kind.

The codec decides which attribute groups to read and write from this table
only, so adding a kind means adding a row here.
"""

from dataclasses import dataclass

from figma_transfer.models.node import NodeKind

GEOMETRY = "geometry"
PAINT = "paint"
TEXT = "text"
LAYOUT = "layout"

BASIC_PAINT = frozenset({"opacity", "blend_mode", "effects"})
SHAPE_PAINT = BASIC_PAINT | {"fills", "strokes", "stroke_weight", "stroke_align"}
FULL_PAINT = SHAPE_PAINT | {"corner_radius"}


@dataclass(frozen=True)
class Capabilities:
    geometry: bool = True
    paint: frozenset[str] = frozenset()
    text: bool = False
    layout: bool = False
    children: bool = False


CAPABILITIES: dict[NodeKind, Capabilities] = {
    NodeKind.FRAME: Capabilities(paint=FULL_PAINT, layout=True, children=True),
    NodeKind.COMPONENT: Capabilities(paint=FULL_PAINT, layout=True, children=True),
    NodeKind.RECTANGLE: Capabilities(paint=FULL_PAINT),
    NodeKind.ELLIPSE: Capabilities(paint=SHAPE_PAINT),
    NodeKind.TEXT: Capabilities(paint=SHAPE_PAINT, text=True),
    NodeKind.GROUP: Capabilities(paint=BASIC_PAINT, children=True),
    NodeKind.OTHER: Capabilities(paint=BASIC_PAINT, children=True),
}

# Kind reconstruction falls back to when the requested kind cannot be created.
FALLBACK_KIND = NodeKind.FRAME


def capabilities_for(kind: NodeKind) -> Capabilities:
    return CAPABILITIES.get(kind, CAPABILITIES[NodeKind.OTHER])
