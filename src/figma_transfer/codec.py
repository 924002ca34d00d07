"""
Tree codec — live node subtree <-> PortableNode.

Both directions dispatch on the capability record of the node kind, never on the
runtime type of a host node:

- serialize copies only the groups the source kind exposes, children in order.
- deserialize creates a detached node, applies each present group the destination
  kind supports, builds children depth-first and attaches the finished root to
  the target container last.

Failures are contained per subtree: a child that cannot be built is skipped and
logged, an attribute group that cannot be applied is skipped and logged. Only a
root that cannot be created or attached makes deserialize return None.
"""

import logging
from typing import Any, Optional

from figma_transfer.capabilities import (
    FALLBACK_KIND,
    GEOMETRY,
    LAYOUT,
    PAINT,
    TEXT,
    Capabilities,
    capabilities_for,
)
from figma_transfer.errors import ReconstructionError
from figma_transfer.host import HostDocument, HostNode, HostPage
from figma_transfer.models.node import Geometry, Layout, NodeKind, Paint, PortableNode, TextContent

logger = logging.getLogger(__name__)

DEFAULT_HEIGHT = 100.0


class TreeCodec:
    def __init__(self, document: HostDocument):
        self._document = document

    # -- serialize ----------------------------------------------------------

    def serialize(self, node: HostNode) -> PortableNode:
        """Deep, independent copy of `node`. The node itself is only read."""
        kind = NodeKind.from_type(node.type)
        caps = capabilities_for(kind)
        fields: dict[str, Any] = {"kind": kind, "name": node.name}

        if caps.geometry:
            fields["geometry"] = Geometry.model_validate(node.get_attributes(GEOMETRY))
        if caps.paint:
            attrs = node.get_attributes(PAINT)
            fields["paint"] = Paint.model_validate({k: v for k, v in attrs.items() if k in caps.paint})
        if caps.text:
            fields["text"] = TextContent.model_validate(node.get_attributes(TEXT))
        if caps.layout:
            fields["layout"] = Layout.model_validate(node.get_attributes(LAYOUT))

        if caps.children:
            children = []
            for child in node.children:
                try:
                    children.append(self.serialize(child))
                except Exception as e:
                    logger.warning(f"Skipping child {getattr(child, 'name', '?')!r} of {node.name!r}: {e}")
            fields["children"] = children

        return PortableNode(**fields)

    # -- deserialize --------------------------------------------------------

    async def deserialize(self, portable: PortableNode, target: HostPage) -> Optional[HostNode]:
        """Rebuild `portable` under `target`. Returns the new root, or None."""
        try:
            root = await self._build(portable)
        except ReconstructionError as e:
            logger.error(f"Reconstruction failed for root {portable.name!r}: {e}")
            return None

        try:
            target.append_child(root)
        except Exception as e:
            logger.error(f"Could not attach {portable.name!r} to {getattr(target, 'name', '?')!r}: {e}")
            self._discard(root)
            return None

        logger.info(f"Reconstructed {portable.name!r} ({portable.count()} node(s) in payload)")
        return root

    def _resolve_kind(self, kind: NodeKind) -> NodeKind:
        if kind is NodeKind.OTHER or kind not in self._document.supported_kinds:
            logger.debug(f"Creating {FALLBACK_KIND.value} in place of {kind.value}")
            return FALLBACK_KIND
        return kind

    async def _build(self, portable: PortableNode) -> HostNode:
        kind = self._resolve_kind(portable.kind)
        try:
            node = self._document.create_node(kind)
        except Exception as e:
            raise ReconstructionError(
                f"Cannot create {kind.value} node {portable.name!r}: {e}",
                {"kind": kind.value, "name": portable.name},
            ) from e

        caps = capabilities_for(kind)
        try:
            node.name = portable.name
        except Exception as e:
            logger.warning(f"Could not name {kind.value} node {portable.name!r}: {e}")
        await self._apply_groups(node, portable, caps)

        if portable.children and not caps.children:
            logger.warning(f"{kind.value} cannot hold children; dropping {len(portable.children)} of {portable.name!r}")
        elif portable.children:
            for index, child in enumerate(portable.children):
                try:
                    child_node = await self._build(child)
                except ReconstructionError as e:
                    logger.warning(f"Skipping child {index} of {portable.name!r}: {e}")
                    continue
                try:
                    node.append_child(child_node)
                except Exception as e:
                    logger.warning(f"Could not append child {child.name!r} to {portable.name!r}: {e}")
                    self._discard(child_node)

        return node

    async def _apply_groups(self, node: HostNode, portable: PortableNode, caps: Capabilities) -> None:
        if caps.geometry and portable.geometry is not None:
            geometry = portable.geometry
            if geometry.width is not None:
                try:
                    node.resize(geometry.width, geometry.height or DEFAULT_HEIGHT)
                except Exception as e:
                    logger.warning(f"Could not resize {portable.name!r}: {e}")
            position = geometry.model_dump(include={"x", "y", "rotation", "visible", "locked"}, exclude_none=True)
            self._set_group(node, GEOMETRY, position)

        if caps.paint and portable.paint is not None:
            values = portable.paint.model_dump(exclude_none=True)
            self._set_group(node, PAINT, {k: v for k, v in values.items() if k in caps.paint})

        if caps.text and portable.text is not None:
            values = portable.text.model_dump(exclude_none=True)
            if portable.text.font_name is not None:
                try:
                    await self._document.load_font(portable.text.font_name)
                except Exception as e:
                    # the host's default font is used instead
                    logger.warning(f"Could not load font {portable.text.font_name.family!r}: {e}")
                    values.pop("font_name", None)
            self._set_group(node, TEXT, values)

        if caps.layout and portable.layout is not None:
            self._set_group(node, LAYOUT, portable.layout.model_dump(exclude_none=True))

    @staticmethod
    def _set_group(node: HostNode, group: str, values: dict[str, Any]) -> None:
        if not values:
            return
        try:
            node.set_attributes(group, values)
        except Exception as e:
            logger.warning(f"Skipping {group} on {node.name!r}: {e}")

    @staticmethod
    def _discard(node: HostNode) -> None:
        try:
            node.remove()
        except Exception as e:
            logger.warning(f"Could not remove partial node {node.name!r}: {e}")
