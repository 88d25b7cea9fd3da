"""Collision-avoidance layout.

Derives render positions so components do not draw on top of each other.
Stored positions are never touched: the derived position travels alongside
the node and is recomputed on every pass.

This is one pairwise sweep, not a relaxation. Three or more mutually
overlapping components can still overlap after a pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .. import settings
from ..graph import Node, Position


class AnchorKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class RenderedNode:
    node: Node
    render_position: Position


@dataclass(frozen=True)
class Box:
    left: float
    top: float
    right: float
    bottom: float

    @classmethod
    def at(cls, position: Position, width: float, height: float) -> "Box":
        return cls(position.x, position.y, position.x + width, position.y + height)

    def overlaps(self, other: "Box") -> bool:
        x_overlap = self.left < other.right and self.right > other.left
        y_overlap = self.top < other.bottom and self.bottom > other.top
        return x_overlap and y_overlap


def apply_collision_avoidance(
    nodes: Iterable[Node],
    width: Optional[float] = None,
    height: Optional[float] = None,
    gap: Optional[float] = None,
) -> List[RenderedNode]:
    """Render positions for ``nodes`` with pairwise overlaps pushed apart.

    For each pair (i < j) whose derived boxes overlap, the node with the
    larger stored y (the later one on ties) is moved so its top sits ``gap``
    below the other's derived bottom.

    Args:
        nodes: Components in render order
        width: Footprint width (default NODE_WIDTH)
        height: Footprint height (default NODE_HEIGHT)
        gap: Vertical separation (default MIN_VERTICAL_GAP)

    Returns:
        One RenderedNode per input node, same order
    """
    width = settings.NODE_WIDTH if width is None else width
    height = settings.NODE_HEIGHT if height is None else height
    gap = settings.MIN_VERTICAL_GAP if gap is None else gap

    node_list = list(nodes)
    derived: List[Position] = [node.position for node in node_list]

    for i in range(len(node_list)):
        for j in range(i + 1, len(node_list)):
            box_a = Box.at(derived[i], width, height)
            box_b = Box.at(derived[j], width, height)
            if not box_a.overlaps(box_b):
                continue

            if node_list[j].position.y >= node_list[i].position.y:
                derived[j] = Position(derived[j].x, box_a.bottom + gap)
            else:
                derived[i] = Position(derived[i].x, box_b.bottom + gap)

    return [RenderedNode(node=node, render_position=pos) for node, pos in zip(node_list, derived)]


def render_positions(nodes: Iterable[Node]) -> Dict[str, Position]:
    return {r.node.id: r.render_position for r in apply_collision_avoidance(nodes)}


def anchor_position(render_position: Position, anchor: AnchorKind) -> Position:
    """Top-left of a connection anchor square.

    Input anchors sit on the left edge, output anchors on the right edge,
    both vertically centered.
    """
    half = settings.ANCHOR_SIZE / 2
    y = render_position.y + settings.NODE_HEIGHT / 2 - half
    if anchor == AnchorKind.INPUT:
        return Position(render_position.x - half, y)
    return Position(render_position.x + settings.NODE_WIDTH - half, y)
