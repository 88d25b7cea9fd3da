"""Node drag protocol: press-move-release on a component body.

Travel beyond DRAG_THRESHOLD_PX on either axis turns the gesture into a
move; a motionless press shorter than CLICK_MAX_DURATION_MS is a click that
selects the component.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from .. import settings
from ..graph import Graph, Position
from .pointer import NodePress, PointerEvent, PointerMove, PointerRelease


@dataclass(frozen=True)
class NodeDragState:
    node_id: str
    pointer_start: Position
    origin: Position
    started_at_ms: float
    moved: bool = False


@dataclass(frozen=True)
class MoveNode:
    node_id: str
    position: Position


@dataclass(frozen=True)
class SelectNode:
    node_id: str


NodeDragEffect = Union[MoveNode, SelectNode]


def reduce_node_drag(
    state: Optional[NodeDragState],
    event: PointerEvent,
    graph: Graph,
) -> Tuple[Optional[NodeDragState], Optional[NodeDragEffect]]:
    """Advance the node gesture by one pointer event.

    Returns:
        (next_state_or_None, effect_or_None)
    """
    if isinstance(event, NodePress):
        node = graph.get_node(event.node_id)
        if node is None:
            return None, None
        return NodeDragState(
            node_id=node.id,
            pointer_start=Position(event.x, event.y),
            origin=node.position,
            started_at_ms=event.timestamp_ms,
        ), None

    if state is None:
        return None, None

    if isinstance(event, PointerMove):
        dx = event.x - state.pointer_start.x
        dy = event.y - state.pointer_start.y
        if abs(dx) > settings.DRAG_THRESHOLD_PX or abs(dy) > settings.DRAG_THRESHOLD_PX:
            return (
                replace(state, moved=True),
                MoveNode(state.node_id, Position(state.origin.x + dx, state.origin.y + dy)),
            )
        return state, None

    if isinstance(event, PointerRelease):
        duration = event.timestamp_ms - state.started_at_ms
        if not state.moved and duration < settings.CLICK_MAX_DURATION_MS:
            return None, SelectNode(state.node_id)
        return None, None

    return state, None
