"""Manual connection protocol (drag from an output anchor to an input anchor).

``reduce_connection(state, event, graph)`` returns the next drag state and,
at most once per gesture, the flow to commit. No rule beyond "not to
itself" and "not twice" applies: a human is choosing the wiring.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from ..graph import DEFAULT_PORT, Edge, Graph, Position
from .layout import AnchorKind
from .pointer import AnchorPress, PointerEvent, PointerMove, PointerRelease

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionDragState:
    dragging: bool = False
    source_node_id: Optional[str] = None
    source_port: Optional[str] = None
    cursor: Position = field(default_factory=Position)


IDLE = ConnectionDragState()


def reduce_connection(
    state: ConnectionDragState,
    event: PointerEvent,
    graph: Graph,
) -> Tuple[ConnectionDragState, Optional[Edge]]:
    """Advance the connection gesture by one pointer event.

    Returns:
        (next_state, edge_to_commit_or_None)
    """
    if isinstance(event, AnchorPress):
        if event.anchor != AnchorKind.OUTPUT:
            return state, None
        if graph.get_node(event.node_id) is None:
            return state, None
        return ConnectionDragState(
            dragging=True,
            source_node_id=event.node_id,
            source_port=event.port,
            cursor=Position(event.x, event.y),
        ), None

    if isinstance(event, PointerMove):
        if not state.dragging:
            return state, None
        return replace(state, cursor=Position(event.x, event.y)), None

    if isinstance(event, PointerRelease):
        if not state.dragging:
            return IDLE, None
        return IDLE, _edge_on_release(state, event, graph)

    return state, None


def _edge_on_release(
    state: ConnectionDragState,
    event: PointerRelease,
    graph: Graph,
) -> Optional[Edge]:
    if event.anchor != AnchorKind.INPUT or not event.node_id:
        return None

    source_id, target_id = state.source_node_id, event.node_id
    if source_id == target_id:
        return None
    if graph.get_node(source_id) is None or graph.get_node(target_id) is None:
        return None
    if graph.has_edge(source_id, target_id):
        return None

    logger.info(f"Manual connection: {source_id} -> {target_id}")
    return Edge(port_name=state.source_port or DEFAULT_PORT, source=source_id, target=target_id)
