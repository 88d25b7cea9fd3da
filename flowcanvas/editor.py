"""Canvas Editor facade

Binds the engine to a GraphStore. Every mutating method reads the current
snapshot, derives a new Graph and commits it with one replace_graph() call.

Signals:
- smart_join_trigger: emit() with no arguments to run Smart Join
- on_outcome(JoinOutcome): Smart Join / Guided Join results
- on_node_selected(node_id or None): selection changes
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from .engine.connection import ConnectionDragState, reduce_connection
from .engine.guided_join import GuidedJoinState, complete_guided_join
from .engine.layout import RenderedNode, apply_collision_avoidance
from .engine.node_drag import MoveNode, NodeDragState, SelectNode, reduce_node_drag
from .engine.outcomes import NO_NEW_CONNECTIONS_MESSAGE, JoinOutcome, OutcomeKind
from .engine.pointer import PointerEvent
from .engine.smart_join import run_smart_join
from .graph import Edge, Graph, GraphStore, Position
from .signals import Signal

logger = logging.getLogger(__name__)

# Job properties set by the "New Job" wizard
WIZARD_MARKERS = ("feeds", "reconId")


class CanvasEditor:
    """Graph-construction operations over a GraphStore."""

    def __init__(self, store: GraphStore):
        self.store = store
        self.selected_node_id: Optional[str] = None

        self.smart_join_trigger = Signal("smart_join_trigger")
        self.on_outcome = Signal("outcome")
        self.on_node_selected = Signal("node_selected")

        self.smart_join_trigger.connect(self._on_smart_join_trigger)

    @property
    def graph(self) -> Graph:
        return self.store.current_graph()

    def _commit(self, graph: Graph) -> None:
        self.store.replace_graph(graph)

    # --- Selection / deletion ---

    def select_node(self, node_id: Optional[str]) -> None:
        logger.info(f"Selecting node: {node_id}")
        self.selected_node_id = node_id
        self.on_node_selected.emit(node_id)

    def delete_node(self, node_id: Optional[str] = None) -> bool:
        """Delete a component and every flow touching it.

        Args:
            node_id: Component to delete (default: the selected one)

        Returns:
            True if a component was removed
        """
        node_id = node_id or self.selected_node_id
        if not node_id or self.graph.get_node(node_id) is None:
            return False

        logger.info(f"Deleting node: {node_id}")
        self._commit(self.graph.without_node(node_id))
        if self.selected_node_id is not None:
            self.select_node(None)
        return True

    def clear_canvas(self) -> None:
        """Replace the graph with an empty one (job metadata is kept)."""
        before = self.graph
        logger.info(f"Clearing canvas: {len(before.nodes)} components, {len(before.edges)} flows")
        self._commit(before.cleared())
        if self.selected_node_id is not None:
            self.select_node(None)

    # --- Single-node updates ---

    def move_node(self, node_id: str, position: Position) -> None:
        node = self.graph.get_node(node_id)
        if node is None:
            raise ValueError(f"node '{node_id}' not found")
        self._commit(self.graph.with_node(replace(node, position=position)))

    def toggle_active(self, node_id: str) -> bool:
        """Flip a component's active flag; returns the new value."""
        node = self.graph.get_node(node_id)
        if node is None:
            raise ValueError(f"node '{node_id}' not found")
        self._commit(self.graph.with_node(replace(node, active=not node.active)))
        return not node.active

    # --- Smart Join / Guided Join ---

    def is_new_project(self) -> bool:
        """Whether Smart Join should be offered for this job.

        True for jobs created by the wizard, or jobs with components but no
        flows yet.
        """
        graph = self.graph
        if any(marker in graph.metadata for marker in WIZARD_MARKERS):
            return True
        return bool(graph.nodes) and not graph.edges

    def smart_join(self) -> JoinOutcome:
        outcome = run_smart_join(self.graph)
        if outcome.changed:
            self._commit(outcome.graph)
        self.on_outcome.emit(outcome)
        return outcome

    def _on_smart_join_trigger(self) -> None:
        logger.info("Received Smart Join trigger")
        self.smart_join()

    def complete_guided_join(self, state: GuidedJoinState) -> Tuple[GuidedJoinState, JoinOutcome]:
        """Commit the flows described by a finished Guided Join.

        Returns:
            (state, outcome). When validation fails the state carries the
            errors and the outcome is AMBIGUOUS_TOPOLOGY (still guided).
        """
        result = complete_guided_join(state, self.graph)
        if result.state.errors:
            outcome = JoinOutcome(
                kind=OutcomeKind.AMBIGUOUS_TOPOLOGY,
                message="; ".join(result.state.errors),
                guided_state=result.state,
            )
            return result.state, outcome

        if result.graph is None:
            outcome = JoinOutcome(kind=OutcomeKind.NO_NEW_CONNECTIONS, message=NO_NEW_CONNECTIONS_MESSAGE)
        else:
            self._commit(result.graph)
            outcome = JoinOutcome(
                kind=OutcomeKind.SUCCESS,
                edges_created=result.edges_created,
                graph=result.graph,
            )
        self.on_outcome.emit(outcome)
        return result.state, outcome

    # --- Pointer protocols ---

    def handle_connection_event(
        self,
        state: ConnectionDragState,
        event: PointerEvent,
    ) -> Tuple[ConnectionDragState, Optional[Edge]]:
        next_state, edge = reduce_connection(state, event, self.graph)
        if edge is not None:
            self.add_edge(edge)
        return next_state, edge

    def handle_node_event(
        self,
        state: Optional[NodeDragState],
        event: PointerEvent,
    ) -> Optional[NodeDragState]:
        next_state, effect = reduce_node_drag(state, event, self.graph)
        if isinstance(effect, MoveNode):
            self.move_node(effect.node_id, effect.position)
        elif isinstance(effect, SelectNode):
            self.select_node(effect.node_id)
        return next_state

    def add_edge(self, edge: Edge) -> bool:
        """Commit a manually drawn flow; self and duplicate flows are ignored."""
        graph = self.graph
        if edge.source == edge.target or graph.has_edge(edge.source, edge.target):
            return False
        self._commit(graph.with_edges([edge]))
        return True

    # --- Layout ---

    def layout(self) -> List[RenderedNode]:
        return apply_collision_avoidance(self.graph.nodes)

    def render_positions(self) -> Dict[str, Position]:
        return {r.node.id: r.render_position for r in self.layout()}
