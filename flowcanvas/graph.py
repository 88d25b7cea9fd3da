"""Canvas Graph Model

This module defines the graph the canvas edits: placed components (nodes),
flows between them (edges), and the store contract the editor commits to.

Key Components:
- Position: Canvas coordinates
- Node: A placed pipeline component
- Edge: A directed flow from one component's output to another's input
- Graph: Immutable snapshot of nodes + edges (+ opaque job fields)
- GraphStore: current_graph() / replace_graph() contract
- InMemoryGraphStore: Store used by the editor facade and the HTTP routes

Design Principles:
- Snapshots are immutable; every change produces a new Graph
- Every edge endpoint references an existing node
- Wire format matches the job JSON (components / flows)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol, Tuple

from .nodes.registry import NodeCategory, NodeTypeInfo, classify

logger = logging.getLogger(__name__)

FLOW_KIND = "flow"
DEFAULT_PORT = "main"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Position":
        data = data or {}
        return cls(x=float(data.get("x", 0)), y=float(data.get("y", 0)))


@dataclass(frozen=True)
class Node:
    """A placed component on the canvas.

    Attributes:
        id: Unique component identifier (e.g. "tMap_2")
        type: Component type name
        original_type: Vendor type name as imported (preferred for classification)
        position: Stored canvas position (top-left corner)
        active: Whether the component takes part in execution
    """

    id: str
    type: str = ""
    original_type: Optional[str] = None
    position: Position = field(default_factory=Position)
    active: bool = True

    def __post_init__(self):
        """Validate node."""
        if not self.id:
            raise ValueError("node id cannot be empty")

    @property
    def info(self) -> NodeTypeInfo:
        return classify(self.original_type, self.type)

    @property
    def type_key(self) -> str:
        return self.info.type_key

    @property
    def category(self) -> NodeCategory:
        return self.info.category

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "original_type": self.original_type,
            "position": self.position.to_dict(),
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        return cls(
            id=data.get("id", ""),
            type=data.get("type") or "",
            original_type=data.get("original_type"),
            position=Position.from_dict(data.get("position")),
            active=data.get("active", True),
        )


@dataclass(frozen=True)
class Edge:
    """A flow connecting two components.

    Attributes:
        port_name: Output port the flow leaves from ("main", "reject", ...)
        source: Source node ID
        target: Target node ID
        kind: Connection kind (always "flow")
    """

    port_name: str
    source: str
    target: str
    kind: str = FLOW_KIND

    def __post_init__(self):
        """Validate edge."""
        if not self.source:
            raise ValueError("source node cannot be empty")
        if not self.target:
            raise ValueError("target node cannot be empty")

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.source, self.target)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.port_name,
            "from": self.source,
            "to": self.target,
            "type": self.kind,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        return cls(
            port_name=data.get("name") or DEFAULT_PORT,
            source=data.get("from", ""),
            target=data.get("to", ""),
            kind=data.get("type") or FLOW_KIND,
        )


@dataclass(frozen=True)
class Graph:
    """Immutable canvas snapshot.

    Attributes:
        nodes: Placed components (order irrelevant)
        edges: Flows (insertion order irrelevant)
        subjobs: Opaque job field, carried through
        triggers: Opaque job field, carried through
        metadata: Opaque job properties (feeds, reconId, ...), kept on clear
    """

    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    subjobs: Dict[str, Any] = field(default_factory=dict)
    triggers: List[Any] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate graph references."""
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))

        node_ids = [node.id for node in self.nodes]
        if len(node_ids) != len(set(node_ids)):
            duplicates = {nid for nid in node_ids if node_ids.count(nid) > 1}
            raise ValueError(f"duplicate node IDs found: {duplicates}")

        known = set(node_ids)
        for edge in self.edges:
            if edge.source not in known:
                raise ValueError(f"edge {edge.source} -> {edge.target}: source node '{edge.source}' not found")
            if edge.target not in known:
                raise ValueError(f"edge {edge.source} -> {edge.target}: target node '{edge.target}' not found")

    # --- Queries ---

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_edge(self, source: str, target: str) -> bool:
        return any(edge.source == source and edge.target == target for edge in self.edges)

    def edge_pairs(self) -> FrozenSet[Tuple[str, str]]:
        return frozenset(edge.pair for edge in self.edges)

    def sources(self) -> FrozenSet[str]:
        """IDs of nodes that already have an outgoing flow."""
        return frozenset(edge.source for edge in self.edges)

    # --- Derivations (each returns a new Graph) ---

    def with_edges(self, new_edges: Iterable[Edge]) -> "Graph":
        return replace(self, edges=self.edges + tuple(new_edges))

    def with_node(self, node: Node) -> "Graph":
        """Replace the node with the same id."""
        if self.get_node(node.id) is None:
            raise ValueError(f"node '{node.id}' not found")
        return replace(self, nodes=tuple(node if n.id == node.id else n for n in self.nodes))

    def without_node(self, node_id: str) -> "Graph":
        """Remove a node and every flow touching it."""
        return replace(
            self,
            nodes=tuple(n for n in self.nodes if n.id != node_id),
            edges=tuple(e for e in self.edges if e.source != node_id and e.target != node_id),
        )

    def cleared(self) -> "Graph":
        """Empty canvas; job metadata survives."""
        return Graph(metadata=dict(self.metadata))

    # --- Wire format ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            "components": [n.to_dict() for n in self.nodes],
            "flows": [e.to_dict() for e in self.edges],
            "subjobs": dict(self.subjobs),
            "triggers": list(self.triggers),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Graph":
        data = data or {}
        return cls(
            nodes=tuple(Node.from_dict(n) for n in data.get("components") or []),
            edges=tuple(Edge.from_dict(e) for e in data.get("flows") or []),
            subjobs=dict(data.get("subjobs") or {}),
            triggers=list(data.get("triggers") or []),
            metadata=dict(data.get("metadata") or {}),
        )


class GraphStore(Protocol):
    """Contract with the surrounding editor.

    The canvas reads a snapshot with current_graph() and writes exactly one
    replace_graph() per mutating operation.
    """

    def current_graph(self) -> Graph:
        ...

    def replace_graph(self, graph: Graph) -> None:
        ...


class InMemoryGraphStore:
    """GraphStore holding a single snapshot.

    ``revision`` counts commits, so callers can tell whether an operation
    changed anything and needs persisting.
    """

    def __init__(self, graph: Optional[Graph] = None):
        self._graph = graph if graph is not None else Graph()
        self.revision = 0

    def current_graph(self) -> Graph:
        return self._graph

    def replace_graph(self, graph: Graph) -> None:
        self._graph = graph
        self.revision += 1
        logger.debug(
            f"Graph committed (rev {self.revision}): "
            f"{len(graph.nodes)} nodes, {len(graph.edges)} edges"
        )

    @property
    def dirty(self) -> bool:
        return self.revision > 0
