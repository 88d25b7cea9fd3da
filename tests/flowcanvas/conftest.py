"""Graph-building helpers shared by the engine tests."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from flowcanvas.graph import Edge, Graph, Node, Position


def make_node(
    node_id: str,
    original_type: Optional[str] = None,
    x: float = 0.0,
    y: float = 0.0,
) -> Node:
    """Node whose type defaults to the id without its ``_<n>`` suffix."""
    if original_type is None:
        original_type = node_id.rsplit("_", 1)[0]
    return Node(id=node_id, type=original_type, original_type=original_type, position=Position(x, y))


def make_graph(nodes: Iterable[Node], pairs: Iterable[Tuple[str, str]] = ()) -> Graph:
    return Graph(
        nodes=tuple(nodes),
        edges=tuple(Edge(port_name="main", source=s, target=t) for s, t in pairs),
    )
