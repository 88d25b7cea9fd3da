"""Candidate selection and ordering for Smart Join."""

from __future__ import annotations

import re
from typing import Dict, List

from ..graph import Graph, Node
from ..nodes.registry import CATEGORY_PRIORITY, NodeCategory

_NUMERIC_SUFFIX = re.compile(r"_([0-9]+)\Z")


def numeric_suffix(node_id: str) -> int:
    """Trailing ``_<digits>`` of a node id as an int, 0 when absent.

    Example:
        numeric_suffix("tMap_12") == 12
        numeric_suffix("start") == 0
    """
    match = _NUMERIC_SUFFIX.search(node_id)
    return int(match.group(1)) if match else 0


def select_candidates(graph: Graph) -> List[Node]:
    """Nodes with no outgoing flow, in graph order."""
    sources = graph.sources()
    return [node for node in graph.nodes if node.id not in sources]


def order_candidates(nodes: List[Node]) -> List[Node]:
    """Sort by category priority, then numeric id suffix.

    ``sorted`` is stable, so equal keys keep their relative order.
    """
    return sorted(
        nodes,
        key=lambda node: (CATEGORY_PRIORITY[node.category], numeric_suffix(node.id)),
    )


def ordered_candidates(graph: Graph) -> List[Node]:
    return order_candidates(select_candidates(graph))


def partition_by_category(nodes: List[Node]) -> Dict[NodeCategory, List[Node]]:
    """Group nodes by category, preserving order within each group."""
    groups: Dict[NodeCategory, List[Node]] = {category: [] for category in NodeCategory}
    for node in nodes:
        groups[node.category].append(node)
    return groups
