"""Edge validity rules shared by Smart Join and Guided Join."""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, List, Optional, Set, Tuple

from ..graph import DEFAULT_PORT, Edge, Node
from ..nodes.registry import NodeCategory

logger = logging.getLogger(__name__)


def rejection_reason(source: Node, target: Node) -> Optional[str]:
    """Why an automatic flow source -> target is not allowed, or None.

    Manual connections do not go through these rules.
    """
    if source.id == target.id:
        return "cannot connect a component to itself"
    if target.category == NodeCategory.INPUT:
        return "cannot connect to Input"
    if source.category == NodeCategory.OUTPUT:
        return "Output cannot connect to anything"
    return None


def plan_edges(
    pairs: Iterable[Tuple[Node, Node]],
    existing_pairs: AbstractSet[Tuple[str, str]],
    port_name: str = DEFAULT_PORT,
) -> List[Edge]:
    """Turn candidate (source, target) pairs into the flows to create.

    Pairs breaking a category rule, already present in ``existing_pairs``,
    or repeated within this batch are skipped.

    Args:
        pairs: Proposed connections, in creation order
        existing_pairs: (source_id, target_id) of flows already in the graph
        port_name: Port name for every created flow

    Returns:
        New edges, in the order proposed
    """
    created: List[Edge] = []
    seen: Set[Tuple[str, str]] = set(existing_pairs)

    for source, target in pairs:
        reason = rejection_reason(source, target)
        if reason:
            logger.info(f"Skipping invalid connection: {source.id} -> {target.id} ({reason})")
            continue
        if (source.id, target.id) in seen:
            logger.info(f"Connection already exists: {source.id} -> {target.id}")
            continue

        edge = Edge(port_name=port_name, source=source.id, target=target.id)
        created.append(edge)
        seen.add(edge.pair)
        logger.info(f"Creating connection: {source.id} -> {target.id}")

    return created
