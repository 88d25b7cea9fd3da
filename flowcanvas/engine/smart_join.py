"""Smart Join: automatic chaining of unconnected components

Smart Join looks at every component without an outgoing flow, orders them
Input -> Transform -> Output (then by numeric id suffix), and links each
consecutive pair with a ``main`` flow.

It only does so when the result is unambiguous: one Input, one Output and
at most ``SMART_JOIN_MAX_CANDIDATES`` candidates. Anything wider becomes a
Guided Join, where the user decides the wiring.

Pipeline:
    graph -> select/order candidates -> detect ambiguity
          -> auto_connect | start_guided_join -> JoinOutcome
"""

from __future__ import annotations

import logging
from typing import AbstractSet, List, Optional, Tuple

from .. import settings
from ..graph import Edge, Graph, Node
from ..nodes.registry import NodeCategory
from .guided_join import start_guided_join
from .ordering import ordered_candidates, partition_by_category
from .outcomes import (
    AMBIGUOUS_MESSAGE,
    INSUFFICIENT_MESSAGE,
    NO_NEW_CONNECTIONS_MESSAGE,
    SINGLE_PATH_MESSAGE,
    JoinOutcome,
    OutcomeKind,
)
from .rules import plan_edges

logger = logging.getLogger(__name__)


def is_ambiguous(candidates: List[Node], max_candidates: Optional[int] = None) -> bool:
    """Whether the candidate set needs a human to decide the wiring.

    Args:
        candidates: Ordered Smart Join candidates
        max_candidates: Override for SMART_JOIN_MAX_CANDIDATES

    Returns:
        True if there are too many candidates, or more than one Input or
        more than one Output among them
    """
    limit = settings.SMART_JOIN_MAX_CANDIDATES if max_candidates is None else max_candidates
    groups = partition_by_category(candidates)
    return (
        len(candidates) > limit
        or len(groups[NodeCategory.INPUT]) > 1
        or len(groups[NodeCategory.OUTPUT]) > 1
    )


def has_single_path(candidates: List[Node]) -> bool:
    """Exactly one Input and one Output, the precondition for auto-connect."""
    groups = partition_by_category(candidates)
    return len(groups[NodeCategory.INPUT]) == 1 and len(groups[NodeCategory.OUTPUT]) == 1


def chain_pairs(candidates: List[Node]) -> List[Tuple[Node, Node]]:
    return list(zip(candidates, candidates[1:]))


def auto_connect(candidates: List[Node], existing_pairs: AbstractSet[Tuple[str, str]]) -> List[Edge]:
    """Flows linking each consecutive pair of ordered candidates.

    No flow enters an Input, none leaves an Output, and no existing
    (source, target) pair is repeated.
    """
    return plan_edges(chain_pairs(candidates), existing_pairs)


def auto_join(graph: Graph, candidates: List[Node]) -> JoinOutcome:
    """Auto-Connector stage: chain ``candidates`` on top of ``graph``.

    Args:
        graph: Current canvas snapshot (supplies the existing flows)
        candidates: Ordered candidates to chain

    Returns:
        SUCCESS with the new graph, or NO_NEW_CONNECTIONS when every
        allowed pair is already connected
    """
    new_edges = auto_connect(candidates, graph.edge_pairs())
    if not new_edges:
        logger.info("Smart Join found nothing new to connect")
        return JoinOutcome(kind=OutcomeKind.NO_NEW_CONNECTIONS, message=NO_NEW_CONNECTIONS_MESSAGE)

    logger.info(f"Smart Join completed: {len(new_edges)} connection(s) created")
    return JoinOutcome(
        kind=OutcomeKind.SUCCESS,
        edges_created=new_edges,
        graph=graph.with_edges(new_edges),
    )


def run_smart_join(graph: Graph, max_candidates: Optional[int] = None) -> JoinOutcome:
    """Run Smart Join over a graph snapshot.

    The snapshot is never modified; on success the outcome carries the new
    graph (existing flows + created flows) for a single commit.

    Args:
        graph: Current canvas snapshot
        max_candidates: Override for SMART_JOIN_MAX_CANDIDATES

    Returns:
        JoinOutcome with one of the four outcome kinds
    """
    candidates = ordered_candidates(graph)
    logger.info(
        f"Smart Join started: {len(graph.nodes)} components, "
        f"{len(candidates)} without outgoing connections"
    )
    logger.debug(
        "Sorted candidates: "
        + ", ".join(f"{n.id}({n.category.value})" for n in candidates)
    )

    if len(candidates) < 2:
        logger.info("Smart Join aborted: fewer than 2 unconnected components")
        return JoinOutcome(kind=OutcomeKind.INSUFFICIENT_CANDIDATES, message=INSUFFICIENT_MESSAGE)

    if is_ambiguous(candidates, max_candidates):
        logger.info("Smart Join aborted: ambiguous topology, switching to Guided Join")
        return JoinOutcome(
            kind=OutcomeKind.AMBIGUOUS_TOPOLOGY,
            message=AMBIGUOUS_MESSAGE,
            guided_state=start_guided_join(candidates),
        )

    if not has_single_path(candidates):
        logger.info("Smart Join aborted: no single Input -> Output path among candidates")
        return JoinOutcome(kind=OutcomeKind.INSUFFICIENT_CANDIDATES, message=SINGLE_PATH_MESSAGE)

    return auto_join(graph, candidates)
