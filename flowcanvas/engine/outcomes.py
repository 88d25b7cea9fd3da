"""Outcome signals reported to the surrounding editor after a join."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..graph import Edge, Graph

if TYPE_CHECKING:
    from .guided_join import GuidedJoinState


class OutcomeKind(str, Enum):
    INSUFFICIENT_CANDIDATES = "insufficient_candidates"
    AMBIGUOUS_TOPOLOGY = "ambiguous_topology"
    NO_NEW_CONNECTIONS = "no_new_connections"
    SUCCESS = "success"


INSUFFICIENT_MESSAGE = "At least 2 unconnected components are required for Smart Join."
SINGLE_PATH_MESSAGE = (
    "Smart Join needs exactly one Input and one Output among the unconnected components."
)
AMBIGUOUS_MESSAGE = "Multiple execution paths detected. Please define sequence manually."
NO_NEW_CONNECTIONS_MESSAGE = (
    "No new connections could be created. Components may already be connected."
)


@dataclass
class JoinOutcome:
    """Result of a Smart Join or Guided Join invocation.

    Attributes:
        kind: Which outcome signal to raise
        message: User-facing warning text (empty on success)
        edges_created: Flows added by this invocation
        graph: Graph to commit, set only on success
        guided_state: Fresh Guided Join state, set only when ambiguous
    """

    kind: OutcomeKind
    message: str = ""
    edges_created: List[Edge] = field(default_factory=list)
    graph: Optional[Graph] = None
    guided_state: Optional["GuidedJoinState"] = None

    @property
    def changed(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS and self.graph is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "edges_created": [e.to_dict() for e in self.edges_created],
            "guided_state": self.guided_state.to_dict() if self.guided_state else None,
        }
