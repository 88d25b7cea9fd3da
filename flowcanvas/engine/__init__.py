"""Canvas Engine: Smart Join, Guided Join, layout and pointer protocols."""

from .connection import IDLE, ConnectionDragState, reduce_connection
from .guided_join import (
    FanInSelection,
    GuidedJoinResult,
    GuidedJoinState,
    advance,
    apply_selections,
    back,
    complete_guided_join,
    map_input,
    select_fan_in,
    select_final_output,
    start_guided_join,
)
from .layout import AnchorKind, RenderedNode, anchor_position, apply_collision_avoidance
from .node_drag import MoveNode, NodeDragState, SelectNode, reduce_node_drag
from .ordering import numeric_suffix, order_candidates, ordered_candidates, select_candidates
from .outcomes import JoinOutcome, OutcomeKind
from .pointer import AnchorPress, NodePress, PointerMove, PointerRelease
from .smart_join import auto_connect, auto_join, is_ambiguous, run_smart_join

__all__ = [
    "IDLE",
    "ConnectionDragState",
    "reduce_connection",
    "FanInSelection",
    "GuidedJoinResult",
    "GuidedJoinState",
    "advance",
    "apply_selections",
    "back",
    "complete_guided_join",
    "map_input",
    "select_fan_in",
    "select_final_output",
    "start_guided_join",
    "AnchorKind",
    "RenderedNode",
    "anchor_position",
    "apply_collision_avoidance",
    "MoveNode",
    "NodeDragState",
    "SelectNode",
    "reduce_node_drag",
    "numeric_suffix",
    "order_candidates",
    "ordered_candidates",
    "select_candidates",
    "JoinOutcome",
    "OutcomeKind",
    "AnchorPress",
    "NodePress",
    "PointerMove",
    "PointerRelease",
    "auto_connect",
    "auto_join",
    "is_ambiguous",
    "run_smart_join",
]
