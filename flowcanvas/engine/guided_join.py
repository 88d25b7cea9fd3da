"""Guided Join: stepped manual wiring when Smart Join is ambiguous

Steps:
1. Input Mapping: every Input candidate is assigned the component it feeds
2. Fan-In Selection: upstream Transforms merging into one downstream Transform
3. Final Output: the terminal component receiving the chain's output

The state is an immutable value. Every operation takes a state and returns
the next one; validation problems are collected in ``errors`` and block
advancement instead of raising. Cancelling is just dropping the state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..graph import Edge, Graph, Node
from ..nodes.registry import NodeCategory
from .ordering import partition_by_category
from .rules import plan_edges

logger = logging.getLogger(__name__)

STEP_INPUT_MAPPING = 1
STEP_FAN_IN = 2
STEP_FINAL_OUTPUT = 3


@dataclass(frozen=True)
class FanInSelection:
    upstream: FrozenSet[str] = frozenset()
    downstream: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"upstream": sorted(self.upstream), "downstream": self.downstream}


@dataclass(frozen=True)
class GuidedJoinState:
    """Guided Join workflow state.

    Attributes:
        input_nodes: Input-category candidate IDs, in Smart Join order
        transform_nodes: Transform-category candidate IDs
        output_nodes: Output-category candidate IDs
        input_mappings: input ID -> ID of the component it feeds
        fan_in: Upstream transforms and the downstream transform they feed
        final_output: Terminal component ID
        step: Current step (1..3)
        errors: Validation messages from the last operation
    """

    input_nodes: Tuple[str, ...] = ()
    transform_nodes: Tuple[str, ...] = ()
    output_nodes: Tuple[str, ...] = ()
    input_mappings: Dict[str, str] = field(default_factory=dict)
    fan_in: FanInSelection = field(default_factory=FanInSelection)
    final_output: Optional[str] = None
    step: int = STEP_INPUT_MAPPING
    errors: Tuple[str, ...] = ()

    @property
    def mapping_targets(self) -> Tuple[str, ...]:
        """Components an input may be mapped to (outputs when there are no transforms)."""
        return self.transform_nodes or self.output_nodes

    @property
    def final_output_choices(self) -> Tuple[str, ...]:
        return self.output_nodes or self.transform_nodes

    @property
    def fan_in_required(self) -> bool:
        return len(self.transform_nodes) > 1

    @property
    def chain_tail(self) -> Optional[str]:
        """Component whose output feeds the final output."""
        if self.fan_in.downstream:
            return self.fan_in.downstream
        if len(self.transform_nodes) == 1:
            return self.transform_nodes[0]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_nodes": list(self.input_nodes),
            "transform_nodes": list(self.transform_nodes),
            "output_nodes": list(self.output_nodes),
            "input_mappings": dict(self.input_mappings),
            "fan_in": self.fan_in.to_dict(),
            "final_output": self.final_output,
            "step": self.step,
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GuidedJoinState":
        fan_in = data.get("fan_in") or {}
        step = int(data.get("step", STEP_INPUT_MAPPING))
        if step not in (STEP_INPUT_MAPPING, STEP_FAN_IN, STEP_FINAL_OUTPUT):
            raise ValueError(f"invalid guided join step: {step}")
        return cls(
            input_nodes=tuple(data.get("input_nodes") or ()),
            transform_nodes=tuple(data.get("transform_nodes") or ()),
            output_nodes=tuple(data.get("output_nodes") or ()),
            input_mappings=dict(data.get("input_mappings") or {}),
            fan_in=FanInSelection(
                upstream=frozenset(fan_in.get("upstream") or ()),
                downstream=fan_in.get("downstream"),
            ),
            final_output=data.get("final_output"),
            step=step,
            errors=tuple(data.get("errors") or ()),
        )


def start_guided_join(candidates: List[Node]) -> GuidedJoinState:
    """Initial state from the ordered Smart Join candidates.

    The final output is pre-filled when exactly one Output candidate exists.
    """
    groups = partition_by_category(candidates)
    outputs = tuple(n.id for n in groups[NodeCategory.OUTPUT])
    state = GuidedJoinState(
        input_nodes=tuple(n.id for n in groups[NodeCategory.INPUT]),
        transform_nodes=tuple(n.id for n in groups[NodeCategory.TRANSFORM]),
        output_nodes=outputs,
        final_output=outputs[0] if len(outputs) == 1 else None,
    )
    logger.info(
        f"Guided Join started: {len(state.input_nodes)} inputs, "
        f"{len(state.transform_nodes)} transforms, {len(state.output_nodes)} outputs"
    )
    return state


# --- Selections ---


def map_input(state: GuidedJoinState, input_id: str, target_id: str) -> GuidedJoinState:
    """Assign an Input candidate to the component it should feed."""
    errors = []
    if input_id not in state.input_nodes:
        errors.append(f"'{input_id}' is not an unconnected Input component.")
    if target_id not in state.mapping_targets:
        errors.append(f"'{target_id}' cannot receive input '{input_id}'.")
    if errors:
        return replace(state, errors=tuple(errors))

    mappings = {**state.input_mappings, input_id: target_id}
    return replace(state, input_mappings=mappings, errors=())


def select_fan_in(
    state: GuidedJoinState,
    upstream: Iterable[str],
    downstream: Optional[str],
) -> GuidedJoinState:
    """Choose the upstream Transforms and the downstream Transform they feed."""
    upstream_set = frozenset(upstream)
    errors = []
    unknown = sorted(upstream_set - set(state.transform_nodes))
    if unknown:
        errors.append(f"Upstream selection must be Transform components: {', '.join(unknown)}.")
    if downstream is not None and downstream not in state.transform_nodes:
        errors.append(f"Downstream '{downstream}' must be a Transform component.")
    if downstream is not None and downstream in upstream_set:
        errors.append(f"'{downstream}' cannot be both upstream and downstream.")
    if errors:
        return replace(state, errors=tuple(errors))

    return replace(
        state,
        fan_in=FanInSelection(upstream=upstream_set, downstream=downstream),
        errors=(),
    )


def select_final_output(state: GuidedJoinState, node_id: Optional[str]) -> GuidedJoinState:
    if node_id is not None and node_id not in state.final_output_choices:
        return replace(state, errors=(f"'{node_id}' cannot be the final output.",))
    return replace(state, final_output=node_id, errors=())


def apply_selections(
    state: GuidedJoinState,
    input_mappings: Optional[Dict[str, str]] = None,
    fan_in: Optional[Tuple[Iterable[str], Optional[str]]] = None,
    final_output: Optional[str] = None,
) -> GuidedJoinState:
    """Apply a batch of selections; errors from every selection are kept.

    Arguments left as None are not touched.
    """
    errors: List[str] = []
    for input_id, target_id in (input_mappings or {}).items():
        state = map_input(state, input_id, target_id)
        errors.extend(state.errors)
    if fan_in is not None:
        upstream, downstream = fan_in
        state = select_fan_in(state, upstream, downstream)
        errors.extend(state.errors)
    if final_output is not None:
        state = select_final_output(state, final_output)
        errors.extend(state.errors)
    return replace(state, errors=tuple(errors))


# --- Navigation ---


def validate_step(state: GuidedJoinState, step: Optional[int] = None) -> List[str]:
    """Validation messages blocking ``step`` (default: the current step)."""
    step = state.step if step is None else step
    errors: List[str] = []

    if step == STEP_INPUT_MAPPING:
        if not state.mapping_targets:
            errors.append("There is no component the inputs could feed.")
        for input_id in state.input_nodes:
            if input_id not in state.input_mappings:
                errors.append(f"Select the component that input '{input_id}' feeds.")

    elif step == STEP_FAN_IN:
        if state.fan_in_required and not state.fan_in.downstream:
            errors.append("Select the downstream transform the upstream transforms feed into.")

    elif step == STEP_FINAL_OUTPUT:
        if not state.final_output:
            errors.append("Select the final output component.")

    return errors


def advance(state: GuidedJoinState) -> GuidedJoinState:
    """Move to the next step if the current one is complete."""
    errors = validate_step(state)
    if errors:
        return replace(state, errors=tuple(errors))
    return replace(state, step=min(state.step + 1, STEP_FINAL_OUTPUT), errors=())


def back(state: GuidedJoinState) -> GuidedJoinState:
    """Re-enter the previous step; selections are kept."""
    return replace(state, step=max(state.step - 1, STEP_INPUT_MAPPING), errors=())


# --- Completion ---


@dataclass
class GuidedJoinResult:
    state: GuidedJoinState
    edges_created: List[Edge] = field(default_factory=list)
    graph: Optional[Graph] = None


def proposed_pairs(state: GuidedJoinState) -> List[Tuple[str, str]]:
    """(source, target) IDs implied by the selections, in creation order."""
    pairs: List[Tuple[str, str]] = []
    for input_id in state.input_nodes:
        target = state.input_mappings.get(input_id)
        if target:
            pairs.append((input_id, target))

    if state.fan_in.downstream:
        for upstream_id in state.transform_nodes:
            if upstream_id in state.fan_in.upstream:
                pairs.append((upstream_id, state.fan_in.downstream))

    tail = state.chain_tail
    if tail and state.final_output and tail != state.final_output:
        pairs.append((tail, state.final_output))
    return pairs


def complete_guided_join(state: GuidedJoinState, graph: Graph) -> GuidedJoinResult:
    """Translate the selections into flows on top of ``graph``.

    Every step is re-validated first; on failure the returned state carries
    the errors and its step is moved to the first incomplete step. Flows go
    through the same rules as Smart Join.

    Returns:
        GuidedJoinResult; ``graph`` is set only when flows were created
    """
    for step in (STEP_INPUT_MAPPING, STEP_FAN_IN, STEP_FINAL_OUTPUT):
        errors = validate_step(state, step)
        if errors:
            logger.info(f"Guided Join blocked at step {step}: {errors}")
            return GuidedJoinResult(state=replace(state, step=step, errors=tuple(errors)))

    node_pairs: List[Tuple[Node, Node]] = []
    for source_id, target_id in proposed_pairs(state):
        source, target = graph.get_node(source_id), graph.get_node(target_id)
        if source is None or target is None:
            logger.warning(f"Guided Join skipping {source_id} -> {target_id}: component no longer exists")
            continue
        node_pairs.append((source, target))

    new_edges = plan_edges(node_pairs, graph.edge_pairs())
    done = replace(state, errors=())
    if not new_edges:
        return GuidedJoinResult(state=done)

    logger.info(f"Guided Join completed: {len(new_edges)} connection(s) created")
    return GuidedJoinResult(state=done, edges_created=new_edges, graph=graph.with_edges(new_edges))
