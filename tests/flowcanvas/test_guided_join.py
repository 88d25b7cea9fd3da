"""Unit tests for the Guided Join state machine."""

import pytest

from flowcanvas.engine.guided_join import (
    STEP_FAN_IN,
    STEP_FINAL_OUTPUT,
    STEP_INPUT_MAPPING,
    GuidedJoinState,
    advance,
    apply_selections,
    back,
    complete_guided_join,
    map_input,
    proposed_pairs,
    select_fan_in,
    select_final_output,
    start_guided_join,
    validate_step,
)

from .conftest import make_graph, make_node


@pytest.fixture
def nodes():
    return [
        make_node("tFileInputDelimited_1"),
        make_node("tOracleInput_2"),
        make_node("tMap_3"),
        make_node("tJoin_4"),
        make_node("tOracleOutput_5"),
    ]


@pytest.fixture
def graph(nodes):
    return make_graph(nodes)


@pytest.fixture
def state(nodes):
    return start_guided_join(nodes)


def _filled(state):
    """State with every step answered."""
    state = map_input(state, "tFileInputDelimited_1", "tMap_3")
    state = map_input(state, "tOracleInput_2", "tJoin_4")
    state = select_fan_in(state, ["tMap_3"], "tJoin_4")
    return state


class TestStart:

    def test_partitions_candidates(self, state):
        assert state.input_nodes == ("tFileInputDelimited_1", "tOracleInput_2")
        assert state.transform_nodes == ("tMap_3", "tJoin_4")
        assert state.output_nodes == ("tOracleOutput_5",)
        assert state.step == STEP_INPUT_MAPPING
        assert state.errors == ()

    def test_single_output_prefilled(self, state):
        assert state.final_output == "tOracleOutput_5"

    def test_multiple_outputs_not_prefilled(self):
        state = start_guided_join([make_node("tOracleOutput_1"), make_node("tFileOutputDelimited_2")])
        assert state.final_output is None


class TestSelections:

    def test_map_input_to_unknown_target(self, state):
        state = map_input(state, "tFileInputDelimited_1", "tOracleOutput_5")
        assert state.input_mappings == {}
        assert "cannot receive input" in state.errors[0]

    def test_map_non_input(self, state):
        state = map_input(state, "tMap_3", "tJoin_4")
        assert state.errors

    def test_inputs_map_to_outputs_without_transforms(self):
        state = start_guided_join([
            make_node("tFileInputDelimited_1"),
            make_node("tOracleInput_2"),
            make_node("tOracleOutput_3"),
        ])
        state = map_input(state, "tOracleInput_2", "tOracleOutput_3")
        assert state.input_mappings == {"tOracleInput_2": "tOracleOutput_3"}

    def test_fan_in_downstream_cannot_be_upstream(self, state):
        state = select_fan_in(state, ["tMap_3", "tJoin_4"], "tJoin_4")
        assert state.fan_in.downstream is None
        assert any("both upstream and downstream" in e for e in state.errors)

    def test_final_output_must_be_a_choice(self, state):
        state = select_final_output(state, "tMap_3")
        assert state.errors
        assert state.final_output == "tOracleOutput_5"

    def test_apply_selections_collects_every_error(self, state):
        state = apply_selections(
            state,
            input_mappings={"tFileInputDelimited_1": "tMap_3", "tOracleInput_2": "nope"},
            final_output="tMap_3",
        )
        assert state.input_mappings == {"tFileInputDelimited_1": "tMap_3"}
        assert len(state.errors) == 2


class TestNavigation:

    def test_advance_blocked_until_inputs_mapped(self, state):
        blocked = advance(state)
        assert blocked.step == STEP_INPUT_MAPPING
        assert len(blocked.errors) == 2

        state = map_input(state, "tFileInputDelimited_1", "tMap_3")
        state = map_input(state, "tOracleInput_2", "tJoin_4")
        assert advance(state).step == STEP_FAN_IN

    def test_fan_in_required_with_several_transforms(self, state):
        state = _filled(state)
        state = GuidedJoinState.from_dict({**state.to_dict(), "fan_in": {}, "step": STEP_FAN_IN})
        assert validate_step(state) == [
            "Select the downstream transform the upstream transforms feed into."
        ]

    def test_fan_in_optional_with_one_transform(self):
        state = start_guided_join([
            make_node("tFileInputDelimited_1"),
            make_node("tOracleInput_2"),
            make_node("tMap_3"),
            make_node("tOracleOutput_4"),
        ])
        state = map_input(state, "tFileInputDelimited_1", "tMap_3")
        state = map_input(state, "tOracleInput_2", "tMap_3")
        state = advance(state)
        assert advance(state).step == STEP_FINAL_OUTPUT

    def test_advance_stops_at_last_step(self, state):
        state = advance(advance(_filled(state)))
        assert state.step == STEP_FINAL_OUTPUT
        assert advance(state).step == STEP_FINAL_OUTPUT

    def test_back_keeps_selections(self, state):
        state = advance(advance(_filled(state)))
        state = back(state)
        assert state.step == STEP_FAN_IN
        assert state.fan_in.downstream == "tJoin_4"
        assert back(back(state)).step == STEP_INPUT_MAPPING

    def test_from_dict_rejects_bad_step(self, state):
        with pytest.raises(ValueError):
            GuidedJoinState.from_dict({**state.to_dict(), "step": 4})


class TestCompletion:

    def test_proposed_pairs_order(self, state):
        assert proposed_pairs(_filled(state)) == [
            ("tFileInputDelimited_1", "tMap_3"),
            ("tOracleInput_2", "tJoin_4"),
            ("tMap_3", "tJoin_4"),
            ("tJoin_4", "tOracleOutput_5"),
        ]

    def test_complete_creates_flows(self, state, graph):
        result = complete_guided_join(_filled(state), graph)
        assert result.state.errors == ()
        assert result.graph.edge_pairs() == frozenset(proposed_pairs(_filled(state)))
        assert len(result.edges_created) == 4

    def test_complete_revalidates_every_step(self, state, graph):
        state = advance(advance(map_input(state, "tFileInputDelimited_1", "tMap_3")))
        result = complete_guided_join(state, graph)
        assert result.graph is None
        assert result.state.step == STEP_INPUT_MAPPING
        assert result.state.errors

    def test_complete_skips_existing_flows(self, state, nodes):
        graph = make_graph(nodes, [("tMap_3", "tJoin_4")])
        result = complete_guided_join(_filled(state), graph)
        assert ("tMap_3", "tJoin_4") not in [(e.source, e.target) for e in result.edges_created]
        assert len(result.graph.edges) == 4

    def test_complete_skips_deleted_components(self, state, nodes):
        graph = make_graph([n for n in nodes if n.id != "tOracleInput_2"])
        result = complete_guided_join(_filled(state), graph)
        assert len(result.edges_created) == 3

    def test_complete_with_nothing_new(self, state, nodes):
        graph = make_graph(nodes, proposed_pairs(_filled(state)))
        result = complete_guided_join(_filled(state), graph)
        assert result.graph is None
        assert result.edges_created == []
        assert result.state.errors == ()
