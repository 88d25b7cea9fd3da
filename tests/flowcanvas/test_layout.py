"""Unit tests for collision-avoidance layout."""

from flowcanvas import settings
from flowcanvas.engine.layout import (
    AnchorKind,
    Box,
    anchor_position,
    apply_collision_avoidance,
    render_positions,
)
from flowcanvas.graph import Position

from .conftest import make_node


def _boxes(rendered):
    return [Box.at(r.render_position, settings.NODE_WIDTH, settings.NODE_HEIGHT) for r in rendered]


class TestCollisionAvoidance:

    def test_identical_positions_separated(self):
        a = make_node("tMap_1", x=100, y=100)
        b = make_node("tMap_2", x=100, y=100)
        rendered = apply_collision_avoidance([a, b])

        box_a, box_b = _boxes(rendered)
        assert not box_a.overlaps(box_b)
        # Tie: the later node moves
        assert rendered[0].render_position == Position(100, 100)
        assert rendered[1].render_position == Position(100, 100 + settings.NODE_HEIGHT + settings.MIN_VERTICAL_GAP)
        # Stored positions untouched
        assert a.position == Position(100, 100) and b.position == Position(100, 100)

    def test_node_with_larger_y_moves(self):
        lower = make_node("tMap_1", x=0, y=50)
        upper = make_node("tMap_2", x=20, y=0)
        rendered = apply_collision_avoidance([lower, upper])
        assert rendered[1].render_position == Position(20, 0)
        assert rendered[0].render_position == Position(0, 0 + 80 + 40)

    def test_separated_nodes_unchanged(self):
        a = make_node("tMap_1", x=0, y=0)
        b = make_node("tMap_2", x=500, y=0)
        assert render_positions([a, b]) == {"tMap_1": Position(0, 0), "tMap_2": Position(500, 0)}

    def test_touching_edges_do_not_overlap(self):
        a = make_node("tMap_1", x=0, y=0)
        b = make_node("tMap_2", x=settings.NODE_WIDTH, y=0)
        rendered = apply_collision_avoidance([a, b])
        assert rendered[1].render_position == Position(settings.NODE_WIDTH, 0)

    def test_custom_footprint(self):
        a = make_node("tMap_1")
        b = make_node("tMap_2", y=5)
        rendered = apply_collision_avoidance([a, b], width=10, height=10, gap=1)
        assert rendered[1].render_position == Position(0, 11)

    def test_output_order_matches_input(self):
        nodes = [make_node(f"tMap_{i}") for i in range(4)]
        assert [r.node.id for r in apply_collision_avoidance(nodes)] == [n.id for n in nodes]

    def test_single_sweep_leaves_cascaded_overlap(self):
        # Moving tMap_1 below tMap_3 pushes it onto tMap_2, a pair already visited
        a = make_node("tMap_1", x=0, y=50)
        b = make_node("tMap_2", x=0, y=180)
        c = make_node("tMap_3", x=0, y=0)
        rendered = apply_collision_avoidance([a, b, c])

        assert [r.render_position for r in rendered] == [
            Position(0, 120),
            Position(0, 180),
            Position(0, 0),
        ]
        box_a, box_b, _ = _boxes(rendered)
        assert box_a.overlaps(box_b)


class TestAnchors:

    def test_anchor_positions(self):
        half = settings.ANCHOR_SIZE / 2
        y = settings.NODE_HEIGHT / 2 - half
        assert anchor_position(Position(0, 0), AnchorKind.INPUT) == Position(-half, y)
        assert anchor_position(Position(0, 0), AnchorKind.OUTPUT) == Position(settings.NODE_WIDTH - half, y)
