"""Unit tests for the node type registries and classifier

Tests cover:
- Type key normalization
- Category lookup (snake_case and compact keys)
- Port lookup and defaults
- Registry listing
"""

import pytest

from flowcanvas.nodes.registry import (
    CATEGORY_PRIORITY,
    CATEGORY_REGISTRY,
    NodeCategory,
    PortSpec,
    classify,
    get_category,
    get_ports,
    list_node_types,
    list_node_types_by_category,
    normalize_type_key,
)


class TestNormalizeTypeKey:
    """Test vendor type name normalization."""

    def test_strips_vendor_prefix_and_lowercases(self):
        assert normalize_type_key("tFileInputDelimited") == "fileinputdelimited"

    def test_original_type_wins_over_type_name(self):
        assert normalize_type_key("tMap", "tFilterRows") == "map"

    def test_falls_back_to_type_name(self):
        assert normalize_type_key(None, "tSortRow") == "sortrow"
        assert normalize_type_key("", "tSortRow") == "sortrow"

    def test_missing_names_become_unknown(self):
        assert normalize_type_key(None, None) == "unknown"

    def test_single_letter_t_is_kept(self):
        assert normalize_type_key("t") == "t"

    def test_prefix_dropped_even_without_vendor_meaning(self):
        """Any leading 't' is dropped, so 'Table' normalizes to 'able'."""
        assert normalize_type_key("Table") == "able"


class TestCategory:
    """Test category classification."""

    def test_prefixed_and_compact_forms_classify_identically(self):
        prefixed = classify("tFileInputDelimited")
        compact = classify("fileinputdelimited")
        assert prefixed == compact
        assert prefixed.category is NodeCategory.INPUT
        assert prefixed.known

    def test_snake_case_key_registered(self):
        assert get_category("file_input_delimited") is NodeCategory.INPUT
        assert get_category("file_output_delimited") is NodeCategory.OUTPUT

    @pytest.mark.parametrize("original_type,category", [
        ("tOracleInput", NodeCategory.INPUT),
        ("tRowGenerator", NodeCategory.INPUT),
        ("tMap", NodeCategory.TRANSFORM),
        ("tJoin", NodeCategory.TRANSFORM),
        ("tAggregateRow", NodeCategory.TRANSFORM),
        ("tOracleOutput", NodeCategory.OUTPUT),
        ("tFileOutputPositional", NodeCategory.OUTPUT),
    ])
    def test_registered_types(self, original_type, category):
        assert classify(original_type).category is category

    def test_unknown_type_defaults_to_transform_with_main_ports(self):
        info = classify("tSomethingNobodyRegistered")
        assert info.category is NodeCategory.TRANSFORM
        assert info.ports == PortSpec(inputs=("main",), outputs=("main",))
        assert not info.known

    def test_category_priority_order(self):
        assert (
            CATEGORY_PRIORITY[NodeCategory.INPUT]
            < CATEGORY_PRIORITY[NodeCategory.TRANSFORM]
            < CATEGORY_PRIORITY[NodeCategory.OUTPUT]
        )

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            CATEGORY_REGISTRY["new_type"] = NodeCategory.INPUT  # type: ignore[index]


class TestPorts:
    """Test port lookup."""

    def test_filter_rows_has_reject_output(self):
        assert get_ports("filterrows").outputs == ("main", "reject")

    def test_source_has_no_inputs(self):
        assert get_ports("file_input_delimited").inputs == ()

    def test_sink_has_no_outputs(self):
        assert get_ports("oracleoutput").outputs == ()

    def test_port_only_type_is_transform(self):
        """log_row has ports but no registered category."""
        info = classify("tLogRow")
        assert info.ports.inputs == ("main",)
        assert info.category is NodeCategory.TRANSFORM
        assert not info.known

    def test_to_dict(self):
        assert get_ports("join").to_dict() == {
            "inputs": ["main", "lookup"],
            "outputs": ["main", "reject"],
        }


class TestListing:
    """Test registry queries."""

    def test_list_contains_snake_keys_only_once(self):
        keys = [info.type_key for info in list_node_types()]
        assert "file_input_delimited" in keys
        assert "fileinputdelimited" not in keys
        assert "map" in keys
        assert len(keys) == len(set(keys))

    def test_list_sorted_by_category(self):
        priorities = [CATEGORY_PRIORITY[info.category] for info in list_node_types()]
        assert priorities == sorted(priorities)

    def test_list_by_category(self):
        outputs = list_node_types_by_category(NodeCategory.OUTPUT)
        assert {info.type_key for info in outputs} == {
            "file_output_delimited",
            "oracle_output",
            "file_output_positional",
        }
