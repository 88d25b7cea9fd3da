"""Node Type Registries and Classifier

This module holds the static configuration that tells the canvas what kind
of pipeline stage a placed component is, and which ports it exposes.

Key Components:
- NodeCategory: Input / Transform / Output classification
- CATEGORY_REGISTRY: normalized type key -> category
- PORT_REGISTRY: normalized type key -> named input and output ports
- normalize_type_key: vendor type name -> registry key
- classify: total classification of any component type

Design Principles:
- Registries are immutable mappings built once at import time
- Classification never fails; unknown types degrade to safe defaults
- Every type is reachable by its snake_case key and its compact key
  (``file_input_delimited`` and ``fileinputdelimited``)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class NodeCategory(str, Enum):
    INPUT = "Input"
    TRANSFORM = "Transform"
    OUTPUT = "Output"


# Sort priority used when chaining candidates
CATEGORY_PRIORITY: Mapping[NodeCategory, int] = MappingProxyType({
    NodeCategory.INPUT: 1,
    NodeCategory.TRANSFORM: 2,
    NodeCategory.OUTPUT: 3,
})

DEFAULT_CATEGORY = NodeCategory.TRANSFORM
DEFAULT_PORTS: Tuple[Tuple[str, ...], Tuple[str, ...]] = (("main",), ("main",))


@dataclass(frozen=True)
class PortSpec:
    """Named ports exposed by a node type.

    Attributes:
        inputs: Input port names, in anchor order
        outputs: Output port names, in anchor order
    """

    inputs: Tuple[str, ...] = ("main",)
    outputs: Tuple[str, ...] = ("main",)

    def to_dict(self) -> Dict[str, List[str]]:
        return {"inputs": list(self.inputs), "outputs": list(self.outputs)}


@dataclass(frozen=True)
class NodeTypeInfo:
    """Classification result for a single component type.

    Attributes:
        type_key: Normalized registry key
        category: Resolved category (Transform when unknown)
        ports: Resolved ports (single ``main`` in/out when unknown)
        known: Whether the key was found in the category registry
    """

    type_key: str
    category: NodeCategory
    ports: PortSpec
    known: bool = False


def _with_compact_aliases(entries: Dict[str, Any]) -> Mapping[str, Any]:
    """Index every snake_case key under its underscore-free form as well."""
    table: Dict[str, Any] = {}
    for key, value in entries.items():
        table[key] = value
        table.setdefault(key.replace("_", ""), value)
    return MappingProxyType(table)


CATEGORY_REGISTRY: Mapping[str, NodeCategory] = _with_compact_aliases({
    # Sources
    "file_input_delimited": NodeCategory.INPUT,
    "oracle_input": NodeCategory.INPUT,
    "mssql_input": NodeCategory.INPUT,
    "fixed_flow_input": NodeCategory.INPUT,
    "row_generator": NodeCategory.INPUT,
    # Row processing
    "filter_rows": NodeCategory.TRANSFORM,
    "map": NodeCategory.TRANSFORM,
    "aggregate_row": NodeCategory.TRANSFORM,
    "unique_row": NodeCategory.TRANSFORM,
    "join": NodeCategory.TRANSFORM,
    "unite": NodeCategory.TRANSFORM,
    "sort_row": NodeCategory.TRANSFORM,
    # Sinks
    "file_output_delimited": NodeCategory.OUTPUT,
    "oracle_output": NodeCategory.OUTPUT,
    "file_output_positional": NodeCategory.OUTPUT,
})

PORT_REGISTRY: Mapping[str, PortSpec] = _with_compact_aliases({
    "file_input_delimited": PortSpec(inputs=(), outputs=("main",)),
    "file_output_delimited": PortSpec(inputs=("main",), outputs=("main",)),
    "map": PortSpec(inputs=("main",), outputs=("main",)),
    "filter_rows": PortSpec(inputs=("main",), outputs=("main", "reject")),
    "aggregate_row": PortSpec(inputs=("main",), outputs=("main", "reject")),
    "unique_row": PortSpec(inputs=("main",), outputs=("main",)),
    "oracle_input": PortSpec(inputs=(), outputs=("main", "reject")),
    "oracle_output": PortSpec(inputs=("main",), outputs=()),
    "join": PortSpec(inputs=("main", "lookup"), outputs=("main", "reject")),
    "unite": PortSpec(inputs=("main", "lookup"), outputs=("main",)),
    "log_row": PortSpec(inputs=("main",), outputs=("main",)),
    "python_component": PortSpec(inputs=(), outputs=("main",)),
    "die": PortSpec(inputs=("main",), outputs=()),
    "warn": PortSpec(inputs=("main",), outputs=("main",)),
})


def normalize_type_key(original_type: Optional[str], type_name: Optional[str] = None) -> str:
    """Map a component's raw type names to a registry key.

    ``original_type`` wins when non-empty, then ``type_name``, then
    ``"unknown"``. The result is lower-cased and a single leading ``t`` is
    dropped (vendor prefix, e.g. ``tFileInputDelimited``).

    Args:
        original_type: Vendor type name as imported
        type_name: Fallback type name

    Returns:
        Normalized registry key
    """
    raw = original_type or type_name or "unknown"
    key = raw.lower()
    if key.startswith("t") and len(key) > 1:
        key = key[1:]
    return key


def get_category(type_key: str) -> NodeCategory:
    """Category for a normalized key (Transform when unregistered)."""
    return CATEGORY_REGISTRY.get(type_key, DEFAULT_CATEGORY)


def get_ports(type_key: str) -> PortSpec:
    """Ports for a normalized key (single ``main`` in/out when unregistered)."""
    return PORT_REGISTRY.get(type_key) or PortSpec(*DEFAULT_PORTS)


def classify(original_type: Optional[str], type_name: Optional[str] = None) -> NodeTypeInfo:
    """Classify a component type. Total over all inputs; never raises.

    Example:
        info = classify("tFileInputDelimited")
        assert info.category is NodeCategory.INPUT
    """
    type_key = normalize_type_key(original_type, type_name)
    known = type_key in CATEGORY_REGISTRY
    if not known:
        logger.debug(f"Unregistered component type '{type_key}', defaulting to {DEFAULT_CATEGORY.value}")
    return NodeTypeInfo(
        type_key=type_key,
        category=get_category(type_key),
        ports=get_ports(type_key),
        known=known,
    )


def list_node_types() -> List[NodeTypeInfo]:
    """List every registered component type (snake_case keys only).

    Returns:
        NodeTypeInfo for each type known to either registry, sorted by
        category priority then key
    """
    keys = set(CATEGORY_REGISTRY) | set(PORT_REGISTRY)
    # Drop compact aliases of snake_case keys
    snake_forms = {k.replace("_", "") for k in keys if "_" in k}
    keys = {k for k in keys if "_" in k or k not in snake_forms}

    infos = [
        NodeTypeInfo(
            type_key=key,
            category=get_category(key),
            ports=get_ports(key),
            known=key in CATEGORY_REGISTRY,
        )
        for key in keys
    ]
    return sorted(infos, key=lambda info: (CATEGORY_PRIORITY[info.category], info.type_key))


def list_node_types_by_category(category: NodeCategory) -> List[NodeTypeInfo]:
    """List registered component types in a specific category."""
    return [info for info in list_node_types() if info.category == category]
