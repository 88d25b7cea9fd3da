"""Node System: static type registries and the component classifier."""

from .registry import (
    CATEGORY_PRIORITY,
    CATEGORY_REGISTRY,
    PORT_REGISTRY,
    NodeCategory,
    NodeTypeInfo,
    PortSpec,
    classify,
    get_category,
    get_ports,
    list_node_types,
    list_node_types_by_category,
    normalize_type_key,
)

__all__ = [
    "CATEGORY_PRIORITY",
    "CATEGORY_REGISTRY",
    "PORT_REGISTRY",
    "NodeCategory",
    "NodeTypeInfo",
    "PortSpec",
    "classify",
    "get_category",
    "get_ports",
    "list_node_types",
    "list_node_types_by_category",
    "normalize_type_key",
]
