"""Pipeline canvas graph-construction package.

Subpackages:
- nodes: Static node type registries and the node classifier
- engine: Smart Join, Guided Join, collision-avoidance layout and the
  pointer-driven connection/drag protocols
"""
