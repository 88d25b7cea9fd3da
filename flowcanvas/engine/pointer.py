"""Pointer events fed to the connection and node-drag reducers.

Coordinates are canvas coordinates. Timestamps are milliseconds from any
monotonic clock; only differences are used.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .layout import AnchorKind


@dataclass(frozen=True)
class AnchorPress:
    """Pointer pressed on a connection anchor."""
    node_id: str
    port: Optional[str]
    anchor: AnchorKind
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class NodePress:
    """Pointer pressed on a component body."""
    node_id: str
    x: float
    y: float
    timestamp_ms: float = 0.0


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerRelease:
    """Pointer released; ``node_id``/``anchor`` set when over an anchor."""
    x: float = 0.0
    y: float = 0.0
    timestamp_ms: float = 0.0
    node_id: Optional[str] = None
    port: Optional[str] = None
    anchor: Optional[AnchorKind] = None


PointerEvent = Union[AnchorPress, NodePress, PointerMove, PointerRelease]
