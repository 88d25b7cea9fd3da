"""Canvas runtime settings: tunable parameters for joining and layout.

All values read from environment variables with defaults matching the
canvas frontend's CSS geometry. Import from here instead of hardcoding.

Infrastructure config (API host, CORS origins) stays in flowcanvas/config.py.
"""

from __future__ import annotations

import os


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


# =====================================================================
# Smart Join
# =====================================================================

# More unconnected candidates than this switches to Guided Join
SMART_JOIN_MAX_CANDIDATES = _int("SMART_JOIN_MAX_CANDIDATES", 5)


# =====================================================================
# Layout (must match the rendered flow-node footprint)
# =====================================================================

NODE_WIDTH = _float("NODE_WIDTH", 140.0)
NODE_HEIGHT = _float("NODE_HEIGHT", 80.0)

# Vertical gap inserted below a node when resolving an overlap
MIN_VERTICAL_GAP = _float("MIN_VERTICAL_GAP", 40.0)

# Connection anchor square size
ANCHOR_SIZE = _float("ANCHOR_SIZE", 8.0)


# =====================================================================
# Pointer gestures
# =====================================================================

# Pointer travel (px, per axis) before a press on a node becomes a drag
DRAG_THRESHOLD_PX = _float("DRAG_THRESHOLD_PX", 5.0)

# Max press duration (ms) for a motionless press to count as a click
CLICK_MAX_DURATION_MS = _float("CLICK_MAX_DURATION_MS", 300.0)
