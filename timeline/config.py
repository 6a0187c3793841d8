"""
Centralized configuration for the timeline engine.

Process-level values that vary by deployment belong here.
Override via environment variables where marked. Per-user view settings
(tolerance, zoom, grid) live in timeline.settings.
"""

import os

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("TIMELINE_LOG_LEVEL", "INFO")
"""Level of the `timeline` package logger set by configure_logging()."""

LOG_JSON: bool | None = (
    None
    if os.environ.get("TIMELINE_LOG_JSON") is None
    else os.environ["TIMELINE_LOG_JSON"] == "1"
)
"""Force JSON (1) or human (0) log output. Unset = auto-detect from TTY."""

# ============================================================
# View defaults
# ============================================================

DEFAULT_TOLERANCE_MINUTES: int = int(os.environ.get("TIMELINE_TOLERANCE_MINUTES", "30"))
"""Minimum gap between neighbouring items before a tolerance warning."""

DEFAULT_GRID_MINUTES: int = int(os.environ.get("TIMELINE_GRID_MINUTES", "15"))
"""Snap-to-grid interval for drags."""

DEFAULT_GAP_MINUTES: int = int(os.environ.get("TIMELINE_GAP_MINUTES", "15"))
"""Spacing inserted between items during batch positioning."""

DEFAULT_PIXELS_PER_MINUTE: float = float(os.environ.get("TIMELINE_PIXELS_PER_MINUTE", "2.0"))
"""Zoom factor used when no screen height is known."""

# ============================================================
# Selection
# ============================================================

MIN_SELECTION_BOX_MINUTES: int = 15
"""A drag-selected box shorter than this is extended to this length."""
