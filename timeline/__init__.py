"""
Timeline - scheduling engine for a 24h day-column view.

Layers:
- timeline.engine: pure model, conflict detection, placement, selection
- timeline.settings: YAML-backed view settings
- timeline.observability: logging scoped to batch runs
"""

from timeline.engine.session import TimelineSession
from timeline.observability import configure_logging
from timeline.settings import TimelineSettings, load_settings

__version__ = "0.1.0"

__all__ = [
    "TimelineSession",
    "TimelineSettings",
    "load_settings",
    "configure_logging",
]
