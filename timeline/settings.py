"""
Timeline view settings - tolerance, zoom, grid and gap.

Loaded from a YAML file (see timeline.paths.settings_path). Falls back to
defaults from timeline.config if the file is missing or unreadable. Every
value is clamped into its valid range by validated(); the engine never
persists settings itself.

Example timeline.yaml:

    tolerance_minutes: 30
    visible_hours: 12
    grid_minutes: 15
    pixels_per_minute: 2.0
    gap_minutes: 15
    time_range: three_days
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from timeline import config, paths
from timeline.engine.coordinates import (
    MAX_PIXELS_PER_MINUTE,
    MIN_PIXELS_PER_MINUTE,
    MINUTES_PER_DAY,
)
from timeline.engine.days import TimeRange

logger = logging.getLogger(__name__)


def _clamp(value, low, high):
    return min(max(value, low), high)


@dataclass(frozen=True)
class TimelineSettings:
    tolerance_minutes: int = config.DEFAULT_TOLERANCE_MINUTES
    visible_hours: float = 12.0  # Zoom: hours visible on screen
    grid_minutes: int = config.DEFAULT_GRID_MINUTES
    pixels_per_minute: float = config.DEFAULT_PIXELS_PER_MINUTE
    gap_minutes: int = config.DEFAULT_GAP_MINUTES
    time_range: TimeRange = TimeRange.THREE_DAYS

    def validated(self) -> "TimelineSettings":
        """Return a copy with every value clamped to its valid range."""
        return replace(
            self,
            tolerance_minutes=_clamp(int(self.tolerance_minutes), 0, MINUTES_PER_DAY),
            visible_hours=_clamp(float(self.visible_hours), 2.0, 24.0),
            grid_minutes=_clamp(int(self.grid_minutes), 1, 60),
            pixels_per_minute=_clamp(
                float(self.pixels_per_minute), MIN_PIXELS_PER_MINUTE, MAX_PIXELS_PER_MINUTE
            ),
            gap_minutes=_clamp(int(self.gap_minutes), 0, MINUTES_PER_DAY),
        )

    @property
    def tolerance_hours(self) -> float:
        return self.tolerance_minutes / 60

    @staticmethod
    def pixels_per_minute_for_height(screen_height: float) -> float:
        """
        Zoom that fits the full 24h day on a screen of the given height.

        The axis uses absolute positions from 00:00, so this is the
        smallest zoom at which the whole day column is on screen.
        """
        return _clamp(screen_height / MINUTES_PER_DAY, MIN_PIXELS_PER_MINUTE, MAX_PIXELS_PER_MINUTE)

    def zoom_for_height(self, screen_height: float) -> float:
        """Zoom at which visible_hours fill the screen; the rest of the day scrolls."""
        return _clamp(
            screen_height / (self.visible_hours * 60),
            MIN_PIXELS_PER_MINUTE,
            MAX_PIXELS_PER_MINUTE,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "TimelineSettings":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown timeline settings: %s", ", ".join(unknown))

        values = {k: v for k, v in data.items() if k in known and v is not None}
        if "time_range" in values:
            try:
                values["time_range"] = TimeRange(values["time_range"])
            except ValueError:
                logger.warning("Unknown time_range %r, using default", values["time_range"])
                del values["time_range"]

        try:
            return cls(**values).validated()
        except (TypeError, ValueError) as exc:
            logger.error("Invalid timeline settings, using defaults: %s", exc)
            return cls().validated()


def _load_yaml(path: Path) -> dict:
    """Load YAML config, return empty dict on failure."""
    if not path.exists():
        logger.info("Timeline settings not found at %s, using defaults", path)
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.error("Failed to load timeline settings from %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.error("Timeline settings at %s is not a mapping, using defaults", path)
        return {}
    return data


def load_settings(path: Path | None = None) -> TimelineSettings:
    """Read settings from YAML, falling back to defaults."""
    if path is None:
        path = paths.settings_path()
    return TimelineSettings.from_dict(_load_yaml(path))
