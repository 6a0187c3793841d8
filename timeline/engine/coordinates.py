"""
Coordinate Mapper - time <-> vertical pixel offset on the 24h axis.

Pure arithmetic, no state. The axis always covers the full day
(00:00-23:59); zoom is expressed as pixels per minute.

Nothing here validates business rules. Out-of-range inputs are clamped
rather than rejected:
- non-positive pixels_per_minute -> MIN_PIXELS_PER_MINUTE
- grid_minutes below 1 -> 1
- resulting clock times -> [00:00, 23:59]
"""

import math
from datetime import date, datetime, time, timedelta

MINUTES_PER_DAY = 24 * 60
LAST_MINUTE_OF_DAY = MINUTES_PER_DAY - 1

MIN_PIXELS_PER_MINUTE = 0.5
MAX_PIXELS_PER_MINUTE = 20.0


def _safe_ppm(pixels_per_minute: float) -> float:
    return pixels_per_minute if pixels_per_minute > 0 else MIN_PIXELS_PER_MINUTE


def _safe_grid(grid_minutes: int) -> int:
    return max(1, int(grid_minutes))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _clamp_minute_of_day(total_minutes: int) -> int:
    return min(max(total_minutes, 0), LAST_MINUTE_OF_DAY)


def _minute_of_day(value: time | datetime) -> int:
    return value.hour * 60 + value.minute


def _time_from_minutes(total_minutes: int) -> time:
    total_minutes = _clamp_minute_of_day(total_minutes)
    return time(total_minutes // 60, total_minutes % 60)


# =============================================================================
# TIME <-> OFFSET
# =============================================================================


def time_to_offset(value: time | datetime, pixels_per_minute: float) -> float:
    """Vertical offset in pixels from midnight."""
    return _minute_of_day(value) * _safe_ppm(pixels_per_minute)


def datetime_to_offset(value: datetime, pixels_per_minute: float) -> float:
    """Offset of a timestamp within its own day column."""
    return time_to_offset(value, pixels_per_minute)


def offset_to_time(offset: float, pixels_per_minute: float) -> time:
    """
    Inverse of time_to_offset, clamped to [00:00, 23:59].

    Sub-minute remainders are dropped, so a round trip is exact to the minute.
    """
    # Tolerate float error such as 599.9999 -> 600
    raw = offset / _safe_ppm(pixels_per_minute)
    return _time_from_minutes(math.floor(raw + 1e-9))


def offset_to_datetime(offset: float, day: date, pixels_per_minute: float) -> datetime:
    """Timestamp for an offset inside the column of `day`."""
    return datetime.combine(day, offset_to_time(offset, pixels_per_minute))


# =============================================================================
# SNAP-TO-GRID
# =============================================================================


def snap(value: time, grid_minutes: int) -> time:
    """
    Round a clock time to the nearest multiple of grid_minutes.

    Ties round up: 09:05 on a 10-minute grid becomes 09:10. The result never
    leaves [00:00, 23:59], so 23:53 on a 15-minute grid becomes 23:59.
    """
    grid = _safe_grid(grid_minutes)
    snapped = _round_half_up(_minute_of_day(value) / grid) * grid
    return _time_from_minutes(snapped)


def snap_datetime(value: datetime, grid_minutes: int) -> datetime:
    """Snap the clock part of a timestamp, keeping its date."""
    return datetime.combine(value.date(), snap(value.time(), grid_minutes))


# =============================================================================
# DRAG
# =============================================================================


def drag_delta_to_minute_offset(
    delta_pixels: float, pixels_per_minute: float, grid_minutes: int
) -> int:
    """
    Convert a drag distance into a grid-snapped minute delta.

    The raw minute count is rounded half-up first, then snapped half-up to
    the grid. Negative deltas (dragging upwards) move earlier.
    """
    grid = _safe_grid(grid_minutes)
    raw_minutes = _round_half_up(delta_pixels / _safe_ppm(pixels_per_minute))
    return _round_half_up(raw_minutes / grid) * grid


def shift_by_drag(
    original_start: datetime,
    original_end: datetime,
    delta_pixels: float,
    pixels_per_minute: float,
    grid_minutes: int,
) -> tuple[datetime, datetime]:
    """Shift both endpoints by the same snapped offset. Duration is preserved exactly."""
    offset = timedelta(
        minutes=drag_delta_to_minute_offset(delta_pixels, pixels_per_minute, grid_minutes)
    )
    return original_start + offset, original_end + offset


# =============================================================================
# GEOMETRY HELPERS
# =============================================================================


def extent_for(start: datetime, end: datetime, pixels_per_minute: float) -> float:
    """Height in pixels of an item spanning start..end."""
    minutes = (end - start).total_seconds() // 60
    return minutes * _safe_ppm(pixels_per_minute)


def day_extent(pixels_per_minute: float) -> float:
    """Height in pixels of a full day column."""
    return MINUTES_PER_DAY * _safe_ppm(pixels_per_minute)


def overlap_fraction(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> float:
    """
    Overlap between two ranges relative to their average duration, 0.0-1.0.
    """
    if a_end <= b_start or a_start >= b_end:
        return 0.0

    overlap = (min(a_end, b_end) - max(a_start, b_start)).total_seconds() // 60
    avg = ((a_end - a_start).total_seconds() // 60 + (b_end - b_start).total_seconds() // 60) / 2
    if avg <= 0:
        return 0.0
    return min(max(overlap / avg, 0.0), 1.0)


def is_in_visible_range(value: time, hour_start: int, hour_end: int) -> bool:
    return hour_start <= value.hour < hour_end


def clamp_to_visible_range(value: time, hour_start: int, hour_end: int) -> time:
    """Pull a time into [hour_start:00, (hour_end-1):59]."""
    if value.hour < hour_start:
        return time(hour_start, 0)
    if value.hour >= hour_end:
        return time(max(hour_end - 1, 0), 59)
    return value


def format_time_label(value: time, show_minutes: bool = True) -> str:
    """Axis label: "14:00" or "14h"."""
    if show_minutes:
        return f"{value.hour:02d}:{value.minute:02d}"
    return f"{value.hour}h"
