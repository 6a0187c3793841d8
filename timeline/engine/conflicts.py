"""
Conflict Detector - classify same-day items by overlap and spacing.

Per item A, against every other item B of the same day:
1. Overlap (half-open): A.end > B.start and A.start < B.end
   -> OVERLAP, stop looking (overlap outranks everything)
2. Otherwise the gap on the adjacent side; a gap in [0, tolerance)
   -> TOLERANCE_WARNING
3. Neither for any B -> NO_CONFLICT

Touching items (A.end == B.start) never overlap; with tolerance > 0 their
zero-minute gap is a warning.

Items are assumed pre-filtered to one calendar day. Pure and reentrant.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from .items import ConflictState, ScheduledItem, minutes_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Overlap:
    item_a_id: int
    item_b_id: int
    overlap_start: datetime
    overlap_end: datetime

    @property
    def minutes(self) -> int:
        return minutes_between(self.overlap_start, self.overlap_end)


def overlaps(a: ScheduledItem, b: ScheduledItem) -> bool:
    """Half-open interval overlap. Symmetric."""
    return a.end_time > b.start_time and a.start_time < b.end_time


def gap_minutes(a: ScheduledItem, b: ScheduledItem) -> float:
    """
    Minutes between two non-overlapping items on whichever side is adjacent.

    Returns math.inf when the items overlap.
    """
    gap_before = (
        minutes_between(b.end_time, a.start_time) if a.start_time > b.end_time else math.inf
    )
    gap_after = (
        minutes_between(a.end_time, b.start_time) if b.start_time > a.end_time else math.inf
    )
    gap = min(gap_before, gap_after)
    if gap == math.inf and not overlaps(a, b):
        # Touching endpoints
        return 0
    return gap


def _violates_tolerance(a: ScheduledItem, b: ScheduledItem, tolerance_minutes: int) -> bool:
    if overlaps(a, b):
        return False
    return 0 <= gap_minutes(a, b) < tolerance_minutes


def _classify(index: int, items: Sequence[ScheduledItem], tolerance_minutes: int) -> ConflictState:
    item = items[index]
    has_warning = False

    for other_index, other in enumerate(items):
        if other_index == index:
            continue
        if overlaps(item, other):
            return ConflictState.OVERLAP
        if not has_warning and _violates_tolerance(item, other, tolerance_minutes):
            has_warning = True

    return ConflictState.TOLERANCE_WARNING if has_warning else ConflictState.NO_CONFLICT


def detect_conflicts(
    items: Sequence[ScheduledItem], tolerance_minutes: int
) -> list[ScheduledItem]:
    """
    Annotate every item with its conflict state.

    Args:
        items: One day's items
        tolerance_minutes: Minimum acceptable gap; negative values count as 0

    Returns:
        The same items, same order, with conflict_state populated
    """
    if not items:
        return []

    tolerance = max(0, int(tolerance_minutes))
    annotated = [
        item.with_conflict_state(_classify(i, items, tolerance)) for i, item in enumerate(items)
    ]

    flagged = sum(1 for item in annotated if item.conflict_state != ConflictState.NO_CONFLICT)
    if flagged:
        logger.debug(
            "Conflict pass: %d of %d items flagged (tolerance=%d)",
            flagged,
            len(annotated),
            tolerance,
        )
    return annotated


def find_overlaps(items: Sequence[ScheduledItem]) -> list[Overlap]:
    """Every overlapping pair with its shared window. Ids are ordered ascending."""
    found = []

    for i, a in enumerate(items):
        for b in items[i + 1 :]:
            if not overlaps(a, b):
                continue
            first, second = (a, b) if a.id <= b.id else (b, a)
            found.append(
                Overlap(
                    item_a_id=first.id,
                    item_b_id=second.id,
                    overlap_start=max(a.start_time, b.start_time),
                    overlap_end=min(a.end_time, b.end_time),
                )
            )

    return found


def overlapping_pairs(items: Sequence[ScheduledItem]) -> set[tuple[int, int]]:
    """Unordered overlapping pairs, canonicalized as (lower id, higher id)."""
    return {(o.item_a_id, o.item_b_id) for o in find_overlaps(items)}


def tolerance_warnings(
    items: Sequence[ScheduledItem], tolerance_minutes: int
) -> list[ScheduledItem]:
    """Items whose only problem is a too-small gap to a neighbour."""
    return [
        item
        for item in detect_conflicts(items, tolerance_minutes)
        if item.conflict_state == ConflictState.TOLERANCE_WARNING
    ]
