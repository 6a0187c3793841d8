"""
Day columns - split a multi-day snapshot into per-day, conflict-annotated columns.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from enum import StrEnum

from .conflicts import detect_conflicts
from .items import ConflictState, ScheduledItem


class TimeRange(StrEnum):
    """How many day columns are visible around today."""

    ONE_DAY = "one_day"
    THREE_DAYS = "three_days"
    SEVEN_DAYS = "seven_days"
    FOURTEEN_DAYS = "fourteen_days"

    def bounds(self, today: date) -> tuple[date, date]:
        before, after = _RANGE_SPANS[self]
        return today - timedelta(days=before), today + timedelta(days=after)


_RANGE_SPANS = {
    TimeRange.ONE_DAY: (0, 0),
    TimeRange.THREE_DAYS: (1, 1),
    TimeRange.SEVEN_DAYS: (3, 3),
    TimeRange.FOURTEEN_DAYS: (7, 6),
}


@dataclass(frozen=True)
class ConflictCounts:
    overlaps: int
    warnings: int
    no_conflict: int

    @property
    def total(self) -> int:
        return self.overlaps + self.warnings + self.no_conflict

    @property
    def has_conflicts(self) -> bool:
        return self.overlaps > 0 or self.warnings > 0


@dataclass(frozen=True)
class DayTimeline:
    date: date
    items: tuple[ScheduledItem, ...]
    is_today: bool = False

    def conflict_counts(self) -> ConflictCounts:
        states = [i.conflict_state for i in self.items]
        return ConflictCounts(
            overlaps=states.count(ConflictState.OVERLAP),
            warnings=states.count(ConflictState.TOLERANCE_WARNING),
            no_conflict=states.count(ConflictState.NO_CONFLICT),
        )

    @property
    def has_conflicts(self) -> bool:
        return any(i.conflict_state != ConflictState.NO_CONFLICT for i in self.items)

    def label(self, today: date) -> str:
        suffix = f"{self.date.day}.{self.date.month}"
        if self.date == today:
            return f"Today\n{suffix}"
        if self.date == today + timedelta(days=1):
            return f"Tomorrow\n{suffix}"
        if self.date == today - timedelta(days=1):
            return f"Yesterday\n{suffix}"
        return f"{self.date.strftime('%a')}\n{suffix}"

    def with_tolerance(self, tolerance_minutes: int) -> "DayTimeline":
        """Re-run conflict detection with a new tolerance, same items."""
        return DayTimeline(
            date=self.date,
            items=tuple(detect_conflicts(self.items, tolerance_minutes)),
            is_today=self.is_today,
        )


def group_into_days(
    items: Sequence[ScheduledItem],
    start_date: date,
    end_date: date,
    tolerance_minutes: int,
    today: date | None = None,
) -> list[DayTimeline]:
    """
    One column per date in [start_date, end_date].

    An item belongs to the day it starts on. Conflicts are detected per
    column; cross-day conflicts are not considered.
    """
    if today is None:
        today = date.today()

    by_day: dict[date, list[ScheduledItem]] = {}
    for item in items:
        by_day.setdefault(item.day, []).append(item)

    days = []
    current = start_date
    while current <= end_date:
        day_items = by_day.get(current, [])
        days.append(
            DayTimeline(
                date=current,
                items=tuple(detect_conflicts(day_items, tolerance_minutes)),
                is_today=current == today,
            )
        )
        current += timedelta(days=1)

    return days
