"""
Timeline data model - scheduled items and selection boxes.

ScheduledItem is an immutable value per arrangement pass. Items are rebuilt
from every source snapshot and annotated with a conflict state right away;
a reposition produces a new item via with_times().
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import StrEnum


class InvalidItemError(ValueError):
    """Raised when an item or box would violate its time invariants."""

    pass


class ConflictState(StrEnum):
    NO_CONFLICT = "no_conflict"  # Enough spacing to every neighbour
    TOLERANCE_WARNING = "tolerance_warning"  # Gap to a neighbour below tolerance
    OVERLAP = "overlap"  # Direct time overlap


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncating seconds."""
    return int((end - start).total_seconds() // 60)


@dataclass(frozen=True)
class ScheduledItem:
    """
    A task, calendar link or external event placed on the time axis.

    id is the arrangement identity. source_task_id / source_link_id are the
    owning collaborator's keys and may be absent independently. External
    items come from a read-only feed: they are displayed and take part in
    conflict detection, but are never selected or repositioned.
    """

    id: int
    title: str
    start_time: datetime
    end_time: datetime
    source_task_id: int | None = None
    source_link_id: int | None = None
    difficulty_percent: int = 60
    category_key: int | None = None
    is_external: bool = False
    conflict_state: ConflictState = ConflictState.NO_CONFLICT
    description: str = ""
    calendar_name: str | None = None
    is_completed: bool = False

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise InvalidItemError(
                f"Item {self.id} ends at {self.end_time.isoformat()} "
                f"which is not after its start {self.start_time.isoformat()}"
            )
        if not 0 <= self.difficulty_percent <= 100:
            raise InvalidItemError(
                f"Item {self.id} difficulty {self.difficulty_percent} outside 0-100"
            )

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start_time, self.end_time)

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def day(self) -> date:
        """Calendar day the item belongs to (its start date)."""
        return self.start_time.date()

    @property
    def is_multi_day(self) -> bool:
        return self.start_time.date() != self.end_time.date()

    def with_times(self, start_time: datetime, end_time: datetime) -> "ScheduledItem":
        """Return a copy at a new position. The conflict state is stale after a move."""
        return replace(
            self,
            start_time=start_time,
            end_time=end_time,
            conflict_state=ConflictState.NO_CONFLICT,
        )

    def with_conflict_state(self, state: ConflictState) -> "ScheduledItem":
        if state == self.conflict_state:
            return self
        return replace(self, conflict_state=state)


@dataclass(frozen=True)
class SelectionBox:
    """A committed time range. start is always chronologically first."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidItemError(
                f"Selection box start {self.start.isoformat()} must be before "
                f"end {self.end.isoformat()}"
            )

    @classmethod
    def normalized(
        cls, a: datetime, b: datetime, min_minutes: int = 0
    ) -> "SelectionBox":
        """
        Build a box from two endpoints in either order.

        Args:
            a, b: Endpoints, in any order
            min_minutes: Floor for the span. A shorter span is extended
                from the earlier endpoint instead of being rejected.
        """
        start, end = (a, b) if a <= b else (b, a)
        if min_minutes and minutes_between(start, end) < min_minutes:
            end = start + timedelta(minutes=min_minutes)
        return cls(start=start, end=end)

    @classmethod
    def from_item(cls, item: ScheduledItem) -> "SelectionBox":
        return cls(start=item.start_time, end=item.end_time)

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start, self.end)

    def contains(self, item: ScheduledItem) -> bool:
        """True if the item's [start, end) lies entirely inside the box."""
        return self.start <= item.start_time and item.end_time <= self.end

    def overlaps(self, item: ScheduledItem) -> bool:
        return item.start_time < self.end and self.start < item.end_time
