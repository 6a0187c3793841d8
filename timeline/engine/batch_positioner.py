"""
Batch Positioner - arrange selected items back to back inside a time window.

Steps:
1. Validate input (empty, all external, inverted window, negative gap)
2. Check capacity: sum(durations) + gap * (n - 1) <= window minutes
3. Sort by the chosen policy
4. Lay out sequentially from the window start, gap minutes apart
5. Hand each placement to the time updater, one at a time, in order

Every precondition failure is reported as a typed error before any write.
A failed write aborts the rest of the batch; writes already applied are
NOT rolled back, and the result carries how many went through.
"""

import asyncio
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from timeline.observability import RunContext

from .items import ScheduledItem, minutes_between
from .sources import TimeUpdater

logger = logging.getLogger(__name__)


class SortPolicy(StrEnum):
    CUSTOM_ORDER = "custom_order"  # Caller's order, verbatim
    DIFFICULTY_DESCENDING = "difficulty_descending"
    DURATION_ASCENDING = "duration_ascending"
    DURATION_DESCENDING = "duration_descending"
    ALPHABETICAL = "alphabetical"  # Case-insensitive title
    BY_CATEGORY = "by_category"  # Ascending, uncategorised last


# =============================================================================
# ERRORS
# =============================================================================


@dataclass(frozen=True)
class PositioningError:
    """Base for every reported batch failure."""

    @property
    def message(self) -> str:
        return "Batch positioning failed"


@dataclass(frozen=True)
class EmptySelection(PositioningError):
    @property
    def message(self) -> str:
        return "No items selected"


@dataclass(frozen=True)
class NoModifiableItems(PositioningError):
    external_count: int = 0

    @property
    def message(self) -> str:
        return "No movable items selected (external calendar events cannot be moved)"


@dataclass(frozen=True)
class InvalidWindow(PositioningError):
    window_start: datetime | None = None
    window_end: datetime | None = None

    @property
    def message(self) -> str:
        return "Invalid time window: start must be before end"


@dataclass(frozen=True)
class InvalidGap(PositioningError):
    gap_minutes: int = 0

    @property
    def message(self) -> str:
        return f"Invalid gap: {self.gap_minutes} min (must be >= 0)"


@dataclass(frozen=True)
class InsufficientCapacity(PositioningError):
    required_minutes: int = 0
    available_minutes: int = 0

    @property
    def message(self) -> str:
        return (
            f"Items do not fit: {self.required_minutes} min needed, "
            f"{self.available_minutes} min available"
        )


@dataclass(frozen=True)
class RunInProgress(PositioningError):
    @property
    def message(self) -> str:
        return "Another batch positioning run is still in progress"


@dataclass(frozen=True)
class UpdateFailed(PositioningError):
    item_id: int = 0
    item_title: str = ""
    reason: str = ""
    applied_count: int = 0

    @property
    def message(self) -> str:
        return f"Failed to update '{self.item_title}': {self.reason}"


@dataclass(frozen=True)
class Cancelled(PositioningError):
    applied_count: int = 0

    @property
    def message(self) -> str:
        return f"Batch positioning cancelled after {self.applied_count} item(s)"


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class PlacedItem:
    item: ScheduledItem
    new_start: datetime
    new_end: datetime

    def as_item(self) -> ScheduledItem:
        return self.item.with_times(self.new_start, self.new_end)


@dataclass
class PositioningResult:
    """
    Outcome of a batch run.

    placed holds the placements that were actually persisted: all of them on
    success, the applied prefix on a mid-batch failure or cancellation.
    """

    placed: list[PlacedItem] = field(default_factory=list)
    error: PositioningError | None = None
    external_filtered: int = 0

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def applied_count(self) -> int:
        return len(self.placed)

    @property
    def updated_items(self) -> list[ScheduledItem]:
        return [p.as_item() for p in self.placed]


@dataclass(frozen=True)
class FitCheck:
    required_minutes: int
    available_minutes: int

    @property
    def fits(self) -> bool:
        return self.required_minutes <= self.available_minutes


@dataclass(frozen=True)
class Fits(FitCheck):
    pass


@dataclass(frozen=True)
class DoesNotFit(FitCheck):
    pass


# =============================================================================
# PURE STEPS
# =============================================================================


def slot_minutes(item: ScheduledItem) -> int:
    """Minutes an item occupies in the window; a partial minute counts as one."""
    return math.ceil(item.duration.total_seconds() / 60)


def required_minutes(items: Sequence[ScheduledItem], gap_minutes: int) -> int:
    """Sum of slot minutes plus one gap between each adjacent pair."""
    return sum(slot_minutes(i) for i in items) + gap_minutes * max(len(items) - 1, 0)


def validate_fit(
    items: Sequence[ScheduledItem],
    window_start: datetime,
    window_end: datetime,
    gap_minutes: int,
) -> FitCheck:
    """Pre-check whether items fit into a window without committing to a run."""
    required = required_minutes(items, gap_minutes)
    available = minutes_between(window_start, window_end)
    if required <= available:
        return Fits(required, available)
    return DoesNotFit(required, available)


def sort_items(items: Sequence[ScheduledItem], policy: SortPolicy) -> list[ScheduledItem]:
    """Stable sort by policy. CUSTOM_ORDER keeps the caller's order."""
    if policy == SortPolicy.CUSTOM_ORDER:
        return list(items)
    if policy == SortPolicy.DIFFICULTY_DESCENDING:
        return sorted(items, key=lambda i: i.difficulty_percent, reverse=True)
    if policy == SortPolicy.DURATION_ASCENDING:
        return sorted(items, key=lambda i: i.duration_minutes)
    if policy == SortPolicy.DURATION_DESCENDING:
        return sorted(items, key=lambda i: i.duration_minutes, reverse=True)
    if policy == SortPolicy.ALPHABETICAL:
        return sorted(items, key=lambda i: i.title.casefold())
    if policy == SortPolicy.BY_CATEGORY:
        return sorted(
            items,
            key=lambda i: (i.category_key is None, i.category_key or 0),
        )
    raise ValueError(f"Unknown sort policy: {policy}")


def layout(
    items: Sequence[ScheduledItem], window_start: datetime, gap_minutes: int
) -> list[PlacedItem]:
    """
    Place items back to back from window_start, gap_minutes apart.

    Each item keeps its exact duration, seconds included.
    """
    placed = []
    cursor = window_start
    gap = timedelta(minutes=gap_minutes)

    for item in items:
        end = cursor + item.duration
        placed.append(PlacedItem(item=item, new_start=cursor, new_end=end))
        cursor = end + gap

    return placed


def plan_placements(
    items: Sequence[ScheduledItem],
    window_start: datetime,
    window_end: datetime,
    sort_policy: SortPolicy = SortPolicy.CUSTOM_ORDER,
    gap_minutes: int = 15,
) -> PositioningResult:
    """
    Validate, sort and lay out without persisting anything.

    Returns:
        PositioningResult whose placed list is the full plan, or an error
    """
    if not items:
        return PositioningResult(error=EmptySelection())

    modifiable = [i for i in items if not i.is_external]
    external_count = len(items) - len(modifiable)
    if external_count:
        logger.warning("Filtered out %d external item(s) (read-only)", external_count)

    if not modifiable:
        return PositioningResult(
            error=NoModifiableItems(external_count=external_count),
            external_filtered=external_count,
        )

    if window_start >= window_end:
        return PositioningResult(
            error=InvalidWindow(window_start=window_start, window_end=window_end),
            external_filtered=external_count,
        )

    if gap_minutes < 0:
        return PositioningResult(
            error=InvalidGap(gap_minutes=gap_minutes), external_filtered=external_count
        )

    fit = validate_fit(modifiable, window_start, window_end, gap_minutes)
    logger.debug(
        "Capacity check: %d min needed, %d min available",
        fit.required_minutes,
        fit.available_minutes,
    )
    if not fit.fits:
        return PositioningResult(
            error=InsufficientCapacity(
                required_minutes=fit.required_minutes,
                available_minutes=fit.available_minutes,
            ),
            external_filtered=external_count,
        )

    ordered = sort_items(modifiable, sort_policy)
    return PositioningResult(
        placed=layout(ordered, window_start, gap_minutes),
        external_filtered=external_count,
    )


# =============================================================================
# POSITIONER
# =============================================================================


class BatchPositioner:
    """
    Runs a batch placement against an external time updater.

    Writes are awaited strictly one after another, so placement order is
    preserved and an abort never leaves later writes in flight. One
    positioner runs one batch at a time; a second call while a run is in
    flight is rejected with RunInProgress.
    """

    def __init__(self, updater: TimeUpdater):
        self.updater = updater
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def position(
        self,
        items: Sequence[ScheduledItem],
        window_start: datetime,
        window_end: datetime,
        sort_policy: SortPolicy = SortPolicy.CUSTOM_ORDER,
        gap_minutes: int = 15,
        cancel: asyncio.Event | None = None,
    ) -> PositioningResult:
        """
        Validate, place and persist items inside [window_start, window_end).

        Args:
            items: Selected items; externals are dropped before processing
            window_start, window_end: Target window
            sort_policy: Order of placement
            gap_minutes: Spacing between consecutive items
            cancel: Checked between writes; once set, the run stops with the
                already-written prefix

        Returns:
            PositioningResult with the persisted placements or a typed error
        """
        if self._in_flight:
            return PositioningResult(error=RunInProgress())

        self._in_flight = True
        try:
            with RunContext(
                item_count=len(items),
                sort_policy=str(sort_policy),
                window_start=window_start,
                window_end=window_end,
            ):
                return await self._run(
                    items, window_start, window_end, sort_policy, gap_minutes, cancel
                )
        finally:
            self._in_flight = False

    async def _run(
        self,
        items: Sequence[ScheduledItem],
        window_start: datetime,
        window_end: datetime,
        sort_policy: SortPolicy,
        gap_minutes: int,
        cancel: asyncio.Event | None,
    ) -> PositioningResult:
        logger.info(
            "Starting batch positioning: %d items, window %s - %s, policy %s",
            len(items),
            window_start.isoformat(),
            window_end.isoformat(),
            sort_policy,
        )

        plan = plan_placements(items, window_start, window_end, sort_policy, gap_minutes)
        if not plan.success:
            logger.warning("Batch positioning rejected: %s", plan.error.message)
            return plan

        applied: list[PlacedItem] = []
        total = len(plan.placed)

        for index, placement in enumerate(plan.placed, start=1):
            if cancel is not None and cancel.is_set():
                logger.info("Batch positioning cancelled after %d/%d items", len(applied), total)
                return PositioningResult(
                    placed=applied,
                    error=Cancelled(applied_count=len(applied)),
                    external_filtered=plan.external_filtered,
                )

            item = placement.item
            logger.debug(
                "Updating item %d/%d: '%s' to %s - %s",
                index,
                total,
                item.title,
                placement.new_start.isoformat(),
                placement.new_end.isoformat(),
            )
            outcome = await self.updater.update_time(
                item.source_task_id,
                item.source_link_id,
                placement.new_start,
                placement.new_end,
            )
            if not outcome.success:
                logger.error(
                    "Update failed for '%s' after %d applied: %s",
                    item.title,
                    len(applied),
                    outcome.message,
                )
                return PositioningResult(
                    placed=applied,
                    error=UpdateFailed(
                        item_id=item.id,
                        item_title=item.title,
                        reason=outcome.message or "unknown error",
                        applied_count=len(applied),
                    ),
                    external_filtered=plan.external_filtered,
                )
            applied.append(placement)

        logger.info("Batch positioning completed: %d items updated", len(applied))
        return PositioningResult(placed=applied, external_filtered=plan.external_filtered)
