"""
Timeline Session - the UI-facing seam of the engine.

Holds the four separate pieces of view state and recombines them only here:
- items (per-day, conflict annotated)
- settings (tolerance, zoom, grid, gap)
- selection state machine (box + ordered multi-selection)
- single-item drag preview

Exposed operations:
- load / refresh: pull a snapshot from the item source and annotate it
- detect_conflicts: conflict query for any item set
- fit_to_screen / set_visible_hours: zoom from screen height and visible hours
- position_selection: batch placement of the current selection
- begin/drag/end/cancel item drag: move one item with snap-to-grid
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import date, datetime

from timeline.settings import TimelineSettings

from .batch_positioner import (
    BatchPositioner,
    InvalidWindow,
    PositioningResult,
    SortPolicy,
)
from .conflicts import detect_conflicts
from .days import DayTimeline, TimeRange, group_into_days
from .item_drag import ItemDrag
from .items import ScheduledItem
from .selection import ACCEPTED, Outcome, RejectionReason, SelectionStateMachine
from .sources import ItemSource, TimeUpdater, UpdateResult

logger = logging.getLogger(__name__)


class TimelineSession:
    """
    One timeline view: a date range of day columns plus interaction state.

    Usage:
        session = TimelineSession(source, updater, load_settings())
        session.load(today=date.today())
        session.selection.begin_drag(t0)
        session.selection.update_drag(t1)
        session.selection.end_drag()
        session.selection.select_all_in_box(session.all_items())
        result = await session.position_selection(SortPolicy.DURATION_ASCENDING)
    """

    def __init__(
        self,
        source: ItemSource,
        updater: TimeUpdater,
        settings: TimelineSettings | None = None,
    ):
        self.source = source
        self.updater = updater
        self.settings = (settings or TimelineSettings()).validated()
        self.positioner = BatchPositioner(updater)
        self.selection = SelectionStateMachine()
        self.days: list[DayTimeline] = []
        self.view_start: date | None = None
        self.view_end: date | None = None
        self.item_drag: ItemDrag | None = None
        self.screen_height: float | None = None

    # -------------------------------------------------------------------------
    # Loading and conflicts
    # -------------------------------------------------------------------------

    def load(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
        today: date | None = None,
    ) -> list[DayTimeline]:
        """
        Load a date range and annotate each day with conflict states.

        Without explicit dates the range comes from settings.time_range
        around today.
        """
        if today is None:
            today = date.today()
        if start_date is None or end_date is None:
            start_date, end_date = self.settings.time_range.bounds(today)

        items = list(self.source.load(start_date, end_date))
        self.days = group_into_days(
            items, start_date, end_date, self.settings.tolerance_minutes, today=today
        )
        self.view_start, self.view_end = start_date, end_date
        logger.info(
            "Loaded %d items across %d days (%s..%s)",
            len(items),
            len(self.days),
            start_date.isoformat(),
            end_date.isoformat(),
        )
        return self.days

    def refresh(self, today: date | None = None) -> list[DayTimeline]:
        if self.view_start is None or self.view_end is None:
            return self.load(today=today)
        return self.load(self.view_start, self.view_end, today=today)

    def set_time_range(self, time_range: TimeRange, today: date | None = None) -> list[DayTimeline]:
        self.settings = replace(self.settings, time_range=time_range).validated()
        self.view_start = self.view_end = None
        return self.load(today=today)

    def set_tolerance(self, tolerance_minutes: int) -> list[DayTimeline]:
        """Re-run conflict detection on the loaded days without reloading."""
        self.settings = replace(self.settings, tolerance_minutes=tolerance_minutes).validated()
        self.days = [day.with_tolerance(self.settings.tolerance_minutes) for day in self.days]
        return self.days

    def detect_conflicts(
        self, items: Sequence[ScheduledItem], tolerance_minutes: int | None = None
    ) -> list[ScheduledItem]:
        if tolerance_minutes is None:
            tolerance_minutes = self.settings.tolerance_minutes
        return detect_conflicts(items, tolerance_minutes)

    def all_items(self) -> list[ScheduledItem]:
        return [item for day in self.days for item in day.items]

    def items_for(self, day: date) -> list[ScheduledItem]:
        for column in self.days:
            if column.date == day:
                return list(column.items)
        return []

    # -------------------------------------------------------------------------
    # Batch placement
    # -------------------------------------------------------------------------

    def selected_items(self) -> list[ScheduledItem]:
        """Current selection resolved against loaded items, in manual order."""
        return self.selection.ordered_selection(self.all_items())

    async def position_selection(
        self,
        sort_policy: SortPolicy = SortPolicy.CUSTOM_ORDER,
        window_start: datetime | None = None,
        window_end: datetime | None = None,
        gap_minutes: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> PositioningResult:
        """
        Place the selected items into a window (default: the committed box).

        On success the selection and box are cleared and the view reloaded.
        On failure both are left as they were so the user can adjust and retry.
        """
        if window_start is None or window_end is None:
            box = self.selection.committed_box
            if box is None:
                return PositioningResult(error=InvalidWindow())
            window_start = window_start or box.start
            window_end = window_end or box.end

        if gap_minutes is None:
            gap_minutes = self.settings.gap_minutes

        result = await self.positioner.position(
            self.selected_items(),
            window_start,
            window_end,
            sort_policy=sort_policy,
            gap_minutes=gap_minutes,
            cancel=cancel,
        )

        if result.success:
            self.selection.reset()
        if result.applied_count:
            self.refresh()
        return result

    # -------------------------------------------------------------------------
    # Zoom
    # -------------------------------------------------------------------------

    def fit_to_screen(self, screen_height: float) -> float:
        """Set the zoom so settings.visible_hours fill a screen of this height."""
        self.screen_height = screen_height
        zoom = self.settings.zoom_for_height(screen_height)
        self.settings = replace(self.settings, pixels_per_minute=zoom).validated()
        return self.settings.pixels_per_minute

    def set_visible_hours(self, visible_hours: float) -> float:
        """Change how many hours fit on screen; rescales once a screen height is known."""
        self.settings = replace(self.settings, visible_hours=visible_hours).validated()
        if self.screen_height is not None:
            return self.fit_to_screen(self.screen_height)
        return self.settings.pixels_per_minute

    # -------------------------------------------------------------------------
    # Single-item drag
    # -------------------------------------------------------------------------

    def begin_item_drag(self, item: ScheduledItem) -> Outcome:
        """Start dragging one item; an external item is rejected and nothing changes."""
        if item.is_external:
            logger.debug("Drag of external item '%s' rejected", item.title)
            return Outcome(accepted=False, reason=RejectionReason.EXTERNAL_ITEM)
        self.item_drag = ItemDrag.begin(item)
        return ACCEPTED

    def drag_item(self, delta_pixels: float) -> ItemDrag | None:
        if self.item_drag is None:
            return None
        self.item_drag = self.item_drag.moved_to(
            delta_pixels, self.settings.pixels_per_minute, self.settings.grid_minutes
        )
        return self.item_drag

    def cancel_item_drag(self) -> None:
        self.item_drag = None

    async def end_item_drag(self) -> UpdateResult | None:
        """
        Persist the dragged position if it changed.

        Returns:
            None if nothing was dragged or the position is unchanged,
            otherwise the updater's result
        """
        drag, self.item_drag = self.item_drag, None
        if drag is None or not drag.has_changed:
            return None

        logger.info(
            "Moving '%s' by %d min to %s",
            drag.item.title,
            drag.offset_minutes,
            drag.preview_start.isoformat(),
        )
        result = await self.updater.update_time(
            drag.item.source_task_id,
            drag.item.source_link_id,
            drag.preview_start,
            drag.preview_end,
        )
        if result.success:
            self.refresh()
        else:
            logger.error("Failed to save dragged item '%s': %s", drag.item.title, result.message)
        return result
