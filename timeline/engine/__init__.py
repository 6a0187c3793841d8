"""
Timeline Engine

Arranges scheduled items on a 24h vertical axis.

Objects:
- ScheduledItem (task, calendar link or external event on the axis)
- SelectionBox (committed time window)
- DayTimeline (one day column, conflict annotated)

Invariants:
- Every item ends strictly after it starts
- External items are never selected or moved
- Batch placement never overflows its window
- Drag moves keep the item's duration exactly
"""

from .batch_positioner import (
    BatchPositioner,
    Cancelled,
    DoesNotFit,
    EmptySelection,
    FitCheck,
    Fits,
    InsufficientCapacity,
    InvalidGap,
    InvalidWindow,
    NoModifiableItems,
    PlacedItem,
    PositioningError,
    PositioningResult,
    RunInProgress,
    SortPolicy,
    UpdateFailed,
    plan_placements,
    sort_items,
    validate_fit,
)
from .conflicts import Overlap, detect_conflicts, find_overlaps, overlapping_pairs
from .coordinates import (
    drag_delta_to_minute_offset,
    offset_to_time,
    shift_by_drag,
    snap,
    time_to_offset,
)
from .days import ConflictCounts, DayTimeline, TimeRange, group_into_days
from .item_drag import ItemDrag
from .items import ConflictState, InvalidItemError, ScheduledItem, SelectionBox
from .selection import (
    BoxCommitted,
    ContextMenuOpen,
    Dragging,
    Idle,
    OrderedSelection,
    Outcome,
    RejectionReason,
    SelectionStateMachine,
)
from .sources import (
    CalendarLinkRecord,
    ExternalEventRecord,
    ItemSource,
    RoutingTimeUpdater,
    TaskRecord,
    TimeUpdater,
    UpdateResult,
    build_items,
)

__all__ = [
    # Items
    "ScheduledItem",
    "SelectionBox",
    "ConflictState",
    "InvalidItemError",
    # Coordinates
    "time_to_offset",
    "offset_to_time",
    "snap",
    "drag_delta_to_minute_offset",
    "shift_by_drag",
    # Conflicts
    "Overlap",
    "detect_conflicts",
    "find_overlaps",
    "overlapping_pairs",
    # Batch positioning
    "BatchPositioner",
    "SortPolicy",
    "PositioningResult",
    "PlacedItem",
    "PositioningError",
    "EmptySelection",
    "NoModifiableItems",
    "InvalidWindow",
    "InvalidGap",
    "InsufficientCapacity",
    "RunInProgress",
    "UpdateFailed",
    "Cancelled",
    "FitCheck",
    "Fits",
    "DoesNotFit",
    "plan_placements",
    "sort_items",
    "validate_fit",
    # Selection
    "SelectionStateMachine",
    "OrderedSelection",
    "Outcome",
    "RejectionReason",
    "Idle",
    "Dragging",
    "BoxCommitted",
    "ContextMenuOpen",
    # Days
    "DayTimeline",
    "ConflictCounts",
    "TimeRange",
    "group_into_days",
    "ItemDrag",
    # Boundaries
    "ItemSource",
    "TimeUpdater",
    "UpdateResult",
    "RoutingTimeUpdater",
    "TaskRecord",
    "CalendarLinkRecord",
    "ExternalEventRecord",
    "build_items",
]
