"""
Selection State Machine - drag-to-box gestures plus multi-selection.

Two orthogonal pieces of session state:
- Box state: Idle -> Dragging(anchor, cursor) -> BoxCommitted(box)
  -> ContextMenuOpen(box, anchor_point)
- Multi-selection: an insertion-ordered set of item ids. Its order is the
  manual placement order, so there is no second list to keep in sync.

Every transition is all-or-nothing. A rejected transition returns an
Outcome carrying the reason and leaves both pieces of state untouched.
External items can never be selected or used as a box source.
"""

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from timeline.config import MIN_SELECTION_BOX_MINUTES

from .items import ScheduledItem, SelectionBox

logger = logging.getLogger(__name__)


# =============================================================================
# ORDERED SELECTION
# =============================================================================


class OrderedSelection:
    """Insertion-ordered set of item ids."""

    def __init__(self, ids: Iterable[int] = ()):
        self._ids: dict[int, None] = dict.fromkeys(ids)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedSelection):
            return NotImplemented
        return self.ids == other.ids

    def __repr__(self) -> str:
        return f"OrderedSelection({list(self._ids)!r})"

    @property
    def ids(self) -> tuple[int, ...]:
        return tuple(self._ids)

    def copy(self) -> "OrderedSelection":
        return OrderedSelection(self._ids)

    def add(self, item_id: int) -> bool:
        """Append an id. Returns False if it was already present."""
        if item_id in self._ids:
            return False
        self._ids[item_id] = None
        return True

    def discard(self, item_id: int) -> bool:
        if item_id not in self._ids:
            return False
        del self._ids[item_id]
        return True

    def toggle(self, item_id: int) -> bool:
        """Add or remove. Returns True if the id is selected afterwards."""
        if self.discard(item_id):
            return False
        self.add(item_id)
        return True

    def extend(self, ids: Iterable[int]) -> int:
        return sum(1 for item_id in ids if self.add(item_id))

    def move(self, item_id: int, index: int) -> bool:
        """Move an id to a new position (manual reorder). Index is clamped."""
        if item_id not in self._ids:
            return False
        order = [i for i in self._ids if i != item_id]
        index = min(max(index, 0), len(order))
        order.insert(index, item_id)
        self._ids = dict.fromkeys(order)
        return True

    def clear(self) -> None:
        self._ids.clear()

    def resolve(self, items: Sequence[ScheduledItem]) -> list[ScheduledItem]:
        """Selected items from a snapshot, in selection order. Unknown ids are skipped."""
        by_id = {item.id: item for item in items}
        return [by_id[item_id] for item_id in self._ids if item_id in by_id]


# =============================================================================
# BOX STATES
# =============================================================================


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    anchor: datetime
    cursor: datetime


@dataclass(frozen=True)
class BoxCommitted:
    box: SelectionBox


@dataclass(frozen=True)
class ContextMenuOpen:
    box: SelectionBox
    anchor_point: tuple[float, float]


BoxState = Idle | Dragging | BoxCommitted | ContextMenuOpen


class RejectionReason(StrEnum):
    EXTERNAL_ITEM = "external_item"
    NOT_DRAGGING = "not_dragging"
    NO_BOX = "no_box"
    NOT_SELECTED = "not_selected"


@dataclass(frozen=True)
class Outcome:
    accepted: bool
    reason: RejectionReason | None = None
    added: int = 0

    def __bool__(self) -> bool:
        return self.accepted


ACCEPTED = Outcome(accepted=True)


def _reject(reason: RejectionReason) -> Outcome:
    return Outcome(accepted=False, reason=reason)


# =============================================================================
# STATE MACHINE
# =============================================================================


class SelectionStateMachine:
    """
    Session-scoped selection state for one timeline view.

    Drag gestures and selection clicks can interleave freely; a new drag
    never drops ids picked earlier.
    """

    def __init__(self, min_box_minutes: int = MIN_SELECTION_BOX_MINUTES):
        # A committed box spans at least one minute
        self.min_box_minutes = max(1, int(min_box_minutes))
        self._state: BoxState = Idle()
        self._selection = OrderedSelection()

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> BoxState:
        return self._state

    @property
    def selection(self) -> OrderedSelection:
        """A copy; mutate only through the transitions."""
        return self._selection.copy()

    @property
    def selected_ids(self) -> tuple[int, ...]:
        return self._selection.ids

    @property
    def committed_box(self) -> SelectionBox | None:
        if isinstance(self._state, BoxCommitted | ContextMenuOpen):
            return self._state.box
        return None

    def is_selected(self, item_id: int) -> bool:
        return item_id in self._selection

    def ordered_selection(self, items: Sequence[ScheduledItem]) -> list[ScheduledItem]:
        return self._selection.resolve(items)

    # -------------------------------------------------------------------------
    # Drag gesture
    # -------------------------------------------------------------------------

    def begin_drag(self, point: datetime) -> Outcome:
        """Start a new box gesture from any state. Any committed box is dropped."""
        self._state = Dragging(anchor=point, cursor=point)
        return ACCEPTED

    def update_drag(self, point: datetime) -> Outcome:
        if not isinstance(self._state, Dragging):
            return _reject(RejectionReason.NOT_DRAGGING)
        self._state = Dragging(anchor=self._state.anchor, cursor=point)
        return ACCEPTED

    def end_drag(self) -> Outcome:
        """Commit the gesture as a normalized box, extended to the minimum span."""
        if not isinstance(self._state, Dragging):
            return _reject(RejectionReason.NOT_DRAGGING)
        box = SelectionBox.normalized(
            self._state.anchor, self._state.cursor, min_minutes=self.min_box_minutes
        )
        self._state = BoxCommitted(box=box)
        logger.debug("Selection box committed: %s - %s", box.start, box.end)
        return ACCEPTED

    def cancel_drag(self) -> Outcome:
        if not isinstance(self._state, Dragging):
            return _reject(RejectionReason.NOT_DRAGGING)
        self._state = Idle()
        return ACCEPTED

    # -------------------------------------------------------------------------
    # Box
    # -------------------------------------------------------------------------

    def set_box(self, start: datetime, end: datetime) -> Outcome:
        """Commit a box typed in directly (e.g. from a time range dialog)."""
        self._state = BoxCommitted(
            box=SelectionBox.normalized(start, end, min_minutes=self.min_box_minutes)
        )
        return ACCEPTED

    def set_box_from_item(self, item: ScheduledItem) -> Outcome:
        if item.is_external:
            return _reject(RejectionReason.EXTERNAL_ITEM)
        self._state = BoxCommitted(box=SelectionBox.from_item(item))
        return ACCEPTED

    def clear_box(self) -> Outcome:
        self._state = Idle()
        return ACCEPTED

    def open_context_menu(self, anchor_point: tuple[float, float]) -> Outcome:
        box = self.committed_box
        if box is None:
            return _reject(RejectionReason.NO_BOX)
        self._state = ContextMenuOpen(box=box, anchor_point=anchor_point)
        return ACCEPTED

    def dismiss_context_menu(self) -> Outcome:
        if not isinstance(self._state, ContextMenuOpen):
            return _reject(RejectionReason.NO_BOX)
        self._state = BoxCommitted(box=self._state.box)
        return ACCEPTED

    # -------------------------------------------------------------------------
    # Multi-selection
    # -------------------------------------------------------------------------

    def toggle_select(self, item: ScheduledItem) -> Outcome:
        if item.is_external:
            return _reject(RejectionReason.EXTERNAL_ITEM)
        self._selection.toggle(item.id)
        return ACCEPTED

    def move_selected(self, item_id: int, index: int) -> Outcome:
        if not self._selection.move(item_id, index):
            return _reject(RejectionReason.NOT_SELECTED)
        return ACCEPTED

    def clear_selection(self) -> Outcome:
        self._selection.clear()
        return ACCEPTED

    def select_all_in_box(self, items: Sequence[ScheduledItem]) -> Outcome:
        """
        Add every non-external item fully inside the committed box.

        Items are appended in the order given; ids already selected keep
        their position.
        """
        box = self.committed_box
        if box is None:
            return _reject(RejectionReason.NO_BOX)

        candidates = [i.id for i in items if not i.is_external and box.contains(i)]
        added = self._selection.extend(candidates)
        logger.debug("Selected %d item(s) inside box", added)
        return Outcome(accepted=True, added=added)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Drop box and selection (successful placement, view teardown)."""
        self._state = Idle()
        self._selection.clear()
