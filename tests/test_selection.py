"""
Tests for the selection state machine and its ordered selection set.
"""

import pytest

from tests.fixtures import at, make_item
from timeline.engine.items import SelectionBox
from timeline.engine.selection import (
    BoxCommitted,
    ContextMenuOpen,
    Dragging,
    Idle,
    OrderedSelection,
    RejectionReason,
    SelectionStateMachine,
)


@pytest.fixture
def machine():
    return SelectionStateMachine()


@pytest.fixture
def external():
    return make_item(900, (9, 0), (10, 0), title="Standup", is_external=True)


class TestOrderedSelection:
    def test_insertion_order(self):
        sel = OrderedSelection()
        for item_id in (3, 1, 2):
            sel.add(item_id)
        assert sel.ids == (3, 1, 2)

    def test_add_is_idempotent(self):
        sel = OrderedSelection([1, 2])
        assert sel.add(1) is False
        assert sel.ids == (1, 2)

    def test_toggle(self):
        sel = OrderedSelection([1])
        assert sel.toggle(2) is True
        assert sel.toggle(1) is False
        assert sel.ids == (2,)

    def test_extend_counts_new_ids(self):
        sel = OrderedSelection([2])
        assert sel.extend([1, 2, 3]) == 2
        assert sel.ids == (2, 1, 3)

    @pytest.mark.parametrize("index,expected", [(0, (3, 1, 2)), (1, (1, 3, 2)), (99, (1, 2, 3))])
    def test_move_clamps_index(self, index, expected):
        sel = OrderedSelection([1, 2, 3])
        assert sel.move(3, index) is True
        assert sel.ids == expected

    def test_resolve_skips_unknown(self):
        items = [make_item(1, (9, 0), (10, 0)), make_item(2, (10, 0), (11, 0))]
        assert [i.id for i in OrderedSelection([2, 42, 1]).resolve(items)] == [2, 1]

    def test_copy_is_independent(self):
        sel = OrderedSelection([1])
        clone = sel.copy()
        clone.add(2)
        assert sel.ids == (1,)
        assert clone != sel


class TestDragGesture:
    def test_starts_idle(self, machine):
        assert machine.state == Idle()
        assert machine.committed_box is None

    def test_drag_floor_extends_short_box(self, machine):
        machine.begin_drag(at(9, 10))
        machine.update_drag(at(9, 12))
        assert machine.end_drag()
        assert machine.state == BoxCommitted(box=SelectionBox(at(9, 10), at(9, 25)))

    @pytest.mark.parametrize("min_box_minutes", [0, -5])
    def test_point_drag_without_floor_commits_one_minute(self, min_box_minutes):
        machine = SelectionStateMachine(min_box_minutes=min_box_minutes)
        assert machine.min_box_minutes == 1
        machine.begin_drag(at(9, 10))
        assert machine.end_drag()
        assert machine.committed_box == SelectionBox(at(9, 10), at(9, 11))

    def test_zero_floor_keeps_longer_drags(self):
        machine = SelectionStateMachine(min_box_minutes=0)
        machine.begin_drag(at(9, 10))
        machine.update_drag(at(9, 12))
        machine.end_drag()
        assert machine.committed_box == SelectionBox(at(9, 10), at(9, 12))

    def test_upward_drag_normalized(self, machine):
        machine.begin_drag(at(11))
        machine.update_drag(at(9, 30))
        machine.end_drag()
        assert machine.committed_box == SelectionBox(at(9, 30), at(11))

    def test_update_tracks_cursor(self, machine):
        machine.begin_drag(at(9))
        machine.update_drag(at(10))
        assert machine.state == Dragging(anchor=at(9), cursor=at(10))

    @pytest.mark.parametrize("transition", ["end_drag", "cancel_drag"])
    def test_requires_dragging(self, machine, transition):
        outcome = getattr(machine, transition)()
        assert not outcome
        assert outcome.reason == RejectionReason.NOT_DRAGGING
        assert machine.state == Idle()

    def test_update_requires_dragging(self, machine):
        assert machine.update_drag(at(9)).reason == RejectionReason.NOT_DRAGGING

    def test_cancel_returns_to_idle(self, machine):
        machine.begin_drag(at(9))
        assert machine.cancel_drag()
        assert machine.state == Idle()

    def test_new_drag_drops_committed_box(self, machine):
        machine.set_box(at(9), at(12))
        machine.begin_drag(at(14))
        assert machine.committed_box is None

    def test_new_drag_keeps_selection(self, machine):
        a = make_item(1, (9, 0), (10, 0))
        machine.toggle_select(a)
        machine.begin_drag(at(14))
        machine.update_drag(at(15))
        machine.end_drag()
        assert machine.selected_ids == (1,)


class TestBox:
    def test_set_box_from_item(self, machine):
        a = make_item(1, (14, 0), (15, 0))
        assert machine.set_box_from_item(a)
        assert machine.committed_box == SelectionBox(at(14), at(15))

    def test_clear_box(self, machine):
        machine.set_box(at(9), at(10))
        machine.clear_box()
        assert machine.state == Idle()

    def test_context_menu_round_trip(self, machine):
        machine.set_box(at(9), at(10))
        assert machine.open_context_menu((120.0, 300.0))
        assert isinstance(machine.state, ContextMenuOpen)
        assert machine.committed_box == SelectionBox(at(9), at(10))
        assert machine.dismiss_context_menu()
        assert machine.state == BoxCommitted(box=SelectionBox(at(9), at(10)))

    def test_context_menu_needs_box(self, machine):
        assert machine.open_context_menu((0.0, 0.0)).reason == RejectionReason.NO_BOX
        assert machine.dismiss_context_menu().reason == RejectionReason.NO_BOX


class TestExternalImmutability:
    def test_toggle_external_rejected(self, machine, external):
        machine.toggle_select(make_item(1, (11, 0), (12, 0)))
        before = (machine.state, machine.selection)
        outcome = machine.toggle_select(external)
        assert not outcome
        assert outcome.reason == RejectionReason.EXTERNAL_ITEM
        assert (machine.state, machine.selection) == before

    def test_box_from_external_rejected(self, machine, external):
        machine.set_box(at(13), at(14))
        before = (machine.state, machine.selection)
        outcome = machine.set_box_from_item(external)
        assert outcome.reason == RejectionReason.EXTERNAL_ITEM
        assert (machine.state, machine.selection) == before


class TestMultiSelection:
    def test_toggle_adds_and_removes(self, machine):
        a = make_item(1, (9, 0), (10, 0))
        machine.toggle_select(a)
        assert machine.is_selected(1)
        machine.toggle_select(a)
        assert not machine.is_selected(1)

    def test_selection_property_is_a_copy(self, machine):
        machine.selection.add(5)
        assert machine.selected_ids == ()

    def test_clear_selection_keeps_box(self, machine):
        machine.set_box(at(9), at(10))
        machine.toggle_select(make_item(1, (9, 0), (9, 30)))
        machine.clear_selection()
        assert machine.selected_ids == ()
        assert machine.committed_box is not None

    def test_move_selected(self, machine):
        for i in (1, 2, 3):
            machine.toggle_select(make_item(i, (9 + i, 0), (9 + i, 30)))
        assert machine.move_selected(3, 0)
        assert machine.selected_ids == (3, 1, 2)
        assert machine.move_selected(42, 0).reason == RejectionReason.NOT_SELECTED

    def test_ordered_selection_follows_manual_order(self, machine):
        items = [make_item(i, (9 + i, 0), (9 + i, 30)) for i in (1, 2, 3)]
        for item in reversed(items):
            machine.toggle_select(item)
        assert [i.id for i in machine.ordered_selection(items)] == [3, 2, 1]


class TestSelectAllInBox:
    @pytest.fixture
    def day_items(self, external):
        return [
            make_item(1, (9, 0), (9, 30)),
            make_item(2, (10, 0), (11, 0)),
            make_item(3, (11, 30), (12, 30)),  # sticks out of the box
            external,
        ]

    def test_requires_box(self, machine, day_items):
        assert machine.select_all_in_box(day_items).reason == RejectionReason.NO_BOX
        assert machine.selected_ids == ()

    def test_adds_contained_non_external(self, machine, day_items):
        machine.set_box(at(9), at(12))
        outcome = machine.select_all_in_box(day_items)
        assert outcome.added == 2
        assert machine.selected_ids == (1, 2)

    def test_keeps_existing_order(self, machine, day_items):
        machine.toggle_select(day_items[1])
        machine.toggle_select(make_item(7, (15, 0), (16, 0)))
        machine.set_box(at(9), at(12))
        outcome = machine.select_all_in_box(day_items)
        assert outcome.added == 1
        assert machine.selected_ids == (2, 7, 1)

    def test_works_while_context_menu_open(self, machine, day_items):
        machine.set_box(at(9), at(12))
        machine.open_context_menu((10.0, 10.0))
        assert machine.select_all_in_box(day_items).added == 2

    def test_reset_clears_everything(self, machine, day_items):
        machine.set_box(at(9), at(12))
        machine.select_all_in_box(day_items)
        machine.reset()
        assert machine.state == Idle()
        assert machine.selected_ids == ()
