"""
Tests for the conflict detector.

Covers the overlap / tolerance / no-conflict classification, symmetry,
overlap priority and the half-open boundary.
"""

import itertools
import math

import pytest

from tests.fixtures import at, make_item
from timeline.engine.conflicts import (
    detect_conflicts,
    find_overlaps,
    gap_minutes,
    overlapping_pairs,
    overlaps,
    tolerance_warnings,
)
from timeline.engine.items import ConflictState


def states(items):
    return [i.conflict_state for i in items]


class TestScenarios:
    def test_overlapping_items_both_flagged(self):
        a = make_item(1, (9, 0), (10, 0), title="A")
        b = make_item(2, (9, 30), (10, 30), title="B")
        assert states(detect_conflicts([a, b], 15)) == [ConflictState.OVERLAP] * 2

    def test_small_gap_is_tolerance_warning(self):
        a = make_item(1, (9, 0), (10, 0), title="A")
        b = make_item(2, (10, 5), (10, 30), title="B")
        assert states(detect_conflicts([a, b], 15)) == [ConflictState.TOLERANCE_WARNING] * 2

    def test_enough_gap_is_no_conflict(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (10, 20), (10, 40))
        assert states(detect_conflicts([a, b], 15)) == [ConflictState.NO_CONFLICT] * 2

    def test_gap_equal_to_tolerance_is_no_conflict(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (10, 15), (10, 40))
        assert states(detect_conflicts([a, b], 15)) == [ConflictState.NO_CONFLICT] * 2


class TestDetectConflicts:
    def test_empty(self):
        assert detect_conflicts([], 30) == []

    def test_single_item(self):
        only = make_item(1, (9, 0), (10, 0))
        assert states(detect_conflicts([only], 30)) == [ConflictState.NO_CONFLICT]

    def test_order_and_identity_preserved(self):
        items = [
            make_item(3, (14, 0), (15, 0)),
            make_item(1, (9, 0), (10, 0)),
            make_item(2, (9, 30), (11, 0)),
        ]
        annotated = detect_conflicts(items, 0)
        assert [i.id for i in annotated] == [3, 1, 2]
        assert states(annotated) == [
            ConflictState.NO_CONFLICT,
            ConflictState.OVERLAP,
            ConflictState.OVERLAP,
        ]

    def test_overlap_priority_over_tolerance(self):
        # B overlaps A and sits 5 min before C
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (9, 30), (10, 30))
        c = make_item(3, (10, 35), (11, 0))
        annotated = detect_conflicts([c, a, b], 15)
        by_id = {i.id: i.conflict_state for i in annotated}
        assert by_id == {
            1: ConflictState.OVERLAP,
            2: ConflictState.OVERLAP,
            3: ConflictState.TOLERANCE_WARNING,
        }

    def test_touching_items_do_not_overlap(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (10, 0), (11, 0))
        assert not overlaps(a, b)
        assert states(detect_conflicts([a, b], 0)) == [ConflictState.NO_CONFLICT] * 2

    def test_touching_items_warn_with_positive_tolerance(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (10, 0), (11, 0))
        assert states(detect_conflicts([a, b], 15)) == [ConflictState.TOLERANCE_WARNING] * 2

    def test_negative_tolerance_treated_as_zero(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (10, 5), (11, 0))
        assert states(detect_conflicts([a, b], -10)) == [ConflictState.NO_CONFLICT] * 2

    def test_external_items_take_part(self):
        meeting = make_item(1, (9, 0), (10, 0), is_external=True)
        task = make_item(2, (9, 45), (10, 15))
        assert states(detect_conflicts([meeting, task], 0)) == [ConflictState.OVERLAP] * 2

    def test_stale_state_overwritten(self):
        stale = make_item(1, (9, 0), (10, 0)).with_conflict_state(ConflictState.OVERLAP)
        assert states(detect_conflicts([stale], 30)) == [ConflictState.NO_CONFLICT]

    def test_input_not_mutated(self):
        items = [make_item(1, (9, 0), (10, 0)), make_item(2, (9, 30), (10, 30))]
        detect_conflicts(items, 15)
        assert states(items) == [ConflictState.NO_CONFLICT] * 2


class TestSymmetry:
    def test_overlaps_symmetric(self):
        items = [
            make_item(1, (9, 0), (10, 0)),
            make_item(2, (9, 30), (10, 30)),
            make_item(3, (10, 0), (10, 15)),
            make_item(4, (8, 0), (12, 0)),
            make_item(5, (13, 0), (13, 5)),
        ]
        for a, b in itertools.permutations(items, 2):
            assert overlaps(a, b) == overlaps(b, a)

    def test_gap_symmetric(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (10, 20), (11, 0))
        assert gap_minutes(a, b) == gap_minutes(b, a) == 20


class TestGap:
    def test_overlap_has_no_gap(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (9, 30), (10, 30))
        assert gap_minutes(a, b) == math.inf

    def test_touching_gap_is_zero(self):
        a = make_item(1, (9, 0), (10, 0))
        b = make_item(2, (10, 0), (11, 0))
        assert gap_minutes(a, b) == 0


class TestOverlapQueries:
    def test_find_overlaps_window(self):
        a = make_item(7, (9, 0), (10, 0))
        b = make_item(3, (9, 30), (10, 30))
        [found] = find_overlaps([a, b])
        assert (found.item_a_id, found.item_b_id) == (3, 7)
        assert (found.overlap_start, found.overlap_end) == (at(9, 30), at(10))
        assert found.minutes == 30

    def test_overlapping_pairs_canonical(self):
        items = [
            make_item(5, (9, 0), (11, 0)),
            make_item(2, (10, 0), (10, 30)),
            make_item(9, (10, 15), (12, 0)),
            make_item(1, (13, 0), (14, 0)),
        ]
        assert overlapping_pairs(items) == {(2, 5), (5, 9), (2, 9)}

    @pytest.mark.parametrize("tolerance,expected", [(0, []), (30, [1, 2])])
    def test_tolerance_warnings(self, tolerance, expected):
        items = [
            make_item(1, (9, 0), (10, 0)),
            make_item(2, (10, 10), (11, 0)),
            make_item(3, (15, 0), (16, 0)),
        ]
        assert [i.id for i in tolerance_warnings(items, tolerance)] == expected
