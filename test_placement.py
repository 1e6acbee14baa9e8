#!/usr/bin/env python3
"""
Tests for greedy window placement on the slot arena
"""

from datetime import date

import pytest

from dayplan.scheduling.algorithms.placement import (
    SlotEvaluation, best_window_in_run, contiguous_runs, place_divisible, place_fixed, place_indivisible
)
from dayplan.scheduling.core.constants import SECOND_SEGMENT_PENALTY, TaskCategory
from dayplan.scheduling.core.time_slot import build_time_grid

MONDAY = date(2025, 3, 17)


def evaluations_for(utilities):
    """{index: utility} -> {index: SlotEvaluation} with a single feature echoing the utility."""
    return {index: SlotEvaluation(index, [utility], utility) for index, utility in utilities.items()}


def test_contiguous_runs():
    assert contiguous_runs([5, 1, 2, 3, 7, 6, 10]) == [[1, 2, 3], [5, 6, 7], [10]]
    assert contiguous_runs([]) == []


def test_best_window_prefers_highest_average_then_earliest():
    evaluations = evaluations_for({0: 0.1, 1: 0.5, 2: 0.5, 3: 0.1, 4: 0.5, 5: 0.5})
    plan = best_window_in_run([0, 1, 2, 3, 4, 5], 2, evaluations)
    assert plan.indexes == [1, 2]
    assert plan.average_utility == pytest.approx(0.5)

    forced = best_window_in_run([0, 1, 2, 3, 4, 5], 2, evaluations, required_index=3)
    assert 3 in forced.indexes

    assert best_window_in_run([0, 1], 3, evaluations) is None


def test_indivisible_takes_one_block():
    arena = build_time_grid(MONDAY)
    evaluations = evaluations_for({40: 0.2, 41: 0.2, 42: 0.2, 50: 0.9, 51: 0.9, 52: 0.9, 53: 0.9})

    plans = place_indivisible(arena, "sport", TaskCategory.SPORT_ACTIVITY, 4, evaluations)

    assert len(plans) == 1
    assert plans[0].indexes == [50, 51, 52, 53]
    assert all(arena[index].occupied_by == "sport" for index in range(50, 54))


def test_indivisible_refuses_to_split():
    arena = build_time_grid(MONDAY)
    evaluations = evaluations_for({40: 1.0, 41: 1.0, 50: 1.0, 51: 1.0})

    assert place_indivisible(arena, "sport", TaskCategory.SPORT_ACTIVITY, 4, evaluations) == []
    assert arena.occupied_minutes() == 0


def test_divisible_fits_in_one_run_when_possible():
    arena = build_time_grid(MONDAY)
    evaluations = evaluations_for({i: 0.5 for i in range(60, 70)})

    plans = place_divisible(arena, "study", TaskCategory.LEARNING, 4, 2, evaluations)

    assert len(plans) == 1
    assert len(plans[0].indexes) == 4
    assert plans[0].penalty == 0.0


def test_divisible_splits_with_second_segment_penalty():
    arena = build_time_grid(MONDAY)
    evaluations = evaluations_for({0: 1.0, 1: 0.9, 2: 0.8, 5: 0.5, 6: 0.4, 7: 0.3})

    plans = place_divisible(arena, "study", TaskCategory.LEARNING, 4, 2, evaluations)

    assert [plan.indexes for plan in plans] == [[0, 1], [5, 6]]
    assert plans[0].score == pytest.approx(0.95)
    assert plans[1].penalty == SECOND_SEGMENT_PENALTY
    assert plans[1].score == pytest.approx(0.45 - SECOND_SEGMENT_PENALTY)
    assert arena.occupied_minutes() == 60


def test_divisible_respects_minimum_chunk():
    arena = build_time_grid(MONDAY)
    # Runs of one slot each can never host a two-slot chunk
    evaluations = evaluations_for({0: 1.0, 2: 1.0, 4: 1.0, 6: 1.0})

    assert place_divisible(arena, "study", TaskCategory.LEARNING, 4, 2, evaluations) == []
    assert arena.occupied_minutes() == 0


def test_short_task_below_minimum_chunk_uses_a_single_window():
    arena = build_time_grid(MONDAY)
    evaluations = evaluations_for({10: 0.3, 20: 0.9})

    plans = place_divisible(arena, "note", TaskCategory.ADMIN_ERRANDS, 1, 2, evaluations)

    assert [plan.indexes for plan in plans] == [[20]]


def test_fixed_placement_is_all_or_nothing():
    arena = build_time_grid(MONDAY)
    evaluations = evaluations_for({i: 0.0 for i in range(68, 72)})

    plans = place_fixed(arena, "meeting", TaskCategory.SOCIAL, 68, 4, lambda slot: slot.is_free, evaluations)
    assert plans[0].indexes == [68, 69, 70, 71]

    blocked = place_fixed(arena, "other", TaskCategory.SOCIAL, 70, 4, lambda slot: slot.is_free,
                          evaluations_for({i: 0.0 for i in range(70, 74)}))
    assert blocked == []
    assert arena[72].is_free


def test_fixed_placement_past_midnight_fails():
    arena = build_time_grid(MONDAY)
    evaluations = evaluations_for({94: 0.0, 95: 0.0})
    assert place_fixed(arena, "late", TaskCategory.OTHER, 94, 4, lambda slot: True, evaluations) == []
