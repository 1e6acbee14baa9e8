"""
Greedy placement of one task onto free admissible slots.

Each function takes per-slot evaluations for the task, picks windows by
average utility and marks the chosen slots occupied in the arena.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from ..core.constants import SECOND_SEGMENT_PENALTY, TaskCategory
from ..core.time_slot import Slot, SlotArena

logger = logging.getLogger(__name__)


class SlotEvaluation:
    def __init__(self, index: int, features: List[float], utility: float):
        self.index = index
        self.features = features
        self.utility = utility

    def __repr__(self):
        return f"SlotEvaluation({self.index}, {self.utility:.3f})"


class WindowPlan:
    """A contiguous run of slot indexes chosen for one segment."""
    def __init__(self, indexes: List[int], average_utility: float, features_snapshot: List[float],
                 penalty: float = 0.0):
        self.indexes = indexes
        self.average_utility = average_utility
        self.features_snapshot = features_snapshot
        self.penalty = penalty

    @property
    def start_index(self) -> int:
        return self.indexes[0]

    @property
    def score(self) -> float:
        return self.average_utility - self.penalty

    def __repr__(self):
        return f"WindowPlan({self.indexes[0]}-{self.indexes[-1]}, {self.score:.3f})"


def contiguous_runs(indexes: Iterable[int]) -> List[List[int]]:
    """Partition indexes into maximal runs of consecutive integers."""
    runs = []
    current = []
    for index in sorted(indexes):
        if current and index == current[-1] + 1:
            current.append(index)
        else:
            if current:
                runs.append(current)
            current = [index]
    if current:
        runs.append(current)
    return runs


def _window_plan(window: List[int], evaluations: Dict[int, SlotEvaluation]) -> Optional[WindowPlan]:
    if any(index not in evaluations for index in window):
        return None
    length = len(window)
    feature_count = len(evaluations[window[0]].features)
    sums = [0.0] * feature_count
    total = 0.0
    for index in window:
        evaluation = evaluations[index]
        total += evaluation.utility
        for i in range(feature_count):
            sums[i] += evaluation.features[i]
    return WindowPlan(list(window), total / length, [value / length for value in sums])


def best_window_in_run(run: List[int], length: int, evaluations: Dict[int, SlotEvaluation],
                       required_index: Optional[int] = None) -> Optional[WindowPlan]:
    """
    Highest-average window of exactly ``length`` slots inside ``run``,
    optionally forced to contain ``required_index``. Ties go to the earliest start.
    """
    if length <= 0 or len(run) < length:
        return None
    best = None
    for offset in range(len(run) - length + 1):
        window = run[offset:offset + length]
        if required_index is not None and required_index not in window:
            continue
        plan = _window_plan(window, evaluations)
        if plan is None:
            continue
        if best is None or plan.average_utility > best.average_utility:
            best = plan
    return best


def best_window_across_runs(runs: List[List[int]], length: int,
                            evaluations: Dict[int, SlotEvaluation]) -> Optional[WindowPlan]:
    best = None
    for run in runs:
        plan = best_window_in_run(run, length, evaluations)
        if plan is None:
            continue
        if (best is None or plan.average_utility > best.average_utility
                or (plan.average_utility == best.average_utility and plan.start_index < best.start_index)):
            best = plan
    return best


def _commit(arena: SlotArena, plans: List[WindowPlan], task_id: str, category: TaskCategory) -> List[WindowPlan]:
    for plan in plans:
        arena.occupy(plan.indexes, task_id, category)
    return plans


def place_indivisible(arena: SlotArena, task_id: str, category: TaskCategory, required_slots: int,
                      evaluations: Dict[int, SlotEvaluation]) -> List[WindowPlan]:
    """
    One contiguous block of exactly ``required_slots`` or nothing.
    """
    runs = contiguous_runs(index for index in evaluations if arena.is_free(index))
    plan = best_window_across_runs(runs, required_slots, evaluations)
    if plan is None:
        logger.debug(f"No contiguous block of {required_slots} slots for {task_id}")
        return []
    return _commit(arena, [plan], task_id, category)


def place_divisible(arena: SlotArena, task_id: str, category: TaskCategory, required_slots: int,
                    min_chunk_slots: int, evaluations: Dict[int, SlotEvaluation]) -> List[WindowPlan]:
    """
    Place a task as one segment, or two when no single run is long enough.

    Candidates are tried by utility (ties to the lowest index). The first
    segment is the best window around the candidate within its run; a
    remainder of at least ``min_chunk_slots`` goes to the best window among
    the other free slots and carries a fixed penalty.
    """
    available = sorted(index for index in evaluations if arena.is_free(index))
    runs = contiguous_runs(available)
    run_of = {index: run for run in runs for index in run}
    candidates = sorted(available, key=lambda i: (-evaluations[i].utility, i))

    for candidate in candidates:
        run = run_of[candidate]
        first_length = min(len(run), required_slots)

        if required_slots >= min_chunk_slots:
            if first_length < min_chunk_slots:
                continue
            while 0 < required_slots - first_length < min_chunk_slots:
                first_length -= 1
            if first_length < min_chunk_slots:
                continue

        primary = best_window_in_run(run, first_length, evaluations, required_index=candidate)
        if primary is None:
            continue

        plans = [primary]
        remaining = required_slots - len(primary.indexes)
        if remaining > 0:
            if required_slots < min_chunk_slots or remaining < min_chunk_slots:
                continue
            used = set(primary.indexes)
            rest_runs = contiguous_runs(index for index in available if index not in used)
            secondary = best_window_across_runs(rest_runs, remaining, evaluations)
            if secondary is None:
                continue
            secondary.penalty = SECOND_SEGMENT_PENALTY
            plans.append(secondary)

        return _commit(arena, plans, task_id, category)

    logger.debug(f"No split placement of {required_slots} slots for {task_id}")
    return []


def place_fixed(arena: SlotArena, task_id: str, category: TaskCategory, anchor_index: int,
                required_slots: int, is_admissible: Callable[[Slot], bool],
                evaluations: Dict[int, SlotEvaluation]) -> List[WindowPlan]:
    """
    Extend forward from ``anchor_index`` for ``required_slots``; any slot
    failing the hard checks rejects the whole placement.
    """
    window = list(range(anchor_index, anchor_index + required_slots))
    if window[-1] >= len(arena):
        logger.debug(f"Fixed task {task_id} runs past the end of the day")
        return []
    for index in window:
        if not is_admissible(arena[index]):
            logger.debug(f"Fixed task {task_id} blocked at slot {index}")
            return []
    plan = _window_plan(window, evaluations)
    if plan is None:
        return []
    return _commit(arena, [plan], task_id, category)
