# tests/test_progress.py
"""
Progress aggregation: pure functions, no DB.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from tracker.domain.progress import compute_progress, is_task_derived, round_half_up


def _tasks(completed: int, total: int, deleted: int = 0):
    items = [SimpleNamespace(is_complete=i < completed, is_deleted=False) for i in range(total)]
    items += [SimpleNamespace(is_complete=True, is_deleted=True) for _ in range(deleted)]
    return items


@pytest.mark.parametrize(
    "completed,total,expected",
    [
        (0, 1, 0),
        (1, 1, 100),
        (1, 2, 50),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5 -> 13
        (3, 8, 38),  # 37.5 -> 38
        (5, 8, 63),  # 62.5 -> 63
        (7, 7, 100),
    ],
)
def test_progress_is_completed_share_rounded_half_up(completed, total, expected):
    assert compute_progress(_tasks(completed, total), manual_progress=99) == expected


def test_no_tasks_keeps_manual_progress():
    assert compute_progress([], manual_progress=42) == 42
    assert compute_progress([]) == 0


def test_only_deleted_tasks_falls_back_to_manual_progress():
    assert compute_progress(_tasks(0, 0, deleted=3), manual_progress=15) == 15
    assert is_task_derived(_tasks(0, 0, deleted=3)) is False


def test_deleted_tasks_do_not_count():
    # 1 live complete of 2 live; 2 deleted complete must not inflate the share
    assert compute_progress(_tasks(1, 2, deleted=2), manual_progress=0) == 50


def test_tasks_override_manual_value():
    assert compute_progress(_tasks(0, 4), manual_progress=80) == 0
    assert is_task_derived(_tasks(0, 4)) is True


def test_progress_is_monotonic_as_tasks_complete():
    total = 7
    values = [compute_progress(_tasks(done, total)) for done in range(total + 1)]
    assert values == sorted(values)
    assert values[0] == 0
    assert values[-1] == 100


def test_round_half_up_differs_from_bankers_rounding():
    assert round(12.5) == 12
    assert round_half_up(25, 2) == 13
    assert round_half_up(1, 3) == 0
    assert round_half_up(2, 3) == 1


def test_round_half_up_rejects_zero_denominator():
    with pytest.raises(ValueError):
        round_half_up(1, 0)
