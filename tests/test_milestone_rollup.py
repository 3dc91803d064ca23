# tests/test_milestone_rollup.py
from __future__ import annotations

from types import SimpleNamespace

import pytest

from tracker.domain.milestone_rollup import MilestoneStatus, compute_milestone_state


def _child(status, progress):
    return SimpleNamespace(status=status, progress=progress)


def test_no_children_is_not_started_zero():
    state = compute_milestone_state([])
    assert state.status is MilestoneStatus.not_started
    assert state.progress == 0
    assert state.deliverable_count == 0


def test_all_not_started():
    state = compute_milestone_state([_child("not_started", 0), _child("not_started", 0)])
    assert state.status is MilestoneStatus.not_started
    assert state.progress == 0


def test_unset_status_counts_as_not_started():
    state = compute_milestone_state([_child(None, 0), _child("not_started", 0)])
    assert state.status is MilestoneStatus.not_started


def test_all_signed_is_completed():
    state = compute_milestone_state([_child("signed", 100), _child("signed", 100)])
    assert state.status is MilestoneStatus.completed
    assert state.progress == 100


def test_mixture_is_in_progress_with_plain_mean():
    state = compute_milestone_state([_child("not_started", 0), _child("signed", 100)])
    assert state.status is MilestoneStatus.in_progress
    assert state.progress == 50


@pytest.mark.parametrize(
    "statuses",
    [
        ["in_progress"],
        ["review_complete", "signed"],
        ["submitted_for_review", "not_started"],
        ["returned_for_more_work", "signed", "signed"],
    ],
)
def test_anything_else_is_in_progress(statuses):
    state = compute_milestone_state([_child(s, 10) for s in statuses])
    assert state.status is MilestoneStatus.in_progress


def test_progress_is_not_weighted_and_rounds_half_up():
    # (0 + 25 + 100) / 3 = 41.67 -> 42 ; (10 + 15) / 2 = 12.5 -> 13
    assert compute_milestone_state(
        [_child("in_progress", 0), _child("in_progress", 25), _child("signed", 100)]
    ).progress == 42
    assert compute_milestone_state([_child("in_progress", 10), _child("in_progress", 15)]).progress == 13


def test_rollup_is_idempotent():
    children = [_child("in_progress", 30), _child("signed", 100)]
    assert compute_milestone_state(children) == compute_milestone_state(children)
