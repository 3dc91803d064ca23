# tracker/domain/progress.py
"""Progress aggregation: checklist tasks -> deliverable progress.

Precedence rule: as soon as a deliverable has at least one live (not
soft-deleted) task, its progress is derived from task completion and the
manually entered value is ignored. With no live tasks the manual value stands.
"""

from __future__ import annotations

from typing import Iterable, Protocol


class TaskLike(Protocol):
    is_complete: bool
    is_deleted: bool


def round_half_up(numerator: int, denominator: int) -> int:
    """numerator / denominator rounded to the nearest int, .5 rounds up (unlike round())."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return (2 * numerator + denominator) // (2 * denominator)


def live(tasks: Iterable[TaskLike]) -> list[TaskLike]:
    return [t for t in tasks if not t.is_deleted]


def compute_progress(tasks: Iterable[TaskLike], manual_progress: int = 0) -> int:
    items = live(tasks)
    if not items:
        return manual_progress

    completed = sum(1 for t in items if t.is_complete)
    return round_half_up(100 * completed, len(items))


def is_task_derived(tasks: Iterable[TaskLike]) -> bool:
    return bool(live(tasks))
