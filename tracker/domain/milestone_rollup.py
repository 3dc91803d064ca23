# tracker/domain/milestone_rollup.py

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Protocol

from tracker.domain.progress import round_half_up
from tracker.models.deliverable import DeliverableStatus


class MilestoneStatus(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    completed = "completed"


class DeliverableLike(Protocol):
    status: str | None
    progress: int | None


@dataclass(frozen=True)
class MilestoneState:
    status: MilestoneStatus
    progress: int
    deliverable_count: int


def _status_value(status) -> str | None:
    if isinstance(status, DeliverableStatus):
        return status.value
    return status or None


def compute_milestone_state(children: Iterable[DeliverableLike]) -> MilestoneState:
    """Derive milestone status/progress from its deliverables.

    - no children                          -> not_started, 0
    - every child not_started (or unset)   -> not_started
    - every child signed                   -> completed
    - anything else                        -> in_progress
    Progress is the plain mean of child progress values (not weighted).

    Pure and idempotent; callers must pass live children on every read.
    """
    items = list(children)
    if not items:
        return MilestoneState(status=MilestoneStatus.not_started, progress=0, deliverable_count=0)

    statuses = [_status_value(d.status) for d in items]

    if all(s == DeliverableStatus.signed.value for s in statuses):
        status = MilestoneStatus.completed
    elif all(s in (None, DeliverableStatus.not_started.value) for s in statuses):
        status = MilestoneStatus.not_started
    else:
        status = MilestoneStatus.in_progress

    total = sum(d.progress or 0 for d in items)
    return MilestoneState(
        status=status,
        progress=round_half_up(total, len(items)),
        deliverable_count=len(items),
    )
