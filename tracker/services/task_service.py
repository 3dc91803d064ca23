# tracker/services/task_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from tracker.core.errors import InvalidFieldEdit, NotFound
from tracker.core.rbac import Actor, Capability
from tracker.domain.progress import compute_progress
from tracker.fsm import deliverable_fsm as fsm
from tracker.models.deliverable import Deliverable
from tracker.models.task import DeliverableTask
from tracker.services.deliverable_service import bump_version, flush_versioned, load_deliverable

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ToggleResult:
    task: DeliverableTask
    progress: int
    deliverable: Deliverable


def sync_progress(d: Deliverable) -> int:
    """Recompute progress from live tasks and apply the auto-transition.

    Must run in the same transaction as the task mutation that triggered it.
    """
    d.progress = compute_progress(d.tasks, d.progress)
    d.status = fsm.auto_transition(d.status, d.progress).value
    bump_version(d)
    return d.progress


class TaskService:
    """
    Checklist of a deliverable.
    Инвариант: после любой мутации задачи deliverable.progress == compute_progress(tasks).
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- Public API ----------

    def list(self, deliverable_id: UUID) -> list[DeliverableTask]:
        d = load_deliverable(self.db, deliverable_id)
        return d.live_tasks

    def create(
        self,
        deliverable_id: UUID,
        actor: Actor,
        *,
        name: str,
        owner: str | None = None,
        comment: str | None = None,
        is_complete: bool = False,
    ) -> ToggleResult:
        actor.ensure(Capability.edit_content)

        d = load_deliverable(self.db, deliverable_id)
        fsm.ensure_progress_editable(d.status, fsm.EDIT_TASKS)

        if not name or not name.strip():
            raise InvalidFieldEdit("name", "task name must not be empty")

        next_order = max((t.sort_order for t in d.live_tasks), default=0) + 1
        task = DeliverableTask(
            name=name.strip(),
            owner=owner,
            comment=comment,
            is_complete=is_complete,
            is_deleted=False,
            sort_order=next_order,
            created_by=actor.user_id,
        )
        d.tasks.append(task)

        progress = sync_progress(d)
        flush_versioned(self.db, d, fsm.EDIT_TASKS)

        logger.info("Task created id=%s deliverable=%s progress=%s", task.id, d.id, progress)
        return ToggleResult(task=task, progress=progress, deliverable=d)

    def update(
        self,
        task_id: UUID,
        actor: Actor,
        *,
        name: str | None = None,
        owner: str | None = None,
        comment: str | None = None,
    ) -> DeliverableTask:
        """Text fields only; completion goes through toggle()."""
        actor.ensure(Capability.edit_content)

        task = self._load_live(task_id)
        d = task.deliverable
        fsm.ensure_progress_editable(d.status, fsm.EDIT_TASKS)

        if name is not None:
            if not name.strip():
                raise InvalidFieldEdit("name", "task name must not be empty")
            task.name = name.strip()
        if owner is not None:
            task.owner = owner
        if comment is not None:
            task.comment = comment
        task.updated_at = _now()

        self.db.flush()
        return task

    def toggle(self, task_id: UUID, complete: bool, actor: Actor) -> ToggleResult:
        actor.ensure(Capability.edit_content)

        task = self._load_live(task_id)
        d = task.deliverable
        fsm.ensure_progress_editable(d.status, fsm.EDIT_TASKS)

        task.is_complete = complete
        task.updated_at = _now()

        progress = sync_progress(d)
        flush_versioned(self.db, d, fsm.EDIT_TASKS)

        logger.info(
            "Task toggled id=%s complete=%s deliverable=%s progress=%s status=%s",
            task.id, complete, d.id, progress, d.status,
            extra={"deliverable_id": d.id, "task_id": task.id},
        )
        return ToggleResult(task=task, progress=progress, deliverable=d)

    def delete(self, task_id: UUID, actor: Actor) -> ToggleResult:
        """Soft delete. With the last live task gone the deliverable keeps its
        last progress value and falls back to manual mode."""
        actor.ensure(Capability.edit_content)

        task = self._load_live(task_id)
        d = task.deliverable
        fsm.ensure_progress_editable(d.status, fsm.EDIT_TASKS)

        task.is_deleted = True
        task.deleted_at = _now()
        task.deleted_by = actor.user_id

        progress = sync_progress(d)
        flush_versioned(self.db, d, fsm.EDIT_TASKS)

        logger.info("Task deleted id=%s deliverable=%s progress=%s", task.id, d.id, progress)
        return ToggleResult(task=task, progress=progress, deliverable=d)

    def reorder(self, deliverable_id: UUID, task_ids: list[UUID], actor: Actor) -> list[DeliverableTask]:
        actor.ensure(Capability.edit_content)

        d = load_deliverable(self.db, deliverable_id)
        fsm.ensure_progress_editable(d.status, fsm.EDIT_TASKS)

        live = {t.id: t for t in d.live_tasks}
        if len(task_ids) != len(set(task_ids)) or set(task_ids) != set(live):
            raise InvalidFieldEdit("task_ids", "must list every live task of the deliverable exactly once")

        for index, tid in enumerate(task_ids, start=1):
            live[tid].sort_order = index
            live[tid].updated_at = _now()

        self.db.flush()
        return sorted(live.values(), key=lambda t: t.sort_order)

    # ---------- internals ----------

    def _load_live(self, task_id: UUID) -> DeliverableTask:
        task = self.db.get(DeliverableTask, task_id)
        if task is None or task.is_deleted:
            raise NotFound("Task", task_id)
        return task
