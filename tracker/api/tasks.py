# tracker/api/tasks.py

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tracker.api.deps import get_actor
from tracker.core.db import get_db
from tracker.core.rbac import Actor
from tracker.schemas.task import TaskMutationResponse, TaskRead, TaskToggle, TaskUpdate
from tracker.services.task_service import TaskService, ToggleResult

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _mutation_response(result: ToggleResult) -> TaskMutationResponse:
    return TaskMutationResponse(
        task=TaskRead.model_validate(result.task),
        deliverable_id=result.deliverable.id,
        recomputed_progress=result.progress,
        deliverable_status=result.deliverable.status,
    )


@router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: UUID,
    body: TaskUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        task = TaskService(db).update(task_id, actor, name=body.name, owner=body.owner, comment=body.comment)
        return TaskRead.model_validate(task)


@router.post(
    "/{task_id}/toggle",
    response_model=TaskMutationResponse,
    summary="Mark task complete / incomplete",
    description="Recomputes deliverable progress (and not_started <-> in_progress) in the same transaction.",
)
def toggle_task(
    task_id: UUID,
    body: TaskToggle,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        return _mutation_response(TaskService(db).toggle(task_id, body.complete, actor))


@router.delete("/{task_id}", response_model=TaskMutationResponse)
def delete_task(
    task_id: UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        return _mutation_response(TaskService(db).delete(task_id, actor))
