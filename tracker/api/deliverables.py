# tracker/api/deliverables.py

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.orm import Session

from tracker.api.deps import get_actor
from tracker.core.db import get_db
from tracker.core.rbac import Actor
from tracker.schemas.common import ErrorRead
from tracker.schemas.deliverable import DeliverableCreate, DeliverableRead
from tracker.schemas.field_edit import DeliverableFieldEdit
from tracker.schemas.signoff import AssessmentItemRead, SignRequest, SignResponse
from tracker.schemas.task import TaskCreate, TaskMutationResponse, TaskRead, TaskReorder
from tracker.schemas.transition import DeliverableTransitionRequest
from tracker.services.deliverable_service import DeliverableService
from tracker.services.signoff_service import Assessment, SignoffService
from tracker.services.task_service import TaskService

router = APIRouter(prefix="/deliverables", tags=["deliverables"])

# Domain errors are rendered by tracker.main.domain_error_handler.
WRITE_ERROR_RESPONSES = {
    401: {"description": "Missing X-Role or X-Actor-User-Id header"},
    403: {"model": ErrorRead, "description": "permission_denied"},
    404: {"model": ErrorRead, "description": "not_found"},
    409: {"model": ErrorRead, "description": "concurrent_update_conflict: reload and retry"},
    422: {"description": "Request validation error, invalid_transition or invalid_field_edit"},
}

SIGN_ERROR_RESPONSES = {
    **WRITE_ERROR_RESPONSES,
    409: {"model": ErrorRead, "description": "concurrent_signature_conflict: reload and retry"},
    422: {"description": "Request validation error, invalid_transition, invalid_field_edit or assessment_incomplete"},
}

TRANSITION_OPENAPI_EXAMPLES = {
    "submit": {"summary": "Submit for review", "value": {"action": "submit"}},
    "return": {"summary": "Return for more work", "value": {"action": "return"}},
    "accept": {"summary": "Accept review", "value": {"action": "accept"}},
}

SIGN_OPENAPI_EXAMPLES = {
    "supplier": {
        "summary": "Supplier signature",
        "value": {"signer_role": "supplier"},
    },
    "customer": {
        "summary": "Customer signature with assessment",
        "description": "Every linked KPI / quality standard must be assessed, otherwise 422 assessment_incomplete.",
        "value": {
            "signer_role": "customer",
            "assessments": [
                {"kind": "kpi", "item_id": "44444444-4444-4444-4444-444444444444", "met": True},
                {"kind": "quality_standard", "item_id": "55555555-5555-5555-5555-555555555555", "met": False},
            ],
        },
    },
}


@router.post("", response_model=DeliverableRead, status_code=status.HTTP_201_CREATED)
def create_deliverable(
    data: DeliverableCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        d = DeliverableService(db).create(
            actor,
            reference=data.reference,
            name=data.name,
            description=data.description,
            milestone_id=data.milestone_id,
            progress=data.progress,
            kpi_ids=data.kpi_ids,
            quality_standard_ids=data.quality_standard_ids,
        )
        return DeliverableRead.from_model(d)


@router.get("", response_model=list[DeliverableRead])
def list_deliverables(
    milestone_id: UUID | None = Query(default=None),
    db: Session = Depends(get_db),
):
    return [DeliverableRead.from_model(d) for d in DeliverableService(db).list(milestone_id)]


@router.get("/{deliverable_id}", response_model=DeliverableRead)
def get_deliverable(deliverable_id: UUID, db: Session = Depends(get_db)):
    return DeliverableRead.from_model(DeliverableService(db).get(deliverable_id))


@router.delete("/{deliverable_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_deliverable(
    deliverable_id: UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        DeliverableService(db).delete(deliverable_id, actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{deliverable_id}/fields",
    response_model=DeliverableRead,
    summary="Edit one deliverable field",
    responses=WRITE_ERROR_RESPONSES,
    description=(
        "Single-field edit, discriminated by `field`.\n\n"
        "- name / milestone_id / kpi_ids / quality_standard_ids: supplier or admin\n"
        "- description / progress: supplier, admin or contributor\n\n"
        "Progress edits auto-move not_started <-> in_progress and are locked from "
        "submitted_for_review onwards."
    ),
)
def edit_deliverable_field(
    deliverable_id: UUID,
    body: DeliverableFieldEdit,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        d = DeliverableService(db).edit_field(deliverable_id, body.field, body.value, actor)
        return DeliverableRead.from_model(d)


@router.post(
    "/{deliverable_id}/transitions",
    response_model=DeliverableRead,
    summary="Review workflow transition (submit / return / accept)",
    responses=WRITE_ERROR_RESPONSES,
)
def transition_deliverable(
    deliverable_id: UUID,
    body: DeliverableTransitionRequest = Body(..., openapi_examples=TRANSITION_OPENAPI_EXAMPLES),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        d = DeliverableService(db).transition(deliverable_id, body.action, actor)
        return DeliverableRead.from_model(d)


@router.post(
    "/{deliverable_id}/sign",
    response_model=SignResponse,
    summary="Sign deliverable as supplier or customer",
    responses=SIGN_ERROR_RESPONSES,
    description=(
        "Dual-signature sign-off, allowed only from `review_complete`.\n\n"
        "Customer signature requires an assessment (`met`) for every currently linked "
        "KPI and quality standard. The customer may replace the linked sets in the same "
        "request; removed links lose their assessment.\n\n"
        "The second signature moves the deliverable to `signed`."
    ),
)
def sign_deliverable(
    deliverable_id: UUID,
    body: SignRequest = Body(..., openapi_examples=SIGN_OPENAPI_EXAMPLES),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        result = SignoffService(db).sign(
            deliverable_id,
            body.signer_role,
            actor,
            assessments=[Assessment(kind=a.kind, item_id=a.item_id, met=a.met) for a in body.assessments],
            kpi_ids=body.kpi_ids,
            quality_standard_ids=body.quality_standard_ids,
        )
        return SignResponse(
            deliverable=DeliverableRead.from_model(result.deliverable),
            sign_off_status=result.sign_off_status,
        )


@router.get("/{deliverable_id}/assessments", response_model=list[AssessmentItemRead])
def list_assessments(deliverable_id: UUID, db: Session = Depends(get_db)):
    return SignoffService(db).assessment_summary(deliverable_id)


# ---------------------------------------------------------------------------
# Checklist (tasks)
# ---------------------------------------------------------------------------


@router.get("/{deliverable_id}/tasks", response_model=list[TaskRead])
def list_deliverable_tasks(deliverable_id: UUID, db: Session = Depends(get_db)):
    return TaskService(db).list(deliverable_id)


@router.post(
    "/{deliverable_id}/tasks",
    response_model=TaskMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_deliverable_task(
    deliverable_id: UUID,
    body: TaskCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        result = TaskService(db).create(
            deliverable_id,
            actor,
            name=body.name,
            owner=body.owner,
            comment=body.comment,
            is_complete=body.is_complete,
        )
        return TaskMutationResponse(
            task=TaskRead.model_validate(result.task),
            deliverable_id=result.deliverable.id,
            recomputed_progress=result.progress,
            deliverable_status=result.deliverable.status,
        )


@router.post("/{deliverable_id}/tasks/reorder", response_model=list[TaskRead])
def reorder_deliverable_tasks(
    deliverable_id: UUID,
    body: TaskReorder,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        tasks = TaskService(db).reorder(deliverable_id, body.task_ids, actor)
        return [TaskRead.model_validate(t) for t in tasks]
