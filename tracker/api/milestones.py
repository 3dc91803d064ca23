# tracker/api/milestones.py

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tracker.api.deps import get_actor
from tracker.core.db import get_db
from tracker.core.rbac import Actor
from tracker.schemas.deliverable import DeliverableRead
from tracker.schemas.milestone import MilestoneCreate, MilestoneRead, MilestoneRollupRead
from tracker.services.deliverable_service import DeliverableService
from tracker.services.milestone_service import MilestoneService

router = APIRouter(prefix="/milestones", tags=["milestones"])


@router.post("", response_model=MilestoneRead, status_code=status.HTTP_201_CREATED)
def create_milestone(
    body: MilestoneCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with db.begin():
        svc = MilestoneService(db)
        m = svc.create(
            actor,
            reference=body.reference,
            name=body.name,
            billable=body.billable,
            start_date=body.start_date,
            end_date=body.end_date,
        )
        return MilestoneRead.from_view(svc.get(m.id))


@router.get("", response_model=list[MilestoneRead])
def list_milestones(db: Session = Depends(get_db)):
    return [MilestoneRead.from_view(v) for v in MilestoneService(db).list()]


@router.get("/{milestone_id}", response_model=MilestoneRead)
def get_milestone(milestone_id: UUID, db: Session = Depends(get_db)):
    return MilestoneRead.from_view(MilestoneService(db).get(milestone_id))


@router.get(
    "/{milestone_id}/rollup",
    response_model=MilestoneRollupRead,
    summary="Derived milestone status/progress",
    description="Recomputed from the child deliverables on every call; nothing is cached or stored.",
)
def rollup_milestone(milestone_id: UUID, db: Session = Depends(get_db)):
    return MilestoneRollupRead.from_state(MilestoneService(db).rollup(milestone_id))


@router.get("/{milestone_id}/deliverables", response_model=list[DeliverableRead])
def list_milestone_deliverables(milestone_id: UUID, db: Session = Depends(get_db)):
    MilestoneService(db).rollup(milestone_id)  # 404 for unknown milestone
    return [DeliverableRead.from_model(d) for d in DeliverableService(db).list(milestone_id)]
