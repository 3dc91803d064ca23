# tracker/schemas/milestone.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from tracker.domain.milestone_rollup import MilestoneState, MilestoneStatus
from tracker.schemas.common import StrictBaseModel
from tracker.services.milestone_service import MilestoneView


class MilestoneCreate(StrictBaseModel):
    reference: str = Field(..., min_length=1, max_length=64, examples=["M-01"])
    name: str = Field(..., min_length=1, max_length=300, examples=["Design phase"])
    billable: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    start_date: date | None = None
    end_date: date | None = None


class MilestoneRollupRead(BaseModel):
    status: MilestoneStatus
    progress: int
    deliverable_count: int

    @classmethod
    def from_state(cls, state: MilestoneState) -> "MilestoneRollupRead":
        return cls(status=state.status, progress=state.progress, deliverable_count=state.deliverable_count)


class MilestoneRead(BaseModel):
    id: UUID
    reference: str
    name: str
    billable: Decimal
    start_date: date | None = None
    end_date: date | None = None
    created_at: datetime

    # derived on read, never stored
    status: MilestoneStatus
    progress: int
    deliverable_count: int

    @classmethod
    def from_view(cls, view: MilestoneView) -> "MilestoneRead":
        m = view.milestone
        return cls(
            id=m.id,
            reference=m.reference,
            name=m.name,
            billable=m.billable,
            start_date=m.start_date,
            end_date=m.end_date,
            created_at=m.created_at,
            status=view.state.status,
            progress=view.state.progress,
            deliverable_count=view.state.deliverable_count,
        )
