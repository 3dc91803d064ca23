# tracker/services/milestone_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tracker.core.errors import InvalidFieldEdit, NotFound
from tracker.core.rbac import Actor, Capability
from tracker.domain.milestone_rollup import MilestoneState, compute_milestone_state
from tracker.models.deliverable import Deliverable
from tracker.models.milestone import Milestone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MilestoneView:
    milestone: Milestone
    state: MilestoneState


class MilestoneService:
    """Milestones never store status/progress: every read re-runs the rollup
    over the deliverables currently pointing at the milestone."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        actor: Actor,
        *,
        reference: str,
        name: str,
        billable: Decimal = Decimal("0"),
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Milestone:
        actor.ensure(Capability.manage_milestones)

        exists = self.db.execute(
            select(Milestone.id).where(Milestone.reference == reference)
        ).scalar_one_or_none()
        if exists is not None:
            raise InvalidFieldEdit("reference", f"'{reference}' already exists")
        if start_date and end_date and end_date < start_date:
            raise InvalidFieldEdit("end_date", "must not be before start_date")

        m = Milestone(
            reference=reference,
            name=name,
            billable=billable,
            start_date=start_date,
            end_date=end_date,
        )
        self.db.add(m)
        self.db.flush()
        logger.info("Milestone created id=%s ref=%s", m.id, m.reference)
        return m

    def get(self, milestone_id: UUID) -> MilestoneView:
        m = self._load(milestone_id)
        return MilestoneView(milestone=m, state=self._rollup(m.id))

    def list(self) -> list[MilestoneView]:
        milestones = self.db.execute(select(Milestone).order_by(Milestone.reference)).scalars()
        return [MilestoneView(milestone=m, state=self._rollup(m.id)) for m in milestones]

    def rollup(self, milestone_id: UUID) -> MilestoneState:
        self._load(milestone_id)
        return self._rollup(milestone_id)

    # ---------- internals ----------

    def _load(self, milestone_id: UUID) -> Milestone:
        m = self.db.get(Milestone, milestone_id)
        if m is None:
            raise NotFound("Milestone", milestone_id)
        return m

    def _rollup(self, milestone_id: UUID) -> MilestoneState:
        # всегда свежий SELECT, а не m.deliverables из identity map
        children = self.db.execute(
            select(Deliverable.status, Deliverable.progress).where(Deliverable.milestone_id == milestone_id)
        ).all()
        return compute_milestone_state(children)
