# tracker/services/signoff_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from tracker.core.errors import (
    AssessmentIncomplete,
    ConcurrentSignatureConflict,
    InvalidFieldEdit,
    InvalidTransition,
)
from tracker.core.rbac import Actor, sign_capability
from tracker.domain.signoff import SignOffStatus, evaluate_gate, sign_off_status
from tracker.fsm import deliverable_fsm as fsm
from tracker.models.deliverable import Deliverable, DeliverableStatus, SignerRole
from tracker.models.task import DeliverableTask
from tracker.services.deliverable_service import load_deliverable, sync_links

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Assessment:
    """Outcome for one linked item. kind: 'kpi' | 'quality_standard'."""

    kind: str
    item_id: UUID
    met: bool


@dataclass(frozen=True)
class SignResult:
    deliverable: Deliverable
    sign_off_status: SignOffStatus


@dataclass(frozen=True)
class AssessmentItem:
    kind: str
    item_id: UUID
    criteria_met: bool | None
    assessed_at: datetime | None
    assessed_by: UUID | None


def _parse_signer(signer_role: str | SignerRole) -> SignerRole:
    if isinstance(signer_role, SignerRole):
        return signer_role
    try:
        return SignerRole(signer_role)
    except ValueError:
        raise InvalidFieldEdit("signer_role", f"unknown signer role '{signer_role}'") from None


class SignoffService:
    """
    Dual-signature sign-off (supplier + customer).

    - either party may sign first, each slot is written exactly once;
    - customer signature is gated on a met/not-met assessment of every
      currently linked KPI and quality standard;
    - the slot write is a compare-and-set on row_version, the second signature
      moves the deliverable to `signed` in the same UPDATE.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- Public API ----------

    def sign(
        self,
        deliverable_id: UUID,
        signer_role: str | SignerRole,
        actor: Actor,
        *,
        assessments: Iterable[Assessment] | None = None,
        kpi_ids: Iterable[UUID] | None = None,
        quality_standard_ids: Iterable[UUID] | None = None,
    ) -> SignResult:
        role = _parse_signer(signer_role)
        action = f"sign_{role.value}"

        actor.ensure(sign_capability(role))

        d = load_deliverable(self.db, deliverable_id)
        fsm.ensure_not_terminal(d.status, action)
        fsm.ensure_signable(d.status, action)

        if d.signature_at(role) is not None:
            raise InvalidTransition(d.status, action, reason=f"already signed by {role.value}")

        assessments = list(assessments or [])

        if role is SignerRole.customer:
            self._apply_assessment_phase(
                d,
                actor,
                assessments=assessments,
                kpi_ids=kpi_ids,
                quality_standard_ids=quality_standard_ids,
            )
        elif assessments or kpi_ids is not None or quality_standard_ids is not None:
            raise InvalidFieldEdit("assessments", "only the customer signer records assessments")

        self._write_signature(d, role, actor)

        status = sign_off_status(d)
        logger.info(
            "Deliverable signed id=%s as=%s by=%s sign_off=%s status=%s",
            d.id, role.value, actor.user_id, status.value, d.status,
            extra={"deliverable_id": d.id, "action": action, "actor_role": actor.role},
        )
        return SignResult(deliverable=d, sign_off_status=status)

    def assessment_summary(self, deliverable_id: UUID) -> list[AssessmentItem]:
        d = load_deliverable(self.db, deliverable_id)
        items = [
            AssessmentItem("kpi", link.kpi_id, link.criteria_met, link.assessed_at, link.assessed_by)
            for link in d.kpi_links
        ]
        items += [
            AssessmentItem(
                "quality_standard",
                link.quality_standard_id,
                link.criteria_met,
                link.assessed_at,
                link.assessed_by,
            )
            for link in d.quality_standard_links
        ]
        return sorted(items, key=lambda i: (i.kind, str(i.item_id)))

    # ---------- internals ----------

    def _apply_assessment_phase(
        self,
        d: Deliverable,
        actor: Actor,
        *,
        assessments: list[Assessment],
        kpi_ids: Iterable[UUID] | None,
        quality_standard_ids: Iterable[UUID] | None,
    ) -> None:
        # 1) link set may change during assessment (removed => assessment discarded)
        sync_links(
            self.db,
            d,
            kpi_ids=list(kpi_ids) if kpi_ids is not None else None,
            quality_standard_ids=list(quality_standard_ids) if quality_standard_ids is not None else None,
        )

        # 2) record outcomes against the *current* link set
        by_kind = {
            "kpi": {link.kpi_id: link for link in d.kpi_links},
            "quality_standard": {link.quality_standard_id: link for link in d.quality_standard_links},
        }
        now = _now()
        for a in assessments:
            links = by_kind.get(a.kind)
            if links is None:
                raise InvalidFieldEdit("assessments", f"unknown item kind '{a.kind}'")
            link = links.get(a.item_id)
            if link is None:
                raise InvalidFieldEdit("assessments", f"{a.kind} {a.item_id} is not linked to this deliverable")
            link.criteria_met = a.met
            link.assessed_at = now
            link.assessed_by = actor.user_id

        # 3) gate
        gate = evaluate_gate(d.kpi_links, d.quality_standard_links)
        if not gate.is_open:
            raise AssessmentIncomplete(gate.unassessed_kpi_ids, gate.unassessed_quality_standard_ids)

        self.db.flush()

    def _write_signature(self, d: Deliverable, role: SignerRole, actor: Actor) -> None:
        seen_version = d.row_version
        completes = d.signature_at(
            SignerRole.customer if role is SignerRole.supplier else SignerRole.supplier
        ) is not None

        now = _now()
        if role is SignerRole.supplier:
            slot_at = Deliverable.supplier_signed_at
            values = {"supplier_signed_by": actor.user_id, "supplier_signed_at": now}
        else:
            slot_at = Deliverable.customer_signed_at
            values = {"customer_signed_by": actor.user_id, "customer_signed_at": now}

        values["row_version"] = seen_version + 1
        values["updated_at"] = now
        if completes:
            values["status"] = DeliverableStatus.signed.value
            values["progress"] = 100
            values["delivered_at"] = now
            values["delivered_by"] = actor.user_id

        # compare-and-set: slot still empty AND nobody wrote the row since we read it
        stmt = (
            update(Deliverable)
            .where(
                Deliverable.id == d.id,
                slot_at.is_(None),
                Deliverable.row_version == seen_version,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            logger.warning("Signature CAS lost id=%s as=%s seen_version=%s", d.id, role.value, seen_version)
            raise ConcurrentSignatureConflict(d.id, role.value)

        if completes:
            # delivered => checklist closed, progress stays equal to the task-derived value
            self.db.execute(
                update(DeliverableTask)
                .where(
                    DeliverableTask.deliverable_id == d.id,
                    DeliverableTask.is_deleted.is_(False),
                )
                .values(is_complete=True, updated_at=now)
                .execution_options(synchronize_session=False)
            )

        self.db.refresh(d)
        for task in d.tasks:
            self.db.refresh(task)
