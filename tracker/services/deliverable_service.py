# tracker/services/deliverable_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from tracker.core.errors import ConcurrentUpdateConflict, InvalidFieldEdit, InvalidTransition, NotFound
from tracker.core.rbac import Actor, Capability, FIELD_CAPABILITY, field_capability
from tracker.domain.progress import is_task_derived
from tracker.domain.signoff import has_any_signature
from tracker.fsm import deliverable_fsm as fsm
from tracker.models.catalog import Kpi, QualityStandard
from tracker.models.deliverable import Deliverable, DeliverableStatus
from tracker.models.links import DeliverableKpi, DeliverableQualityStandard
from tracker.models.milestone import Milestone

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def load_deliverable(db: Session, deliverable_id: UUID) -> Deliverable:
    d = db.get(Deliverable, deliverable_id)
    if d is None:
        raise NotFound("Deliverable", deliverable_id)
    return d


def bump_version(d: Deliverable) -> None:
    d.row_version = (d.row_version or 0) + 1
    d.updated_at = _now()


def flush_versioned(db: Session, d: Deliverable, action: str) -> None:
    """Flush pending writes; the deliverable UPDATE only matches the row_version we loaded."""
    try:
        db.flush()
    except StaleDataError:
        logger.warning("Deliverable write lost id=%s action=%s", d.id, action)
        raise ConcurrentUpdateConflict(d.id, action) from None


def _ensure_exist(db: Session, model, ids: set[UUID], field: str) -> None:
    if not ids:
        return
    found = set(db.execute(select(model.id).where(model.id.in_(ids))).scalars())
    missing = ids - found
    if missing:
        raise InvalidFieldEdit(field, f"unknown ids: {', '.join(sorted(str(i) for i in missing))}")


def sync_links(
    db: Session,
    d: Deliverable,
    *,
    kpi_ids: Iterable[UUID] | None = None,
    quality_standard_ids: Iterable[UUID] | None = None,
) -> None:
    """Replace the linked KPI / QS sets.

    Kept links keep their assessment, removed links are deleted together with
    it, added links start unassessed. None means "leave this set alone".
    """
    if kpi_ids is not None:
        wanted = set(kpi_ids)
        _ensure_exist(db, Kpi, wanted, "kpi_ids")
        current = {link.kpi_id for link in d.kpi_links}
        d.kpi_links = [link for link in d.kpi_links if link.kpi_id in wanted]
        for kpi_id in sorted(wanted - current, key=str):
            d.kpi_links.append(DeliverableKpi(deliverable_id=d.id, kpi_id=kpi_id))

    if quality_standard_ids is not None:
        wanted = set(quality_standard_ids)
        _ensure_exist(db, QualityStandard, wanted, "quality_standard_ids")
        current = {link.quality_standard_id for link in d.quality_standard_links}
        d.quality_standard_links = [
            link for link in d.quality_standard_links if link.quality_standard_id in wanted
        ]
        for qs_id in sorted(wanted - current, key=str):
            d.quality_standard_links.append(
                DeliverableQualityStandard(deliverable_id=d.id, quality_standard_id=qs_id)
            )


def _validate_progress(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldEdit("progress", "must be an integer")
    if value < 0 or value > 100:
        raise InvalidFieldEdit("progress", "must be between 0 and 100")
    return value


def _as_uuid(field: str, value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise InvalidFieldEdit(field, f"invalid id '{value}'") from None


def _as_uuid_list(field: str, value: Any) -> list[UUID]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple, set)):
        raise InvalidFieldEdit(field, "must be a list of ids")
    return [_as_uuid(field, v) for v in value]


class DeliverableService:
    """Deliverable lifecycle: create / field edits / review workflow / delete.

    The caller owns the transaction (``with db.begin():``); any exception raised
    here leaves the stored state untouched once the transaction rolls back.
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- Public API ----------

    def get(self, deliverable_id: UUID) -> Deliverable:
        return load_deliverable(self.db, deliverable_id)

    def list(self, milestone_id: UUID | None = None) -> list[Deliverable]:
        stmt = select(Deliverable).order_by(Deliverable.reference)
        if milestone_id is not None:
            stmt = stmt.where(Deliverable.milestone_id == milestone_id)
        return list(self.db.execute(stmt).scalars())

    def create(
        self,
        actor: Actor,
        *,
        reference: str,
        name: str,
        description: str | None = None,
        milestone_id: UUID | None = None,
        progress: int = 0,
        kpi_ids: Iterable[UUID] = (),
        quality_standard_ids: Iterable[UUID] = (),
    ) -> Deliverable:
        actor.ensure(Capability.create)

        existing = self.db.execute(
            select(Deliverable.id).where(Deliverable.reference == reference)
        ).scalar_one_or_none()
        if existing is not None:
            raise InvalidFieldEdit("reference", f"'{reference}' already exists")

        if milestone_id is not None and self.db.get(Milestone, milestone_id) is None:
            raise InvalidFieldEdit("milestone_id", f"unknown milestone {milestone_id}")

        progress = _validate_progress(progress)
        d = Deliverable(
            reference=reference,
            name=name,
            description=description,
            milestone_id=milestone_id,
            progress=progress,
            status=fsm.auto_transition(DeliverableStatus.not_started, progress).value,
            created_by=actor.user_id,
            row_version=1,
        )
        self.db.add(d)
        self.db.flush()

        sync_links(self.db, d, kpi_ids=list(kpi_ids), quality_standard_ids=list(quality_standard_ids))
        self.db.flush()

        logger.info("Deliverable created id=%s ref=%s by=%s", d.id, d.reference, actor.user_id)
        return d

    def edit_field(self, deliverable_id: UUID, field: str, value: Any, actor: Actor) -> Deliverable:
        if field not in FIELD_CAPABILITY:
            allowed = ", ".join(sorted(FIELD_CAPABILITY))
            raise InvalidFieldEdit(field, f"unknown field. Editable fields: {allowed}")

        actor.ensure(field_capability(field))

        d = load_deliverable(self.db, deliverable_id)
        fsm.ensure_not_terminal(d.status, fsm.EDIT_FIELD)

        if field == "progress":
            self._set_manual_progress(d, value)
        else:
            # подписанный (хотя бы одной стороной) документ не меняем
            if has_any_signature(d):
                raise InvalidTransition(d.status, fsm.EDIT_FIELD, reason="deliverable has a signature")

            if field == "name":
                if not isinstance(value, str) or not value.strip():
                    raise InvalidFieldEdit("name", "must be a non-empty string")
                d.name = value.strip()
            elif field == "description":
                if value is not None and not isinstance(value, str):
                    raise InvalidFieldEdit("description", "must be a string or null")
                d.description = value
            elif field == "milestone_id":
                milestone_id = _as_uuid(field, value) if value is not None else None
                if milestone_id is not None and self.db.get(Milestone, milestone_id) is None:
                    raise InvalidFieldEdit("milestone_id", f"unknown milestone {milestone_id}")
                d.milestone_id = milestone_id
            elif field == "kpi_ids":
                sync_links(self.db, d, kpi_ids=_as_uuid_list(field, value))
            elif field == "quality_standard_ids":
                sync_links(self.db, d, quality_standard_ids=_as_uuid_list(field, value))

        bump_version(d)
        flush_versioned(self.db, d, fsm.EDIT_FIELD)

        logger.info(
            "Deliverable field edited id=%s field=%s role=%s status=%s progress=%s",
            d.id, field, actor.role, d.status, d.progress,
        )
        return d

    def transition(self, deliverable_id: UUID, action_raw: str, actor: Actor) -> Deliverable:
        action = fsm.parse_action(action_raw)
        actor.ensure(fsm.ACTION_CAPABILITY[action])

        d = load_deliverable(self.db, deliverable_id)
        from_status = d.status
        to_status = fsm.apply_transition(from_status, action)

        d.status = to_status.value
        if action is fsm.Action.SUBMIT:
            d.submitted_at = _now()
            d.submitted_by = actor.user_id
        bump_version(d)
        flush_versioned(self.db, d, action.value)

        logger.info(
            "Deliverable transition id=%s action=%s %s -> %s by=%s",
            d.id, action.value, from_status, d.status, actor.user_id,
            extra={"deliverable_id": d.id, "action": action.value, "actor_role": actor.role},
        )
        return d

    def delete(self, deliverable_id: UUID, actor: Actor) -> None:
        actor.ensure(Capability.delete)

        d = load_deliverable(self.db, deliverable_id)
        if has_any_signature(d):
            raise InvalidTransition(d.status, fsm.DELETE, reason="deliverable has a signature")

        self.db.delete(d)
        flush_versioned(self.db, d, fsm.DELETE)
        logger.info("Deliverable deleted id=%s ref=%s by=%s", deliverable_id, d.reference, actor.user_id)

    # ---------- internals ----------

    def _set_manual_progress(self, d: Deliverable, value: Any) -> None:
        progress = _validate_progress(value)
        fsm.ensure_progress_editable(d.status)

        if is_task_derived(d.tasks):
            raise InvalidFieldEdit("progress", "progress is derived from tasks while the deliverable has tasks")

        d.progress = progress
        d.status = fsm.auto_transition(d.status, progress).value
