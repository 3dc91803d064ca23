# tests/test_signoff_service.py
"""
Dual-signature sign-off and the customer assessment gate.
"""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from tracker.core.errors import (
    AssessmentIncomplete,
    ConcurrentSignatureConflict,
    InvalidFieldEdit,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from tracker.domain.signoff import SignOffStatus
from tracker.models.deliverable import Deliverable
from tracker.services.signoff_service import Assessment, SignoffService

from tests.factories import (
    make_actor,
    make_deliverable,
    make_kpi,
    make_quality_standard,
    make_task,
)


def _reload(db: Session, deliverable_id) -> Deliverable:
    db.expire_all()
    return db.get(Deliverable, deliverable_id)


def _ready(db: Session, **kwargs) -> Deliverable:
    kwargs.setdefault("status", "review_complete")
    kwargs.setdefault("progress", 100)
    d = make_deliverable(db, **kwargs)
    db.commit()
    return d


# ============================================================================
# Order independence
# ============================================================================


@pytest.mark.parametrize("order", [("supplier", "customer"), ("customer", "supplier")])
def test_dual_signature_converges_to_signed(db: Session, order):
    d = _ready(db)
    svc = SignoffService(db)
    actors = {"supplier": make_actor("supplier"), "customer": make_actor("customer")}

    first, second = order
    r1 = svc.sign(d.id, first, actors[first])
    db.commit()
    assert r1.deliverable.delivered_at is None
    expected_interim = (
        SignOffStatus.awaiting_customer if first == "supplier" else SignOffStatus.awaiting_supplier
    )
    assert r1.sign_off_status is expected_interim
    assert r1.deliverable.status == "review_complete"

    r2 = svc.sign(d.id, second, actors[second])
    db.commit()
    assert r2.sign_off_status is SignOffStatus.signed

    d = _reload(db, d.id)
    assert d.status == "signed"
    assert d.progress == 100
    assert d.supplier_signed_by == actors["supplier"].user_id
    assert d.customer_signed_by == actors["customer"].user_id
    assert d.supplier_signed_at is not None
    assert d.customer_signed_at is not None
    # the completing signature records delivery
    assert d.delivered_by == actors[second].user_id
    assert d.delivered_at is not None


def test_admin_may_sign_as_supplier_not_as_customer(db: Session):
    d = _ready(db)
    svc = SignoffService(db)

    svc.sign(d.id, "supplier", make_actor("admin"))
    db.commit()

    with pytest.raises(PermissionDenied):
        svc.sign(d.id, "customer", make_actor("admin"))
    db.rollback()
    assert _reload(db, d.id).customer_signed_at is None


def test_customer_cannot_sign_supplier_slot(db: Session):
    d = _ready(db)

    with pytest.raises(PermissionDenied):
        SignoffService(db).sign(d.id, "supplier", make_actor("customer"))
    db.rollback()


# ============================================================================
# State guards
# ============================================================================


@pytest.mark.parametrize(
    "status",
    ["not_started", "in_progress", "submitted_for_review", "returned_for_more_work"],
)
def test_sign_requires_review_complete(db: Session, status):
    d = make_deliverable(db, status=status, progress=50)
    db.commit()

    with pytest.raises(InvalidTransition):
        SignoffService(db).sign(d.id, "supplier", make_actor("supplier"))
    db.rollback()


def test_same_slot_cannot_be_signed_twice(db: Session):
    d = _ready(db, supplier_signed=True)
    before = d.supplier_signed_by

    with pytest.raises(InvalidTransition, match="already signed"):
        SignoffService(db).sign(d.id, "supplier", make_actor("supplier"))
    db.rollback()
    assert _reload(db, d.id).supplier_signed_by == before


def test_signed_is_terminal(db: Session):
    d = make_deliverable(
        db, status="signed", progress=100, supplier_signed=True, customer_signed=True
    )
    db.commit()

    with pytest.raises(InvalidTransition):
        SignoffService(db).sign(d.id, "customer", make_actor("customer"))
    db.rollback()


def test_unknown_signer_role(db: Session):
    d = _ready(db)
    with pytest.raises(InvalidFieldEdit):
        SignoffService(db).sign(d.id, "admin", make_actor("admin"))
    db.rollback()


# ============================================================================
# Assessment gate
# ============================================================================


def test_customer_blocked_by_unassessed_kpi(db: Session):
    kpi = make_kpi(db)
    d = _ready(db, kpis=[kpi])

    with pytest.raises(AssessmentIncomplete) as exc:
        SignoffService(db).sign(d.id, "customer", make_actor("customer"))
    db.rollback()

    assert exc.value.kpi_ids == [kpi.id]
    assert exc.value.item_ids == [kpi.id]
    assert _reload(db, d.id).customer_signed_at is None


def test_customer_succeeds_once_everything_assessed(db: Session):
    kpi = make_kpi(db)
    qs = make_quality_standard(db)
    d = _ready(db, kpis=[kpi], quality_standards=[qs])
    customer = make_actor("customer")

    result = SignoffService(db).sign(
        d.id,
        "customer",
        customer,
        assessments=[
            Assessment(kind="kpi", item_id=kpi.id, met=True),
            # "not met" is still an assessment
            Assessment(kind="quality_standard", item_id=qs.id, met=False),
        ],
    )
    db.commit()

    assert result.sign_off_status is SignOffStatus.awaiting_supplier
    d = _reload(db, d.id)
    assert d.kpi_links[0].criteria_met is True
    assert d.kpi_links[0].assessed_by == customer.user_id
    assert d.quality_standard_links[0].criteria_met is False


def test_partial_assessment_lists_only_missing_items(db: Session):
    k1 = make_kpi(db)
    k2 = make_kpi(db)
    qs = make_quality_standard(db)
    d = _ready(db, kpis=[k1, k2], quality_standards=[qs])

    with pytest.raises(AssessmentIncomplete) as exc:
        SignoffService(db).sign(
            d.id,
            "customer",
            make_actor("customer"),
            assessments=[Assessment(kind="kpi", item_id=k1.id, met=True)],
        )
    db.rollback()

    assert exc.value.kpi_ids == [k2.id]
    assert exc.value.quality_standard_ids == [qs.id]
    # whole request rolled back, including the k1 outcome
    d = _reload(db, d.id)
    assert all(link.criteria_met is None for link in d.kpi_links)


def test_previous_assessments_count(db: Session):
    kpi = make_kpi(db)
    d = _ready(db, kpis=[kpi], assessed=True)

    SignoffService(db).sign(d.id, "customer", make_actor("customer"))
    db.commit()
    assert _reload(db, d.id).customer_signed_at is not None


def test_removing_link_during_assessment_discards_it(db: Session):
    stale = make_kpi(db)
    fresh = make_kpi(db)
    d = _ready(db, kpis=[stale])

    SignoffService(db).sign(
        d.id,
        "customer",
        make_actor("customer"),
        kpi_ids=[fresh.id],
        assessments=[Assessment(kind="kpi", item_id=fresh.id, met=True)],
    )
    db.commit()

    d = _reload(db, d.id)
    assert [(link.kpi_id, link.criteria_met) for link in d.kpi_links] == [(fresh.id, True)]


def test_link_added_during_assessment_must_be_assessed(db: Session):
    qs = make_quality_standard(db)
    d = _ready(db)

    with pytest.raises(AssessmentIncomplete) as exc:
        SignoffService(db).sign(
            d.id, "customer", make_actor("customer"), quality_standard_ids=[qs.id]
        )
    db.rollback()

    assert exc.value.quality_standard_ids == [qs.id]
    assert _reload(db, d.id).quality_standard_links == []


def test_assessment_for_unlinked_item_rejected(db: Session):
    kpi = make_kpi(db)
    d = _ready(db)

    with pytest.raises(InvalidFieldEdit, match="not linked"):
        SignoffService(db).sign(
            d.id,
            "customer",
            make_actor("customer"),
            assessments=[Assessment(kind="kpi", item_id=kpi.id, met=True)],
        )
    db.rollback()


def test_supplier_cannot_record_assessments(db: Session):
    kpi = make_kpi(db)
    d = _ready(db, kpis=[kpi])

    with pytest.raises(InvalidFieldEdit):
        SignoffService(db).sign(
            d.id,
            "supplier",
            make_actor("supplier"),
            assessments=[Assessment(kind="kpi", item_id=kpi.id, met=True)],
        )
    db.rollback()


def test_supplier_not_gated_by_assessment(db: Session):
    kpi = make_kpi(db)
    d = _ready(db, kpis=[kpi])

    SignoffService(db).sign(d.id, "supplier", make_actor("supplier"))
    db.commit()
    assert _reload(db, d.id).supplier_signed_at is not None


def test_assessment_summary(db: Session):
    kpi = make_kpi(db)
    qs = make_quality_standard(db)
    d = _ready(db, kpis=[kpi], quality_standards=[qs])

    items = SignoffService(db).assessment_summary(d.id)
    assert [(i.kind, i.item_id, i.criteria_met) for i in items] == [
        ("kpi", kpi.id, None),
        ("quality_standard", qs.id, None),
    ]


# ============================================================================
# Completion side effects / concurrency
# ============================================================================


def test_final_signature_closes_checklist(db: Session):
    d = make_deliverable(db, status="review_complete", progress=50, supplier_signed=True)
    make_task(db, d, is_complete=True)
    make_task(db, d, is_complete=False)
    make_task(db, d, is_complete=False, is_deleted=True)
    db.commit()

    SignoffService(db).sign(d.id, "customer", make_actor("customer"))
    db.commit()

    d = _reload(db, d.id)
    assert d.status == "signed"
    assert d.progress == 100
    assert all(t.is_complete for t in d.live_tasks)
    # soft-deleted rows are left as they were
    assert [t.is_complete for t in d.tasks if t.is_deleted] == [False]


def test_concurrent_write_between_read_and_sign_conflicts(db: Session):
    d = _ready(db)
    # identity map holds row_version=1 while another writer moves the row on
    db.execute(
        update(Deliverable)
        .where(Deliverable.id == d.id)
        .values(row_version=Deliverable.row_version + 1)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    assert d.row_version == 1

    with pytest.raises(ConcurrentSignatureConflict) as exc:
        SignoffService(db).sign(d.id, "supplier", make_actor("supplier"))
    db.rollback()

    assert exc.value.signer_role == "supplier"
    assert _reload(db, d.id).supplier_signed_at is None


def test_racing_signers_on_other_session_conflict(db: Session, session_factory):
    d = _ready(db)
    deliverable_id = d.id

    # first signer read the row ...
    SignoffService(db).assessment_summary(deliverable_id)

    # ... a second process signs as customer and commits
    other = session_factory()
    try:
        SignoffService(other).sign(deliverable_id, "customer", make_actor("customer"))
        other.commit()
    finally:
        other.close()

    # first signer still sees the old row_version
    with pytest.raises(ConcurrentSignatureConflict):
        SignoffService(db).sign(deliverable_id, "supplier", make_actor("supplier"))
    db.rollback()

    d = _reload(db, deliverable_id)
    assert d.customer_signed_at is not None
    assert d.supplier_signed_at is None
    assert d.status == "review_complete"


def test_unknown_deliverable(db: Session):
    with pytest.raises(NotFound):
        SignoffService(db).sign(uuid.uuid4(), "supplier", make_actor("supplier"))
