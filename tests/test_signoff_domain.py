# tests/test_signoff_domain.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from tracker.domain.signoff import (
    SignOffStatus,
    evaluate_gate,
    has_any_signature,
    is_fully_signed,
    sign_off_status,
)

NOW = datetime.now(timezone.utc)


@pytest.mark.parametrize(
    "supplier,customer,expected",
    [
        (None, None, SignOffStatus.not_signed),
        (NOW, None, SignOffStatus.awaiting_customer),
        (None, NOW, SignOffStatus.awaiting_supplier),
        (NOW, NOW, SignOffStatus.signed),
    ],
)
def test_sign_off_status(supplier, customer, expected):
    d = SimpleNamespace(supplier_signed_at=supplier, customer_signed_at=customer)
    assert sign_off_status(d) is expected
    assert is_fully_signed(d) is (expected is SignOffStatus.signed)
    assert has_any_signature(d) is (expected is not SignOffStatus.not_signed)


def _link(met):
    return SimpleNamespace(item_id=uuid.uuid4(), criteria_met=met)


def test_gate_open_without_links():
    assert evaluate_gate([], []).is_open


def test_gate_counts_not_met_as_assessed():
    assert evaluate_gate([_link(False)], [_link(True)]).is_open


def test_gate_lists_unassessed_per_kind():
    missing_kpi = _link(None)
    missing_qs = _link(None)
    gate = evaluate_gate([_link(True), missing_kpi], [missing_qs])

    assert not gate.is_open
    assert gate.unassessed_kpi_ids == [missing_kpi.item_id]
    assert gate.unassessed_quality_standard_ids == [missing_qs.item_id]
