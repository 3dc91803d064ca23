# tracker/domain/signoff.py
"""Dual-signature sign-off: derived status and the customer assessment gate."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Protocol
from uuid import UUID


class SignOffStatus(str, enum.Enum):
    not_signed = "not_signed"
    awaiting_supplier = "awaiting_supplier"
    awaiting_customer = "awaiting_customer"
    signed = "signed"


class SignedLike(Protocol):
    supplier_signed_at: datetime | None
    customer_signed_at: datetime | None


class AssessableLink(Protocol):
    criteria_met: bool | None

    @property
    def item_id(self) -> UUID: ...


def sign_off_status(deliverable: SignedLike) -> SignOffStatus:
    supplier = deliverable.supplier_signed_at is not None
    customer = deliverable.customer_signed_at is not None

    if supplier and customer:
        return SignOffStatus.signed
    if supplier:
        return SignOffStatus.awaiting_customer
    if customer:
        return SignOffStatus.awaiting_supplier
    return SignOffStatus.not_signed


def is_fully_signed(deliverable: SignedLike) -> bool:
    return sign_off_status(deliverable) is SignOffStatus.signed


def has_any_signature(deliverable: SignedLike) -> bool:
    return sign_off_status(deliverable) is not SignOffStatus.not_signed


@dataclass(frozen=True)
class GateResult:
    unassessed_kpi_ids: list[UUID]
    unassessed_quality_standard_ids: list[UUID]

    @property
    def is_open(self) -> bool:
        return not self.unassessed_kpi_ids and not self.unassessed_quality_standard_ids


def unassessed(links: Iterable[AssessableLink]) -> list[UUID]:
    return [link.item_id for link in links if link.criteria_met is None]


def evaluate_gate(
    kpi_links: Iterable[AssessableLink],
    quality_standard_links: Iterable[AssessableLink],
) -> GateResult:
    """Customer gate: every *currently* linked item needs a met/not-met outcome."""
    return GateResult(
        unassessed_kpi_ids=unassessed(kpi_links),
        unassessed_quality_standard_ids=unassessed(quality_standard_links),
    )
