# tracker/models/links.py
"""Deliverable <-> KPI / quality standard links.

A link exists independently of its assessment: criteria_met stays NULL until
the customer assesses it during sign-off. Deleting the link row discards the
assessment with it.
"""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tracker.models.base import Base


class DeliverableKpi(Base):
    __tablename__ = "deliverable_kpis"

    deliverable_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("deliverables.id", ondelete="CASCADE"),
        primary_key=True,
    )
    kpi_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("kpis.id", ondelete="CASCADE"),
        primary_key=True,
    )

    criteria_met: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    assessed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assessed_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    @property
    def item_id(self) -> UUID:
        return self.kpi_id


class DeliverableQualityStandard(Base):
    __tablename__ = "deliverable_quality_standards"

    deliverable_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("deliverables.id", ondelete="CASCADE"),
        primary_key=True,
    )
    quality_standard_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("quality_standards.id", ondelete="CASCADE"),
        primary_key=True,
    )

    criteria_met: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    assessed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assessed_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    @property
    def item_id(self) -> UUID:
        return self.quality_standard_id
