# tracker/models/deliverable.py

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tracker.models.base import Base

if TYPE_CHECKING:
    from tracker.models.links import DeliverableKpi, DeliverableQualityStandard
    from tracker.models.milestone import Milestone
    from tracker.models.task import DeliverableTask


class DeliverableStatus(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    submitted_for_review = "submitted_for_review"
    returned_for_more_work = "returned_for_more_work"
    review_complete = "review_complete"
    # terminal: both signatures present
    signed = "signed"


class SignerRole(str, enum.Enum):
    supplier = "supplier"
    customer = "customer"


class Deliverable(Base):
    __tablename__ = "deliverables"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s.value}'" for s in DeliverableStatus) + ")",
            name="ck_deliverables_status_allowed",
        ),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_deliverables_progress_range"),
        CheckConstraint(
            "(supplier_signed_at IS NULL AND customer_signed_at IS NULL) "
            "OR status IN ('review_complete', 'signed')",
            name="ck_deliverables_signature_status",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # человекочитаемый номер (D-001 и т.п.)
    reference: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default=DeliverableStatus.not_started.value,
    )

    milestone_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("milestones.id", ondelete="SET NULL"),
        nullable=True,
    )

    supplier_signed_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    supplier_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    customer_signed_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    customer_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # workflow audit: last submit for review, final signature
    submitted_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by: Mapped[UUID] = mapped_column(Uuid, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    row_version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # UPDATE / DELETE carry "WHERE row_version = <loaded>"; writers bump it themselves
    __mapper_args__ = {"version_id_col": row_version, "version_id_generator": False}

    milestone: Mapped[Optional["Milestone"]] = relationship("Milestone", back_populates="deliverables")

    tasks: Mapped[list["DeliverableTask"]] = relationship(
        "DeliverableTask",
        back_populates="deliverable",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DeliverableTask.sort_order",
    )
    kpi_links: Mapped[list["DeliverableKpi"]] = relationship(
        "DeliverableKpi",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    quality_standard_links: Mapped[list["DeliverableQualityStandard"]] = relationship(
        "DeliverableQualityStandard",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def live_tasks(self) -> list[DeliverableTask]:
        return sorted((t for t in self.tasks if not t.is_deleted), key=lambda t: t.sort_order)

    def signature_at(self, signer_role: SignerRole) -> datetime | None:
        if signer_role is SignerRole.supplier:
            return self.supplier_signed_at
        return self.customer_signed_at
