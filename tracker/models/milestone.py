# tracker/models/milestone.py

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Date, DateTime, Numeric, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tracker.models.base import Base


class Milestone(Base):
    """Grouping of deliverables.

    No status/progress column: both are derived from the child deliverables
    on every read (see tracker.domain.milestone_rollup).
    """

    __tablename__ = "milestones"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    reference: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)

    # хранится как есть, расчётов маржи тут нет
    billable: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    deliverables: Mapped[list["Deliverable"]] = relationship(
        "Deliverable",
        back_populates="milestone",
        order_by="Deliverable.reference",
    )
