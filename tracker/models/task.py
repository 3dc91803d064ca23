# tracker/models/task.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tracker.models.base import Base


class DeliverableTask(Base):
    """Checklist item of a deliverable. Completion feeds deliverable progress."""

    __tablename__ = "deliverable_tasks"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    deliverable_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("deliverables.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    owner: Mapped[str | None] = mapped_column(Text, nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # soft delete: строка остаётся, но в прогрессе не участвует
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

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

    deliverable: Mapped["Deliverable"] = relationship("Deliverable", back_populates="tasks")
