# tracker/schemas/field_edit.py
from __future__ import annotations

from typing import Annotated, Literal, Union
from uuid import UUID

from pydantic import Field

from tracker.schemas.common import StrictBaseModel


# ============================================================================
# One request model per editable field (see tracker.core.rbac.FIELD_CAPABILITY)
# ============================================================================


class NameEdit(StrictBaseModel):
    field: Literal["name"]
    value: str = Field(..., min_length=1, max_length=300, examples=["Solution design v2"])


class DescriptionEdit(StrictBaseModel):
    field: Literal["description"]
    value: str | None = Field(default=None, examples=["Updated scope"])


class ProgressEdit(StrictBaseModel):
    """Manual progress. Rejected while the deliverable has tasks (progress is derived)."""

    field: Literal["progress"]
    value: int = Field(..., ge=0, le=100, examples=[40])


class MilestoneEdit(StrictBaseModel):
    field: Literal["milestone_id"]
    value: UUID | None = Field(default=None, examples=["22222222-2222-2222-2222-222222222222"])


class KpiLinksEdit(StrictBaseModel):
    field: Literal["kpi_ids"]
    value: list[UUID] = Field(default_factory=list)


class QualityStandardLinksEdit(StrictBaseModel):
    field: Literal["quality_standard_ids"]
    value: list[UUID] = Field(default_factory=list)


DeliverableFieldEdit = Annotated[
    Union[
        NameEdit,
        DescriptionEdit,
        ProgressEdit,
        MilestoneEdit,
        KpiLinksEdit,
        QualityStandardLinksEdit,
    ],
    Field(discriminator="field"),
]
