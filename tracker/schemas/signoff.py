# tracker/schemas/signoff.py

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from tracker.domain.signoff import SignOffStatus
from tracker.models.deliverable import SignerRole
from tracker.schemas.common import StrictBaseModel
from tracker.schemas.deliverable import DeliverableRead


class AssessmentIn(StrictBaseModel):
    kind: Literal["kpi", "quality_standard"]
    item_id: UUID
    met: bool = Field(..., description="Was the KPI / quality standard criterion met for this deliverable?")


class SignRequest(StrictBaseModel):
    signer_role: SignerRole = Field(..., examples=["supplier", "customer"])

    assessments: list[AssessmentIn] = Field(
        default_factory=list,
        description="Customer only: outcome for every linked KPI / quality standard.",
    )
    kpi_ids: list[UUID] | None = Field(
        default=None,
        description="Customer only: replace the linked KPI set before assessing (removed links lose their assessment).",
    )
    quality_standard_ids: list[UUID] | None = Field(
        default=None,
        description="Customer only: replace the linked quality standard set before assessing.",
    )

    @model_validator(mode="after")
    def validate_supplier_payload(self):
        if self.signer_role == SignerRole.supplier:
            if self.assessments or self.kpi_ids is not None or self.quality_standard_ids is not None:
                raise ValueError("assessments / link changes are allowed only for signer_role='customer'")
        return self

    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "examples": [
                {"signer_role": "supplier"},
                {
                    "signer_role": "customer",
                    "assessments": [
                        {"kind": "kpi", "item_id": "44444444-4444-4444-4444-444444444444", "met": True},
                    ],
                },
            ]
        },
    }


class SignResponse(BaseModel):
    deliverable: DeliverableRead
    sign_off_status: SignOffStatus


class AssessmentItemRead(BaseModel):
    kind: Literal["kpi", "quality_standard"]
    item_id: UUID
    criteria_met: bool | None = None
    assessed_at: datetime | None = None
    assessed_by: UUID | None = None

    model_config = {"from_attributes": True}
