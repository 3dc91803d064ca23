# tracker/schemas/deliverable.py

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from tracker.domain.signoff import SignOffStatus, sign_off_status
from tracker.models.deliverable import Deliverable, DeliverableStatus
from tracker.schemas.common import StrictBaseModel


class DeliverableCreate(StrictBaseModel):
    reference: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Human reference, unique across the tracker.",
        examples=["D-001"],
    )
    name: str = Field(..., min_length=1, max_length=300, examples=["Solution design document"])
    description: str | None = Field(default=None, examples=["Architecture and integration design"])
    milestone_id: UUID | None = Field(default=None, examples=["22222222-2222-2222-2222-222222222222"])
    progress: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Manual progress. Ignored as soon as the deliverable has tasks.",
    )
    kpi_ids: list[UUID] = Field(default_factory=list)
    quality_standard_ids: list[UUID] = Field(default_factory=list)

    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "examples": [
                {
                    "reference": "D-001",
                    "name": "Solution design document",
                    "milestone_id": "22222222-2222-2222-2222-222222222222",
                    "kpi_ids": [],
                    "quality_standard_ids": [],
                }
            ]
        },
    }


class SignatureRead(BaseModel):
    signed_by: UUID
    signed_at: datetime


class DeliverableRead(BaseModel):
    id: UUID
    reference: str
    name: str
    description: str | None = None

    progress: int
    status: DeliverableStatus
    milestone_id: UUID | None = None

    kpi_ids: list[UUID]
    quality_standard_ids: list[UUID]

    supplier_signature: SignatureRead | None = None
    customer_signature: SignatureRead | None = None
    sign_off_status: SignOffStatus

    submitted_at: datetime | None = None
    submitted_by: UUID | None = None
    delivered_at: datetime | None = None
    delivered_by: UUID | None = None

    row_version: int
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, d: Deliverable) -> "DeliverableRead":
        supplier = None
        if d.supplier_signed_at is not None:
            supplier = SignatureRead(signed_by=d.supplier_signed_by, signed_at=d.supplier_signed_at)
        customer = None
        if d.customer_signed_at is not None:
            customer = SignatureRead(signed_by=d.customer_signed_by, signed_at=d.customer_signed_at)

        return cls(
            id=d.id,
            reference=d.reference,
            name=d.name,
            description=d.description,
            progress=d.progress,
            status=DeliverableStatus(d.status),
            milestone_id=d.milestone_id,
            kpi_ids=sorted((link.kpi_id for link in d.kpi_links), key=str),
            quality_standard_ids=sorted((link.quality_standard_id for link in d.quality_standard_links), key=str),
            supplier_signature=supplier,
            customer_signature=customer,
            sign_off_status=sign_off_status(d),
            submitted_at=d.submitted_at,
            submitted_by=d.submitted_by,
            delivered_at=d.delivered_at,
            delivered_by=d.delivered_by,
            row_version=d.row_version,
            created_by=d.created_by,
            created_at=d.created_at,
            updated_at=d.updated_at,
        )
