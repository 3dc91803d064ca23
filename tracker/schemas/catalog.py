# tracker/schemas/catalog.py

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from tracker.schemas.common import StrictBaseModel


class CatalogItemCreate(StrictBaseModel):
    reference: str = Field(..., min_length=1, max_length=64, examples=["KPI-01"])
    name: str = Field(..., min_length=1, max_length=300, examples=["Response time under 2s"])
    description: str | None = None


class CatalogItemRead(BaseModel):
    id: UUID
    reference: str
    name: str
    description: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
