# tracker/schemas/task.py

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from tracker.schemas.common import StrictBaseModel


class TaskCreate(StrictBaseModel):
    name: str = Field(min_length=1, max_length=300)
    owner: str | None = None
    comment: str | None = None
    is_complete: bool = False


class TaskUpdate(StrictBaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=300)
    owner: Optional[str] = None
    comment: Optional[str] = None
    # completion меняется только через /toggle, чтобы прогресс пересчитывался

    @model_validator(mode="after")
    def validate_not_empty(self):
        if self.name is None and self.owner is None and self.comment is None:
            raise ValueError("at least one of name / owner / comment is required")
        return self


class TaskToggle(StrictBaseModel):
    complete: bool


class TaskReorder(StrictBaseModel):
    task_ids: list[UUID] = Field(..., description="Every live task of the deliverable, in the new order.")


class TaskRead(BaseModel):
    id: UUID
    deliverable_id: UUID
    name: str
    owner: str | None = None
    comment: str | None = None
    is_complete: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskMutationResponse(BaseModel):
    task: TaskRead
    deliverable_id: UUID
    recomputed_progress: int
    deliverable_status: str
