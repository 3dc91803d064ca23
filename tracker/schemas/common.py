# tracker/schemas/common.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StrictBaseModel(BaseModel):
    """Strict request models: unknown keys in a body are a 422, not silently dropped."""

    model_config = ConfigDict(extra="forbid")


class ErrorRead(BaseModel):
    detail: str
    error: str
