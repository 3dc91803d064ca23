# tracker/schemas/transition.py
from __future__ import annotations

from typing import Literal

from pydantic import Field

from tracker.schemas.common import StrictBaseModel


class DeliverableTransitionRequest(StrictBaseModel):
    action: Literal["submit", "return", "accept"] = Field(
        ...,
        description=(
            "submit: in_progress/returned_for_more_work -> submitted_for_review; "
            "return: submitted_for_review -> returned_for_more_work; "
            "accept: submitted_for_review -> review_complete"
        ),
        examples=["submit"],
    )
