# tracker/models/registry.py
"""Import every ORM model so string relationship targets resolve and
Base.metadata is complete (app startup, alembic env, tests)."""

from tracker.models.base import Base  # noqa: F401
from tracker.models.catalog import Kpi, QualityStandard  # noqa: F401
from tracker.models.deliverable import Deliverable  # noqa: F401
from tracker.models.links import DeliverableKpi, DeliverableQualityStandard  # noqa: F401
from tracker.models.milestone import Milestone  # noqa: F401
from tracker.models.task import DeliverableTask  # noqa: F401
