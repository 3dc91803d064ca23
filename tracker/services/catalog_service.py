# tracker/services/catalog_service.py
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from tracker.core.errors import InvalidFieldEdit
from tracker.core.rbac import Actor, Capability
from tracker.models.catalog import Kpi, QualityStandard

logger = logging.getLogger(__name__)


class CatalogService:
    """KPI / quality standard reference data that deliverables link to."""

    def __init__(self, db: Session):
        self.db = db

    def create_kpi(self, actor: Actor, *, reference: str, name: str, description: str | None = None) -> Kpi:
        return self._create(Kpi, actor, reference=reference, name=name, description=description)

    def create_quality_standard(
        self, actor: Actor, *, reference: str, name: str, description: str | None = None
    ) -> QualityStandard:
        return self._create(QualityStandard, actor, reference=reference, name=name, description=description)

    def list_kpis(self) -> list[Kpi]:
        return list(self.db.execute(select(Kpi).order_by(Kpi.reference)).scalars())

    def list_quality_standards(self) -> list[QualityStandard]:
        return list(self.db.execute(select(QualityStandard).order_by(QualityStandard.reference)).scalars())

    def _create(self, model, actor: Actor, *, reference: str, name: str, description: str | None):
        actor.ensure(Capability.manage_catalog)

        exists = self.db.execute(select(model.id).where(model.reference == reference)).scalar_one_or_none()
        if exists is not None:
            raise InvalidFieldEdit("reference", f"'{reference}' already exists")

        item = model(reference=reference, name=name, description=description)
        self.db.add(item)
        self.db.flush()
        logger.info("%s created id=%s ref=%s", model.__name__, item.id, item.reference)
        return item
