# tracker/api/catalog.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tracker.api.deps import get_actor
from tracker.core.db import get_db
from tracker.core.rbac import Actor
from tracker.schemas.catalog import CatalogItemCreate, CatalogItemRead
from tracker.services.catalog_service import CatalogService

router = APIRouter(tags=["catalog"])


@router.post("/kpis", response_model=CatalogItemRead, status_code=status.HTTP_201_CREATED)
def create_kpi(body: CatalogItemCreate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    with db.begin():
        item = CatalogService(db).create_kpi(
            actor, reference=body.reference, name=body.name, description=body.description
        )
        return CatalogItemRead.model_validate(item)


@router.get("/kpis", response_model=list[CatalogItemRead])
def list_kpis(db: Session = Depends(get_db)):
    return CatalogService(db).list_kpis()


@router.post("/quality-standards", response_model=CatalogItemRead, status_code=status.HTTP_201_CREATED)
def create_quality_standard(
    body: CatalogItemCreate, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)
):
    with db.begin():
        item = CatalogService(db).create_quality_standard(
            actor, reference=body.reference, name=body.name, description=body.description
        )
        return CatalogItemRead.model_validate(item)


@router.get("/quality-standards", response_model=list[CatalogItemRead])
def list_quality_standards(db: Session = Depends(get_db)):
    return CatalogService(db).list_quality_standards()
