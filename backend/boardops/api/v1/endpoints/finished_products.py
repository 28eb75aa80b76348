"""
Finished Products API Endpoints

Catalog of assembled products, their BOMs and producibility analysis.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from boardops.api.v1.deps import get_bom_service
from boardops.db.session import get_db
from boardops.exceptions import NotFoundError
from boardops.schemas.bom import (
    BOMLineCreate,
    BOMLineResponse,
    BOMLineUpdate,
    FinishedProductCreate,
    FinishedProductResponse,
    FinishedProductStatus,
    FinishedProductUpdate,
    ImportResult,
    ProductionAnalysisResponse,
    ProductionDashboardResponse,
    ProductionDataExport,
)
from boardops.schemas.common import ERROR_RESPONSES
from boardops.services.bom_service import BOMService
from boardops.services.production_analysis import analyze_production, get_dashboard_data

router = APIRouter(responses=ERROR_RESPONSES)


# ============================================================================
# Catalog-wide
# ============================================================================

@router.get("/dashboard", response_model=ProductionDashboardResponse)
def production_dashboard(db: Session = Depends(get_db)):
    """Totals, most used components and build capacity of active products"""
    return get_dashboard_data(db)


@router.get("/export", response_model=ProductionDataExport)
def export_production_data(service: BOMService = Depends(get_bom_service)):
    return service.export_production_data()


@router.post("/import", response_model=ImportResult)
def import_production_data(
    data: Dict[str, Any] = Body(...),
    service: BOMService = Depends(get_bom_service),
):
    """Replace the catalog with an exported document"""
    success = service.import_production_data(data)
    count = len(data.get("finished_products") or []) if success else 0
    return ImportResult(success=success, finished_products=count)


# ============================================================================
# Finished products
# ============================================================================

@router.get("/", response_model=List[FinishedProductResponse])
def list_finished_products(
    status_filter: Optional[FinishedProductStatus] = Query(None, alias="status"),
    service: BOMService = Depends(get_bom_service),
):
    return service.list_finished_products(status=status_filter.value if status_filter else None)


@router.post("/", response_model=FinishedProductResponse, status_code=status.HTTP_201_CREATED)
def create_finished_product(
    data: FinishedProductCreate,
    service: BOMService = Depends(get_bom_service),
):
    payload = data.model_dump()
    return service.create_finished_product(**payload)


@router.get("/{finished_product_id}", response_model=FinishedProductResponse)
def get_finished_product(
    finished_product_id: int,
    service: BOMService = Depends(get_bom_service),
):
    return service.require_finished_product(finished_product_id)


@router.put("/{finished_product_id}", response_model=FinishedProductResponse)
def update_finished_product(
    finished_product_id: int,
    data: FinishedProductUpdate,
    service: BOMService = Depends(get_bom_service),
):
    return service.update_finished_product(finished_product_id, **data.model_dump(exclude_unset=True))


@router.delete("/{finished_product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_finished_product(
    finished_product_id: int,
    service: BOMService = Depends(get_bom_service),
):
    service.delete_finished_product(finished_product_id)


@router.get("/{finished_product_id}/analysis", response_model=ProductionAnalysisResponse)
def analyze_finished_product(finished_product_id: int, db: Session = Depends(get_db)):
    """How many units current stock can build, shortages, unit cost and margin"""
    analysis = analyze_production(db, finished_product_id)
    if analysis is None:
        raise NotFoundError("FinishedProduct", finished_product_id)
    return analysis


# ============================================================================
# BOM lines
# ============================================================================

@router.post(
    "/{finished_product_id}/bom-lines",
    response_model=BOMLineResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_bom_line(
    finished_product_id: int,
    data: BOMLineCreate,
    service: BOMService = Depends(get_bom_service),
):
    return service.add_bom_line(finished_product_id, **data.model_dump())


@router.put("/{finished_product_id}/bom-lines/{line_id}", response_model=BOMLineResponse)
def update_bom_line(
    finished_product_id: int,
    line_id: int,
    data: BOMLineUpdate,
    service: BOMService = Depends(get_bom_service),
):
    return service.update_bom_line(finished_product_id, line_id, **data.model_dump(exclude_unset=True))


@router.delete("/{finished_product_id}/bom-lines/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_bom_line(
    finished_product_id: int,
    line_id: int,
    service: BOMService = Depends(get_bom_service),
):
    service.remove_bom_line(finished_product_id, line_id)
