"""
API Dependencies

Per-request service instances bound to the request's database session.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from boardops.db.session import get_db
from boardops.services.bom_service import BOMService
from boardops.services.production_order_service import ProductionOrderService
from boardops.services.stock_alert_service import StockAlertService


def get_bom_service(db: Session = Depends(get_db)) -> BOMService:
    return BOMService(db)


def get_order_service(db: Session = Depends(get_db)) -> ProductionOrderService:
    return ProductionOrderService(db)


def get_alert_service(db: Session = Depends(get_db)) -> StockAlertService:
    return StockAlertService(db)
