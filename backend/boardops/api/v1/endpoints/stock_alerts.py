"""
Stock Alerts API Endpoints

Shortage alerts, purchase suggestions and purchase receipts.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from boardops.api.v1.deps import get_alert_service
from boardops.schemas.common import ERROR_RESPONSES
from boardops.schemas.stock_alert import (
    PriceRecordCreate,
    PriceRecordResponse,
    PurchaseSuggestionResponse,
    StockAlertResponse,
    StockReceiptCreate,
    StockReceiptResponse,
)
from boardops.services.stock_alert_service import StockAlertService

router = APIRouter(responses=ERROR_RESPONSES)


@router.get("/", response_model=List[StockAlertResponse])
def list_stock_alerts(service: StockAlertService = Depends(get_alert_service)):
    """Scan stock, raise any new alerts and return all ACTIVE alerts"""
    return service.refresh_alerts()


@router.get("/purchase-suggestions", response_model=List[PurchaseSuggestionResponse])
def purchase_suggestions(service: StockAlertService = Depends(get_alert_service)):
    return service.generate_purchase_suggestions()


@router.post("/receipts", response_model=StockReceiptResponse)
def receive_stock(
    data: StockReceiptCreate,
    service: StockAlertService = Depends(get_alert_service),
):
    """Book received components; resolves the alert once stock is above minimum"""
    return service.receive_stock(data.component_id, data.quantity)


@router.post("/resolve", response_model=List[StockAlertResponse])
def resolve_recovered_alerts(service: StockAlertService = Depends(get_alert_service)):
    return service.resolve_recovered_alerts()


@router.post("/prices", response_model=PriceRecordResponse, status_code=status.HTTP_201_CREATED)
def record_price(
    data: PriceRecordCreate,
    service: StockAlertService = Depends(get_alert_service),
):
    return service.record_price(**data.model_dump())
