"""
Production Orders API Endpoints

Orders to build finished products: PLANNED → IN_PROGRESS → COMPLETED,
with CANCELLED reachable from PLANNED and IN_PROGRESS.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from boardops.api.v1.deps import get_order_service
from boardops.core.status_config import get_allowed_production_order_transitions
from boardops.schemas.common import ERROR_RESPONSES
from boardops.schemas.production_order import (
    AvailabilityResponse,
    OrderDurationResponse,
    ProductionMetricsResponse,
    ProductionOrderCreate,
    ProductionOrderItemResponse,
    ProductionOrderResponse,
    ProductionOrderStatus,
    ProductionOrderUpdate,
)
from boardops.services.production_order_service import ProductionOrderService

router = APIRouter(responses=ERROR_RESPONSES)


@router.get("/", response_model=List[ProductionOrderResponse])
def list_production_orders(
    status_filter: Optional[ProductionOrderStatus] = Query(None, alias="status"),
    finished_product_id: Optional[int] = Query(None),
    active: bool = Query(False, description="Only PLANNED and IN_PROGRESS orders"),
    service: ProductionOrderService = Depends(get_order_service),
):
    if active:
        orders = service.list_active()
    elif status_filter is not None:
        orders = service.list_by_status(status_filter.value)
    elif finished_product_id is not None:
        orders = service.list_by_finished_product(finished_product_id)
    else:
        orders = service.list_orders()

    if finished_product_id is not None:
        orders = [o for o in orders if o.finished_product_id == finished_product_id]
    if status_filter is not None:
        orders = [o for o in orders if o.status == status_filter.value]
    return orders


@router.post("/", response_model=ProductionOrderResponse, status_code=status.HTTP_201_CREATED)
def create_production_order(
    data: ProductionOrderCreate,
    service: ProductionOrderService = Depends(get_order_service),
):
    """Create a PLANNED order; the BOM is exploded into order items"""
    payload = data.model_dump()
    return service.create(
        payload.pop("finished_product_id"),
        payload.pop("quantity"),
        payload.pop("planned_start_date"),
        payload.pop("planned_end_date"),
        payload.pop("priority"),
        **payload,
    )


@router.get("/metrics", response_model=ProductionMetricsResponse)
def production_metrics(service: ProductionOrderService = Depends(get_order_service)):
    return service.metrics()


@router.get("/duration", response_model=OrderDurationResponse)
def order_duration(
    finished_product_id: int = Query(...),
    quantity: int = Query(..., gt=0),
    service: ProductionOrderService = Depends(get_order_service),
):
    """Estimated minutes for an order: setup plus per-unit build time"""
    return OrderDurationResponse(
        finished_product_id=finished_product_id,
        quantity=quantity,
        estimated_duration=service.calculate_order_duration(finished_product_id, quantity),
    )


@router.get("/{order_id}", response_model=ProductionOrderResponse)
def get_production_order(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    return service.get_by_id(order_id)


@router.put("/{order_id}", response_model=ProductionOrderResponse)
def update_production_order(
    order_id: int,
    data: ProductionOrderUpdate,
    service: ProductionOrderService = Depends(get_order_service),
):
    return service.update_order(order_id, **data.model_dump(exclude_unset=True))


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_production_order(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    """Delete a COMPLETED or CANCELLED order"""
    service.delete_order(order_id)


@router.get("/{order_id}/items", response_model=List[ProductionOrderItemResponse])
def list_production_order_items(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    return service.list_items(order_id)


@router.get("/{order_id}/availability", response_model=AvailabilityResponse)
def check_production_order_availability(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    """Compare requirements with live stock. Advisory only."""
    return service.check_availability(order_id)


@router.get("/{order_id}/transitions")
def production_order_transitions(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    order = service.get_by_id(order_id)
    return {
        "order_id": order.id,
        "status": order.status,
        "allowed_transitions": get_allowed_production_order_transitions(order.status),
    }


@router.post("/{order_id}/start", response_model=ProductionOrderResponse)
def start_production_order(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    return service.start(order_id)


@router.post("/{order_id}/complete", response_model=ProductionOrderResponse)
def complete_production_order(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    """Complete the order and consume its components from stock"""
    return service.complete(order_id)


@router.post("/{order_id}/cancel", response_model=ProductionOrderResponse)
def cancel_production_order(
    order_id: int,
    service: ProductionOrderService = Depends(get_order_service),
):
    return service.cancel(order_id)
