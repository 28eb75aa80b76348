"""
Production Order Pydantic Schemas

Orders to build N units of a finished product, and their component ledger.
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from boardops.schemas.bom import MissingComponentResponse


# ============================================================================
# Enums
# ============================================================================

class ProductionOrderStatus(str, Enum):
    """Production order status"""
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ProductionOrderPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


# ============================================================================
# Order Item Schemas
# ============================================================================

class ProductionOrderItemResponse(BaseModel):
    id: int
    production_order_id: int
    component_id: int
    bom_line_id: Optional[int] = None
    required_quantity: int
    allocated_quantity: int
    consumed_quantity: int
    shortfall_quantity: int
    status: str
    consumed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# Production Order Schemas
# ============================================================================

class ProductionOrderCreate(BaseModel):
    finished_product_id: int
    quantity: int = Field(..., gt=0)
    planned_start_date: datetime
    planned_end_date: datetime
    priority: ProductionOrderPriority = ProductionOrderPriority.MEDIUM
    estimated_duration: Optional[int] = Field(None, ge=0, description="Minutes; computed when omitted")
    assigned_operator: Optional[str] = Field(None, max_length=100)
    station: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    class Config:
        use_enum_values = True

    @model_validator(mode="after")
    def check_schedule(self):
        if self.planned_end_date < self.planned_start_date:
            raise ValueError("planned_end_date cannot be before planned_start_date")
        return self


class ProductionOrderUpdate(BaseModel):
    """Editable fields only; status changes go through start/complete/cancel"""
    priority: Optional[ProductionOrderPriority] = None
    planned_start_date: Optional[datetime] = None
    planned_end_date: Optional[datetime] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
    assigned_operator: Optional[str] = Field(None, max_length=100)
    station: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class ProductionOrderResponse(BaseModel):
    id: int
    finished_product_id: int
    quantity: int
    status: str
    priority: str
    planned_start_date: datetime
    planned_end_date: datetime
    actual_start_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    estimated_duration: int
    assigned_operator: Optional[str] = None
    station: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[ProductionOrderItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    order_id: int
    available: bool
    missing_components: List[MissingComponentResponse]

    class Config:
        from_attributes = True


class ProductionMetricsResponse(BaseModel):
    total_orders: int
    active_orders: int
    pending_orders: int
    completed_today: int
    average_completion_time: float = Field(..., description="Minutes")
    efficiency: float = Field(..., description="Planned / actual duration, percent, capped at 100")
    on_time_delivery: float = Field(..., description="Percent of completed orders finished by planned end")
    counts_by_status: Dict[str, int]

    class Config:
        from_attributes = True


class OrderDurationResponse(BaseModel):
    finished_product_id: int
    quantity: int
    estimated_duration: int
