"""
Stock Alert & Purchasing Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class StockAlertResponse(BaseModel):
    id: int
    component_id: int
    alert_type: str
    status: str
    current_stock: int
    min_stock: int
    suggested_order_quantity: int
    preferred_supplier_id: Optional[int] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseSuggestionResponse(BaseModel):
    component_id: int
    sku: str
    name: str
    current_stock: int
    min_stock: int
    suggested_quantity: int
    preferred_supplier_id: int
    preferred_supplier_name: str
    estimated_cost: Decimal
    urgency: str

    class Config:
        from_attributes = True


class StockReceiptCreate(BaseModel):
    component_id: int
    quantity: int = Field(..., gt=0)


class StockReceiptResponse(BaseModel):
    component_id: int
    quantity: int = Field(..., description="Stock after the receipt")
    resolved_alert_ids: List[int]


class PriceRecordCreate(BaseModel):
    component_id: int
    supplier_id: int
    price: Decimal = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    source: str = "MANUAL"
    date: Optional[datetime] = None


class PriceRecordResponse(PriceRecordCreate):
    id: int
    date: datetime

    class Config:
        from_attributes = True
