"""
Finished product / BOM Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal
from enum import Enum


class FinishedProductStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DISCONTINUED = "DISCONTINUED"


class ProductCategory(str, Enum):
    SMD = "SMD"
    PTH = "PTH"
    MIXED = "MIXED"


class LineProcess(str, Enum):
    SMD = "SMD"
    PTH = "PTH"


# ============================================================================
# BOM Line Schemas
# ============================================================================

class BOMLineBase(BaseModel):
    component_id: int
    quantity: int = Field(..., gt=0, description="Units per finished product")
    process: LineProcess = LineProcess.SMD
    position: Optional[str] = Field(None, max_length=100, description="Reference designators, e.g. R1,R2")
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class BOMLineCreate(BOMLineBase):
    pass


class BOMLineUpdate(BaseModel):
    component_id: Optional[int] = None
    quantity: Optional[int] = Field(None, gt=0)
    process: Optional[LineProcess] = None
    position: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    class Config:
        use_enum_values = True


class BOMLineResponse(BOMLineBase):
    id: int
    finished_product_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Finished Product Schemas
# ============================================================================

class FinishedProductBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: ProductCategory = ProductCategory.SMD
    estimated_production_time: int = Field(0, ge=0, description="Minutes per unit")
    sell_price: Decimal = Field(Decimal("0"), ge=0)
    status: FinishedProductStatus = FinishedProductStatus.ACTIVE

    class Config:
        use_enum_values = True


class FinishedProductCreate(FinishedProductBase):
    bom_lines: List[BOMLineCreate] = Field(default_factory=list)


class FinishedProductUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[ProductCategory] = None
    estimated_production_time: Optional[int] = Field(None, ge=0)
    sell_price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[FinishedProductStatus] = None

    class Config:
        use_enum_values = True


class FinishedProductResponse(FinishedProductBase):
    id: int
    bom_lines: List[BOMLineResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Analysis & Dashboard
# ============================================================================

class MissingComponentResponse(BaseModel):
    component_id: int
    needed: int
    available: int
    missing: int

    class Config:
        from_attributes = True


class ProductionAnalysisResponse(BaseModel):
    """Producibility of a finished product against current stock"""
    finished_product_id: int
    max_producible: int
    missing_components: List[MissingComponentResponse]
    total_cost: Decimal = Field(..., description="Component cost of one unit")
    profit_margin: Decimal = Field(..., description="Percentage of sell price")

    class Config:
        from_attributes = True


class ComponentUsage(BaseModel):
    component_id: int
    usage_count: int


class ProductionCapacity(BaseModel):
    finished_product_id: int
    max_producible: int


class ProductionDashboardResponse(BaseModel):
    total_finished_products: int
    active_products: int
    total_production_value: Decimal
    most_used_components: List[ComponentUsage]
    production_capacity: List[ProductionCapacity]


class ProductionDataExport(BaseModel):
    finished_products: List[Dict[str, Any]]
    exported_at: datetime
    version: str


class ImportResult(BaseModel):
    success: bool
    finished_products: int = 0
