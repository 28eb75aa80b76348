"""Status Configuration and Transition Rules

This module defines valid status values and allowed transitions for
Production Orders, their component items, finished products and stock
alerts. Status transitions are validated to prevent invalid state changes.
"""
from enum import Enum
from typing import Dict, List, Set


# =============================================================================
# Production Order Status
# =============================================================================

class ProductionOrderStatus(str, Enum):
    """Valid status values for Production Orders"""
    PLANNED = "PLANNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Allowed transitions: current_status -> set of allowed next statuses
PRODUCTION_ORDER_TRANSITIONS: Dict[str, Set[str]] = {
    ProductionOrderStatus.PLANNED: {
        ProductionOrderStatus.IN_PROGRESS,
        ProductionOrderStatus.CANCELLED,
    },
    ProductionOrderStatus.IN_PROGRESS: {
        ProductionOrderStatus.COMPLETED,
        ProductionOrderStatus.CANCELLED,
    },
    ProductionOrderStatus.COMPLETED: set(),  # Terminal
    ProductionOrderStatus.CANCELLED: set(),  # Terminal
}

ACTIVE_PRODUCTION_ORDER_STATUSES: Set[str] = {
    ProductionOrderStatus.PLANNED,
    ProductionOrderStatus.IN_PROGRESS,
}

TERMINAL_PRODUCTION_ORDER_STATUSES: Set[str] = {
    ProductionOrderStatus.COMPLETED,
    ProductionOrderStatus.CANCELLED,
}


class ProductionOrderPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


def get_allowed_production_order_transitions(current_status: str) -> List[str]:
    """Get list of allowed next statuses for a production order"""
    return sorted(str(s.value) for s in PRODUCTION_ORDER_TRANSITIONS.get(current_status, set()))


def is_valid_production_order_transition(current_status: str, new_status: str) -> bool:
    """Check if a production order status transition is valid.

    Unlike an edit form, a lifecycle operation never treats "no change" as
    valid: starting an order that is already in progress is an error.
    """
    allowed = PRODUCTION_ORDER_TRANSITIONS.get(current_status, set())
    return new_status in allowed


# =============================================================================
# Production Order Item Status
# =============================================================================

class OrderItemStatus(str, Enum):
    """Valid status values for Production Order Items"""
    PENDING = "PENDING"
    ALLOCATED = "ALLOCATED"
    CONSUMED = "CONSUMED"


# =============================================================================
# Finished Product Status
# =============================================================================

class FinishedProductStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DISCONTINUED = "DISCONTINUED"


class ProcessType(str, Enum):
    """Assembly process of a BOM line (MIXED only applies to a whole product)"""
    SMD = "SMD"
    PTH = "PTH"
    MIXED = "MIXED"


BOM_LINE_PROCESSES: Set[str] = {ProcessType.SMD, ProcessType.PTH}


# =============================================================================
# Stock Alerts & Purchasing
# =============================================================================

class StockAlertType(str, Enum):
    OUT_OF_STOCK = "OUT_OF_STOCK"
    LOW_STOCK = "LOW_STOCK"
    REORDER_POINT = "REORDER_POINT"


class StockAlertStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"


class PurchaseUrgency(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# Sort weight, most urgent first
URGENCY_RANK: Dict[str, int] = {
    PurchaseUrgency.CRITICAL: 4,
    PurchaseUrgency.HIGH: 3,
    PurchaseUrgency.MEDIUM: 2,
    PurchaseUrgency.LOW: 1,
}


class SupplierStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class PriceSource(str, Enum):
    QUOTE = "QUOTE"
    PURCHASE_ORDER = "PURCHASE_ORDER"
    MANUAL = "MANUAL"
