"""
Test data factories for BoardOps.

Provides functions to create test entities with sensible defaults.

Usage:
    from tests.factories import create_test_component, create_test_finished_product

    def test_something(db_session):
        resistor = create_test_component(db_session, quantity=100)
        board = create_test_finished_product(db_session, bom=[(resistor, 4)])
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session


# =============================================================================
# SEQUENCE MANAGEMENT
# =============================================================================

_sequences: Dict[str, int] = {}


def reset_sequences():
    """Reset all sequences. Call between tests for predictable codes."""
    global _sequences
    _sequences = {}


def _next(name: str) -> int:
    """Get next sequence number for a given entity type."""
    _sequences[name] = _sequences.get(name, 0) + 1
    return _sequences[name]


# =============================================================================
# INVENTORY
# =============================================================================

def create_test_component(
    db: Session,
    sku: Optional[str] = None,
    quantity: int = 100,
    min_stock: int = 10,
    unit_cost=Decimal("0.10"),
    **overrides
) -> "Component":
    """
    Create a test component.

    Args:
        db: Database session
        sku: Component SKU (auto-generated if not provided)
        quantity: Stock on hand
        min_stock: Alert threshold
        unit_cost: Cost of one unit
        **overrides: Additional field overrides

    Returns:
        Created Component instance
    """
    from boardops.models.component import Component

    seq = _next("component")
    component = Component(
        sku=sku or f"CMP-{seq:04d}",
        name=overrides.pop("name", f"Test Component {seq}"),
        category=overrides.pop("category", "resistor"),
        quantity=quantity,
        min_stock=min_stock,
        unit_cost=Decimal(str(unit_cost)),
        sell_price=Decimal(str(overrides.pop("sell_price", "0.25"))),
        active=overrides.pop("active", True),
        **overrides
    )
    db.add(component)
    db.flush()
    return component


# =============================================================================
# PURCHASING
# =============================================================================

def create_test_supplier(
    db: Session,
    name: Optional[str] = None,
    status: str = "ACTIVE",
    **overrides
) -> "Supplier":
    from boardops.models.supplier import Supplier

    seq = _next("supplier")
    supplier = Supplier(
        name=name or f"Test Supplier {seq}",
        status=status,
        **overrides
    )
    db.add(supplier)
    db.flush()
    return supplier


def create_test_price(
    db: Session,
    component,
    supplier,
    price=Decimal("0.05"),
    date: Optional[datetime] = None,
    **overrides
) -> "PriceHistory":
    from boardops.models.supplier import PriceHistory

    entry = PriceHistory(
        component_id=component.id,
        supplier_id=supplier.id,
        price=Decimal(str(price)),
        quantity=overrides.pop("quantity", 100),
        source=overrides.pop("source", "QUOTE"),
        date=date or datetime.utcnow(),
        **overrides
    )
    db.add(entry)
    db.flush()
    return entry


# =============================================================================
# CATALOG
# =============================================================================

def create_test_finished_product(
    db: Session,
    code: Optional[str] = None,
    bom: Iterable[Tuple["Component", int]] = (),
    sell_price=Decimal("25.00"),
    estimated_production_time: int = 15,
    status: str = "ACTIVE",
    **overrides
) -> "FinishedProduct":
    """
    Create a finished product with a BOM.

    Args:
        db: Database session
        code: Product code (auto-generated if not provided)
        bom: (component, quantity per unit) pairs
        sell_price: Sell price of one unit
        estimated_production_time: Minutes per unit
        status: ACTIVE, INACTIVE or DISCONTINUED

    Returns:
        Created FinishedProduct instance with bom_lines loaded
    """
    from boardops.models.finished_product import FinishedProduct, BOMLine

    seq = _next("finished_product")
    product = FinishedProduct(
        code=code or f"PCB-{seq:04d}",
        name=overrides.pop("name", f"Test Board {seq}"),
        category=overrides.pop("category", "SMD"),
        estimated_production_time=estimated_production_time,
        sell_price=Decimal(str(sell_price)),
        status=status,
        **overrides
    )
    db.add(product)
    db.flush()

    for position, (component, quantity) in enumerate(bom, start=1):
        product.bom_lines.append(BOMLine(
            finished_product_id=product.id,
            component_id=component.id,
            quantity=quantity,
            process="SMD",
            position=f"U{position}",
        ))
    db.flush()
    return product


# =============================================================================
# PRODUCTION
# =============================================================================

def create_test_production_order(
    db: Session,
    finished_product,
    quantity: int = 1,
    status: str = "PLANNED",
    **overrides
) -> "ProductionOrder":
    """
    Create a production order directly (bypassing the service), with one
    item per BOM line of the finished product.
    """
    from boardops.models.production_order import ProductionOrder, ProductionOrderItem

    start = overrides.pop("planned_start_date", datetime.utcnow())
    order = ProductionOrder(
        finished_product_id=finished_product.id,
        quantity=quantity,
        status=status,
        priority=overrides.pop("priority", "MEDIUM"),
        planned_start_date=start,
        planned_end_date=overrides.pop("planned_end_date", start + timedelta(hours=8)),
        estimated_duration=overrides.pop("estimated_duration", 60),
        **overrides
    )
    for line in finished_product.bom_lines:
        order.items.append(ProductionOrderItem(
            component_id=line.component_id,
            bom_line_id=line.id,
            required_quantity=line.quantity * quantity,
            status="PENDING",
        ))
    db.add(order)
    db.flush()
    return order


def planned_window(hours: int = 8) -> Tuple[datetime, datetime]:
    """A planned start/end pair beginning now."""
    start = datetime.utcnow()
    return start, start + timedelta(hours=hours)
