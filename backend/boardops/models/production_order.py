"""
Production Order model

Production orders track the build of N units of a finished product.
Integrates with:
- Finished products (BOM exploded into order items at creation)
- Components (consumed from inventory at completion)
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from boardops.db.base import Base


class ProductionOrder(Base):
    """
    Production Order - the core planning entity.

    Lifecycle: PLANNED → IN_PROGRESS → COMPLETED
    PLANNED and IN_PROGRESS orders may also be CANCELLED.
    """
    __tablename__ = "production_orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_production_orders_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    finished_product_id = Column(Integer, ForeignKey("finished_products.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)

    # Status: PLANNED, IN_PROGRESS, COMPLETED, CANCELLED
    status = Column(String(20), default="PLANNED", nullable=False, index=True)

    # Priority: LOW, MEDIUM, HIGH, URGENT
    priority = Column(String(10), default="MEDIUM", nullable=False)

    # Scheduling
    planned_start_date = Column(DateTime, nullable=False)
    planned_end_date = Column(DateTime, nullable=False)
    actual_start_date = Column(DateTime, nullable=True)
    actual_end_date = Column(DateTime, nullable=True)

    # Minutes, setup included
    estimated_duration = Column(Integer, default=0, nullable=False)

    # Assignment
    assigned_operator = Column(String(100), nullable=True)
    station = Column(String(100), nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    finished_product = relationship("FinishedProduct", back_populates="production_orders")
    items = relationship(
        "ProductionOrderItem",
        back_populates="production_order",
        cascade="all, delete-orphan",
        order_by="ProductionOrderItem.id",
    )

    def __repr__(self):
        return f"<ProductionOrder {self.id}: {self.quantity} x product {self.finished_product_id} ({self.status})>"

    @property
    def is_terminal(self):
        return self.status in ("COMPLETED", "CANCELLED")

    @property
    def actual_duration_minutes(self):
        """Minutes between actual start and end, None until both are set"""
        if not self.actual_start_date or not self.actual_end_date:
            return None
        return (self.actual_end_date - self.actual_start_date).total_seconds() / 60

    @property
    def is_on_time(self):
        """True if finished no later than planned (None while unfinished)"""
        if not self.actual_end_date or not self.planned_end_date:
            return None
        return self.actual_end_date <= self.planned_end_date


class ProductionOrderItem(Base):
    """
    Component requirement of one production order (BOM explosion result).

    required_quantity is frozen when the order is created; later BOM edits do
    not change it. consumed_quantity is written once, at completion.
    shortfall_quantity records how much of the requirement could not actually
    be drawn because stock ran out (stock is floored at zero).
    """
    __tablename__ = "production_order_items"
    __table_args__ = (
        CheckConstraint("consumed_quantity <= required_quantity", name="ck_order_items_consumed_le_required"),
    )

    id = Column(Integer, primary_key=True, index=True)
    production_order_id = Column(
        Integer, ForeignKey("production_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)
    bom_line_id = Column(Integer, nullable=True)  # Source line, informational only

    required_quantity = Column(Integer, nullable=False)
    allocated_quantity = Column(Integer, default=0, nullable=False)
    consumed_quantity = Column(Integer, default=0, nullable=False)
    shortfall_quantity = Column(Integer, default=0, nullable=False)

    # Status: PENDING, ALLOCATED, CONSUMED
    status = Column(String(20), default="PENDING", nullable=False)

    consumed_at = Column(DateTime, nullable=True)

    production_order = relationship("ProductionOrder", back_populates="items")
    component = relationship("Component")

    def __repr__(self):
        return f"<ProductionOrderItem order={self.production_order_id} component={self.component_id}: {self.required_quantity} ({self.status})>"
