"""
Component model - raw electronic parts held in inventory

Components are owned by the inventory; the production engine references them
from BOM lines, order items and stock alerts but never creates or deletes them.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from boardops.db.base import Base


class Component(Base):
    """
    Inventory-tracked component (resistor, capacitor, IC, connector...).

    `quantity` is the single shared mutable resource of the planning engine.
    It must only be written through the inventory service so that concurrent
    consumption and receipts cannot lose updates.
    """
    __tablename__ = "components"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_components_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)  # resistor, capacitor, ic, connector...
    manufacturer = Column(String(100), nullable=True)

    # Stock
    quantity = Column(Integer, default=0, nullable=False)
    min_stock = Column(Integer, default=0, nullable=False)

    # Pricing
    unit_cost = Column(Numeric(18, 4), default=0, nullable=False)
    sell_price = Column(Numeric(18, 4), default=0, nullable=False)

    active = Column(Boolean, default=True, nullable=False)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    bom_lines = relationship("BOMLine", back_populates="component")
    price_history = relationship("PriceHistory", back_populates="component")

    def __repr__(self):
        return f"<Component {self.sku}: {self.quantity}>"

    @property
    def is_below_minimum(self):
        """True when stock is at or below the minimum threshold"""
        return (self.quantity or 0) <= (self.min_stock or 0)
