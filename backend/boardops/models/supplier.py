"""
Supplier and price history models

Owned by the purchasing side of the application. The stock alert generator
only reads them to pick a preferred supplier and estimate reorder cost.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from boardops.db.base import Base


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    contact_email = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    # ACTIVE, INACTIVE
    status = Column(String(20), default="ACTIVE", nullable=False, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    price_history = relationship("PriceHistory", back_populates="supplier")

    def __repr__(self):
        return f"<Supplier {self.id}: {self.name}>"


class PriceHistory(Base):
    """A price paid or quoted for a component by a supplier."""
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, index=True)
    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=False, index=True)

    price = Column(Numeric(18, 4), nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    # QUOTE, PURCHASE_ORDER, MANUAL
    source = Column(String(20), default="MANUAL", nullable=False)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    component = relationship("Component", back_populates="price_history")
    supplier = relationship("Supplier", back_populates="price_history")

    def __repr__(self):
        return f"<PriceHistory component={self.component_id} supplier={self.supplier_id}: {self.price}>"
