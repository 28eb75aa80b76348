"""
Stock alert model

Derived notification that a component fell to or below its minimum stock.
At most one ACTIVE alert exists per component; it is RESOLVED once stock
rises back above the threshold (purchase receipt).
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from boardops.db.base import Base


class StockAlert(Base):
    __tablename__ = "stock_alerts"

    id = Column(Integer, primary_key=True, index=True)
    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)

    # OUT_OF_STOCK, LOW_STOCK, REORDER_POINT
    alert_type = Column(String(20), nullable=False)
    # ACTIVE, RESOLVED
    status = Column(String(20), default="ACTIVE", nullable=False, index=True)

    # Snapshot at the time the alert was raised
    current_stock = Column(Integer, nullable=False)
    min_stock = Column(Integer, nullable=False)
    suggested_order_quantity = Column(Integer, nullable=False)
    preferred_supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    resolved_at = Column(DateTime, nullable=True)

    component = relationship("Component")
    preferred_supplier = relationship("Supplier")

    def __repr__(self):
        return f"<StockAlert {self.alert_type} component={self.component_id} ({self.status})>"
