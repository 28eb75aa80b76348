"""
Finished product and BOM models

A finished product (an assembled board) carries a single-level bill of
materials: each BOM line points straight at a raw component.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from boardops.db.base import Base


class FinishedProduct(Base):
    """
    Sellable assembled product.

    Status: ACTIVE, INACTIVE, DISCONTINUED
    Category (assembly process): SMD, PTH, MIXED
    """
    __tablename__ = "finished_products"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(10), default="SMD", nullable=False)

    # Minutes to build one unit
    estimated_production_time = Column(Integer, default=0, nullable=False)
    sell_price = Column(Numeric(18, 4), default=0, nullable=False)
    status = Column(String(20), default="ACTIVE", nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Display order of the BOM is insertion order
    bom_lines = relationship(
        "BOMLine",
        back_populates="finished_product",
        cascade="all, delete-orphan",
        order_by="BOMLine.id",
    )
    production_orders = relationship("ProductionOrder", back_populates="finished_product")

    def __repr__(self):
        return f"<FinishedProduct {self.code}: {self.name}>"


class BOMLine(Base):
    """
    One component requirement per unit of a finished product.

    Process: SMD, PTH
    Position: board reference designator(s) such as R1, C5, U3
    """
    __tablename__ = "bom_lines"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_bom_lines_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    finished_product_id = Column(
        Integer, ForeignKey("finished_products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_id = Column(Integer, ForeignKey("components.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    process = Column(String(10), default="SMD", nullable=False)
    position = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    finished_product = relationship("FinishedProduct", back_populates="bom_lines")
    component = relationship("Component", back_populates="bom_lines")

    def __repr__(self):
        return f"<BOMLine {self.position or self.id}: {self.quantity} x component {self.component_id}>"
