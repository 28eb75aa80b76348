"""Database models"""
from boardops.models.component import Component
from boardops.models.supplier import Supplier, PriceHistory
from boardops.models.finished_product import FinishedProduct, BOMLine
from boardops.models.production_order import ProductionOrder, ProductionOrderItem
from boardops.models.stock_alert import StockAlert

__all__ = [
    # Inventory
    "Component",
    # Purchasing
    "Supplier",
    "PriceHistory",
    # Catalog
    "FinishedProduct",
    "BOMLine",
    # Production
    "ProductionOrder",
    "ProductionOrderItem",
    # Alerts
    "StockAlert",
]
