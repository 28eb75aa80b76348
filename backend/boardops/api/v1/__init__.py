"""
API v1 Router - BoardOps
"""
from fastapi import APIRouter
from boardops.api.v1.endpoints import (
    finished_products,
    production_orders,
    stock_alerts,
)

router = APIRouter()

# Finished products, BOMs and producibility analysis
router.include_router(
    finished_products.router,
    prefix="/finished-products",
    tags=["finished-products"]
)

# Production Orders
router.include_router(
    production_orders.router,
    prefix="/production-orders",
    tags=["production"]
)

# Stock alerts & purchase suggestions
router.include_router(
    stock_alerts.router,
    prefix="/stock-alerts",
    tags=["stock-alerts"]
)
