from craftflow.routers.auth import router as auth_router
from craftflow.routers.health import router as health_router
from craftflow.routers.notas import router as notas_router
from craftflow.routers.products import router as products_router
from craftflow.routers.reports import router as reports_router
from craftflow.routers.sales import router as sales_router
from craftflow.routers.stock_adjustments import router as stock_adjustments_router

__all__ = [
    "auth_router",
    "health_router",
    "notas_router",
    "products_router",
    "reports_router",
    "sales_router",
    "stock_adjustments_router",
]
