from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from inventario.core.api_client import InventoryApiClient
from inventario.core.dependencies import get_api_client
from inventario.modules.logistics.analytics import stock_alerts, usage_analytics, usage_window_start
from inventario.modules.logistics.routers.departments import router as departments_router
from inventario.modules.logistics.routers.history import router as history_router
from inventario.modules.logistics.routers.stock_movements import router as stock_movements_router
from inventario.modules.logistics.schemas import (
    DashboardData,
    Product,
    StockAlert,
    UsageAnalytics,
)
from inventario.modules.logistics.service import LogisticsService

router = APIRouter(
    prefix="/logistics",
    tags=["Logistics"]
)

router.include_router(stock_movements_router)
router.include_router(history_router)
router.include_router(departments_router)


@router.get("/health")
def logistics_health():
    return {"status": "Logistics module OK"}


@router.get("/products", response_model=list[Product])
def list_products(client: InventoryApiClient = Depends(get_api_client)):
    return client.get_products()


@router.get("/products/alerts", response_model=list[StockAlert])
def product_alerts(client: InventoryApiClient = Depends(get_api_client)):
    return stock_alerts(client.get_products())


@router.get("/products/{product_id}/usage", response_model=UsageAnalytics)
def product_usage(
    product_id: str,
    previous_months: int = 3,
    client: InventoryApiClient = Depends(get_api_client)
):
    """
    Consumo mensual del producto y comparación con meses anteriores.
    """
    product = next((p for p in client.get_products() if p.id == product_id), None)
    if product is None:
        raise HTTPException(status_code=404, detail="Producto no encontrado")

    today = date.today()
    movements = client.get_all_movements(
        type="distribution",
        start_date=usage_window_start(today, previous_months).isoformat()
    )
    return usage_analytics(product, movements, today=today, previous_months=previous_months)


@router.get("/dashboard", response_model=DashboardData)
def dashboard(
    period: str = "month",
    client: InventoryApiClient = Depends(get_api_client)
):
    return LogisticsService.load_dashboard(client, period)
