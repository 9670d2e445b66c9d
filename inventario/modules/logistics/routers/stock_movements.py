from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from inventario.core.api_client import InventoryApiClient
from inventario.core.dependencies import get_api_client
from inventario.modules.logistics.schemas import (
    ManageStockRequest,
    ManageStockResponse,
    MovementCreated,
    ProductSelection,
    QuickSaveRequest,
    StockMovementCreate,
    ValidateRequest,
    ValidationResult,
)
from inventario.modules.logistics.service import LogisticsService
from inventario.modules.logistics.utils import read_excel, selections_from_frame

router = APIRouter(
    prefix="/stock-movements",
    tags=["Logistics"]
)


@router.post("/validate", response_model=ValidationResult)
def validate_stock_movement(
    payload: ValidateRequest,
    client: InventoryApiClient = Depends(get_api_client)
):
    """
    Valida las filas contra el stock recién consultado, sin registrar nada.
    """
    products = client.get_products()
    result = LogisticsService.validate_selections(payload.selections, products, payload.mode)
    result.required_errors += LogisticsService.check_recipient(
        payload.selections, payload.recipient, payload.custom_recipient
    )
    return result


@router.post("/", response_model=MovementCreated, status_code=201)
def create_stock_movement(
    payload: StockMovementCreate,
    client: InventoryApiClient = Depends(get_api_client)
):
    """
    Crear movimiento de stock (entrada o distribución)
    """
    return LogisticsService.create_stock_movement(client, payload)


@router.post("/manage", response_model=ManageStockResponse)
def manage_stock(
    payload: ManageStockRequest,
    client: InventoryApiClient = Depends(get_api_client)
):
    return LogisticsService.manage_stock(client, payload)


@router.post("/quick-save")
def quick_save(
    payload: QuickSaveRequest,
    client: InventoryApiClient = Depends(get_api_client)
):
    saved = LogisticsService.quick_save_quantity(client, payload.product_id, payload.quantity)
    return {"saved": saved}


@router.post("/import", response_model=list[ProductSelection])
def import_selections(file: UploadFile = File(...)):
    """
    Carga las filas del formulario desde una hoja Excel o CSV.
    """
    try:
        df = read_excel(file.file, file.filename or "")
        return selections_from_frame(df)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
