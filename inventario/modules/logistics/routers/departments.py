from fastapi import APIRouter, Depends

from inventario.core.api_client import InventoryApiClient
from inventario.core.dependencies import get_api_client
from inventario.modules.logistics.departments import available_options, validate_department
from inventario.modules.logistics.schemas import Department, DepartmentCreate, DepartmentOptions

router = APIRouter(
    prefix="/departments",
    tags=["Logistics"]
)


@router.get("", response_model=list[Department])
def list_departments(client: InventoryApiClient = Depends(get_api_client)):
    return client.get_departments()


@router.get("/options", response_model=DepartmentOptions)
def department_options(client: InventoryApiClient = Depends(get_api_client)):
    """
    Iconos y colores libres para un departamento nuevo.
    """
    return available_options(client.get_departments())


@router.post("", response_model=Department, status_code=201)
def create_department(
    payload: DepartmentCreate,
    client: InventoryApiClient = Depends(get_api_client)
):
    data = validate_department(payload, client.get_departments())
    return client.create_department(data.model_dump(exclude_none=True))
