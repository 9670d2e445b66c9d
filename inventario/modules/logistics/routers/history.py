from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from inventario.core.api_client import InventoryApiClient
from inventario.core.dependencies import get_api_client
from inventario.modules.logistics.history import aggregate, filter_movements
from inventario.modules.logistics.schemas import HistoryFilters, HistoryResult, Period
from inventario.modules.logistics.utils import movements_to_frame

router = APIRouter(
    prefix="/history",
    tags=["Logistics"]
)


def history_filters(
    type: Literal["all", "stock_in", "distribution"] = "all",
    department: str = "all",
    period: Period = "all",
    q: str = "",
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
) -> HistoryFilters:
    return HistoryFilters(
        type=type,
        department=department,
        period=period,
        search_query=q,
        start_date=start_date,
        end_date=end_date,
    )


def _load(client: InventoryApiClient):
    movements = client.get_movements()
    departments = {d.id: d.name for d in client.get_departments()}
    return movements, departments


@router.get("", response_model=HistoryResult)
def get_history(
    filters: HistoryFilters = Depends(history_filters),
    client: InventoryApiClient = Depends(get_api_client)
):
    movements, departments = _load(client)
    return aggregate(movements, filters, departments=departments)


@router.get("/export")
def export_history(
    filters: HistoryFilters = Depends(history_filters),
    client: InventoryApiClient = Depends(get_api_client)
):
    movements, departments = _load(client)
    df = movements_to_frame(
        filter_movements(movements, filters, departments=departments),
        departments=departments
    )

    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="movimientos.csv"'}
    )
