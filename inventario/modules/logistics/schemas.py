from pydantic import (
    BaseModel,
    Field,
    PrivateAttr,
    computed_field,
    field_validator,
    model_validator
)
from typing import Any, Dict, List, Literal, Optional, Union
from datetime import date, datetime, timezone


MovementType = Literal["stock_in", "distribution"]
StockAction = Literal["add", "remove"]
ValidationMode = Literal["stock_in", "distribution", "manage"]
Period = Literal["today", "week", "month", "all", "custom"]


class CamelModel(BaseModel):
    """
    La API remota habla camelCase; aceptamos ambos nombres.
    """

    class Config:
        populate_by_name = True
        from_attributes = True


# =========================
# PRODUCTS
# =========================

class Product(CamelModel):
    id: str
    name: str = ""
    unit: str = ""
    quantity: int = Field(0, ge=0)
    category: Optional[str] = None
    price: Optional[float] = None
    low_stock_threshold: Optional[int] = Field(None, alias="lowStockThreshold")


class StockAlert(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    threshold: int
    level: Literal["out_of_stock", "low_stock"]


# =========================
# STOCK MOVEMENTS
# =========================

class LineItem(CamelModel):
    product_id: str = Field(..., alias="productId")
    product_name: str = Field("", alias="productName")
    quantity: int = Field(..., gt=0)
    unit: str = ""
    unit_price: Optional[float] = Field(None, alias="unitPrice")


def _coerce_timestamp(value: Any) -> Any:
    # Timestamps de Firestore: {"_seconds": ..., "_nanoseconds": ...}
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if seconds is not None:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
    return value


class Movement(CamelModel):
    """
    Movimiento registrado (entrada o distribución). Inmutable: las
    correcciones son movimientos nuevos.
    """

    id: str
    type: MovementType
    timestamp: datetime
    stock_manager: str = Field("", alias="stockManager")
    products: List[LineItem] = Field(default_factory=list)
    notes: Optional[str] = None
    supplier: Optional[str] = None
    department: Optional[str] = None

    class Config:
        populate_by_name = True
        from_attributes = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _fill_from_api(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        if not data.get("id") and data.get("movementId"):
            data["id"] = data["movementId"]

        if data.get("timestamp") is None:
            data["timestamp"] = data.get("createdAt") or data.get("date")
        data["timestamp"] = _coerce_timestamp(data["timestamp"])

        return data

    @computed_field
    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.products)

    @computed_field
    @property
    def total_value(self) -> Optional[float]:
        if self.type != "stock_in":
            return None

        priced = [i for i in self.products if i.unit_price is not None]
        if not priced:
            return None

        return round(sum(i.quantity * i.unit_price for i in priced), 2)


class ProductSelection(CamelModel):
    """
    Fila transitoria del formulario: producto + cantidad (texto) + acción.
    """

    product_id: Optional[str] = Field(None, alias="productId")
    quantity: str = ""
    unit: str = ""
    action: StockAction = "add"

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity_as_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)


class StockMovementCreate(CamelModel):
    type: MovementType
    department: Optional[str] = None
    supplier: Optional[str] = None
    stock_manager: str = Field("", alias="stockManager")
    notes: Optional[str] = None
    products: List[ProductSelection]


class MovementCreated(BaseModel):
    success: bool
    message: Optional[str] = None
    total_items: int
    data: Optional[Dict[str, Any]] = None


class ValidateRequest(CamelModel):
    mode: ValidationMode = "manage"
    selections: List[ProductSelection]
    recipient: Optional[str] = None
    custom_recipient: Optional[str] = Field(None, alias="customRecipient")


class ManageStockRequest(CamelModel):
    selections: List[ProductSelection]
    recipient: Optional[str] = None
    custom_recipient: Optional[str] = Field(None, alias="customRecipient")


class QuickSaveRequest(CamelModel):
    product_id: str = Field(..., alias="productId")
    quantity: int = Field(..., ge=0)


# =========================
# VALIDATION / RECONCILIATION
# =========================

class InvalidQuantity(BaseModel):
    row_index: int
    reason: str


class InsufficientStock(BaseModel):
    row_index: int
    product_name: str
    available: int
    requested: int


class ValidationResult(BaseModel):
    duplicates: List[str] = Field(default_factory=list)
    invalid_quantities: List[InvalidQuantity] = Field(default_factory=list)
    insufficient_stock: List[InsufficientStock] = Field(default_factory=list)
    required_errors: List[str] = Field(default_factory=list)

    _names: Dict[str, str] = PrivateAttr(default_factory=dict)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not (
            self.duplicates
            or self.invalid_quantities
            or self.insufficient_stock
            or self.required_errors
        )

    def messages(self) -> List[str]:
        """
        Un mensaje legible por cada violación (no solo la primera).
        """
        lines = [
            f"Producto duplicado: {self._names.get(pid, pid)}"
            for pid in self.duplicates
        ]
        lines += [
            f"Fila {iq.row_index + 1}: {iq.reason}"
            for iq in self.invalid_quantities
        ]
        lines += [
            f"Fila {s.row_index + 1}: no se pueden retirar {s.requested} de "
            f"{s.product_name} (solo hay {s.available} disponibles)"
            for s in self.insufficient_stock
        ]
        lines += list(self.required_errors)
        return lines


class QuantityToAdd(CamelModel):
    product_id: str = Field(..., alias="productId")
    quantity_to_add: int = Field(..., alias="quantityToAdd")


class QuantityToRemove(CamelModel):
    product_id: str = Field(..., alias="productId")
    quantity_to_remove: int = Field(..., alias="quantityToRemove")


class ReconcileTotals(BaseModel):
    total_add: int = 0
    total_remove: int = 0
    products_add: int = 0
    products_remove: int = 0


class ReconcileResult(BaseModel):
    to_add: List[QuantityToAdd] = Field(default_factory=list)
    to_remove: List[QuantityToRemove] = Field(default_factory=list)
    totals: ReconcileTotals = Field(default_factory=ReconcileTotals)


class ManageStockResponse(BaseModel):
    message: str
    reconciliation: ReconcileResult
    products: List[Product]


# =========================
# HISTORY
# =========================

class HistoryFilters(CamelModel):
    type: Union[MovementType, Literal["all"]] = "all"
    department: str = "all"
    period: Period = "all"
    search_query: str = Field("", alias="searchQuery")
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")


class HistorySection(BaseModel):
    title: str
    day: date
    data: List[Movement]


class HistorySummary(BaseModel):
    stock_in_count: int = 0
    distribution_count: int = 0
    units_in: int = 0
    units_out: int = 0


class HistoryResult(BaseModel):
    sections: List[HistorySection]
    summary: HistorySummary


# =========================
# DEPARTMENTS
# =========================

class Department(CamelModel):
    id: str
    name: str
    description: Optional[str] = ""
    icon: Optional[str] = None
    color: Optional[str] = None


class DepartmentCreate(CamelModel):
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class DepartmentOptions(BaseModel):
    icons: List[str]
    colors: List[str]


# =========================
# ANALYTICS / DASHBOARD
# =========================

class UsageStats(BaseModel):
    product_id: str
    product_name: str
    period: str
    year: int
    month: int
    total_used: int
    usage_count: int
    days_in_month: int
    average_daily_usage: float
    # None = sin consumo, el stock no se agota
    estimated_days_remaining: Optional[int] = None


class UsageComparison(BaseModel):
    compared_to: str
    usage_change: float
    trend: str
    current_month_total: int
    compared_month_total: int
    absolute_change: int


class UsageAnalytics(BaseModel):
    current_month: UsageStats
    previous_months: List[UsageStats]
    comparisons: List[UsageComparison]


class DashboardData(BaseModel):
    stats: Dict[str, Any]
    departments: List[Department]
    out_of_stock: List[Product]
