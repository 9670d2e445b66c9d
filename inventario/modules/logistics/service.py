# inventario/modules/logistics/service.py

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Union

from inventario.core.config import settings
from inventario.core.exceptions import StockValidationError
from inventario.modules.logistics.quantity import resolve_quantity
from inventario.modules.logistics.schemas import (
    DashboardData,
    InsufficientStock,
    InvalidQuantity,
    ManageStockRequest,
    ManageStockResponse,
    MovementCreated,
    Product,
    ProductSelection,
    QuantityToAdd,
    QuantityToRemove,
    ReconcileResult,
    ReconcileTotals,
    StockMovementCreate,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# Filas sin producto elegido (o con la opción "añadir nuevo")
PLACEHOLDER_IDS = {"", "add_new"}

RECIPIENT_OPTIONS = {
    "coffee_bar": "Barra de café",
    "kitchen_staff": "Personal de cocina",
    "restaurant_staff": "Personal de restaurante",
    "cleaning_staff": "Personal de limpieza",
    "storage": "Almacén",
    "management": "Gerencia",
    "special_event": "Evento especial",
    "other": "Otro (especificar)",
}

_DIGITS = re.compile(r"[0-9]+")

ProductIndex = Union[Dict[str, Product], Iterable[Product]]


def is_selected(selection: ProductSelection) -> bool:
    return bool(selection.product_id) and selection.product_id not in PLACEHOLDER_IDS


def parse_quantity(text: Optional[str]) -> Optional[int]:
    """
    Solo dígitos ASCII. Devuelve None si el texto no es un entero.
    """
    text = (text or "").strip()
    if not _DIGITS.fullmatch(text):
        return None
    return int(text)


def _index(products: ProductIndex) -> Dict[str, Product]:
    if isinstance(products, dict):
        return products
    return {p.id: p for p in products}


class LogisticsService:
    """
    Capa de lógica de negocio del módulo de logística
    """

    # =========================
    # VALIDACIÓN
    # =========================

    @staticmethod
    def find_duplicates(selections: List[ProductSelection]) -> List[str]:
        seen = set()
        duplicates: List[str] = []

        for sel in selections:
            if not is_selected(sel):
                continue
            if sel.product_id in seen and sel.product_id not in duplicates:
                duplicates.append(sel.product_id)
            seen.add(sel.product_id)

        return duplicates

    @staticmethod
    def validate_selections(
        selections: List[ProductSelection],
        products: ProductIndex,
        mode: str = "manage"
    ) -> ValidationResult:
        """
        Aplica las tres reglas en orden y acumula TODAS las violaciones:
        1. productos duplicados
        2. cantidades inválidas
        3. stock insuficiente (solo distribución / retiro)
        """
        index = _index(products)
        result = ValidationResult(
            duplicates=LogisticsService.find_duplicates(selections)
        )

        for row, sel in enumerate(selections):
            if not is_selected(sel):
                continue

            product = index.get(sel.product_id)
            name = product.name if product and product.name else sel.product_id
            result._names[sel.product_id] = name

            text = (sel.quantity or "").strip()
            quantity = parse_quantity(text)

            if not text:
                reason = "La cantidad es obligatoria"
            elif quantity is None:
                reason = f"La cantidad '{text}' no es un número entero válido"
            elif quantity <= 0:
                reason = "La cantidad debe ser mayor a cero"
            else:
                reason = None

            if reason:
                result.invalid_quantities.append(
                    InvalidQuantity(row_index=row, reason=reason)
                )
                continue

            removes = mode == "distribution" or (mode == "manage" and sel.action == "remove")
            if not removes:
                continue

            available = resolve_quantity(product)
            if quantity > available:
                result.insufficient_stock.append(
                    InsufficientStock(
                        row_index=row,
                        product_name=name,
                        available=available,
                        requested=quantity
                    )
                )

        return result

    @staticmethod
    def check_recipient(
        selections: List[ProductSelection],
        recipient: Optional[str],
        custom_recipient: Optional[str] = None
    ) -> List[str]:
        """
        Regla de campo obligatorio: si hay algún retiro, debe indicarse
        quién recibe. "other" exige especificar el nombre.
        """
        if not any(is_selected(s) and s.action == "remove" for s in selections):
            return []

        if not (recipient or "").strip():
            return ["Seleccione quién recibe los productos retirados"]

        if recipient == settings.OTHER_RECIPIENT and not (custom_recipient or "").strip():
            return ["Especifique el destinatario para la opción 'Otro'"]

        return []

    @staticmethod
    def check_movement(
        data: StockMovementCreate,
        products: ProductIndex
    ) -> ValidationResult:
        result = LogisticsService.validate_selections(data.products, products, data.type)

        if not data.stock_manager.strip():
            result.required_errors.append("Indique el responsable del movimiento")

        if data.type == "distribution" and not (data.department or "").strip():
            result.required_errors.append("Seleccione un departamento para la distribución")

        if not any(is_selected(s) for s in data.products):
            result.required_errors.append("Seleccione al menos un producto")

        return result

    # =========================
    # CONCILIACIÓN
    # =========================

    @staticmethod
    def reconcile(selections: List[ProductSelection]) -> ReconcileResult:
        """
        Separa las filas válidas en altas y bajas. Sin I/O: solo prepara
        el payload y los totales de confirmación.
        """
        result = ReconcileResult()
        totals: ReconcileTotals = result.totals

        for sel in selections:
            quantity = parse_quantity(sel.quantity)
            if not is_selected(sel) or not quantity:
                continue

            if sel.action == "add":
                result.to_add.append(
                    QuantityToAdd(product_id=sel.product_id, quantity_to_add=quantity)
                )
                totals.total_add += quantity
                totals.products_add += 1
            else:
                result.to_remove.append(
                    QuantityToRemove(product_id=sel.product_id, quantity_to_remove=quantity)
                )
                totals.total_remove += quantity
                totals.products_remove += 1

        return result

    @staticmethod
    def recipient_display_name(recipient: Optional[str], custom_recipient: Optional[str] = None) -> str:
        if recipient == settings.OTHER_RECIPIENT:
            return (custom_recipient or "").strip() or "Otro"
        if not recipient:
            return "No especificado"
        return RECIPIENT_OPTIONS.get(recipient, recipient)

    @staticmethod
    def build_confirmation_message(result: ReconcileResult, recipient_name: Optional[str] = None) -> str:
        totals = result.totals
        lines = []

        if result.to_add:
            lines.append(
                f"Se añadieron {totals.total_add} unidades a {totals.products_add} producto(s)"
            )
        if result.to_remove:
            lines.append(
                f"Se retiraron {totals.total_remove} unidades de {totals.products_remove} producto(s)"
            )
            lines.append(f"Retirado por: {recipient_name or 'No especificado'}")

        return "\n".join(lines) or "Stock actualizado"

    # =========================
    # FLUJOS CONTRA LA API
    # =========================

    @staticmethod
    def build_movement_payload(data: StockMovementCreate, products: ProductIndex) -> Dict:
        index = _index(products)
        lines = []

        for sel in data.products:
            if not is_selected(sel):
                continue

            product = index.get(sel.product_id)
            line = {
                "productId": sel.product_id,
                "productName": product.name if product else sel.product_id,
                "quantity": parse_quantity(sel.quantity),
                "unit": (product.unit if product else "") or sel.unit,
            }
            if product and product.price is not None:
                line["unitPrice"] = product.price
            lines.append(line)

        payload = {
            "type": data.type,
            "stockManager": data.stock_manager.strip(),
            "products": lines,
        }

        if data.type == "distribution":
            payload["department"] = data.department
        elif data.supplier:
            payload["supplier"] = data.supplier
        if data.notes:
            payload["notes"] = data.notes

        return payload

    @staticmethod
    def create_stock_movement(client, data: StockMovementCreate) -> MovementCreated:
        """
        Regla central para crear movimientos de stock.
        Siempre se vuelve a consultar el stock justo antes de validar.
        """
        products = client.get_products()

        result = LogisticsService.check_movement(data, products)
        if not result.is_valid:
            logger.info("Movimiento rechazado: %s", result.messages())
            raise StockValidationError(result)

        payload = LogisticsService.build_movement_payload(data, products)
        total_items = sum(line["quantity"] for line in payload["products"])

        response = client.create_movement(payload)
        logger.info(
            "Movimiento %s registrado (%s unidades)", data.type, total_items
        )

        return MovementCreated(
            success=True,
            message=response.get("message"),
            total_items=total_items,
            data=response.get("data"),
        )

    @staticmethod
    def manage_stock(client, request: ManageStockRequest) -> ManageStockResponse:
        products = client.get_products()

        result = LogisticsService.validate_selections(request.selections, products, "manage")
        result.required_errors += LogisticsService.check_recipient(
            request.selections, request.recipient, request.custom_recipient
        )

        reconciliation = LogisticsService.reconcile(request.selections)
        if not reconciliation.to_add and not reconciliation.to_remove:
            result.required_errors.append("Seleccione productos e ingrese cantidades")

        if not result.is_valid:
            raise StockValidationError(result)

        recipient_name = LogisticsService.recipient_display_name(
            request.recipient, request.custom_recipient
        )

        if reconciliation.to_add:
            client.add_quantities(reconciliation.to_add)
        if reconciliation.to_remove:
            client.remove_quantities(reconciliation.to_remove, taken_by=recipient_name)

        # Sin caché local: se vuelve a pedir todo
        refreshed = client.get_products()

        return ManageStockResponse(
            message=LogisticsService.build_confirmation_message(reconciliation, recipient_name),
            reconciliation=reconciliation,
            products=refreshed,
        )

    @staticmethod
    def quick_save_quantity(client, product_id: str, quantity: int) -> bool:
        """
        Sincronización de conveniencia: los errores se registran y se ignoran.
        """
        try:
            client.update_product(product_id, {"quantity": quantity})
            return True
        except Exception:
            logger.exception("Guardado rápido falló para %s", product_id)
            return False

    # =========================
    # DASHBOARD
    # =========================

    @staticmethod
    def load_dashboard(client, period: str = "month") -> DashboardData:
        """
        Las tres consultas van en paralelo; si una falla, falla todo.
        """
        with ThreadPoolExecutor(max_workers=3) as pool:
            stats = pool.submit(client.get_statistics, period)
            departments = pool.submit(client.get_departments)
            products = pool.submit(client.get_products)

            return DashboardData(
                stats=stats.result(),
                departments=departments.result(),
                out_of_stock=[p for p in products.result() if p.quantity == 0],
            )
