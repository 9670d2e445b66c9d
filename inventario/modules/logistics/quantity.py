# inventario/modules/logistics/quantity.py

import logging
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from inventario.modules.logistics.schemas import Product

logger = logging.getLogger(__name__)

# Orden de preferencia: la API no usa siempre el mismo nombre de campo
QUANTITY_KEYS = ("quantity", "q", "stock")


def _get(record: Any, key: str) -> Any:
    if isinstance(record, dict):
        return record.get(key)
    return getattr(record, key, None)


def _as_quantity(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None

    if not isinstance(value, (int, float, str)):
        return None

    try:
        number = int(float(value.strip()) if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None

    return number if number >= 0 else None


def resolve_quantity(product: Any) -> int:
    """
    Cantidad actual canónica de un producto: `quantity`, luego `q`,
    luego `stock`, y 0 si ninguna es válida. Nunca lanza excepción.
    Un valor negativo cuenta como no válido: se pasa al siguiente campo.
    """
    if product is None:
        return 0

    for key in QUANTITY_KEYS:
        quantity = _as_quantity(_get(product, key))
        if quantity is not None:
            return quantity

    return 0


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def normalize_product(raw: Any) -> Product:
    """
    Adaptador de entrada: registro crudo de la API -> Product.
    """
    return Product(
        id=str(_get(raw, "id")),
        name=_as_text(_get(raw, "name")),
        unit=_as_text(_get(raw, "unit")),
        quantity=resolve_quantity(raw),
        category=_get(raw, "category") or _get(raw, "primaryCategory"),
        price=_get(raw, "price") if _get(raw, "price") is not None else _get(raw, "unitPrice"),
        low_stock_threshold=_get(raw, "lowStockThreshold") or _get(raw, "low_stock_threshold"),
    )


def normalize_products(payload: Any) -> List[Product]:
    """
    Acepta la lista directa o el sobre `{"data": [...]}`. Descarta
    registros sin id y duplicados (gana la primera aparición).
    """
    records: Iterable[Any]
    if isinstance(payload, dict):
        records = payload.get("data") or []
    else:
        records = payload or []

    products: List[Product] = []
    seen = set()

    for raw in records:
        product_id = _get(raw, "id")
        if not product_id:
            logger.warning("Producto sin id descartado: %r", raw)
            continue

        product_id = str(product_id)
        if product_id in seen:
            logger.warning("Producto duplicado en la API: %s", product_id)
            continue

        try:
            product = normalize_product(raw)
        except ValidationError as e:
            logger.warning("Producto %s con datos inválidos descartado: %s", product_id, e)
            continue

        seen.add(product_id)
        products.append(product)

    return products
