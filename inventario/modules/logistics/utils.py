# inventario/modules/logistics/utils.py
from typing import Dict, Iterable, List, Optional

import pandas as pd

from inventario.modules.logistics.history import to_local
from inventario.modules.logistics.schemas import Movement, ProductSelection

SELECTION_COLUMNS = {
    "product_id": ("product_id", "productid", "producto", "id"),
    "quantity": ("quantity", "cantidad", "qty"),
    "unit": ("unit", "unidad"),
    "action": ("action", "accion", "acción"),
}

EXPORT_COLUMNS = [
    "fecha", "movimiento", "tipo", "responsable", "departamento",
    "proveedor", "producto", "cantidad", "unidad", "notas", "descripcion",
]


def read_excel(file, filename: str = ""):
    if filename.lower().endswith(".csv"):
        df = pd.read_csv(file, dtype=str)
    else:
        df = pd.read_excel(file, dtype=str)
    df = df.astype(object).where(pd.notnull(df), None)  # NaN -> None
    return df


def selections_from_frame(df) -> List[ProductSelection]:
    """
    Convierte una hoja (una fila por producto) en filas de selección.
    Las cabeceras se aceptan en inglés o castellano.
    """
    lookup = {str(c).strip().lower(): c for c in df.columns}
    columns = {}
    for field, names in SELECTION_COLUMNS.items():
        for name in names:
            if name in lookup:
                columns[field] = lookup[name]
                break

    if "product_id" not in columns or "quantity" not in columns:
        raise ValueError("La hoja debe tener columnas de producto y cantidad")

    selections = []
    for row in df.to_dict(orient="records"):
        action = (row.get(columns.get("action")) or "add").strip().lower()
        selections.append(ProductSelection(
            product_id=(row[columns["product_id"]] or "").strip() or None,
            quantity=(row[columns["quantity"]] or "").strip(),
            unit=(row.get(columns.get("unit")) or "").strip(),
            action="remove" if action in ("remove", "retirar", "salida") else "add",
        ))

    return selections


def movements_to_frame(movements: Iterable[Movement], departments: Optional[Dict[str, str]] = None):
    departments = departments or {}
    rows = [
        {
            "fecha": to_local(m.timestamp).strftime("%Y-%m-%d %H:%M"),
            "movimiento": m.id,
            "tipo": m.type,
            "responsable": m.stock_manager,
            "departamento": m.department,
            "proveedor": m.supplier,
            "producto": item.product_name,
            "cantidad": item.quantity,
            "unidad": item.unit,
            "notas": m.notes,
            "descripcion": build_movement_description(m, departments.get(m.department or "")),
        }
        for m in movements
        for item in m.products
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def build_movement_description(m: Movement, department_name: Optional[str] = None):
    q = m.total_items
    products = ", ".join(i.product_name or i.product_id for i in m.products)

    if m.type == "stock_in":
        origin = f" de {m.supplier}" if m.supplier else ""
        return f"Ingreso de {q} unidades{origin}: {products}"

    if m.type == "distribution":
        target = department_name or m.department or "sin departamento"
        return f"Salida de {q} unidades hacia {target}: {products}"

    return "Movimiento desconocido"
