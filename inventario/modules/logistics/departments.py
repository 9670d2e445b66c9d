# inventario/modules/logistics/departments.py

import random
from typing import Iterable, List, Optional

from inventario.core.exceptions import DepartmentError
from inventario.modules.logistics.schemas import (
    Department,
    DepartmentCreate,
    DepartmentOptions,
)

ALL_ICONS = [
    # Panadería y pastelería
    "🥐", "🍞", "🥖", "🥨", "🥯", "🥞", "🧇",
    "🍰", "🎂", "🧁", "🥧", "🍪", "🍩",
    "🍫", "🍬", "🍭", "🍮", "🍯",
    # Café y bebidas
    "☕", "🍵", "🧃", "🥤", "🧋",
    "🍶", "🍷", "🍸", "🍹", "🍺", "🍻",
    "🥂", "🥃", "🧊",
    # Restaurante
    "🍕", "🌭", "🍔", "🍟", "🥙",
    "🌮", "🌯", "🥗", "🥘", "🍝",
    "🍜", "🍲", "🍛", "🍣", "🍤",
    "🍱", "🍚", "🍙", "🍘", "🍥",
    "🥠", "🥮", "🍢", "🍡", "🍧",
    "🍨", "🍦", "🍿", "🌰", "🥜",
    # Utensilios
    "🥢", "🍴", "🥄", "🔪", "🍽️", "🏺",
]

ALL_COLORS = [
    "#f59e0b", "#84cc16", "#06b6d4", "#8b5cf6", "#ef4444",
    "#10b981", "#3b82f6", "#f97316", "#6366f1", "#ec4899",
    "#f472b6", "#a855f7", "#d946ef", "#f43f5e", "#e11d48",
    "#ea580c", "#dc2626", "#65a30d", "#16a34a", "#0d9488",
    "#0891b2", "#2563eb", "#4338ca", "#7c3aed", "#c026d3",
]


def available_options(departments: Iterable[Department]) -> DepartmentOptions:
    """
    Iconos y colores que ningún departamento usa todavía (orden del pool).
    """
    departments = list(departments)
    used_icons = {d.icon for d in departments if d.icon}
    used_colors = {d.color for d in departments if d.color}

    return DepartmentOptions(
        icons=[i for i in ALL_ICONS if i not in used_icons],
        colors=[c for c in ALL_COLORS if c not in used_colors],
    )


def pick_defaults(options: DepartmentOptions, rng: Optional[random.Random] = None) -> dict:
    rng = rng or random.Random()
    return {
        "icon": rng.choice(options.icons) if options.icons else None,
        "color": rng.choice(options.colors) if options.colors else None,
    }


def validate_department(
    payload: DepartmentCreate,
    departments: Iterable[Department],
    rng: Optional[random.Random] = None
) -> DepartmentCreate:
    """
    Devuelve el payload listo para enviar, con icono/color únicos.
    """
    errors: List[str] = []
    options = available_options(departments)

    if not payload.name.strip():
        errors.append("Ingrese el nombre del departamento")
    if not options.icons:
        errors.append("No hay iconos disponibles. Elimine algún departamento para crear otro.")
    if not options.colors:
        errors.append("No hay colores disponibles. Elimine algún departamento para crear otro.")
    if payload.icon and options.icons and payload.icon not in options.icons:
        errors.append(f"El icono {payload.icon} ya está en uso")
    if payload.color and options.colors and payload.color not in options.colors:
        errors.append(f"El color {payload.color} ya está en uso")

    if errors:
        raise DepartmentError("; ".join(errors))

    defaults = pick_defaults(options, rng)
    return DepartmentCreate(
        name=payload.name.strip(),
        description=(payload.description or "").strip() or None,
        icon=payload.icon or defaults["icon"],
        color=payload.color or defaults["color"],
    )
