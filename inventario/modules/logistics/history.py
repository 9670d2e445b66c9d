# inventario/modules/logistics/history.py

from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional

from inventario.modules.logistics.schemas import (
    HistoryFilters,
    HistoryResult,
    HistorySection,
    HistorySummary,
    Movement,
)

TYPE_LABELS = {
    "stock_in": "Entrada de stock",
    "distribution": "Distribución",
}

PERIOD_WINDOWS = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


def to_local(value: datetime) -> datetime:
    """
    Hora local sin tzinfo. Los timestamps sin zona ya se consideran locales.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def date_label(day: date) -> str:
    # p.ej. "Thursday, October 30, 2025"
    return f"{day:%A}, {day:%B} {day.day}, {day.year}"


def _department_name(movement: Movement, departments: Dict[str, str]) -> str:
    if not movement.department:
        return ""
    return departments.get(movement.department, movement.department)


def match_type(movement: Movement, filters: HistoryFilters) -> bool:
    return filters.type == "all" or movement.type == filters.type


def match_department(
    movement: Movement,
    filters: HistoryFilters,
    departments: Dict[str, str]
) -> bool:
    wanted = (filters.department or "all").strip().lower()
    if wanted == "all" or movement.type != "distribution":
        return True

    reference = (movement.department or "").lower()
    name = _department_name(movement, departments).lower()
    return wanted in (reference, name)


def match_period(movement: Movement, filters: HistoryFilters, now: datetime) -> bool:
    moment = to_local(movement.timestamp)

    if filters.period == "today":
        return moment.date() == now.date()

    if filters.period in PERIOD_WINDOWS:
        return now - PERIOD_WINDOWS[filters.period] <= moment <= now

    if filters.period == "custom" and filters.start_date and filters.end_date:
        start = datetime.combine(filters.start_date, time.min)
        end = datetime.combine(filters.end_date, time.max)
        return start <= moment <= end

    return True


def match_search(
    movement: Movement,
    query: str,
    departments: Dict[str, str]
) -> bool:
    query = (query or "").strip().lower()
    if not query:
        return True

    fields = [
        movement.type,
        TYPE_LABELS.get(movement.type, ""),
        movement.stock_manager,
        movement.notes,
        movement.supplier,
    ]
    if movement.type == "distribution":
        fields.append(_department_name(movement, departments))
    for item in movement.products:
        fields += [item.product_name, item.product_id]

    return any(query in (value or "").lower() for value in fields)


def filter_movements(
    movements: Iterable[Movement],
    filters: HistoryFilters,
    now: Optional[datetime] = None,
    departments: Optional[Dict[str, str]] = None
) -> List[Movement]:
    """
    Tipo -> departamento -> periodo -> búsqueda. Cada filtro reduce el
    resultado del anterior.
    """
    now = to_local(now or datetime.now())
    departments = departments or {}

    result = [m for m in movements if match_type(m, filters)]
    result = [m for m in result if match_department(m, filters, departments)]
    result = [m for m in result if match_period(m, filters, now)]
    return [m for m in result if match_search(m, filters.search_query, departments)]


def summarize(movements: Iterable[Movement]) -> HistorySummary:
    summary = HistorySummary()

    for m in movements:
        if m.type == "stock_in":
            summary.stock_in_count += 1
            summary.units_in += m.total_items
        else:
            summary.distribution_count += 1
            summary.units_out += m.total_items

    return summary


def group_by_day(movements: Iterable[Movement]) -> List[HistorySection]:
    groups: Dict[date, List[Movement]] = defaultdict(list)
    for m in movements:
        groups[to_local(m.timestamp).date()].append(m)

    sections = []
    for day in sorted(groups, reverse=True):
        data = sorted(groups[day], key=lambda m: to_local(m.timestamp), reverse=True)
        sections.append(HistorySection(title=date_label(day), day=day, data=data))

    return sections


def aggregate(
    movements: Iterable[Movement],
    filters: Optional[HistoryFilters] = None,
    now: Optional[datetime] = None,
    departments: Optional[Dict[str, str]] = None
) -> HistoryResult:
    """
    Historial agrupado por día (más reciente primero) y contadores
    calculados sobre el conjunto filtrado.
    """
    filtered = filter_movements(movements, filters or HistoryFilters(), now, departments)

    return HistoryResult(
        sections=group_by_day(filtered),
        summary=summarize(filtered),
    )
