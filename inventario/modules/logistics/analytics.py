# inventario/modules/logistics/analytics.py

import calendar
import math
from datetime import date
from typing import Iterable, List, Optional

from inventario.core.config import settings
from inventario.modules.logistics.history import to_local
from inventario.modules.logistics.schemas import (
    Movement,
    Product,
    StockAlert,
    UsageAnalytics,
    UsageComparison,
    UsageStats,
)


def stock_alerts(products: Iterable[Product], default_threshold: Optional[int] = None) -> List[StockAlert]:
    """
    Productos agotados (0) o con stock bajo (<= umbral del producto).
    """
    default_threshold = default_threshold or settings.LOW_STOCK_THRESHOLD
    alerts = []

    for p in products:
        threshold = p.low_stock_threshold or default_threshold

        if p.quantity == 0:
            level = "out_of_stock"
        elif p.quantity <= threshold:
            level = "low_stock"
        else:
            continue

        alerts.append(StockAlert(
            product_id=p.id,
            product_name=p.name,
            quantity=p.quantity,
            threshold=threshold,
            level=level
        ))

    return alerts


def _shift_month(year: int, month: int, back: int):
    index = year * 12 + (month - 1) - back
    return index // 12, index % 12 + 1


def usage_window_start(today: date, previous_months: int) -> date:
    """Primer día del mes más antiguo que entra en la comparación."""
    return date(*_shift_month(today.year, today.month, previous_months), 1)


def usage_stats(product: Product, movements: Iterable[Movement], year: int, month: int) -> UsageStats:
    used = [
        item.quantity
        for m in movements
        if m.type == "distribution"
        and (to_local(m.timestamp).year, to_local(m.timestamp).month) == (year, month)
        for item in m.products
        if item.product_id == product.id
    ]

    days = calendar.monthrange(year, month)[1]
    total = sum(used)
    average = total / days

    return UsageStats(
        product_id=product.id,
        product_name=product.name,
        period=f"{calendar.month_name[month]} {year}",
        year=year,
        month=month,
        total_used=total,
        usage_count=len(used),
        days_in_month=days,
        average_daily_usage=round(average, 3),
        estimated_days_remaining=math.floor(product.quantity / average) if average else None,
    )


def trend_for(change: float) -> str:
    if change >= 20:
        return "significant_increase"
    if change >= 5:
        return "increase"
    if change <= -20:
        return "significant_decrease"
    if change <= -5:
        return "decrease"
    return "stable"


def compare_usage(current: UsageStats, previous: UsageStats) -> UsageComparison:
    if previous.total_used:
        change = (current.total_used - previous.total_used) / previous.total_used * 100
    else:
        change = 100.0 if current.total_used else 0.0

    return UsageComparison(
        compared_to=previous.period,
        usage_change=round(change, 1),
        trend=trend_for(change),
        current_month_total=current.total_used,
        compared_month_total=previous.total_used,
        absolute_change=current.total_used - previous.total_used,
    )


def usage_analytics(
    product: Product,
    movements: Iterable[Movement],
    today: Optional[date] = None,
    previous_months: int = 3
) -> UsageAnalytics:
    movements = list(movements)
    today = today or date.today()

    current = usage_stats(product, movements, today.year, today.month)
    previous = [
        usage_stats(product, movements, *_shift_month(today.year, today.month, back))
        for back in range(1, previous_months + 1)
    ]

    return UsageAnalytics(
        current_month=current,
        previous_months=previous,
        comparisons=[compare_usage(current, p) for p in previous],
    )
