from datetime import date, datetime, timedelta, timezone

import pytest

from inventario.modules.logistics.history import aggregate, date_label, filter_movements, to_local
from inventario.modules.logistics.schemas import HistoryFilters, Movement

NOW = datetime(2025, 10, 30, 15, 0)
DEPARTMENTS = {"DEPT1": "Bakery", "DEPT2": "Pastry"}


def _movement(id, hours_ago, type="stock_in", **extra):
    return Movement(
        id=id,
        type=type,
        timestamp=NOW - timedelta(hours=hours_ago),
        stockManager=extra.pop("manager", "Ana"),
        products=extra.pop("products", [{"productId": "P9", "productName": "Salt", "quantity": 1}]),
        **extra,
    )


def test_today_period_uses_calendar_day():
    recent = _movement("A", 1)
    old = _movement("B", 25)

    result = filter_movements([recent, old], HistoryFilters(period="today"), now=NOW)

    assert [m.id for m in result] == ["A"]


@pytest.mark.parametrize("period, hours, kept", [
    ("week", 7 * 24 - 1, True),
    ("week", 7 * 24, True),
    ("week", 7 * 24 + 1, False),
    ("month", 29 * 24, True),
    ("month", 30 * 24 + 1, False),
    ("all", 5000, True),
])
def test_trailing_windows(period, hours, kept):
    result = filter_movements([_movement("A", hours)], HistoryFilters(period=period), now=NOW)

    assert bool(result) is kept


def test_future_movements_fall_outside_trailing_window():
    result = filter_movements([_movement("A", -2)], HistoryFilters(period="week"), now=NOW)

    assert result == []


def test_custom_period_includes_whole_days():
    # A: 29/10 23:00, B: 28/10 01:00, C: 27/10 23:00, D: 30/10 00:00
    movements = [_movement("A", 16), _movement("B", 62), _movement("C", 64), _movement("D", 15)]
    filters = HistoryFilters(period="custom", startDate=date(2025, 10, 28), endDate=date(2025, 10, 29))

    result = filter_movements(movements, filters, now=NOW)

    assert [m.id for m in result] == ["A", "B"]


def test_type_filter(movements):
    result = filter_movements(movements, HistoryFilters(type="distribution"), now=NOW)

    assert {m.id for m in result} == {"M2", "M3"}


def test_department_filter_passes_stock_in_through(movements):
    result = filter_movements(movements, HistoryFilters(department="DEPT1"), now=NOW, departments=DEPARTMENTS)

    assert {m.id for m in result} == {"M1", "M2", "M4"}


def test_department_filter_matches_name_case_insensitive(movements):
    result = filter_movements(movements, HistoryFilters(department="pastry"), now=NOW, departments=DEPARTMENTS)

    assert {m.id for m in result if m.type == "distribution"} == {"M3"}


def test_search_matches_line_item_product_name():
    flour = _movement(
        "A", 1, notes="entrega semanal", supplier="Molinos SA",
        products=[{"productId": "P1", "productName": "Flour", "quantity": 2}],
    )
    other = _movement("B", 1)

    result = filter_movements([flour, other], HistoryFilters(searchQuery="flour"), now=NOW)

    assert [m.id for m in result] == ["A"]


@pytest.mark.parametrize("query, expected", [
    ("luis", {"M2", "M3"}),
    ("MOLINOS", {"M1"}),
    ("evento", {"M3"}),
    ("bakery", {"M2"}),
    ("distribución", {"M2", "M3"}),
    ("stock_in", {"M1", "M4"}),
    ("p3", {"M4"}),
    ("nada", set()),
])
def test_search_fields(movements, query, expected):
    result = filter_movements(movements, HistoryFilters(searchQuery=query), now=NOW, departments=DEPARTMENTS)

    assert {m.id for m in result} == expected


def test_filters_narrow_in_sequence(movements):
    filters = HistoryFilters(type="distribution", period="today", searchQuery="sugar")

    result = filter_movements(movements, filters, now=NOW)

    assert [m.id for m in result] == ["M2"]


def test_grouping_and_ordering(movements):
    result = aggregate(movements, HistoryFilters(), now=NOW)

    assert [s.day for s in result.sections] == [date(2025, 10, 30), date(2025, 10, 29), date(2025, 10, 10)]
    assert [m.id for m in result.sections[0].data] == ["M1", "M2"]
    assert result.sections[0].title == "Thursday, October 30, 2025"


def test_summary_counts_filtered_set(movements):
    summary = aggregate(movements, HistoryFilters(period="week"), now=NOW).summary

    assert summary.model_dump() == {
        "stock_in_count": 1,
        "distribution_count": 2,
        "units_in": 10,
        "units_out": 9,
    }


def test_aggregate_is_idempotent(movements):
    filters = HistoryFilters(period="month", searchQuery="a")

    first = aggregate(movements, filters, now=NOW, departments=DEPARTMENTS)
    second = aggregate(movements, filters, now=NOW, departments=DEPARTMENTS)

    assert first.model_dump() == second.model_dump()


def test_aware_timestamps_are_converted_to_local():
    moment = datetime(2025, 10, 30, 12, 0, tzinfo=timezone.utc)

    local = to_local(moment)

    assert local.tzinfo is None
    assert local == moment.astimezone().replace(tzinfo=None)


def test_date_label():
    assert date_label(date(2025, 1, 5)) == "Sunday, January 5, 2025"
