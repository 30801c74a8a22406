from __future__ import annotations

import re
from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import make_order
from salesmaster.core.errors import InvalidArgument, NoDataError
from salesmaster.reporting.builder import build_customer_report, build_timeframe_report, report_filename


def test_timeframe_report_has_order_columns_and_hints(scenario_orders, now):
    table = build_timeframe_report(scenario_orders, "weekly", now)

    assert table.sheet_name == "Weekly Orders"
    assert table.header == ["Order ID", "Customer Name", "Amount", "Date", "Payment Type"]
    assert table.formats == ["text", "text", "currency", "date", "text"]
    assert table.rows == [("o-1", "A", Decimal("200"), now, "cash")]


def test_timeframe_report_without_orders_raises_no_data(now):
    old = [make_order("o-1", "A", 10, now - timedelta(days=30))]
    with pytest.raises(NoDataError):
        build_timeframe_report(old, "weekly", now)


def test_timeframe_report_rejects_unknown_timeframe(scenario_orders, now):
    with pytest.raises(InvalidArgument):
        build_timeframe_report(scenario_orders, "daily", now)


def test_customer_report_rows(scenario_orders):
    table = build_customer_report(scenario_orders)

    assert table.header == ["Customer Name", "Total Orders", "Total Amount"]
    assert table.formats == ["text", "integer", "currency"]
    assert table.rows == [("A", 2, Decimal("700")), ("B", 1, Decimal("300"))]


def test_customer_report_empty_raises_no_data():
    with pytest.raises(NoDataError):
        build_customer_report([])


def test_report_filename_is_unique_within_the_same_second(now):
    first = report_filename("monthly", now)
    second = report_filename("monthly", now)

    assert re.fullmatch(r"monthly_report_20260615-120000-[0-9a-f]{6}\.xlsx", first)
    assert first != second
