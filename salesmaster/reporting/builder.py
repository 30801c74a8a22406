from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from salesmaster.core.errors import NoDataError
from salesmaster.domain.orders.models import Order
from salesmaster.reporting.aggregation import (
    build_customer_report_rows,
    build_report_rows,
    filter_by_timeframe,
    parse_timeframe,
    rollup_by_customer,
)
from salesmaster.reporting.types import ColumnSpec, ReportTable, Timeframe

ORDER_COLUMNS = [
    ColumnSpec("Order ID", "text"),
    ColumnSpec("Customer Name", "text"),
    ColumnSpec("Amount", "currency"),
    ColumnSpec("Date", "date"),
    ColumnSpec("Payment Type", "text"),
]

CUSTOMER_COLUMNS = [
    ColumnSpec("Customer Name", "text"),
    ColumnSpec("Total Orders", "integer"),
    ColumnSpec("Total Amount", "currency"),
]


def build_timeframe_report(orders: Iterable[Order], timeframe: Timeframe | str, now: datetime) -> ReportTable:
    timeframe = parse_timeframe(timeframe)
    scoped = filter_by_timeframe(orders, timeframe, now)
    if not scoped:
        raise NoDataError(f"no orders in the {timeframe.value} window")
    return ReportTable(
        sheet_name=f"{timeframe.value.capitalize()} Orders",
        columns=list(ORDER_COLUMNS),
        rows=[row.as_tuple() for row in build_report_rows(scoped)],
    )


def build_customer_report(orders: Iterable[Order]) -> ReportTable:
    rows = build_customer_report_rows(rollup_by_customer(orders))
    if not rows:
        raise NoDataError("no orders to summarise by customer")
    return ReportTable(sheet_name="Customers", columns=list(CUSTOMER_COLUMNS), rows=list(rows))


def report_filename(kind: str, now: datetime) -> str:
    # Suffix keeps exports made within the same second apart.
    return f"{kind}_report_{now.strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:6]}.xlsx"
