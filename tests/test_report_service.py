from __future__ import annotations

from datetime import timedelta, timezone
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from salesmaster.core.errors import InvalidArgument, NoDataError
from salesmaster.domain.orders.models import LineItem, OrderDraft, PaymentType
from salesmaster.export.sink import ExcelExportSink
from salesmaster.reporting.types import BucketCounts
from salesmaster.services.reports import ReportService
from salesmaster.store.orders import OrderStore


@pytest.fixture()
def seeded_service(tmp_path, now):
    clock_values = [now, now - timedelta(days=10), now - timedelta(days=400)]
    store = OrderStore(clock=lambda: clock_values.pop(0))
    for customer, price in (("A", "200"), ("B", "300"), ("A", "500")):
        store.create(
            OrderDraft(
                customer_name=customer,
                items=[LineItem(product_name="Widget", unit_price=Decimal(price), quantity=1)],
                payment_type=PaymentType.CREDIT,
                total_price=Decimal(price),
            )
        )
    return ReportService(store=store, sink=ExcelExportSink(tmp_path), tz=timezone.utc)


def test_counts(seeded_service, now):
    assert seeded_service.counts(now) == BucketCounts(daily=1, weekly=1, yearly=2)


def test_export_monthly_writes_only_window_orders(seeded_service, now):
    shared = seeded_service.export("monthly", now)

    assert shared.handle.row_count == 2
    assert shared.handle.path.name.startswith("monthly_report_20260615-120000-")
    rows = list(load_workbook(shared.handle.path).active.iter_rows(values_only=True))
    assert rows[0] == ("Order ID", "Customer Name", "Amount", "Date", "Payment Type")
    assert [row[1] for row in rows[1:]] == ["A", "B"]
    assert sum(row[2] for row in rows[1:]) == 500


def test_export_customers(seeded_service, now):
    shared = seeded_service.export("customer", now)
    rows = list(load_workbook(shared.handle.path).active.iter_rows(values_only=True))
    assert rows[1:] == [("A", 2, 700), ("B", 1, 300)]


def test_export_empty_window_raises(tmp_path, now):
    service = ReportService(store=OrderStore(), sink=ExcelExportSink(tmp_path), tz=timezone.utc)
    with pytest.raises(NoDataError):
        service.export_timeframe("weekly", now)


def test_export_unknown_timeframe(seeded_service, now):
    with pytest.raises(InvalidArgument):
        seeded_service.export("quarterly", now)


def test_repeated_exports_in_the_same_second_keep_both_files(seeded_service, now):
    first = seeded_service.export("weekly", now)
    second = seeded_service.export("weekly", now)

    assert first.handle.path != second.handle.path
    assert first.handle.path.exists()
    assert second.handle.path.exists()


def test_naive_now_is_rejected(seeded_service, now):
    with pytest.raises(InvalidArgument):
        seeded_service.counts(now.replace(tzinfo=None))
