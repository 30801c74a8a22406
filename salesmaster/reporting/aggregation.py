"""Order aggregation: time-window counts, customer rollups and report rows.

Every function here is pure. Callers hand in a snapshot of orders and an
explicit, timezone-aware ``now``; the zone of ``now`` decides which calendar
day, month and year an order falls in.
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from salesmaster.core.errors import InvalidArgument, ValidationError
from salesmaster.domain.orders.models import LineItem, Order
from salesmaster.reporting.types import BucketCounts, CustomerRollup, ReportRow, Timeframe

WEEK = timedelta(days=7)


def _require_aware(now: datetime) -> datetime:
    if now.tzinfo is None or now.utcoffset() is None:
        raise InvalidArgument("now must be timezone-aware")
    return now


def _utc(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timeframe(value: Timeframe | str) -> Timeframe:
    if isinstance(value, Timeframe):
        return value
    try:
        return Timeframe(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(t.value for t in Timeframe)
        raise InvalidArgument(f"unrecognized timeframe {value!r}; expected one of: {allowed}") from exc


def timeframe_start(timeframe: Timeframe | str, now: datetime) -> datetime:
    timeframe = parse_timeframe(timeframe)
    now = _require_aware(now)
    if timeframe is Timeframe.WEEKLY:
        return (_utc(now) - WEEK).astimezone(now.tzinfo)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0, fold=0)
    if timeframe is Timeframe.MONTHLY:
        return midnight.replace(day=1)
    return midnight.replace(month=1, day=1)


def bucket_counts(orders: Iterable[Order], now: datetime) -> BucketCounts:
    now = _require_aware(now)
    # Window bounds are compared as UTC instants; the zone of now only picks
    # the calendar day and year.
    now_utc = _utc(now)
    week_start = now_utc - WEEK
    today = now.date()
    daily = weekly = yearly = 0

    for order in orders:
        ordered_utc = _utc(order.ordered_at)
        ordered_at = ordered_utc.astimezone(now.tzinfo)
        if ordered_at.date() == today:
            daily += 1
        if week_start <= ordered_utc <= now_utc:
            weekly += 1
        if ordered_at.year == now.year:
            yearly += 1

    return BucketCounts(daily=daily, weekly=weekly, yearly=yearly)


def filter_by_timeframe(orders: Iterable[Order], timeframe: Timeframe | str, now: datetime) -> list[Order]:
    start = _utc(timeframe_start(timeframe, now))
    end = _utc(now)
    return [order for order in orders if start <= _utc(order.ordered_at) <= end]


def rollup_by_customer(orders: Iterable[Order]) -> dict[str, CustomerRollup]:
    """Group orders by customer name, compared as exact strings.

    ``"Alice"`` and ``"alice "`` are different customers here.
    """
    counts: dict[str, int] = {}
    totals: dict[str, Decimal] = {}
    for order in orders:
        name = order.customer_name
        counts[name] = counts.get(name, 0) + 1
        totals[name] = totals.get(name, Decimal("0")) + order.total_price

    return {
        name: CustomerRollup(order_count=counts[name], total_amount=totals[name])
        for name in sorted(counts)
    }


def build_report_rows(orders: Iterable[Order]) -> list[ReportRow]:
    return [
        ReportRow(
            order_id=order.id,
            customer_name=order.customer_name,
            total_price=order.total_price,
            ordered_at=order.ordered_at,
            payment_type=order.payment_type.value if order.payment_type is not None else "",
        )
        for order in orders
    ]


def build_customer_report_rows(rollups: Mapping[str, CustomerRollup]) -> list[tuple[str, int, Decimal]]:
    return [
        (name, rollups[name].order_count, rollups[name].total_amount)
        for name in sorted(rollups)
    ]


def grand_total(orders: Iterable[Order]) -> Decimal:
    return sum((order.total_price for order in orders), Decimal("0"))


def parse_quantity(raw: Any) -> int:
    """Coerce a quantity typed by a user.

    Blank and non-numeric input count as zero. Negative quantities are
    rejected.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        quantity = raw
    elif isinstance(raw, (float, Decimal)):
        if not math.isfinite(raw) or raw != int(raw):
            return 0
        quantity = int(raw)
    else:
        text = str(raw).strip()
        if not text:
            return 0
        try:
            quantity = int(text)
        except ValueError:
            return 0
    if quantity < 0:
        raise ValidationError(f"quantity must not be negative: {raw!r}")
    return quantity


def _as_price(raw: Any) -> Decimal:
    try:
        price = raw if isinstance(raw, Decimal) else Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValidationError(f"unit price is not a number: {raw!r}") from exc
    if not price.is_finite() or price < 0:
        raise ValidationError(f"unit price must be a non-negative number: {raw!r}")
    return price


def compute_order_total(line_items: Iterable[LineItem | Mapping[str, Any]]) -> Decimal:
    total = Decimal("0")
    for item in line_items:
        if isinstance(item, Mapping):
            unit_price = _as_price(item.get("unit_price", 0))
            quantity = parse_quantity(item.get("quantity"))
        else:
            unit_price = item.unit_price
            quantity = parse_quantity(item.quantity)
        total += unit_price * quantity
    return total
