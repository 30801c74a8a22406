from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from salesmaster.core.config import get_settings
from salesmaster.core.errors import InvalidArgument
from salesmaster.export.sink import ExportSink, SharedExport, build_export_sink
from salesmaster.reporting.aggregation import bucket_counts, parse_timeframe
from salesmaster.reporting.builder import build_customer_report, build_timeframe_report, report_filename
from salesmaster.reporting.types import BucketCounts, Timeframe
from salesmaster.store.orders import OrderStore

logger = logging.getLogger(__name__)

REPORT_KINDS = ("weekly", "monthly", "yearly", "customer")


class ReportService:
    """Loads an order snapshot, aggregates it, and hands report tables to a sink."""

    def __init__(self, store: OrderStore, sink: ExportSink, tz: tzinfo):
        self.store = store
        self.sink = sink
        self.tz = tz

    @classmethod
    def from_settings(cls, store: OrderStore | None = None, sink: ExportSink | None = None) -> ReportService:
        settings = get_settings()
        return cls(
            store=store or OrderStore(),
            sink=sink or build_export_sink(),
            tz=ZoneInfo(settings.timezone),
        )

    def _now(self, now: datetime | None) -> datetime:
        if now is None:
            return datetime.now(self.tz)
        if now.tzinfo is None or now.utcoffset() is None:
            raise InvalidArgument("now must be timezone-aware")
        return now.astimezone(self.tz)

    def counts(self, now: datetime | None = None) -> BucketCounts:
        return bucket_counts(self.store.get_all(), self._now(now))

    def export_timeframe(self, timeframe: Timeframe | str, now: datetime | None = None) -> SharedExport:
        timeframe = parse_timeframe(timeframe)
        now = self._now(now)
        table = build_timeframe_report(self.store.get_all(), timeframe, now)
        handle = self.sink.export_table(table, filename=report_filename(timeframe.value, now))
        logger.info("%s report exported: rows=%d", timeframe.value, handle.row_count)
        return self.sink.share(handle)

    def export_customers(self, now: datetime | None = None) -> SharedExport:
        now = self._now(now)
        table = build_customer_report(self.store.get_all())
        handle = self.sink.export_table(table, filename=report_filename("customer", now))
        logger.info("customer report exported: rows=%d", handle.row_count)
        return self.sink.share(handle)

    def export(self, kind: str, now: datetime | None = None) -> SharedExport:
        if kind == "customer":
            return self.export_customers(now)
        return self.export_timeframe(kind, now)
