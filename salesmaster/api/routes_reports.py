from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from salesmaster.api.utils import get_export_sink, get_order_store, isoformat_z, parse_instant
from salesmaster.core.security import Actor, get_actor
from salesmaster.export.sink import ExportSink
from salesmaster.services.reports import REPORT_KINDS, ReportService
from salesmaster.store.orders import OrderStore

router = APIRouter(tags=["reports"])


def get_report_service(
    store: OrderStore = Depends(get_order_store),
    sink: ExportSink = Depends(get_export_sink),
) -> ReportService:
    return ReportService.from_settings(store=store, sink=sink)


@router.get("/reports/counts")
def get_counts(
    now: str | None = Query(default=None, description="ISO instant anchoring the windows (default: current time)"),
    service: ReportService = Depends(get_report_service),
):
    counts = service.counts(parse_instant(now) if now else None)
    return {"counts": counts.as_dict()}


@router.post("/reports/export/{kind}")
def export_report(
    kind: str,
    now: str | None = Query(default=None),
    actor: Actor = Depends(get_actor),
    service: ReportService = Depends(get_report_service),
):
    if kind not in REPORT_KINDS:
        raise HTTPException(status_code=400, detail=f"unknown report kind: {kind}")
    shared = service.export(kind, parse_instant(now) if now else None)
    return {
        "kind": kind,
        "sheet_name": shared.handle.sheet_name,
        "rows": shared.handle.row_count,
        "file": shared.handle.path.name,
        "location": shared.location,
        "backend": shared.backend,
        "created_at": isoformat_z(shared.handle.created_at),
    }
