from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salesmaster.api.routes_auth import router as auth_router
from salesmaster.api.routes_catalog import router as catalog_router
from salesmaster.api.routes_orders import router as orders_router
from salesmaster.api.routes_reports import router as reports_router
from salesmaster.core.config import get_settings
from salesmaster.core.errors import (
    ExportError,
    InvalidArgument,
    NoDataError,
    RecordNotFound,
    SalesMasterError,
    StoreError,
    ValidationError,
)
from salesmaster.core.logging import configure_logging
from salesmaster.persistence.db import init_db

configure_logging()
logger = logging.getLogger(__name__)
settings = get_settings()

app = FastAPI(title=settings.app_name)

# Most specific first; lookup walks the exception's MRO.
_ERROR_STATUS: list[tuple[type[SalesMasterError], int, str]] = [
    (ValidationError, 422, "validation"),
    (InvalidArgument, 400, "invalid_argument"),
    (NoDataError, 404, "no_data"),
    (RecordNotFound, 404, "not_found"),
    (StoreError, 503, "store"),
    (ExportError, 502, "export"),
]


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    logger.info("%s started (env=%s, tz=%s)", settings.app_name, settings.env, settings.timezone)


@app.exception_handler(SalesMasterError)
async def salesmaster_error_handler(_: Request, exc: SalesMasterError):
    for exc_type, status_code, kind in _ERROR_STATUS:
        if isinstance(exc, exc_type):
            break
    else:
        status_code, kind = 500, "internal"
    if status_code >= 500:
        logger.error("request failed: %s", exc)
    content: dict = {"detail": str(exc), "error": kind}
    if isinstance(exc, ValidationError):
        content["problems"] = exc.problems
    return JSONResponse(status_code=status_code, content=content)


@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(orders_router)
app.include_router(catalog_router)
app.include_router(reports_router)
