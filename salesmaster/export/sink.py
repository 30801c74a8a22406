from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError as TransportError

from salesmaster.core.config import get_settings
from salesmaster.core.errors import ExportError
from salesmaster.reporting.types import ColumnFormat, ReportTable

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

NUMBER_FORMATS: dict[str, str] = {
    "currency": "#,##0.00",
    "date": "yyyy-mm-dd hh:mm",
    "integer": "0",
    "text": "@",
}

# Excel limits sheet titles to 31 characters and forbids these.
_SHEET_NAME_FORBIDDEN = re.compile(r"[\[\]:*?/\\]")


@dataclass(frozen=True)
class ExportHandle:
    path: Path
    sheet_name: str
    row_count: int
    created_at: datetime


@dataclass(frozen=True)
class SharedExport:
    handle: ExportHandle
    location: str
    backend: str


def _sheet_title(sheet_name: str) -> str:
    title = _SHEET_NAME_FORBIDDEN.sub(" ", sheet_name).strip()[:31]
    return title or "Sheet1"


class ExportSink:
    def export(
        self,
        sheet_name: str,
        header: Sequence[str],
        rows: Sequence[Sequence[Any]],
        formats: Sequence[ColumnFormat] | None = None,
        filename: str | None = None,
    ) -> ExportHandle:  # pragma: no cover - interface
        raise NotImplementedError

    def share(self, handle: ExportHandle) -> SharedExport:  # pragma: no cover - interface
        raise NotImplementedError

    def export_table(self, table: ReportTable, filename: str | None = None) -> ExportHandle:
        return self.export(table.sheet_name, table.header, table.rows, formats=table.formats, filename=filename)


class ExcelExportSink(ExportSink):
    """Writes one-sheet ``.xlsx`` workbooks under ``root``.

    Datetimes are written in ``tz`` without an offset, since Excel cells
    carry no time zone.
    """

    backend = "local"

    def __init__(self, root: Path, tz: tzinfo = timezone.utc):
        self.root = root
        self.tz = tz

    def _cell(self, value: Any) -> Any:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.astimezone(self.tz).replace(tzinfo=None)
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, (str, int, float, date)) or value is None:
            return value
        return str(value)

    def export(
        self,
        sheet_name: str,
        header: Sequence[str],
        rows: Sequence[Sequence[Any]],
        formats: Sequence[ColumnFormat] | None = None,
        filename: str | None = None,
    ) -> ExportHandle:
        header = list(header)
        if formats is not None and len(formats) != len(header):
            raise ExportError(f"expected {len(header)} column formats, got {len(formats)}")
        for index, row in enumerate(rows):
            if len(row) != len(header):
                raise ExportError(f"row {index} has {len(row)} values, header has {len(header)}")

        created_at = datetime.now(timezone.utc)
        name = filename or f"report_{created_at.strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:6]}.xlsx"
        path = self.root / name
        title = _sheet_title(sheet_name)

        frame = pd.DataFrame([[self._cell(value) for value in row] for row in rows], columns=header)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with pd.ExcelWriter(path, engine="openpyxl") as writer:
                frame.to_excel(writer, sheet_name=title, index=False)
                if formats:
                    sheet = writer.sheets[title]
                    for column_index, fmt in enumerate(formats, start=1):
                        number_format = NUMBER_FORMATS.get(fmt)
                        if number_format is None:
                            raise ExportError(f"unknown column format: {fmt!r}")
                        for (cell,) in sheet.iter_rows(min_row=2, min_col=column_index, max_col=column_index):
                            cell.number_format = number_format
        except ExportError:
            raise
        except (OSError, ValueError) as exc:
            raise ExportError(f"failed to write {path}: {exc}") from exc

        logger.info("exported %d rows to %s (sheet=%s)", len(frame), path, title)
        return ExportHandle(path=path, sheet_name=title, row_count=len(frame), created_at=created_at)

    def share(self, handle: ExportHandle) -> SharedExport:
        if not handle.path.exists():
            raise ExportError(f"export file is missing: {handle.path}")
        location = handle.path.resolve().as_uri()
        logger.info("shared export %s", location)
        return SharedExport(handle=handle, location=location, backend=self.backend)


class MinioExportSink(ExcelExportSink):
    """Writes the workbook locally, then shares it as a presigned MinIO link."""

    backend = "minio"

    def __init__(
        self,
        root: Path,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
        link_ttl_seconds: int = 3600,
        tz: tzinfo = timezone.utc,
    ):
        super().__init__(root, tz=tz)
        self.client = Minio(endpoint, access_key=access_key, secret_key=secret_key, secure=secure)
        self.bucket = bucket
        self.link_ttl = timedelta(seconds=link_ttl_seconds)
        self._ensure_bucket()

    def _ensure_bucket(self) -> None:
        found = self.client.bucket_exists(self.bucket)
        if not found:
            self.client.make_bucket(self.bucket)

    def share(self, handle: ExportHandle) -> SharedExport:
        if not handle.path.exists():
            raise ExportError(f"export file is missing: {handle.path}")
        object_name = handle.path.name
        try:
            self.client.fput_object(
                bucket_name=self.bucket,
                object_name=object_name,
                file_path=str(handle.path),
                content_type=XLSX_CONTENT_TYPE,
            )
            url = self.client.presigned_get_object(self.bucket, object_name, expires=self.link_ttl)
        except (S3Error, TransportError) as exc:
            raise ExportError(f"failed to share {object_name}: {exc}") from exc
        logger.info("shared export %s via bucket=%s", object_name, self.bucket)
        return SharedExport(handle=handle, location=url, backend=self.backend)


def build_export_sink() -> ExportSink:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    if settings.export_backend == "minio":
        try:
            return MinioExportSink(
                root=settings.exports_root,
                endpoint=settings.minio_endpoint,
                access_key=settings.minio_access_key,
                secret_key=settings.minio_secret_key,
                bucket=settings.minio_bucket,
                secure=settings.minio_secure,
                link_ttl_seconds=settings.share_link_ttl_seconds,
                tz=tz,
            )
        except (S3Error, TransportError, OSError, ValueError) as exc:
            logger.warning("minio export backend unavailable, falling back to local: %s", exc)
    return ExcelExportSink(settings.exports_root, tz=tz)
