from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache

from salesmaster.core.errors import InvalidArgument
from salesmaster.export.sink import ExportSink, build_export_sink
from salesmaster.store.catalog import CustomerStore, ProductStore
from salesmaster.store.orders import OrderStore


def parse_instant(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidArgument(f"invalid ISO timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def isoformat_z(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


# One store per process so subscribers see every mutation made through the API.
@lru_cache(maxsize=1)
def get_order_store() -> OrderStore:
    return OrderStore()


@lru_cache(maxsize=1)
def get_product_store() -> ProductStore:
    return ProductStore()


@lru_cache(maxsize=1)
def get_customer_store() -> CustomerStore:
    return CustomerStore()


# Building the MinIO sink checks the bucket over the network; do it once.
@lru_cache(maxsize=1)
def get_export_sink() -> ExportSink:
    return build_export_sink()
