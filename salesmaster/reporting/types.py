from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

ColumnFormat = Literal["text", "currency", "date", "integer"]


class Timeframe(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class BucketCounts:
    daily: int = 0
    weekly: int = 0
    yearly: int = 0

    def as_dict(self) -> dict[str, int]:
        return {"daily": self.daily, "weekly": self.weekly, "yearly": self.yearly}


@dataclass(frozen=True)
class CustomerRollup:
    order_count: int = 0
    total_amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class ReportRow:
    order_id: str
    customer_name: str
    total_price: Decimal
    ordered_at: datetime
    payment_type: str

    def as_tuple(self) -> tuple[Any, ...]:
        return (self.order_id, self.customer_name, self.total_price, self.ordered_at, self.payment_type)


@dataclass(frozen=True)
class ColumnSpec:
    label: str
    format: ColumnFormat = "text"


@dataclass
class ReportTable:
    """Export-ready dataset: one sheet, ordered columns, ordered rows."""

    sheet_name: str
    columns: list[ColumnSpec]
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    @property
    def header(self) -> list[str]:
        return [column.label for column in self.columns]

    @property
    def formats(self) -> list[ColumnFormat]:
        return [column.format for column in self.columns]
