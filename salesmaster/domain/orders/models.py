from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PaymentType(str, Enum):
    CASH = "cash"
    CREDIT = "credit"


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_name: str
    unit_price: Decimal = Field(ge=0, decimal_places=2, description="price snapshotted from the catalog when the order was built")
    quantity: int = Field(ge=0)


class OrderDraft(BaseModel):
    """Order fields supplied by the caller; the store assigns id and timestamp."""

    model_config = ConfigDict(frozen=True)

    customer_name: str = ""
    customer_mobile: str | None = None
    items: list[LineItem] = Field(default_factory=list)
    payment_type: PaymentType | None = None
    total_price: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)


class Order(OrderDraft):
    id: str
    ordered_at: datetime
