from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesmaster.core.errors import RecordNotFound
from salesmaster.domain.orders.commands import validate_order_draft
from salesmaster.domain.orders.models import LineItem, Order, OrderDraft, PaymentType
from salesmaster.persistence.models import OrderModel
from salesmaster.store.base import SqlStore, as_utc

logger = logging.getLogger(__name__)


def _line_items_payload(items: list[LineItem]) -> list[dict]:
    return [
        {"product_name": item.product_name, "unit_price": str(item.unit_price), "quantity": item.quantity}
        for item in items
    ]


def order_from_row(row: OrderModel) -> Order:
    return Order(
        id=row.order_id,
        customer_name=row.customer_name,
        customer_mobile=row.customer_mobile,
        items=[
            LineItem(
                product_name=item["product_name"],
                unit_price=Decimal(str(item["unit_price"])),
                quantity=int(item["quantity"]),
            )
            for item in row.line_items or []
        ],
        payment_type=PaymentType(row.payment_type),
        total_price=Decimal(row.total_price),
        ordered_at=as_utc(row.ordered_at),
    )


class OrderStore(SqlStore[Order]):
    """Order collection: create, full-record update, delete, snapshot, subscribe.

    Subscribers receive a fresh snapshot after every successful mutation.
    ``ordered_at`` is assigned by ``create`` and kept by ``update``.
    """

    collection = "orders"

    def __init__(self, clock=None) -> None:
        super().__init__()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _get_row(self, session: Session, order_id: str) -> OrderModel:
        row = session.scalar(select(OrderModel).where(OrderModel.order_id == order_id))
        if row is None:
            raise RecordNotFound(self.collection, order_id)
        return row

    def create(self, draft: OrderDraft) -> str:
        validate_order_draft(draft)
        now = as_utc(self._clock())
        with self._scope() as session:
            row = OrderModel(
                customer_name=draft.customer_name,
                customer_mobile=draft.customer_mobile,
                line_items=_line_items_payload(draft.items),
                payment_type=draft.payment_type.value,
                total_price=draft.total_price,
                ordered_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            order_id = row.order_id
        logger.info("order created: id=%s customer=%s total=%s", order_id, draft.customer_name, draft.total_price)
        self._notify()
        return order_id

    def update(self, order_id: str, draft: OrderDraft) -> None:
        validate_order_draft(draft)
        with self._scope() as session:
            row = self._get_row(session, order_id)
            row.customer_name = draft.customer_name
            row.customer_mobile = draft.customer_mobile
            row.line_items = _line_items_payload(draft.items)
            row.payment_type = draft.payment_type.value
            row.total_price = draft.total_price
            row.updated_at = as_utc(self._clock())
        logger.info("order updated: id=%s", order_id)
        self._notify()

    def delete(self, order_id: str) -> None:
        with self._scope() as session:
            session.delete(self._get_row(session, order_id))
        logger.info("order deleted: id=%s", order_id)
        self._notify()

    def get(self, order_id: str) -> Order:
        with self._scope() as session:
            return order_from_row(self._get_row(session, order_id))

    def get_all(self) -> tuple[Order, ...]:
        with self._scope() as session:
            rows = session.scalars(select(OrderModel).order_by(OrderModel.seq_id.asc())).all()
            return tuple(order_from_row(row) for row in rows)
