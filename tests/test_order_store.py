from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError

import salesmaster.persistence.db as db
from salesmaster.core.errors import RecordNotFound, StoreError, ValidationError
from salesmaster.domain.catalog import CustomerDraft, Gender, ProductDraft
from salesmaster.domain.orders.models import LineItem, OrderDraft, PaymentType
from salesmaster.store.catalog import CustomerStore, ProductStore
from salesmaster.store.orders import OrderStore


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current


def _draft(customer: str = "Sam Wilson", quantity: int = 2, payment: PaymentType = PaymentType.CASH) -> OrderDraft:
    items = [LineItem(product_name="Coffee", unit_price=Decimal("3.50"), quantity=quantity)]
    return OrderDraft(
        customer_name=customer,
        customer_mobile="555-555-5555",
        items=items,
        payment_type=payment,
        total_price=Decimal("3.50") * quantity,
    )


def test_create_and_get_all_round_trip():
    clock = FakeClock(datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc))
    store = OrderStore(clock=clock)

    order_id = store.create(_draft())
    orders = store.get_all()

    assert len(orders) == 1
    order = orders[0]
    assert order.id == order_id
    assert order.customer_name == "Sam Wilson"
    assert order.items[0].unit_price == Decimal("3.50")
    assert order.total_price == Decimal("7.00")
    assert order.payment_type is PaymentType.CASH
    assert order.ordered_at == clock.current


def test_update_replaces_record_but_keeps_timestamp():
    clock = FakeClock(datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc))
    store = OrderStore(clock=clock)
    order_id = store.create(_draft())

    clock.current += timedelta(days=3)
    store.update(order_id, _draft(customer="Jane Smith", quantity=4, payment=PaymentType.CREDIT))

    order = store.get(order_id)
    assert order.customer_name == "Jane Smith"
    assert order.total_price == Decimal("14.00")
    assert order.payment_type is PaymentType.CREDIT
    assert order.ordered_at == datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_delete_and_missing_records():
    store = OrderStore()
    order_id = store.create(_draft())
    store.delete(order_id)

    assert store.get_all() == ()
    with pytest.raises(RecordNotFound):
        store.delete(order_id)
    with pytest.raises(StoreError):
        store.update("missing", _draft())


def test_create_validates_before_save():
    store = OrderStore()
    with pytest.raises(ValidationError):
        store.create(OrderDraft(customer_name="Nobody"))
    assert store.get_all() == ()


def test_subscribers_receive_snapshot_after_each_mutation():
    store = OrderStore()
    snapshots = []
    subscription = store.subscribe(snapshots.append)

    order_id = store.create(_draft())
    store.update(order_id, _draft(quantity=1))
    subscription()
    store.delete(order_id)

    assert not subscription.active
    assert len(snapshots) == 2
    assert [o.total_price for o in snapshots[0]] == [Decimal("7.00")]
    assert [o.total_price for o in snapshots[1]] == [Decimal("3.50")]
    assert isinstance(snapshots[1], tuple)


def test_unsubscribe_is_idempotent():
    store = OrderStore()
    calls = []
    subscription = store.subscribe(calls.append)
    subscription.unsubscribe()
    subscription.unsubscribe()
    store.create(_draft())
    assert calls == []


def test_product_price_edit_does_not_touch_orders():
    products = ProductStore()
    orders = OrderStore()
    product_id = products.create(ProductDraft(name="Coffee", unit_price=Decimal("3.50")))
    order_id = orders.create(_draft())

    products.update(product_id, ProductDraft(name="Coffee", unit_price=Decimal("4.00")))

    assert products.get(product_id).unit_price == Decimal("4.00")
    assert orders.get(order_id).items[0].unit_price == Decimal("3.50")


def test_customer_store_crud():
    store = CustomerStore()
    customer_id = store.create(CustomerDraft(name="John Doe", mobile="123-456-7890"))
    store.update(customer_id, CustomerDraft(name="John Doe", mobile="000", gender=Gender.OTHER))

    customer = store.get(customer_id)
    assert customer.mobile == "000"
    assert customer.gender is Gender.OTHER

    with pytest.raises(ValidationError):
        store.create(CustomerDraft(name=" ", mobile=""))

    store.delete(customer_id)
    assert store.get_all() == ()


def test_failing_subscriber_does_not_block_create_or_other_subscribers(caplog):
    store = OrderStore()
    delivered = []

    def crash(snapshot):
        raise RuntimeError("ui crashed")

    store.subscribe(crash)
    store.subscribe(delivered.append)

    with caplog.at_level(logging.ERROR, logger="salesmaster.store.base"):
        order_id = store.create(_draft())

    assert [o.id for o in store.get_all()] == [order_id]
    assert len(delivered) == 1
    assert [o.id for o in delivered[0]] == [order_id]
    assert "snapshot subscriber" in caplog.text


def test_database_failure_surfaces_as_store_error(monkeypatch):
    store = OrderStore()

    def broken_session():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "SessionLocal", broken_session)

    with pytest.raises(StoreError) as excinfo:
        store.get_all()
    assert not isinstance(excinfo.value, RecordNotFound)
    assert "database is locked" in str(excinfo.value)

    with pytest.raises(StoreError):
        store.create(_draft())


def test_product_price_with_sub_cent_precision_is_rejected():
    with pytest.raises(PydanticValidationError):
        ProductDraft(name="Gum", unit_price=Decimal("0.125"))

    store = ProductStore()
    product_id = store.create(ProductDraft(name="Gum", unit_price=Decimal("0.13")))
    assert store.get(product_id).unit_price == Decimal("0.13")


def test_line_item_price_with_sub_cent_precision_is_rejected():
    with pytest.raises(PydanticValidationError):
        LineItem(product_name="Gum", unit_price=Decimal("0.125"), quantity=1)
