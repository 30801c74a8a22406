from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select

from salesmaster.core.errors import RecordNotFound
from salesmaster.domain.catalog import (
    Customer,
    CustomerDraft,
    Gender,
    Product,
    ProductDraft,
    validate_customer_draft,
    validate_product_draft,
)
from salesmaster.persistence.models import CustomerModel, ProductModel
from salesmaster.store.base import SqlStore

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ProductStore(SqlStore[Product]):
    collection = "products"

    def create(self, draft: ProductDraft) -> str:
        validate_product_draft(draft)
        with self._scope() as session:
            row = ProductModel(name=draft.name.strip(), unit_price=draft.unit_price, updated_at=_now())
            session.add(row)
            session.flush()
            product_id = row.product_id
        logger.info("product created: id=%s name=%s", product_id, draft.name)
        self._notify()
        return product_id

    def update(self, product_id: str, draft: ProductDraft) -> None:
        validate_product_draft(draft)
        with self._scope() as session:
            row = session.get(ProductModel, product_id)
            if row is None:
                raise RecordNotFound(self.collection, product_id)
            row.name = draft.name.strip()
            row.unit_price = draft.unit_price
            row.updated_at = _now()
        self._notify()

    def delete(self, product_id: str) -> None:
        with self._scope() as session:
            row = session.get(ProductModel, product_id)
            if row is None:
                raise RecordNotFound(self.collection, product_id)
            session.delete(row)
        self._notify()

    def get(self, product_id: str) -> Product:
        with self._scope() as session:
            row = session.get(ProductModel, product_id)
            if row is None:
                raise RecordNotFound(self.collection, product_id)
            return Product(id=row.product_id, name=row.name, unit_price=Decimal(row.unit_price))

    def get_all(self) -> tuple[Product, ...]:
        with self._scope() as session:
            rows = session.scalars(select(ProductModel).order_by(ProductModel.name.asc())).all()
            return tuple(Product(id=row.product_id, name=row.name, unit_price=Decimal(row.unit_price)) for row in rows)


class CustomerStore(SqlStore[Customer]):
    collection = "customers"

    @staticmethod
    def _to_customer(row: CustomerModel) -> Customer:
        return Customer(id=row.customer_id, name=row.name, mobile=row.mobile, gender=Gender(row.gender))

    def create(self, draft: CustomerDraft) -> str:
        validate_customer_draft(draft)
        with self._scope() as session:
            row = CustomerModel(
                name=draft.name.strip(),
                mobile=draft.mobile.strip(),
                gender=draft.gender.value,
                updated_at=_now(),
            )
            session.add(row)
            session.flush()
            customer_id = row.customer_id
        logger.info("customer created: id=%s", customer_id)
        self._notify()
        return customer_id

    def update(self, customer_id: str, draft: CustomerDraft) -> None:
        validate_customer_draft(draft)
        with self._scope() as session:
            row = session.get(CustomerModel, customer_id)
            if row is None:
                raise RecordNotFound(self.collection, customer_id)
            row.name = draft.name.strip()
            row.mobile = draft.mobile.strip()
            row.gender = draft.gender.value
            row.updated_at = _now()
        self._notify()

    def delete(self, customer_id: str) -> None:
        with self._scope() as session:
            row = session.get(CustomerModel, customer_id)
            if row is None:
                raise RecordNotFound(self.collection, customer_id)
            session.delete(row)
        self._notify()

    def get(self, customer_id: str) -> Customer:
        with self._scope() as session:
            row = session.get(CustomerModel, customer_id)
            if row is None:
                raise RecordNotFound(self.collection, customer_id)
            return self._to_customer(row)

    def get_all(self) -> tuple[Customer, ...]:
        with self._scope() as session:
            rows = session.scalars(select(CustomerModel).order_by(CustomerModel.name.asc())).all()
            return tuple(self._to_customer(row) for row in rows)
