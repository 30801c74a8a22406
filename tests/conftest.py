from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import salesmaster.persistence.db as db
from salesmaster.core.config import get_settings
from salesmaster.domain.orders.models import LineItem, Order, PaymentType
from salesmaster.persistence.models import Base


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.export_backend = "local"
    settings.exports_root = test_db_path.parent / "exports"
    settings.session_file = test_db_path.parent / "session.json"
    settings.timezone = "UTC"
    settings.auth_enabled = True

    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    db.engine = engine
    db.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables(configure_test_engine):
    with db.session_scope() as s:
        for table in reversed(Base.metadata.sorted_tables):
            s.execute(table.delete())
    yield


@pytest.fixture()
def client(configure_test_engine):
    from salesmaster.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(configure_test_engine):
    with db.session_scope() as s:
        yield s


@pytest.fixture()
def auth_headers():
    return {"X-API-Key": get_settings().api_key}


@pytest.fixture()
def now() -> datetime:
    return datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


def make_order(
    order_id: str,
    customer: str,
    total: int | str | Decimal,
    ordered_at: datetime,
    payment_type: PaymentType = PaymentType.CASH,
) -> Order:
    total = Decimal(str(total))
    return Order(
        id=order_id,
        customer_name=customer,
        items=[LineItem(product_name="Widget", unit_price=total, quantity=1)],
        payment_type=payment_type,
        total_price=total,
        ordered_at=ordered_at,
    )


@pytest.fixture()
def scenario_orders(now: datetime) -> list[Order]:
    return [
        make_order("o-1", "A", 200, now),
        make_order("o-2", "B", 300, now - timedelta(days=10)),
        make_order("o-3", "A", 500, now - timedelta(days=400)),
    ]
