from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from salesmaster.api.utils import get_order_store, get_product_store
from salesmaster.core.security import Actor, get_actor
from salesmaster.domain.orders.commands import build_line_items, build_order_draft
from salesmaster.domain.orders.models import Order, OrderDraft
from salesmaster.store.catalog import ProductStore
from salesmaster.store.orders import OrderStore

router = APIRouter(tags=["orders"])


class ProductSelection(BaseModel):
    product: str = ""
    quantity: str | int | None = "1"


class OrderRequest(BaseModel):
    customer_name: str = ""
    customer_mobile: str | None = None
    products: list[ProductSelection] = Field(default_factory=list)
    payment_type: str = "cash"


def _draft_from_request(request: OrderRequest, products: ProductStore) -> OrderDraft:
    items = build_line_items((selection.model_dump() for selection in request.products), products.get_all())
    return build_order_draft(
        customer_name=request.customer_name,
        items=items,
        payment_type=request.payment_type,
        customer_mobile=request.customer_mobile,
    )


def _serialize(order: Order) -> dict:
    return order.model_dump(mode="json")


@router.get("/orders")
def list_orders(store: OrderStore = Depends(get_order_store)):
    orders = store.get_all()
    return {"count": len(orders), "orders": [_serialize(order) for order in orders]}


@router.get("/orders/{order_id}")
def get_order(order_id: str, store: OrderStore = Depends(get_order_store)):
    return _serialize(store.get(order_id))


@router.post("/orders", status_code=201)
def create_order(
    request: OrderRequest,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_order_store),
    products: ProductStore = Depends(get_product_store),
):
    order_id = store.create(_draft_from_request(request, products))
    return _serialize(store.get(order_id))


@router.put("/orders/{order_id}")
def update_order(
    order_id: str,
    request: OrderRequest,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_order_store),
    products: ProductStore = Depends(get_product_store),
):
    store.update(order_id, _draft_from_request(request, products))
    return _serialize(store.get(order_id))


@router.delete("/orders/{order_id}", status_code=204)
def delete_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    store: OrderStore = Depends(get_order_store),
):
    store.delete(order_id)
