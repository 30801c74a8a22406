from __future__ import annotations

from fastapi import APIRouter, Depends

from salesmaster.api.utils import get_customer_store, get_product_store
from salesmaster.core.security import Actor, get_actor
from salesmaster.domain.catalog import CustomerDraft, ProductDraft
from salesmaster.store.catalog import CustomerStore, ProductStore

router = APIRouter(tags=["catalog"])


@router.get("/products")
def list_products(store: ProductStore = Depends(get_product_store)):
    products = store.get_all()
    return {"count": len(products), "products": [p.model_dump(mode="json") for p in products]}


@router.get("/products/{product_id}")
def get_product(product_id: str, store: ProductStore = Depends(get_product_store)):
    return store.get(product_id).model_dump(mode="json")


@router.post("/products", status_code=201)
def create_product(
    draft: ProductDraft,
    actor: Actor = Depends(get_actor),
    store: ProductStore = Depends(get_product_store),
):
    product_id = store.create(draft)
    return store.get(product_id).model_dump(mode="json")


@router.put("/products/{product_id}")
def update_product(
    product_id: str,
    draft: ProductDraft,
    actor: Actor = Depends(get_actor),
    store: ProductStore = Depends(get_product_store),
):
    store.update(product_id, draft)
    return store.get(product_id).model_dump(mode="json")


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    product_id: str,
    actor: Actor = Depends(get_actor),
    store: ProductStore = Depends(get_product_store),
):
    store.delete(product_id)


@router.get("/customers")
def list_customers(store: CustomerStore = Depends(get_customer_store)):
    customers = store.get_all()
    return {"count": len(customers), "customers": [c.model_dump(mode="json") for c in customers]}


@router.get("/customers/{customer_id}")
def get_customer(customer_id: str, store: CustomerStore = Depends(get_customer_store)):
    return store.get(customer_id).model_dump(mode="json")


@router.post("/customers", status_code=201)
def create_customer(
    draft: CustomerDraft,
    actor: Actor = Depends(get_actor),
    store: CustomerStore = Depends(get_customer_store),
):
    customer_id = store.create(draft)
    return store.get(customer_id).model_dump(mode="json")


@router.put("/customers/{customer_id}")
def update_customer(
    customer_id: str,
    draft: CustomerDraft,
    actor: Actor = Depends(get_actor),
    store: CustomerStore = Depends(get_customer_store),
):
    store.update(customer_id, draft)
    return store.get(customer_id).model_dump(mode="json")


@router.delete("/customers/{customer_id}", status_code=204)
def delete_customer(
    customer_id: str,
    actor: Actor = Depends(get_actor),
    store: CustomerStore = Depends(get_customer_store),
):
    store.delete(customer_id)
