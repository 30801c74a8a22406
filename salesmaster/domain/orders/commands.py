from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from salesmaster.core.errors import ValidationError
from salesmaster.domain.catalog import Product
from salesmaster.domain.orders.models import LineItem, OrderDraft, PaymentType
from salesmaster.reporting.aggregation import compute_order_total, parse_quantity


def build_line_items(selections: Iterable[Mapping[str, Any]], catalog: Iterable[Product]) -> list[LineItem]:
    """Resolve ``{"product": name, "quantity": raw}`` selections against the catalog.

    The catalog price is copied into each line item so later price edits
    leave the order untouched.
    """
    prices = {product.name: product.unit_price for product in catalog}
    items: list[LineItem] = []
    unknown: list[str] = []
    for selection in selections:
        name = str(selection.get("product") or "").strip()
        if not name:
            continue
        if name not in prices:
            unknown.append(name)
            continue
        items.append(
            LineItem(
                product_name=name,
                unit_price=prices[name],
                quantity=parse_quantity(selection.get("quantity")),
            )
        )
    if unknown:
        raise ValidationError([f"unknown product: {name}" for name in unknown])
    return items


def validate_order_draft(draft: OrderDraft) -> None:
    problems: list[str] = []
    if not draft.customer_name.strip():
        problems.append("customer name is required")
    if not draft.items:
        problems.append("at least one line item is required")
    if draft.payment_type is None:
        problems.append("payment type is required")
    if draft.total_price <= 0:
        problems.append("order total must be greater than zero")
    if problems:
        raise ValidationError(problems)


def build_order_draft(
    customer_name: str,
    items: list[LineItem],
    payment_type: PaymentType | str | None,
    customer_mobile: str | None = None,
) -> OrderDraft:
    if isinstance(payment_type, str) and not payment_type.strip():
        payment_type = None
    elif isinstance(payment_type, str):
        try:
            payment_type = PaymentType(payment_type.strip().lower())
        except ValueError as exc:
            raise ValidationError(f"unknown payment type: {payment_type!r}") from exc

    draft = OrderDraft(
        customer_name=customer_name,
        customer_mobile=customer_mobile or None,
        items=items,
        payment_type=payment_type,
        total_price=compute_order_total(items),
    )
    validate_order_draft(draft)
    return draft
