from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from salesmaster.core.errors import ValidationError


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ProductDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    unit_price: Decimal = Field(ge=0, decimal_places=2)


class Product(ProductDraft):
    id: str


class CustomerDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    mobile: str
    gender: Gender = Gender.MALE


class Customer(CustomerDraft):
    id: str


def validate_product_draft(draft: ProductDraft) -> None:
    if not draft.name.strip():
        raise ValidationError("product name is required")


def validate_customer_draft(draft: CustomerDraft) -> None:
    problems = []
    if not draft.name.strip():
        problems.append("customer name is required")
    if not draft.mobile.strip():
        problems.append("customer mobile number is required")
    if problems:
        raise ValidationError(problems)
