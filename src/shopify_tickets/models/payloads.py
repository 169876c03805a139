"""Charges utiles des webhooks Shopify (``orders/paid``, ``refunds/create``).

FR: Seuls les champs utilisés par les récapitulatifs de TVA sont modélisés ;
    les autres champs envoyés par Shopify sont ignorés. Les montants textuels
    (``"19.90"``) passent par ``parse_amount`` : Decimal arrondi au centime.
EN: Only fields consumed by the tax summaries are modelled; others are ignored.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from shopify_tickets.models.enums import MoneyType
from shopify_tickets.utils.money import parse_amount


def order_gid(order_id: int) -> str:
    """Identifiant GraphQL global d'une commande (``gid://shopify/Order/<id>``)."""
    return f"gid://shopify/Order/{order_id}"


def parse_optional_amount(value: Any) -> Decimal | None:
    return None if value is None else parse_amount(value)


class Money(BaseModel):
    amount: Decimal
    currency_code: str

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Decimal:
        return parse_amount(value)


class MoneySet(BaseModel):
    """Montant exprimé dans la devise boutique et dans la devise client."""

    shop_money: Money
    presentment_money: Money | None = None

    def get(self, money_type: MoneyType) -> Money:
        money = getattr(self, str(money_type))
        if money is None:
            msg = f"Montant absent pour la devise {money_type}"
            raise ValueError(msg)
        return money


class PayloadTaxLine(BaseModel):
    rate: Decimal = Field(..., ge=0, description="Taux fractionnaire / Rate (0.21)")
    title: str = ""
    price: Decimal | None = None
    price_set: MoneySet

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal | None:
        return parse_optional_amount(value)


class DiscountAllocation(BaseModel):
    amount: Decimal | None = None
    amount_set: MoneySet

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Decimal | None:
        return parse_optional_amount(value)


class LineItem(BaseModel):
    """Ligne de commande : prix unitaire, quantité, remises et taxes."""

    id: int | None = None
    title: str = ""
    quantity: int = Field(default=1, ge=0)
    price: Decimal
    price_set: MoneySet | None = None
    discount_allocations: list[DiscountAllocation] = Field(default_factory=list)
    tax_lines: list[PayloadTaxLine] = Field(default_factory=list)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal:
        return parse_amount(value)

    def unit_price(self, money_type: MoneyType) -> Decimal:
        if self.price_set is None:
            return self.price
        return self.price_set.get(money_type).amount


class ShippingLine(BaseModel):
    """Frais de port (traités comme une ligne de quantité 1)."""

    id: int | None = None
    title: str = ""
    price: Decimal
    price_set: MoneySet | None = None
    discount_allocations: list[DiscountAllocation] = Field(default_factory=list)
    tax_lines: list[PayloadTaxLine] = Field(default_factory=list)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal:
        return parse_amount(value)

    def as_line_item(self) -> LineItem:
        return LineItem(
            id=self.id,
            title=self.title,
            quantity=1,
            price=self.price,
            price_set=self.price_set,
            discount_allocations=self.discount_allocations,
            tax_lines=self.tax_lines,
        )


class OrderPaidPayload(BaseModel):
    """Webhook ``orders/paid``."""

    id: int
    admin_graphql_api_id: str | None = None
    name: str | None = None
    created_at: datetime
    currency: str | None = None
    tags: str = ""
    taxes_included: bool | None = None
    total_price_set: MoneySet
    line_items: list[LineItem] = Field(default_factory=list)
    shipping_lines: list[ShippingLine] = Field(default_factory=list)

    @property
    def graphql_id(self) -> str:
        return self.admin_graphql_api_id or order_gid(self.id)

    @property
    def tag_list(self) -> list[str]:
        """Étiquettes de la commande (chaîne séparée par des virgules)."""
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]


class RefundedLineItem(BaseModel):
    """Ligne de commande d'origine rattachée à une ligne de remboursement."""

    id: int | None = None
    price: Decimal | None = None
    discount_allocations: list[DiscountAllocation] = Field(default_factory=list)
    tax_lines: list[PayloadTaxLine] = Field(default_factory=list)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: Any) -> Decimal | None:
        return parse_optional_amount(value)


class RefundLineItem(BaseModel):
    id: int | None = None
    line_item_id: int | None = None
    quantity: int = 0
    subtotal_set: MoneySet
    total_tax_set: MoneySet | None = None
    line_item: RefundedLineItem


class RefundCreatedPayload(BaseModel):
    """Webhook ``refunds/create``."""

    id: int
    admin_graphql_api_id: str | None = None
    order_id: int
    created_at: datetime
    processed_at: datetime | None = None
    refund_line_items: list[RefundLineItem] = Field(default_factory=list)

    @property
    def order_graphql_id(self) -> str:
        return order_gid(self.order_id)
