"""Fixtures partagées pour les tests de numérotation des tickets."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest

from shopify_tickets.models.ticket import OrderTicketRequest, RefundTicketRequest, TaxLine
from shopify_tickets.shopify.memory import MemoryCommerceClient
from shopify_tickets.store.connectors.memory import MemoryDocumentStore
from shopify_tickets.store_config.repository import StoreConfigRepository
from shopify_tickets.store_config.service import StoreConfigService
from shopify_tickets.tickets.generator import (
    TICKET_UNIQUE_KEYS,
    TICKETS_CONTAINER,
    TicketNumberGenerator,
)
from shopify_tickets.tickets.module import TicketNumberingModule

SHOP = "test-shop.myshopify.com"


def money(amount: str, currency: str = "EUR") -> dict[str, Any]:
    return {
        "shop_money": {"amount": amount, "currency_code": currency},
        "presentment_money": {"amount": amount, "currency_code": currency},
    }


async def _no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def money_set():
    """Fabrique de MoneySet Shopify (même montant dans les deux devises)."""
    return money


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore(unique_keys={TICKETS_CONTAINER: TICKET_UNIQUE_KEYS})


@pytest.fixture
def generator(store: MemoryDocumentStore) -> TicketNumberGenerator:
    """Générateur sans attente entre les tentatives."""
    return TicketNumberGenerator(store, sleep=_no_sleep)


@pytest.fixture
def commerce_client() -> MemoryCommerceClient:
    return MemoryCommerceClient(shop=SHOP, taxes_included=True)


@pytest.fixture
def store_config(store: MemoryDocumentStore) -> StoreConfigService:
    return StoreConfigService(StoreConfigRepository(store))


@pytest.fixture
def module(generator: TicketNumberGenerator, store_config: StoreConfigService) -> TicketNumberingModule:
    return TicketNumberingModule(generator, store_config)


@pytest.fixture
def make_order_request():
    """Fabrique de demandes de ticket de commande (21 %, 121.00 EUR)."""

    def make(
        order_id: int = 555,
        created_at: datetime = datetime(2025, 3, 10, 10, 0, tzinfo=UTC),
    ) -> OrderTicketRequest:
        return OrderTicketRequest(
            order_id=order_id,
            created_at=created_at,
            total_amount=Decimal("121.00"),
            currency="EUR",
            tax_lines=[
                TaxLine(rate=Decimal("0.21"), price=Decimal("100.00"), tax=Decimal("21.00"), currency="EUR")
            ],
        )

    return make


@pytest.fixture
def make_refund_request():
    """Fabrique de demandes de ticket de remboursement."""

    def make(
        order_id: int = 555,
        refund_id: int = 900,
        created_at: datetime = datetime(2025, 3, 12, 10, 0, tzinfo=UTC),
    ) -> RefundTicketRequest:
        return RefundTicketRequest(
            order_id=order_id,
            refund_id=refund_id,
            created_at=created_at,
            total_amount=Decimal("12.10"),
            currency="EUR",
            tax_lines=[
                TaxLine(rate=Decimal("0.21"), price=Decimal("10.00"), tax=Decimal("2.10"), currency="EUR")
            ],
        )

    return make


@pytest.fixture
def order_payload() -> dict[str, Any]:
    """Webhook ``orders/paid`` : 2 x 100.00 TTC, remise 10.00, TVA 21 %."""
    return {
        "id": 555,
        "admin_graphql_api_id": "gid://shopify/Order/555",
        "name": "#1001",
        "created_at": "2025-03-10T11:00:00+01:00",
        "currency": "EUR",
        "tags": "",
        "taxes_included": True,
        "total_price_set": money("190.00"),
        "line_items": [
            {
                "id": 1,
                "title": "Gafas de sol",
                "quantity": 2,
                "price": "100.00",
                "price_set": money("100.00"),
                "discount_allocations": [{"amount": "10.00", "amount_set": money("10.00")}],
                "tax_lines": [
                    {"rate": "0.21", "title": "IVA", "price": "32.98", "price_set": money("32.98")}
                ],
            }
        ],
        "shipping_lines": [],
    }


@pytest.fixture
def refund_payload() -> dict[str, Any]:
    """Webhook ``refunds/create`` : une ligne de 60.50 TTC à 21 %."""
    return {
        "id": 900,
        "admin_graphql_api_id": "gid://shopify/Refund/900",
        "order_id": 555,
        "created_at": "2025-03-12T09:30:00+01:00",
        "processed_at": "2025-03-12T09:30:00+01:00",
        "refund_line_items": [
            {
                "id": 11,
                "line_item_id": 1,
                "quantity": 1,
                "subtotal_set": money("60.50"),
                "total_tax_set": money("10.50"),
                "line_item": {
                    "id": 1,
                    "price": "100.00",
                    "tax_lines": [
                        {"rate": "0.21", "title": "IVA", "price": "10.50", "price_set": money("10.50")}
                    ],
                },
            }
        ],
    }
