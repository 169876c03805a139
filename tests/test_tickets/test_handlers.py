"""Tests des gestionnaires de webhooks et du module de numérotation."""

from typing import Any

import pytest

from shopify_tickets.models.ticket import OrderTicket, RefundTicket
from shopify_tickets.shopify.memory import MemoryCommerceClient
from shopify_tickets.store.connectors.memory import MemoryDocumentStore
from shopify_tickets.tickets.errors import OrderAnnotationError
from shopify_tickets.tickets.generator import TICKETS_CONTAINER
from shopify_tickets.tickets.handlers import (
    ORDER_TICKET_ATTRIBUTE,
    WebhookContext,
    refund_ticket_attribute,
)
from shopify_tickets.tickets.module import TicketNumberingModule

ORDER_GID = "gid://shopify/Order/555"


def _context(topic: str, payload: dict[str, Any], client: MemoryCommerceClient) -> WebhookContext:
    return WebhookContext(topic=topic, shop=client.shop, payload=payload, client=client)


def _tickets(store: MemoryDocumentStore) -> list[dict]:
    return [d for d in store.documents(TICKETS_CONTAINER) if "type" in d]


class TestModule:
    """Tests du routage par sujet."""

    def test_handlers_by_topic(self, module: TicketNumberingModule) -> None:
        assert set(module.handlers) == {"orders/paid", "refunds/create"}

    def test_unknown_topic(self, module: TicketNumberingModule) -> None:
        with pytest.raises(KeyError, match="orders/create"):
            module.get_handler("orders/create")


class TestOrderPaid:
    """Tests du gestionnaire ``orders/paid``."""

    async def test_assigns_and_annotates(
        self,
        module: TicketNumberingModule,
        commerce_client: MemoryCommerceClient,
        order_payload,
    ) -> None:
        ticket = await module.dispatch(_context("orders/paid", order_payload, commerce_client))
        assert isinstance(ticket, OrderTicket)
        assert ticket.id == "T25-0001"
        assert ticket.total_amount == 190
        assert commerce_client.attributes_of(ORDER_GID) == {ORDER_TICKET_ATTRIBUTE: "T25-0001"}

    async def test_duplicate_delivery_is_idempotent(
        self,
        module: TicketNumberingModule,
        store: MemoryDocumentStore,
        commerce_client: MemoryCommerceClient,
        order_payload,
    ) -> None:
        context = _context("orders/paid", order_payload, commerce_client)
        first = await module.dispatch(context)
        second = await module.dispatch(context)
        assert first.id == second.id
        assert len(_tickets(store)) == 1
        assert commerce_client.update_calls == 1

    async def test_existing_attributes_are_kept(
        self,
        module: TicketNumberingModule,
        commerce_client: MemoryCommerceClient,
        order_payload,
    ) -> None:
        await commerce_client.update_order_attributes(ORDER_GID, {"gift": "yes"})
        await module.dispatch(_context("orders/paid", order_payload, commerce_client))
        assert commerce_client.attributes_of(ORDER_GID) == {
            "gift": "yes",
            ORDER_TICKET_ATTRIBUTE: "T25-0001",
        }

    @pytest.mark.parametrize("tags", ["ceco", "vip, CECO", " Ceco "])
    async def test_excluded_by_payload_tag(
        self,
        module: TicketNumberingModule,
        store: MemoryDocumentStore,
        commerce_client: MemoryCommerceClient,
        order_payload,
        tags: str,
    ) -> None:
        order_payload["tags"] = tags
        result = await module.dispatch(_context("orders/paid", order_payload, commerce_client))
        assert result is None
        assert _tickets(store) == []
        assert commerce_client.tags_calls == 0

    async def test_excluded_by_platform_tag(
        self,
        module: TicketNumberingModule,
        store: MemoryDocumentStore,
        commerce_client: MemoryCommerceClient,
        order_payload,
    ) -> None:
        commerce_client.add_order(ORDER_GID, tags=["Ceco"])
        result = await module.dispatch(_context("orders/paid", order_payload, commerce_client))
        assert result is None
        assert _tickets(store) == []
        assert commerce_client.tags_calls == 1

    async def test_store_config_fetched_once(
        self,
        module: TicketNumberingModule,
        commerce_client: MemoryCommerceClient,
        order_payload,
    ) -> None:
        await module.dispatch(_context("orders/paid", order_payload, commerce_client))
        second_order = {**order_payload, "id": 556, "admin_graphql_api_id": "gid://shopify/Order/556"}
        ticket = await module.dispatch(_context("orders/paid", second_order, commerce_client))
        assert ticket.id == "T25-0002"
        assert commerce_client.config_calls == 1

    async def test_annotation_failure_keeps_ticket(
        self,
        module: TicketNumberingModule,
        store: MemoryDocumentStore,
        commerce_client: MemoryCommerceClient,
        order_payload,
    ) -> None:
        commerce_client.fail_updates = True
        context = _context("orders/paid", order_payload, commerce_client)
        with pytest.raises(OrderAnnotationError) as exc_info:
            await module.dispatch(context)
        assert exc_info.value.ticket_number == "T25-0001"
        assert len(_tickets(store)) == 1

        # Nouvel envoi du webhook : même ticket, annotation rétablie
        commerce_client.fail_updates = False
        ticket = await module.dispatch(context)
        assert ticket.id == "T25-0001"
        assert commerce_client.attributes_of(ORDER_GID) == {ORDER_TICKET_ATTRIBUTE: "T25-0001"}


class TestRefundCreated:
    """Tests du gestionnaire ``refunds/create``."""

    async def test_assigns_refund_ticket(
        self,
        module: TicketNumberingModule,
        commerce_client: MemoryCommerceClient,
        refund_payload,
    ) -> None:
        ticket = await module.dispatch(_context("refunds/create", refund_payload, commerce_client))
        assert isinstance(ticket, RefundTicket)
        assert ticket.refund_id == 900
        assert commerce_client.attributes_of(ORDER_GID) == {
            refund_ticket_attribute(900): ticket.id
        }

    async def test_order_and_refund_tickets_coexist(
        self,
        module: TicketNumberingModule,
        commerce_client: MemoryCommerceClient,
        order_payload,
        refund_payload,
    ) -> None:
        await module.dispatch(_context("orders/paid", order_payload, commerce_client))
        refund = await module.dispatch(_context("refunds/create", refund_payload, commerce_client))
        assert refund.id == "T25-0002"
        assert commerce_client.attributes_of(ORDER_GID) == {
            ORDER_TICKET_ATTRIBUTE: "T25-0001",
            "refundTicketNumber-900": "T25-0002",
        }

    async def test_empty_refund_is_discarded(
        self,
        module: TicketNumberingModule,
        store: MemoryDocumentStore,
        commerce_client: MemoryCommerceClient,
        refund_payload,
    ) -> None:
        refund_payload["refund_line_items"] = []
        result = await module.dispatch(_context("refunds/create", refund_payload, commerce_client))
        assert result is None
        assert _tickets(store) == []
        assert commerce_client.config_calls == 0
