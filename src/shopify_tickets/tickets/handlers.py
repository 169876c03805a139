"""Gestionnaires des webhooks ``orders/paid`` et ``refunds/create``.

FR: Enchaînement : récapitulatif de TVA, attribution idempotente du numéro
    de ticket, puis annotation de la commande Shopify par un attribut
    personnalisé. Un échec d'annotation n'annule jamais le ticket : il est
    signalé par ``OrderAnnotationError`` afin que Shopify renvoie le webhook,
    le nouvel envoi retrouvant le ticket existant.
EN: Summary, idempotent ticket numbering, then order annotation. An
    annotation failure never rolls the ticket back; it is raised so that
    Shopify redelivers the webhook.
"""

from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from typing import Any

from shopify_tickets.models.enums import MoneyType
from shopify_tickets.models.payloads import OrderPaidPayload, RefundCreatedPayload
from shopify_tickets.models.ticket import OrderTicket, RefundTicket
from shopify_tickets.shopify.base import BaseCommerceClient
from shopify_tickets.shopify.errors import CommerceAPIError
from shopify_tickets.store_config.service import StoreConfigService
from shopify_tickets.tickets.errors import OrderAnnotationError
from shopify_tickets.tickets.generator import TicketNumberGenerator
from shopify_tickets.tickets.summary import generate_order_summary, generate_refund_summary

logger = logging.getLogger(__name__)

ORDER_TICKET_ATTRIBUTE = "ticketNumber"
DEFAULT_EXCLUDED_TAG = "ceco"


def refund_ticket_attribute(refund_id: int) -> str:
    return f"refundTicketNumber-{refund_id}"


@dataclass(frozen=True)
class WebhookContext:
    """Webhook authentifié, transmis par le routeur HTTP."""

    topic: str
    shop: str
    payload: dict[str, Any]
    client: BaseCommerceClient


class BaseWebhookHandler(metaclass=ABCMeta):
    """Gestionnaire d'un sujet de webhook Shopify."""

    topic: str

    def __init__(
        self,
        generator: TicketNumberGenerator,
        store_config: StoreConfigService,
        money_type: MoneyType = MoneyType.SHOP,
    ) -> None:
        self.generator = generator
        self.store_config = store_config
        self.money_type = money_type

    @abstractmethod
    async def handle(self, context: WebhookContext) -> OrderTicket | RefundTicket | None:
        """Traite le webhook ; idempotent.

        Returns:
            Le ticket attribué, ou ``None`` si l'événement est écarté.

        Raises:
            TicketGenerationError: Si la numérotation échoue.
            OrderAnnotationError: Si le ticket est créé mais la commande
                n'a pas pu être annotée.
        """
        ...

    async def annotate(
        self, client: BaseCommerceClient, order_gid: str, key: str, ticket_number: str
    ) -> None:
        try:
            changed = await client.annotate_order(order_gid, key, ticket_number)
        except CommerceAPIError as exc:
            logger.exception(
                "Ticket %s créé mais annotation de la commande %s impossible",
                ticket_number,
                order_gid,
            )
            msg = f"Annotation de la commande {order_gid} impossible : {exc}"
            raise OrderAnnotationError(msg, ticket_number=ticket_number) from exc
        if not changed:
            logger.debug("Commande %s déjà annotée avec %s", order_gid, ticket_number)


class OrderPaidWebhookHandler(BaseWebhookHandler):
    """Attribue un ticket à chaque commande payée."""

    topic = "orders/paid"

    def __init__(
        self,
        generator: TicketNumberGenerator,
        store_config: StoreConfigService,
        money_type: MoneyType = MoneyType.SHOP,
        excluded_tag: str = DEFAULT_EXCLUDED_TAG,
    ) -> None:
        super().__init__(generator, store_config, money_type)
        self.excluded_tag = excluded_tag

    async def is_excluded(self, payload: OrderPaidPayload, client: BaseCommerceClient) -> bool:
        """Vrai si la commande porte l'étiquette d'exclusion (sans tenir compte de la casse).

        FR: Les étiquettes du webhook suffisent le plus souvent ; la plateforme
            n'est interrogée qu'à défaut.
        EN: Payload tags first; the platform is queried only when they miss.
        """
        marker = self.excluded_tag.casefold()

        def tagged(tags: list[str]) -> bool:
            return any(tag.strip().casefold() == marker for tag in tags)

        if tagged(payload.tag_list):
            return True
        return tagged(await client.get_order_tags(payload.graphql_id))

    async def handle(self, context: WebhookContext) -> OrderTicket | RefundTicket | None:
        payload = OrderPaidPayload.model_validate(context.payload)

        if await self.is_excluded(payload, context.client):
            logger.info(
                "Commande %s écartée : étiquette %r", payload.id, self.excluded_tag
            )
            return None

        taxes_included = await self.store_config.get_taxes_included(context.shop, context.client)
        summary = generate_order_summary(payload, self.money_type, taxes_included)
        logger.info(
            "Commande %s : total %s %s, %d taux de TVA",
            payload.id,
            summary.total_amount,
            summary.currency,
            len(summary.tax_lines),
        )

        ticket = await self.generator.find_or_generate_ticket(summary.to_ticket_request())
        await self.annotate(context.client, payload.graphql_id, ORDER_TICKET_ATTRIBUTE, ticket.id)
        return ticket


class RefundCreatedWebhookHandler(BaseWebhookHandler):
    """Attribue un ticket à chaque remboursement portant sur des lignes."""

    topic = "refunds/create"

    async def handle(self, context: WebhookContext) -> OrderTicket | RefundTicket | None:
        payload = RefundCreatedPayload.model_validate(context.payload)

        if not payload.refund_line_items:
            logger.info("Remboursement %s écarté : aucune ligne remboursée", payload.id)
            return None

        taxes_included = await self.store_config.get_taxes_included(context.shop, context.client)
        summary = generate_refund_summary(payload, self.money_type, taxes_included)
        if summary is None:
            return None
        logger.info(
            "Remboursement %s (commande %s) : total %s %s",
            payload.id,
            payload.order_id,
            summary.total_amount,
            summary.currency,
        )

        ticket = await self.generator.find_or_generate_ticket(summary.to_ticket_request())
        await self.annotate(
            context.client,
            payload.order_graphql_id,
            refund_ticket_attribute(payload.id),
            ticket.id,
        )
        return ticket
