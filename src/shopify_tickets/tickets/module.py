"""Module de numérotation des tickets.

FR: Assemble le générateur et les gestionnaires de webhooks, et les expose
    par sujet au routeur HTTP externe.
EN: Wires the generator and webhook handlers and exposes them by topic.
"""

from __future__ import annotations

import logging

from shopify_tickets.models.enums import MoneyType
from shopify_tickets.models.ticket import OrderTicket, RefundTicket
from shopify_tickets.store_config.service import StoreConfigService
from shopify_tickets.tickets.generator import TicketNumberGenerator
from shopify_tickets.tickets.handlers import (
    DEFAULT_EXCLUDED_TAG,
    BaseWebhookHandler,
    OrderPaidWebhookHandler,
    RefundCreatedWebhookHandler,
    WebhookContext,
)

logger = logging.getLogger(__name__)


class TicketNumberingModule:
    def __init__(
        self,
        generator: TicketNumberGenerator,
        store_config: StoreConfigService,
        *,
        excluded_tag: str = DEFAULT_EXCLUDED_TAG,
        money_type: MoneyType = MoneyType.SHOP,
    ) -> None:
        self.generator = generator
        self.order_paid_handler = OrderPaidWebhookHandler(
            generator, store_config, money_type, excluded_tag=excluded_tag
        )
        self.refund_created_handler = RefundCreatedWebhookHandler(
            generator, store_config, money_type
        )
        self.handlers: dict[str, BaseWebhookHandler] = {
            handler.topic: handler
            for handler in (self.order_paid_handler, self.refund_created_handler)
        }

    def get_handler(self, topic: str) -> BaseWebhookHandler:
        """Gestionnaire d'un sujet de webhook.

        Raises:
            KeyError: Si aucun gestionnaire n'est enregistré pour ce sujet.
        """
        try:
            return self.handlers[topic]
        except KeyError:
            msg = f"Aucun gestionnaire pour le sujet : {topic}"
            raise KeyError(msg) from None

    async def dispatch(self, context: WebhookContext) -> OrderTicket | RefundTicket | None:
        logger.debug("Webhook %s reçu de %s", context.topic, context.shop)
        return await self.get_handler(context.topic).handle(context)
