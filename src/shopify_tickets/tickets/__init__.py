"""Numérotation fiscale des commandes et remboursements.

FR: Compteurs par exercice, attribution idempotente des numéros, récapitulatifs
    de TVA et gestionnaires des webhooks Shopify.
EN: Per-year counters, idempotent numbering, tax summaries and Shopify
    webhook handlers.
"""

from shopify_tickets.tickets.counter import CounterStore, year_counter_id
from shopify_tickets.tickets.errors import (
    OrderAnnotationError,
    TicketError,
    TicketGenerationError,
)
from shopify_tickets.tickets.generator import (
    TICKET_UNIQUE_KEYS,
    TICKETS_CONTAINER,
    TicketNumberGenerator,
    format_ticket_number,
)
from shopify_tickets.tickets.handlers import (
    OrderPaidWebhookHandler,
    RefundCreatedWebhookHandler,
    WebhookContext,
)
from shopify_tickets.tickets.module import TicketNumberingModule
from shopify_tickets.tickets.summary import generate_order_summary, generate_refund_summary

__all__ = [
    "TICKETS_CONTAINER",
    "TICKET_UNIQUE_KEYS",
    "CounterStore",
    "OrderAnnotationError",
    "OrderPaidWebhookHandler",
    "RefundCreatedWebhookHandler",
    "TicketError",
    "TicketGenerationError",
    "TicketNumberGenerator",
    "TicketNumberingModule",
    "WebhookContext",
    "format_ticket_number",
    "generate_order_summary",
    "generate_refund_summary",
    "year_counter_id",
]
