"""Modèles Pydantic des tickets, charges utiles Shopify et récapitulatifs de TVA."""

from shopify_tickets.models.enums import MoneyType, ReportStatus, TicketType
from shopify_tickets.models.payloads import OrderPaidPayload, RefundCreatedPayload
from shopify_tickets.models.summary import OrderSummary, RefundSummary
from shopify_tickets.models.ticket import (
    CounterDocument,
    OrderTicket,
    OrderTicketRequest,
    RefundTicket,
    RefundTicketRequest,
    TaxLine,
    Ticket,
    TicketCreateRequest,
    parse_ticket,
)

__all__ = [
    "CounterDocument",
    "MoneyType",
    "OrderPaidPayload",
    "OrderSummary",
    "OrderTicket",
    "OrderTicketRequest",
    "RefundCreatedPayload",
    "RefundSummary",
    "RefundTicket",
    "RefundTicketRequest",
    "ReportStatus",
    "TaxLine",
    "Ticket",
    "TicketCreateRequest",
    "TicketType",
    "parse_ticket",
]
