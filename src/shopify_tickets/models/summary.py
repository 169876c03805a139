"""Récapitulatifs de TVA par commande et par remboursement."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, computed_field

from shopify_tickets.models.ticket import OrderTicketRequest, RefundTicketRequest, TaxLine
from shopify_tickets.utils.money import ZERO, safe_add


class _SummaryBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    created_at: datetime
    total_amount: Decimal
    currency: str
    tax_lines: list[TaxLine]

    @computed_field
    @property
    def lines_total(self) -> Decimal:
        """Somme des ``price + tax`` de toutes les lignes de TVA."""
        total = ZERO
        for line in self.tax_lines:
            total = safe_add(total, safe_add(line.price, line.tax))
        return total


class OrderSummary(_SummaryBase):
    id: int

    def to_ticket_request(self) -> OrderTicketRequest:
        return OrderTicketRequest(
            order_id=self.id,
            created_at=self.created_at,
            total_amount=self.total_amount,
            currency=self.currency,
            tax_lines=self.tax_lines,
        )


class RefundSummary(_SummaryBase):
    id: int
    order_id: int

    def to_ticket_request(self) -> RefundTicketRequest:
        return RefundTicketRequest(
            order_id=self.order_id,
            refund_id=self.id,
            created_at=self.created_at,
            total_amount=self.total_amount,
            currency=self.currency,
            tax_lines=self.tax_lines,
        )
