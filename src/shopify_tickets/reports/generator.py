"""Génération du rapport comptable mensuel.

FR: Parcourt une seule fois les tickets du mois, regroupe les lignes de TVA
    par taux (les remboursements comptent en négatif) et mémorise le premier
    et le dernier ticket pour les références de plage. Contrairement aux
    récapitulatifs par événement, aucun écart n'est corrigé ici : une période
    vide ou des totaux divergents au-delà de la tolérance sont des erreurs.
EN: Single pass over the month's tickets, grouped by tax rate with refunds
    negated. No residual is ever corrected here: an empty period or a total
    mismatch beyond tolerance is an error.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import assert_never

from shopify_tickets.models.ticket import OrderTicket, RefundTicket
from shopify_tickets.reports.errors import EmptyReportPeriodError, ReportConsistencyError
from shopify_tickets.reports.models import (
    CustomerPosition,
    IncomePosition,
    Invoice,
    MonthlyReportPayload,
    ReportHeader,
    TaxPosition,
)
from shopify_tickets.reports.tickets import TicketReader
from shopify_tickets.tickets.summary import TaxGroups
from shopify_tickets.utils.dates import DEFAULT_TIMEZONE, format_yyyymmdd, month_end
from shopify_tickets.utils.money import (
    CENT,
    ZERO,
    format_amount,
    format_tax_rate,
    safe_add,
    safe_multiply,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErpConstants:
    """Valeurs fixes du plan de comptes de l'ERP."""

    company: str = "H002"
    document_class: str = "Factura"
    customer_account: str = "Cliente"
    profit_center: str = "CEBE"
    income_account: str = "7050000000"
    tax_account: str = "4770000000"
    wbs_element: str = "IMPUTACIÓN"


@dataclass
class MonthAggregate:
    """Cumul d'un mois de tickets."""

    groups: TaxGroups = field(default_factory=TaxGroups)
    first_ticket: OrderTicket | RefundTicket | None = None
    last_ticket: OrderTicket | RefundTicket | None = None
    currency: str = ""
    total_with_tax: Decimal = ZERO
    ticket_count: int = 0

    def add(self, ticket: OrderTicket | RefundTicket) -> None:
        match ticket:
            case OrderTicket():
                sign = 1
            case RefundTicket():
                sign = -1
            case _:
                assert_never(ticket)

        if self.first_ticket is None:
            self.first_ticket = ticket
            self.currency = ticket.currency
        self.last_ticket = ticket
        self.ticket_count += 1
        self.total_with_tax = safe_add(self.total_with_tax, safe_multiply(ticket.total_amount, sign))
        for line in ticket.tax_lines:
            self.groups.add(line.rate, safe_multiply(line.price, sign), safe_multiply(line.tax, sign))


class MonthlyReportGenerator:
    """Construit la charge utile ERP d'un mois à partir des tickets."""

    def __init__(
        self,
        reader: TicketReader,
        *,
        tz_name: str = DEFAULT_TIMEZONE,
        tolerance: Decimal = CENT,
        constants: ErpConstants | None = None,
    ) -> None:
        self.reader = reader
        self.tz_name = tz_name
        self.tolerance = tolerance
        self.constants = constants or ErpConstants()

    async def aggregate(
        self, tickets: AsyncIterable[OrderTicket | RefundTicket], year: int, month: int
    ) -> MonthAggregate:
        """Regroupe les tickets par taux.

        Raises:
            EmptyReportPeriodError: Si le flux est vide.
            ReportConsistencyError: Si le total TTC et le détail divergent
                au-delà de la tolérance.
        """
        aggregate = MonthAggregate()
        async for ticket in tickets:
            aggregate.add(ticket)

        if aggregate.first_ticket is None:
            msg = f"Aucun ticket pour la période {year}-{month:02d}"
            raise EmptyReportPeriodError(msg, year=year, month=month)

        detail_total = aggregate.groups.total()
        if abs(aggregate.total_with_tax - detail_total) > self.tolerance:
            msg = (
                f"Total du rapport {year}-{month:02d} ({aggregate.total_with_tax}) "
                f"différent du détail par taux ({detail_total})"
            )
            raise ReportConsistencyError(msg)
        return aggregate

    async def generate_report(self, year: int, month: int) -> MonthlyReportPayload:
        """Génère le rapport d'un mois (sans identifiant, attribué à l'enregistrement)."""
        logger.info("Génération du rapport %d-%02d", year, month)
        aggregate = await self.aggregate(
            self.reader.find_by_year_and_month(year, month), year, month
        )
        payload = self.build_payload(aggregate, year, month)
        logger.info(
            "Rapport %d-%02d généré : %d ticket(s), plage %s, total %s %s",
            year,
            month,
            aggregate.ticket_count,
            payload.invoice.customer_position.assignment,
            payload.invoice.customer_position.amount,
            aggregate.currency,
        )
        return payload

    def build_payload(self, aggregate: MonthAggregate, year: int, month: int) -> MonthlyReportPayload:
        assert aggregate.first_ticket is not None and aggregate.last_ticket is not None
        c = self.constants
        last_day = format_yyyymmdd(month_end(year, month, self.tz_name), self.tz_name)
        ticket_range = f"{aggregate.first_ticket.id}_{aggregate.last_ticket.id}"
        currency = aggregate.currency

        header = ReportHeader(
            document_date=last_day,
            posting_date=last_day,
            fiscal_year=str(year),
            period=f"{month:02d}",
            company=c.company,
            document_class=c.document_class,
            reference=aggregate.last_ticket.id,
            header_text=f"{aggregate.first_ticket.id}_",
            tax_date=last_day,
        )

        groups = [g for g in aggregate.groups if g.price != 0 or g.tax != 0]
        position = 1
        income_positions: list[IncomePosition] = []
        for group in groups:
            position += 1
            income_positions.append(
                IncomePosition(
                    position=str(position),
                    income_account=c.income_account,
                    amount=format_amount(-group.price),
                    currency=currency,
                    tax_indicator=format_tax_rate(group.rate),
                    profit_center=c.profit_center,
                    wbs_element=c.wbs_element,
                    assignment=ticket_range,
                )
            )

        tax_positions: list[TaxPosition] = []
        for group in groups:
            position += 1
            tax_positions.append(
                TaxPosition(
                    position=str(position),
                    tax_account=c.tax_account,
                    amount=format_amount(-group.tax),
                    currency=currency,
                    tax_indicator=format_tax_rate(group.rate),
                    assignment=ticket_range,
                    taxable_base=format_amount(abs(group.price)),
                )
            )

        # Le client porte la somme exacte des positions : l'écriture est équilibrée
        customer_amount = ZERO
        for group in groups:
            customer_amount = safe_add(customer_amount, safe_add(group.price, group.tax))

        customer = CustomerPosition(
            position="1",
            customer_account=c.customer_account,
            amount=format_amount(customer_amount),
            currency=currency,
            assignment=ticket_range,
            profit_center=c.profit_center,
        )
        return MonthlyReportPayload(
            invoice=Invoice(
                header=header,
                customer_position=customer,
                income_positions=income_positions,
                tax_positions=tax_positions,
            )
        )
