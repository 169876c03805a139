"""Récapitulatifs de TVA des commandes et des remboursements.

FR: Regroupe les lignes par taux de TVA puis réconcilie la somme des groupes
    avec le total faisant foi. Un écart supérieur à 1 centime est imputé au
    groupe de plus grand montant HT (le premier inséré en cas d'égalité) :
    le résultat est déterministe et auditable.
EN: Groups lines by tax rate and reconciles against the authoritative total;
    a residual above one cent goes to the largest net group (first inserted
    on ties).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from shopify_tickets.models.enums import MoneyType
from shopify_tickets.models.payloads import (
    DiscountAllocation,
    LineItem,
    OrderPaidPayload,
    RefundCreatedPayload,
    RefundLineItem,
)
from shopify_tickets.models.summary import OrderSummary, RefundSummary
from shopify_tickets.models.ticket import TaxLine
from shopify_tickets.utils.money import (
    CENT,
    ZERO,
    round_to_two_decimals,
    safe_add,
    safe_divide,
    safe_multiply,
)

logger = logging.getLogger(__name__)


@dataclass
class TaxGroup:
    """Cumul des montants HT et de TVA d'un taux."""

    rate: Decimal
    price: Decimal = ZERO
    tax: Decimal = ZERO

    def add(self, price: Decimal, tax: Decimal) -> None:
        self.price = safe_add(self.price, price)
        self.tax = safe_add(self.tax, tax)


class TaxGroups:
    """Groupes de TVA indexés par taux, dans l'ordre de première apparition."""

    def __init__(self) -> None:
        self._groups: dict[Decimal, TaxGroup] = {}

    def __iter__(self):
        return iter(self._groups.values())

    def __len__(self) -> int:
        return len(self._groups)

    def add(self, rate: Decimal, price: Decimal, tax: Decimal) -> None:
        group = self._groups.get(rate)
        if group is None:
            group = self._groups[rate] = TaxGroup(rate=rate)
        group.add(price, tax)

    def total(self) -> Decimal:
        total = ZERO
        for group in self:
            total = safe_add(total, safe_add(group.price, group.tax))
        return total

    def largest(self) -> TaxGroup | None:
        """Groupe de plus grand montant HT (le premier inséré en cas d'égalité)."""
        largest: TaxGroup | None = None
        for group in self:
            if largest is None or group.price > largest.price:
                largest = group
        return largest


def reconcile(groups: TaxGroups, total_amount: Decimal) -> Decimal:
    """Impute l'écart au plus grand groupe s'il dépasse 1 centime.

    Returns:
        L'écart constaté avant ajustement.
    """
    discrepancy = round_to_two_decimals(total_amount - groups.total())
    if abs(discrepancy) > CENT:
        largest = groups.largest()
        if largest is None:
            groups.add(ZERO, total_amount, ZERO)
        else:
            logger.info(
                "Écart d'arrondi de %s imputé au groupe de taux %s", discrepancy, largest.rate
            )
            largest.price = safe_add(largest.price, discrepancy)
    return discrepancy


def to_tax_lines(groups: TaxGroups, currency: str) -> list[TaxLine]:
    return [
        TaxLine(
            rate=group.rate,
            price=round_to_two_decimals(group.price),
            tax=round_to_two_decimals(group.tax),
            currency=currency,
        )
        for group in groups
    ]


def _sum_discounts(allocations: list[DiscountAllocation], money_type: MoneyType) -> Decimal:
    total = ZERO
    for allocation in allocations:
        total = safe_add(total, allocation.amount_set.get(money_type).amount)
    return total


def _add_line_item(
    groups: TaxGroups, item: LineItem, money_type: MoneyType, taxes_included: bool
) -> None:
    base_price = safe_multiply(item.unit_price(money_type), item.quantity)
    net_price = safe_add(base_price, -_sum_discounts(item.discount_allocations, money_type))

    total_rate = sum((line.rate for line in item.tax_lines), Decimal(0))
    if taxes_included and total_rate > 0:
        net_price = safe_divide(net_price, 1 + total_rate)

    if total_rate == 0:
        # Exonéré : tout le montant dans le groupe à 0 %
        tax = ZERO
        for line in item.tax_lines:
            tax = safe_add(tax, line.price_set.get(money_type).amount)
        groups.add(Decimal(0), net_price, tax)
        return

    for line in item.tax_lines:
        price_share = safe_multiply(net_price, line.rate / total_rate)
        groups.add(line.rate, price_share, line.price_set.get(money_type).amount)


def generate_order_summary(
    payload: OrderPaidPayload,
    money_type: MoneyType = MoneyType.SHOP,
    taxes_included: bool = True,
) -> OrderSummary:
    """Construit le récapitulatif de TVA d'une commande payée.

    FR: Les frais de port sont traités comme des lignes de quantité 1, le
        total faisant foi (``total_price_set``) les incluant.
    EN: Shipping lines count as quantity-1 line items.
    """
    total = payload.total_price_set.get(money_type)
    groups = TaxGroups()
    items = [*payload.line_items, *(line.as_line_item() for line in payload.shipping_lines)]
    for item in items:
        _add_line_item(groups, item, money_type, taxes_included)

    total_amount = round_to_two_decimals(total.amount)
    reconcile(groups, total_amount)

    return OrderSummary(
        id=payload.id,
        created_at=payload.created_at,
        total_amount=total_amount,
        currency=total.currency_code,
        tax_lines=to_tax_lines(groups, total.currency_code),
    )


def _refund_line_amounts(
    line: RefundLineItem, money_type: MoneyType, taxes_included: bool
) -> tuple[Decimal, Decimal, Decimal]:
    """(taux, HT, TVA) d'une ligne de remboursement (un seul taux par ligne)."""
    subtotal = line.subtotal_set.get(money_type).amount
    tax_lines = line.line_item.tax_lines
    rate = tax_lines[0].rate if tax_lines else Decimal(0)

    if taxes_included:
        base_price = safe_divide(subtotal, 1 + rate)
        return rate, base_price, safe_add(subtotal, -base_price)

    tax = ZERO
    if line.total_tax_set is not None:
        tax = line.total_tax_set.get(money_type).amount
    return rate, round_to_two_decimals(subtotal), round_to_two_decimals(tax)


def generate_refund_summary(
    payload: RefundCreatedPayload,
    money_type: MoneyType = MoneyType.SHOP,
    taxes_included: bool = True,
) -> RefundSummary | None:
    """Construit le récapitulatif de TVA d'un remboursement.

    FR: Le sous-total d'une ligne de remboursement inclut déjà la TVA quand
        la boutique affiche ses prix TTC ; sinon la TVA remboursée
        (``total_tax_set``) s'y ajoute.
    EN: With taxes included the subtotal already holds the tax; otherwise
        ``total_tax_set`` is added.

    Returns:
        Le récapitulatif, ou ``None`` si le remboursement ne porte sur aucune
        ligne (remboursement de frais ou d'ajustement seul).
    """
    if not payload.refund_line_items:
        return None

    groups = TaxGroups()
    total_amount = ZERO
    for line in payload.refund_line_items:
        rate, price, tax = _refund_line_amounts(line, money_type, taxes_included)
        groups.add(rate, price, tax)
        subtotal = line.subtotal_set.get(money_type).amount
        total_amount = safe_add(total_amount, subtotal if taxes_included else safe_add(subtotal, tax))

    currency = payload.refund_line_items[0].subtotal_set.get(money_type).currency_code
    reconcile(groups, total_amount)

    return RefundSummary(
        id=payload.id,
        order_id=payload.order_id,
        created_at=payload.created_at,
        total_amount=total_amount,
        currency=currency,
        tax_lines=to_tax_lines(groups, currency),
    )
