"""Énumérations pour la numérotation des tickets et le reporting.

FR: Types de tickets, statuts d'envoi des rapports et devises Shopify.
EN: Ticket types, report delivery statuses and Shopify money types.
"""

from enum import StrEnum


class TicketType(StrEnum):
    """Type de ticket (discriminant du document stocké).

    FR: Un ticket est émis une seule fois par commande payée et une seule
        fois par remboursement.
    EN: One ticket per paid order and one per refund.
    """

    ORDER = "order"
    """Commande payée / Paid order"""

    REFUND = "refund"
    """Remboursement / Refund"""


class ReportStatus(StrEnum):
    """Statut d'envoi d'un rapport mensuel à l'ERP.

    FR: Les transitions sont pilotées exclusivement par l'émetteur de rapports.
    EN: Transitions are driven solely by the report sender.
    """

    PENDING = "PENDING"
    """Généré, jamais envoyé / Generated, never sent"""

    SENDING = "SENDING"
    """Envoi en cours / Delivery in progress"""

    SUCCESS = "SUCCESS"
    """Accepté par l'ERP / Accepted by the ERP"""

    FAILURE = "FAILURE"
    """Refusé ou erreur réseau / Rejected or network error"""


class MoneyType(StrEnum):
    """Devise d'un MoneySet Shopify.

    FR: ``shop_money`` est la devise de la boutique (utilisée en comptabilité),
        ``presentment_money`` celle affichée au client.
    EN: Shop currency vs. customer-facing currency.
    """

    SHOP = "shop_money"
    PRESENTMENT = "presentment_money"
