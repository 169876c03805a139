"""Modèles des tickets, compteurs et lignes de TVA.

FR: Un ticket est un document financier immuable : créé une seule fois, de
    manière atomique avec l'incrément du compteur de son exercice, puis jamais
    modifié. Les tickets de commande et de remboursement forment une union
    discriminée par le champ ``type``.
EN: A ticket is an immutable financial record created once, atomically with
    its year's counter increment. Order and refund tickets form a tagged union
    discriminated by ``type``.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_serializer
from pydantic.alias_generators import to_camel

from shopify_tickets.models.enums import TicketType
from shopify_tickets.utils.dates import to_storage_timestamp

IdentityKey = tuple[int, int | None, str]
"""(order_id, refund_id, type) : clé d'unicité d'un ticket dans son exercice."""


def ticket_identity(order_id: int, refund_id: int | None, ticket_type: str) -> IdentityKey:
    return (order_id, refund_id, str(ticket_type))


class _StorageModel(BaseModel):
    """Base commune : alias camelCase côté stockage, snake_case côté Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaxLine(_StorageModel):
    """Ligne récapitulative de TVA (un taux).

    FR: Regroupe le montant HT et la TVA d'un même taux. Pour un récapitulatif
        donné, la somme des ``price + tax`` égale le total à 1 centime près.
    EN: Net amount and tax for one rate.
    """

    model_config = ConfigDict(frozen=True)

    rate: Decimal = Field(..., ge=0, le=1, description="Taux fractionnaire / Rate (0..1)")
    price: Decimal = Field(..., description="Montant HT / Net amount")
    tax: Decimal = Field(..., description="Montant de TVA / Tax amount")
    currency: str = Field(..., description="Code devise ISO 4217 / Currency code")


class CounterDocument(_StorageModel):
    """Compteur séquentiel d'une partition.

    FR: ``current_value`` ne fait qu'augmenter ; chaque incrément accompagne
        la création d'un seul document consommateur, dans la même opération
        atomique. ``etag`` est le jeton de concurrence optimiste fourni par le
        stockage (jamais sérialisé).
    EN: Monotonic counter; ``etag`` is the store's concurrency token.
    """

    id: str
    partition_key: str
    current_value: int = Field(default=0, ge=0)
    etag: Any = Field(default=None, exclude=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Tickets stockés
# ---------------------------------------------------------------------------


class _TicketBase(_StorageModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Numéro de ticket formaté / Ticket number")
    partition_key: str = Field(..., description="Exercice / Fiscal year")
    order_id: int
    created_at: datetime
    total_amount: Decimal
    currency: str
    tax_lines: list[TaxLine]

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return to_storage_timestamp(value)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class OrderTicket(_TicketBase):
    """Ticket d'une commande payée."""

    type: Literal["order"] = "order"
    refund_id: None = None

    @property
    def identity(self) -> IdentityKey:
        return ticket_identity(self.order_id, None, TicketType.ORDER)


class RefundTicket(_TicketBase):
    """Ticket d'un remboursement (montants comptés en négatif au reporting)."""

    type: Literal["refund"] = "refund"
    refund_id: int

    @property
    def identity(self) -> IdentityKey:
        return ticket_identity(self.order_id, self.refund_id, TicketType.REFUND)


Ticket = Annotated[OrderTicket | RefundTicket, Field(discriminator="type")]

TICKET_ADAPTER: TypeAdapter[OrderTicket | RefundTicket] = TypeAdapter(Ticket)


def parse_ticket(document: dict[str, Any]) -> OrderTicket | RefundTicket:
    """Reconstruit un ticket depuis un document stocké."""
    return TICKET_ADAPTER.validate_python(document)


# ---------------------------------------------------------------------------
# Demandes de création
# ---------------------------------------------------------------------------


class _TicketRequestBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int
    created_at: datetime
    total_amount: Decimal
    currency: str
    tax_lines: list[TaxLine]


class OrderTicketRequest(_TicketRequestBase):
    """Demande de ticket pour une commande payée."""

    type: Literal["order"] = "order"

    @property
    def identity(self) -> IdentityKey:
        return ticket_identity(self.order_id, None, TicketType.ORDER)


class RefundTicketRequest(_TicketRequestBase):
    """Demande de ticket pour un remboursement."""

    type: Literal["refund"] = "refund"
    refund_id: int

    @property
    def identity(self) -> IdentityKey:
        return ticket_identity(self.order_id, self.refund_id, TicketType.REFUND)


TicketCreateRequest = Annotated[
    OrderTicketRequest | RefundTicketRequest, Field(discriminator="type")
]
