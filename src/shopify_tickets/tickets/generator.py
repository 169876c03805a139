"""Attribution idempotente des numéros de ticket.

FR: ``find_or_generate_ticket`` garantit qu'au plus un numéro est émis par
    identité ``(orderId[, refundId], type)`` et par exercice, même lorsque
    Shopify livre plusieurs fois le même webhook en parallèle :

    1. l'exercice (partition) est l'année de ``created_at`` dans le fuseau
       métier ;
    2. un ticket existant pour l'identité est renvoyé tel quel ;
    3. sinon le compteur est lu, incrémenté et remplacé sous condition de son
       jeton, dans le même lot atomique que la création du ticket ;
    4. un jeton périmé relance la tentative (compteur relu) avec attente
       exponentielle, trois tentatives au plus ;
    5. une création en conflit sur la clé d'unicité signifie qu'un appel
       concurrent a gagné : son ticket est relu et renvoyé.
EN: At most one ticket number per identity and year, under concurrent
    delivery, through a conditional counter replace batched with the ticket
    create and a requery on unique-key conflicts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import assert_never

from shopify_tickets.models.ticket import (
    IdentityKey,
    OrderTicket,
    OrderTicketRequest,
    RefundTicket,
    RefundTicketRequest,
    TicketCreateRequest,
    parse_ticket,
)
from shopify_tickets.store.base import BaseDocumentStore
from shopify_tickets.store.errors import (
    DocumentConflictError,
    DocumentNotFoundError,
    PreconditionFailedError,
    RetryExhaustedError,
)
from shopify_tickets.store.models import BatchOperation, QueryFilter
from shopify_tickets.store.retry import AttemptResult, RetryPolicy, run_with_retries
from shopify_tickets.tickets.counter import CounterStore
from shopify_tickets.tickets.errors import TicketGenerationError
from shopify_tickets.utils.dates import DEFAULT_TIMEZONE, business_year

logger = logging.getLogger(__name__)

TICKETS_CONTAINER = "tickets"

TICKET_UNIQUE_KEYS: tuple[tuple[str, ...], ...] = (("orderId", "refundId", "type"),)
"""Clé d'unicité du conteneur des tickets (à déclarer auprès du stockage)."""

DEFAULT_PADDING = 4


def format_ticket_number(year: int, value: int, padding: int = DEFAULT_PADDING) -> str:
    """Formate un numéro de ticket.

    >>> format_ticket_number(2025, 1)
    'T25-0001'
    >>> format_ticket_number(2025, 1, padding=0)
    'T25-1'
    """
    prefix = f"T{year % 100:02d}"
    if padding <= 0:
        return f"{prefix}-{value}"
    return f"{prefix}-{value:0{padding}d}"


class TicketNumberGenerator:
    """Générateur de numéros de ticket sur un stockage à concurrence optimiste."""

    def __init__(
        self,
        store: BaseDocumentStore,
        *,
        container: str = TICKETS_CONTAINER,
        padding: int = DEFAULT_PADDING,
        tz_name: str = DEFAULT_TIMEZONE,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.container = container
        self.padding = padding
        self.tz_name = tz_name
        self.policy = policy or RetryPolicy()
        self.counters = CounterStore(store, container)
        self._sleep = sleep

    def partition_for(self, request: TicketCreateRequest) -> str:
        return str(business_year(request.created_at, self.tz_name))

    async def find_ticket(
        self, partition_key: str, identity: IdentityKey
    ) -> OrderTicket | RefundTicket | None:
        """Recherche le ticket d'une identité dans un exercice."""
        order_id, refund_id, ticket_type = identity
        stored = await self.store.query_first(
            self.container,
            [
                QueryFilter(field="orderId", value=order_id),
                QueryFilter(field="refundId", value=refund_id),
                QueryFilter(field="type", value=ticket_type),
            ],
            partition_key=partition_key,
        )
        if stored is None:
            return None
        return parse_ticket(stored.data)

    def _build_ticket(
        self, request: TicketCreateRequest, number: str, partition_key: str
    ) -> OrderTicket | RefundTicket:
        common = {
            "id": number,
            "partition_key": partition_key,
            "order_id": request.order_id,
            "created_at": request.created_at,
            "total_amount": request.total_amount,
            "currency": request.currency,
            "tax_lines": request.tax_lines,
        }
        match request:
            case OrderTicketRequest():
                return OrderTicket(**common)
            case RefundTicketRequest():
                return RefundTicket(refund_id=request.refund_id, **common)
            case _:
                assert_never(request)

    async def find_or_generate_ticket(
        self, request: TicketCreateRequest
    ) -> OrderTicket | RefundTicket:
        """Retourne le ticket de la demande, en le créant au besoin.

        Raises:
            TicketGenerationError: Si les tentatives sont épuisées ou si le
                compteur est illisible.
        """
        partition_key = self.partition_for(request)
        identity = request.identity

        existing = await self.find_ticket(partition_key, identity)
        if existing is not None:
            logger.info("Ticket %s déjà attribué à %s", existing.id, identity)
            return existing

        year = int(partition_key)

        async def attempt(index: int) -> AttemptResult[OrderTicket | RefundTicket]:
            try:
                counter = await self.counters.get_or_create_counter(partition_key)
            except DocumentNotFoundError as exc:
                return AttemptResult.failed(TicketGenerationError(str(exc)))

            next_value, counter_operation = CounterStore.increment_operation(counter)
            ticket = self._build_ticket(
                request, format_ticket_number(year, next_value, self.padding), partition_key
            )
            try:
                await self.store.execute_batch(
                    self.container,
                    partition_key,
                    [counter_operation, BatchOperation.create(ticket.to_document())],
                )
            except PreconditionFailedError:
                return AttemptResult.conflict(f"compteur {counter.id} modifié")
            except DocumentConflictError:
                winner = await self.find_ticket(partition_key, identity)
                if winner is not None:
                    logger.info(
                        "Ticket %s créé en parallèle pour %s, réutilisé", winner.id, identity
                    )
                    return AttemptResult.success(winner)
                return AttemptResult.conflict(f"numéro {ticket.id} déjà pris")

            logger.info("Ticket %s attribué à %s", ticket.id, identity)
            return AttemptResult.success(ticket)

        try:
            return await run_with_retries(
                attempt,
                self.policy,
                operation=f"la numérotation de {identity}",
                sleep=self._sleep,
            )
        except RetryExhaustedError as exc:
            msg = f"Impossible d'attribuer un numéro de ticket à {identity} : {exc}"
            raise TicketGenerationError(msg) from exc
