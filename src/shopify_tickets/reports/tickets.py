"""Lecture des tickets d'un mois pour le reporting."""

from collections.abc import AsyncIterator

from shopify_tickets.models.ticket import OrderTicket, RefundTicket, parse_ticket
from shopify_tickets.store.base import BaseDocumentStore
from shopify_tickets.store.models import QueryFilter
from shopify_tickets.tickets.generator import TICKETS_CONTAINER
from shopify_tickets.utils.dates import (
    DEFAULT_TIMEZONE,
    month_end,
    month_start,
    to_storage_timestamp,
)


class TicketReader:
    def __init__(
        self,
        store: BaseDocumentStore,
        *,
        container: str = TICKETS_CONTAINER,
        tz_name: str = DEFAULT_TIMEZONE,
        page_size: int = 100,
    ) -> None:
        self.store = store
        self.container = container
        self.tz_name = tz_name
        self.page_size = page_size

    async def find_by_year_and_month(
        self, year: int, month: int
    ) -> AsyncIterator[OrderTicket | RefundTicket]:
        """Tickets créés dans le mois (bornes incluses, fuseau métier), par date de création.

        FR: Flux paresseux à passage unique ; les tickets d'un mois appartiennent
            tous à la partition de leur exercice.
        EN: Lazy single-pass stream ordered by creation time.
        """
        start = to_storage_timestamp(month_start(year, month, self.tz_name))
        end = to_storage_timestamp(month_end(year, month, self.tz_name))
        documents = self.store.query(
            self.container,
            [
                QueryFilter(field="createdAt", op=">=", value=start),
                QueryFilter(field="createdAt", op="<=", value=end),
            ],
            partition_key=str(year),
            order_by="createdAt",
            page_size=self.page_size,
        )
        async for stored in documents:
            yield parse_ticket(stored.data)
