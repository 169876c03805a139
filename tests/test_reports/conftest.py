"""Fixtures partagées pour les tests du reporting mensuel."""

from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal

import httpx
import pytest

from shopify_tickets.models.ticket import OrderTicketRequest, RefundTicketRequest, TaxLine
from shopify_tickets.modules import UNIQUE_KEYS
from shopify_tickets.reports.generator import MonthlyReportGenerator
from shopify_tickets.reports.repository import ReportRepository
from shopify_tickets.reports.sender import ReportSender
from shopify_tickets.reports.tickets import TicketReader
from shopify_tickets.store.connectors.memory import MemoryDocumentStore
from shopify_tickets.tickets.generator import TicketNumberGenerator

ERP_ENDPOINT = "https://erp.example.com/api/facturas"


async def _no_sleep(delay: float) -> None:
    return None


class FakeClock:
    """Horloge réglable (UTC)."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


def _tax_line(price: str, tax: str, rate: str = "0.21") -> TaxLine:
    return TaxLine(rate=Decimal(rate), price=Decimal(price), tax=Decimal(tax), currency="EUR")


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore(unique_keys=UNIQUE_KEYS)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 4, 2, 8, 0, tzinfo=UTC))


@pytest.fixture
def ticket_generator(store: MemoryDocumentStore) -> TicketNumberGenerator:
    return TicketNumberGenerator(store, sleep=_no_sleep)


@pytest.fixture
def seeded(ticket_generator: TicketNumberGenerator):
    """Fabrique : mars 2025, une commande de 121.00 puis un remboursement de 12.10."""

    async def seed() -> None:
        await ticket_generator.find_or_generate_ticket(
            OrderTicketRequest(
                order_id=555,
                created_at=datetime(2025, 3, 10, 10, 0, tzinfo=UTC),
                total_amount=Decimal("121.00"),
                currency="EUR",
                tax_lines=[_tax_line("100.00", "21.00")],
            )
        )
        await ticket_generator.find_or_generate_ticket(
            RefundTicketRequest(
                order_id=555,
                refund_id=900,
                created_at=datetime(2025, 3, 12, 10, 0, tzinfo=UTC),
                total_amount=Decimal("12.10"),
                currency="EUR",
                tax_lines=[_tax_line("10.00", "2.10")],
            )
        )

    return seed


@pytest.fixture
def reader(store: MemoryDocumentStore) -> TicketReader:
    return TicketReader(store, page_size=1)


@pytest.fixture
def report_generator(reader: TicketReader) -> MonthlyReportGenerator:
    return MonthlyReportGenerator(reader)


@pytest.fixture
def repository(store: MemoryDocumentStore, clock: FakeClock) -> ReportRepository:
    return ReportRepository(store, clock=clock, sleep=_no_sleep)


@pytest.fixture
def erp_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_sender(repository: ReportRepository, clock: FakeClock, erp_requests: list[httpx.Request]):
    """Fabrique d'émetteurs dont l'ERP répond via ``respond(request)``."""

    def make(
        respond: Callable[[httpx.Request], httpx.Response] | None = None,
        endpoint: str = ERP_ENDPOINT,
    ) -> ReportSender:
        def handler(request: httpx.Request) -> httpx.Response:
            erp_requests.append(request)
            if respond is None:
                return httpx.Response(200, text="OK")
            return respond(request)

        return ReportSender(
            repository,
            endpoint=endpoint,
            username="erp-user",
            password="erp-secret",
            transport=httpx.MockTransport(handler),
            clock=clock,
        )

    return make
