"""Assemblage des modules de l'application.

FR: Construit une seule fois, au démarrage du processus, le client de
    stockage et les modules qui le partagent. Les dépendances sont passées
    explicitement, ce qui permet aux tests de substituer le stockage mémoire.
EN: Builds the shared store client and the modules once at process start;
    every dependency is injected so tests can substitute in-memory adapters.
"""

import logging
from dataclasses import dataclass

from shopify_tickets.config import Settings
from shopify_tickets.reports.generator import MonthlyReportGenerator
from shopify_tickets.reports.module import ReportingModule
from shopify_tickets.reports.repository import ReportRepository
from shopify_tickets.reports.scheduler import TaskScheduler
from shopify_tickets.reports.sender import ReportSender
from shopify_tickets.reports.tickets import TicketReader
from shopify_tickets.shopify.client import ShopifyAdminClient
from shopify_tickets.store.base import BaseDocumentStore, UniqueKeys
from shopify_tickets.store_config.cache import StoreConfigCache
from shopify_tickets.store_config.repository import StoreConfigRepository
from shopify_tickets.store_config.service import StoreConfigService
from shopify_tickets.tickets.generator import (
    TICKET_UNIQUE_KEYS,
    TICKETS_CONTAINER,
    TicketNumberGenerator,
)
from shopify_tickets.tickets.module import TicketNumberingModule

logger = logging.getLogger(__name__)

UNIQUE_KEYS: UniqueKeys = {TICKETS_CONTAINER: TICKET_UNIQUE_KEYS}


@dataclass
class Modules:
    """Modules partagés par le processus."""

    settings: Settings
    store: BaseDocumentStore
    store_config: StoreConfigService
    tickets: TicketNumberingModule
    reporting: ReportingModule

    def commerce_client(self, shop: str, access_token: str) -> ShopifyAdminClient:
        """Client Admin GraphQL d'une boutique, à fermer par l'appelant."""
        return ShopifyAdminClient(
            shop, access_token, api_version=self.settings.shopify_api_version
        )

    async def close(self) -> None:
        await self.reporting.shutdown()
        await self.store.close()


def create_store(settings: Settings) -> BaseDocumentStore:
    from shopify_tickets.store.connectors.firestore import FirestoreDocumentStore

    return FirestoreDocumentStore(
        project=settings.firestore_project,
        database=settings.firestore_database,
        unique_keys=UNIQUE_KEYS,
    )


def build_modules(settings: Settings, store: BaseDocumentStore | None = None) -> Modules:
    """Construit les modules.

    Args:
        settings: Paramètres validés.
        store: Stockage à utiliser ; Firestore par défaut.
    """
    store = store or create_store(settings)
    tz_name = settings.business_timezone

    store_config = StoreConfigService(
        StoreConfigRepository(store),
        StoreConfigCache(timeout_minutes=settings.store_config_cache_minutes),
    )
    tickets = TicketNumberingModule(
        TicketNumberGenerator(store, padding=settings.ticket_number_padding, tz_name=tz_name),
        store_config,
        excluded_tag=settings.excluded_order_tag,
    )

    repository = ReportRepository(store)
    reporting = ReportingModule(
        MonthlyReportGenerator(TicketReader(store, tz_name=tz_name), tz_name=tz_name),
        repository,
        ReportSender(
            repository,
            endpoint=settings.erp_api_endpoint,
            username=settings.erp_api_username,
            password=settings.erp_api_password,
            timeout=settings.erp_api_timeout,
        ),
        TaskScheduler(tz_name),
        retry_schedule=settings.retry_reports_schedule,
        monthly_schedule=settings.monthly_report_schedule,
        reconcile_interval=settings.scheduler_reconcile_seconds,
    )
    logger.debug("Modules construits (stockage %s)", type(store).__name__)
    return Modules(
        settings=settings,
        store=store,
        store_config=store_config,
        tickets=tickets,
        reporting=reporting,
    )
