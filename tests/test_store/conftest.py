"""Fixtures partagées pour les tests du stockage."""

import pytest

from shopify_tickets.store.connectors.memory import MemoryDocumentStore

UNIQUE_KEYS = {"items": (("sku", "kind"),)}


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Stockage mémoire avec une clé d'unicité ``(sku, kind)`` sur ``items``."""
    return MemoryDocumentStore(unique_keys=UNIQUE_KEYS)


@pytest.fixture
def instant_sleep():
    """Fonction d'attente sans délai, enregistrant les attentes demandées."""
    delays: list[float] = []

    async def sleep(delay: float) -> None:
        delays.append(delay)

    sleep.delays = delays
    return sleep
