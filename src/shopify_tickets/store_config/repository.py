"""Persistance de la configuration des boutiques."""

import logging

from shopify_tickets.store.base import BaseDocumentStore
from shopify_tickets.store_config.models import StoreConfig

logger = logging.getLogger(__name__)

STORE_CONFIG_CONTAINER = "store_config"


class StoreConfigRepository:
    """Lecture et écriture (upsert) des configurations, une partition par boutique."""

    def __init__(self, store: BaseDocumentStore, container: str = STORE_CONFIG_CONTAINER) -> None:
        self.store = store
        self.container = container

    async def find_by_shop(self, shop: str) -> StoreConfig | None:
        stored = await self.store.read(self.container, shop, shop)
        if stored is None:
            return None
        return StoreConfig.model_validate(stored.data)

    async def save(self, config: StoreConfig) -> StoreConfig:
        await self.store.upsert(self.container, config.shop, config.to_document())
        logger.info(
            "Configuration de %s enregistrée (taxes incluses : %s)",
            config.shop,
            config.taxes_included,
        )
        return config
