"""Accès à la configuration fiscale des boutiques.

FR: Ordre de consultation : cache mémoire, puis stockage, puis API Shopify
    (``shop { taxesIncluded }``). Une valeur obtenue de Shopify est
    enregistrée puis mise en cache.
EN: Cache first, then the store, then the Shopify API; values fetched from
    Shopify are persisted and cached.
"""

from __future__ import annotations

import logging

from shopify_tickets.shopify.base import BaseCommerceClient
from shopify_tickets.store_config.cache import StoreConfigCache
from shopify_tickets.store_config.models import StoreConfig
from shopify_tickets.store_config.repository import StoreConfigRepository

logger = logging.getLogger(__name__)


class StoreConfigService:
    def __init__(
        self,
        repository: StoreConfigRepository,
        cache: StoreConfigCache | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache or StoreConfigCache()

    async def get_store_config(self, shop: str) -> StoreConfig | None:
        config = self.cache.get(shop)
        if config is not None:
            return config
        config = await self.repository.find_by_shop(shop)
        if config is not None:
            self.cache.set(config)
        return config

    async def save_store_config(self, config: StoreConfig) -> None:
        await self.repository.save(config)
        self.cache.set(config)

    async def get_taxes_included(self, shop: str, client: BaseCommerceClient) -> bool:
        """Indique si la boutique affiche ses prix TTC.

        Raises:
            CommerceAPIError: Si la configuration est inconnue localement et
                que Shopify ne peut pas la fournir.
        """
        config = await self.get_store_config(shop)
        if config is not None:
            return config.taxes_included

        taxes_included = await client.get_taxes_included()
        logger.info("Configuration fiscale de %s lue depuis Shopify", shop)
        await self.save_store_config(StoreConfig(shop=shop, taxes_included=taxes_included))
        return taxes_included

    def invalidate(self, shop: str) -> None:
        self.cache.invalidate(shop)

    def clear(self) -> None:
        self.cache.clear()
