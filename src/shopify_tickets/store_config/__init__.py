"""Configuration fiscale des boutiques (cache, stockage, lecture Shopify)."""

from shopify_tickets.store_config.cache import StoreConfigCache
from shopify_tickets.store_config.models import StoreConfig
from shopify_tickets.store_config.repository import STORE_CONFIG_CONTAINER, StoreConfigRepository
from shopify_tickets.store_config.service import StoreConfigService

__all__ = [
    "STORE_CONFIG_CONTAINER",
    "StoreConfig",
    "StoreConfigCache",
    "StoreConfigRepository",
    "StoreConfigService",
]
