"""Cache mémoire à durée de vie de la configuration des boutiques.

FR: Cache par processus, sans invalidation inter-processus : la fenêtre de
    péremption est égale à la durée de vie (5 minutes par défaut).
EN: Per-process TTL cache without cross-process invalidation.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from shopify_tickets.store_config.models import StoreConfig

logger = logging.getLogger(__name__)


class StoreConfigCache:
    """Cache ``shop -> StoreConfig`` avec expiration."""

    def __init__(
        self,
        timeout_minutes: float = 5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.timeout_seconds = timeout_minutes * 60
        self._clock = clock
        self._entries: dict[str, tuple[StoreConfig, float]] = {}

    def get(self, shop: str) -> StoreConfig | None:
        entry = self._entries.get(shop)
        if entry is None:
            return None
        config, stored_at = entry
        if self._clock() - stored_at > self.timeout_seconds:
            logger.debug("Entrée de cache expirée pour %s", shop)
            del self._entries[shop]
            return None
        logger.debug("Configuration de %s trouvée en cache", shop)
        return config

    def set(self, config: StoreConfig) -> None:
        self._entries[config.shop] = (config, self._clock())

    def invalidate(self, shop: str) -> None:
        self._entries.pop(shop, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
