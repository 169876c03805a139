"""Client e-commerce en mémoire pour les tests et le développement.

FR: Conserve étiquettes et attributs personnalisés des commandes en mémoire.
    ``fail_updates`` simule un refus de mutation (``userErrors``).
EN: Keeps order tags and custom attributes in memory; ``fail_updates``
    simulates a rejected mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from shopify_tickets.shopify.base import BaseCommerceClient
from shopify_tickets.shopify.errors import CommerceUserError


@dataclass
class _StoredOrder:
    tags: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)


class MemoryCommerceClient(BaseCommerceClient):
    """Client e-commerce en mémoire."""

    def __init__(self, shop: str = "test-shop.myshopify.com", taxes_included: bool = True) -> None:
        super().__init__(shop)
        self.taxes_included = taxes_included
        self.fail_updates = False
        self.config_calls = 0
        self.update_calls = 0
        self.tags_calls = 0
        self._orders: dict[str, _StoredOrder] = {}

    def _order(self, order_gid: str) -> _StoredOrder:
        return self._orders.setdefault(order_gid, _StoredOrder())

    def add_order(self, order_gid: str, tags: list[str] | None = None) -> None:
        self._order(order_gid).tags = list(tags or [])

    def attributes_of(self, order_gid: str) -> dict[str, str]:
        return dict(self._order(order_gid).attributes)

    async def get_taxes_included(self) -> bool:
        self.config_calls += 1
        return self.taxes_included

    async def get_order_tags(self, order_gid: str) -> list[str]:
        self.tags_calls += 1
        stored = self._orders.get(order_gid)
        return list(stored.tags) if stored else []

    async def get_order_attributes(self, order_gid: str) -> dict[str, str]:
        return dict(self._order(order_gid).attributes)

    async def update_order_attributes(self, order_gid: str, attributes: dict[str, str]) -> None:
        self.update_calls += 1
        if self.fail_updates:
            msg = f"Mise à jour de la commande {order_gid} refusée : customAttributes: invalide"
            raise CommerceUserError(msg, errors=["customAttributes: invalide"])
        self._order(order_gid).attributes = dict(attributes)
