"""Clients de l'API Admin Shopify.

FR: Interface abstraite, client GraphQL httpx et client en mémoire.
EN: Abstract interface, httpx GraphQL client and in-memory client.
"""

from shopify_tickets.shopify.base import BaseCommerceClient
from shopify_tickets.shopify.client import ShopifyAdminClient
from shopify_tickets.shopify.errors import (
    CommerceAPIError,
    CommerceAuthenticationError,
    CommerceUserError,
)
from shopify_tickets.shopify.memory import MemoryCommerceClient

__all__ = [
    "BaseCommerceClient",
    "CommerceAPIError",
    "CommerceAuthenticationError",
    "CommerceUserError",
    "MemoryCommerceClient",
    "ShopifyAdminClient",
]
