"""Client GraphQL de l'API Admin Shopify (httpx asynchrone).

FR: Chaque appel est un POST sur ``/admin/api/<version>/graphql.json``
    authentifié par l'en-tête ``X-Shopify-Access-Token``. Les erreurs de
    transport et les erreurs GraphQL sont converties en ``CommerceAPIError``.
EN: POSTs to the Admin GraphQL endpoint; transport and GraphQL errors become
    ``CommerceAPIError``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from shopify_tickets.shopify import queries
from shopify_tickets.shopify.base import BaseCommerceClient
from shopify_tickets.shopify.errors import (
    CommerceAPIError,
    CommerceAuthenticationError,
    CommerceUserError,
)

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2025-01"


class ShopifyAdminClient(BaseCommerceClient):
    """Client de l'API Admin GraphQL d'une boutique.

    Args:
        shop: Domaine de la boutique (``ma-boutique.myshopify.com``).
        access_token: Jeton d'accès hors ligne de l'application.
        api_version: Version de l'API Admin.
        timeout: Délai maximal d'un appel, en secondes.
        transport: Transport httpx (``httpx.MockTransport`` dans les tests).
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        *,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(shop)
        self.api_version = api_version
        self._http = httpx.AsyncClient(
            base_url=f"https://{shop}",
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return f"/admin/api/{self.api_version}/graphql.json"

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Exécute une requête GraphQL et retourne son champ ``data``.

        Raises:
            CommerceAuthenticationError: Si Shopify répond 401 ou 403.
            CommerceAPIError: Pour toute autre erreur HTTP, réseau ou GraphQL.
        """
        try:
            response = await self._http.post(
                self.endpoint, json={"query": query, "variables": variables or {}}
            )
        except httpx.HTTPError as exc:
            msg = f"Appel GraphQL impossible vers {self.shop} : {exc}"
            raise CommerceAPIError(msg) from exc

        if response.status_code in (401, 403):
            msg = f"Accès refusé par {self.shop} (HTTP {response.status_code})"
            raise CommerceAuthenticationError(msg)
        if response.is_error:
            msg = f"Erreur HTTP {response.status_code} de {self.shop} : {response.text}"
            raise CommerceAPIError(msg)

        try:
            body = response.json()
        except ValueError as exc:
            msg = f"Réponse GraphQL illisible de {self.shop}"
            raise CommerceAPIError(msg) from exc

        if body.get("errors"):
            errors = [str(error.get("message", error)) for error in body["errors"]]
            msg = f"Erreur GraphQL de {self.shop} : {', '.join(errors)}"
            raise CommerceAPIError(msg, errors=errors)
        return body.get("data") or {}

    async def get_taxes_included(self) -> bool:
        data = await self.graphql(queries.SHOP_CONFIG_QUERY)
        taxes_included = (data.get("shop") or {}).get("taxesIncluded")
        if taxes_included is None:
            msg = f"Configuration fiscale absente pour {self.shop}"
            raise CommerceAPIError(msg)
        return bool(taxes_included)

    async def get_order_tags(self, order_gid: str) -> list[str]:
        data = await self.graphql(queries.ORDER_TAGS_QUERY, {"id": order_gid})
        return list((data.get("order") or {}).get("tags") or [])

    async def get_order_attributes(self, order_gid: str) -> dict[str, str]:
        data = await self.graphql(queries.ORDER_ATTRIBUTES_QUERY, {"id": order_gid})
        attributes = (data.get("order") or {}).get("customAttributes") or []
        return {attr["key"]: attr.get("value") or "" for attr in attributes}

    async def update_order_attributes(self, order_gid: str, attributes: dict[str, str]) -> None:
        variables = {
            "input": {
                "id": order_gid,
                "customAttributes": [{"key": k, "value": v} for k, v in attributes.items()],
            }
        }
        data = await self.graphql(queries.UPDATE_ORDER_ATTRIBUTES_MUTATION, variables)
        result = data.get("orderUpdate")
        if result is None:
            msg = f"Réponse orderUpdate absente pour {order_gid}"
            raise CommerceAPIError(msg)

        user_errors = result.get("userErrors") or []
        if user_errors:
            errors = [f"{error.get('field')}: {error.get('message')}" for error in user_errors]
            msg = f"Mise à jour de la commande {order_gid} refusée : {', '.join(errors)}"
            raise CommerceUserError(msg, errors=errors)
        logger.debug("Attributs de la commande %s mis à jour", order_gid)

    async def close(self) -> None:
        await self._http.aclose()
