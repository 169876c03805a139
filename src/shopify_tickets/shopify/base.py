"""Interface abstraite du client de la plateforme e-commerce.

FR: Opérations consommées par la numérotation : configuration fiscale de la
    boutique, étiquettes d'une commande et annotation d'une commande par un
    attribut personnalisé (lecture-modification-écriture).
EN: Operations consumed by ticket numbering: shop tax configuration, order
    tags and custom-attribute annotation of an order.
"""

from abc import ABCMeta, abstractmethod


class BaseCommerceClient(metaclass=ABCMeta):
    """Classe de base abstraite des clients de la plateforme e-commerce.

    FR: Le client GraphQL Shopify (httpx) et le client en mémoire des tests
        héritent de cette classe.
    EN: Implemented by the httpx GraphQL client and the in-memory test client.
    """

    def __init__(self, shop: str) -> None:
        self.shop = shop

    @abstractmethod
    async def get_taxes_included(self) -> bool:
        """Indique si les prix de la boutique sont affichés TTC.

        Raises:
            CommerceAPIError: Si la configuration est illisible.
        """
        ...

    @abstractmethod
    async def get_order_tags(self, order_gid: str) -> list[str]:
        """Étiquettes d'une commande (liste vide si la commande est introuvable)."""
        ...

    @abstractmethod
    async def get_order_attributes(self, order_gid: str) -> dict[str, str]:
        """Attributs personnalisés d'une commande, dans leur ordre d'origine."""
        ...

    @abstractmethod
    async def update_order_attributes(self, order_gid: str, attributes: dict[str, str]) -> None:
        """Remplace la liste des attributs personnalisés d'une commande.

        Raises:
            CommerceUserError: Si la mutation renvoie des ``userErrors``.
        """
        ...

    async def annotate_order(self, order_gid: str, key: str, value: str) -> bool:
        """Ajoute l'attribut ``key=value`` s'il n'est pas déjà présent.

        Returns:
            ``True`` si la commande a été modifiée, ``False`` si l'attribut
            portait déjà cette valeur.
        """
        attributes = await self.get_order_attributes(order_gid)
        if attributes.get(key) == value:
            return False
        attributes[key] = value
        await self.update_order_attributes(order_gid, attributes)
        return True

    async def close(self) -> None:
        return None
