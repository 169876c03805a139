"""Hiérarchie d'exceptions des appels à l'API Admin Shopify.

FR: Erreurs de transport, d'authentification et erreurs métier (``userErrors``)
    renvoyées par les mutations GraphQL.
EN: Transport, authentication and GraphQL ``userErrors`` failures.
"""


class CommerceAPIError(Exception):
    """Erreur de base pour les appels à la plateforme e-commerce.

    FR: Timeout, erreur réseau, réponse GraphQL invalide ou champ ``errors``.
    EN: Network failure, invalid GraphQL response or top-level ``errors``.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors: list[str] = errors or []


class CommerceAuthenticationError(CommerceAPIError):
    """Jeton d'accès invalide ou révoqué (HTTP 401/403)."""


class CommerceUserError(CommerceAPIError):
    """Mutation rejetée (``userErrors`` non vide).

    FR: Chaque entrée est formatée ``champ: message``.
    EN: Each entry is formatted ``field: message``.
    """
