"""Hiérarchie d'exceptions du stockage documentaire.

FR: Exceptions typées pour les conflits de création, les échecs de
    précondition (jeton de concurrence périmé), les documents introuvables
    et l'épuisement des tentatives.
EN: Typed exceptions for create conflicts, precondition failures, missing
    documents and exhausted retries.
"""


class StoreError(Exception):
    """Erreur de base pour toutes les opérations de stockage.

    FR: Classe parente de toutes les exceptions levées par les adaptateurs
        du stockage documentaire.
    EN: Base class for all document store exceptions.
    """


class DocumentConflictError(StoreError):
    """Le document (ou sa clé d'unicité) existe déjà.

    FR: Levée par une création dont l'identifiant ou la clé d'unicité du
        conteneur est déjà pris dans la partition.
    EN: Raised when a create collides with an existing id or unique key.
    """

    def __init__(self, message: str, document_id: str | None = None) -> None:
        super().__init__(message)
        self.document_id = document_id


class PreconditionFailedError(StoreError):
    """Le jeton de concurrence ne correspond plus.

    FR: Le document a été modifié depuis sa lecture ; la mise à jour
        conditionnelle est rejetée.
    EN: The document changed since it was read.
    """


class DocumentNotFoundError(StoreError):
    """Document introuvable / Document not found."""


class RetryExhaustedError(StoreError):
    """Nombre maximal de tentatives atteint sur un conflit de concurrence."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts
