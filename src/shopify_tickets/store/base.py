"""Interface abstraite du stockage documentaire.

FR: Définit le contrat consommé par les compteurs, les tickets, les rapports
    et la configuration des boutiques : lecture ponctuelle, création,
    remplacement conditionnel (concurrence optimiste), lot atomique limité
    à une partition et requête filtrée paginée. La concurrence entre
    processus repose exclusivement sur ces primitives.
EN: Contract for point reads, creates, conditional replaces, partition-scoped
    atomic batches and paginated filtered queries. Cross-process correctness
    rests entirely on these primitives.
"""

from abc import ABCMeta, abstractmethod
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Any

from shopify_tickets.store.models import BatchOperation, QueryFilter, QueryPage, StoredDocument

UniqueKeys = dict[str, Sequence[tuple[str, ...]]]
"""Clés d'unicité par conteneur, évaluées à l'intérieur d'une partition."""

DEFAULT_PAGE_SIZE = 100


class BaseDocumentStore(metaclass=ABCMeta):
    """Classe de base abstraite pour les adaptateurs de stockage.

    FR: Chaque document porte un champ ``id`` unique dans sa partition.
        Les clés d'unicité déclarées par conteneur sont vérifiées à la
        création (les documents concernés sont immuables).
        Les adaptateurs concrets (mémoire, Firestore) héritent de cette classe.
    EN: Documents carry an ``id`` unique within their partition. Declared
        unique keys are enforced on create.
    """

    def __init__(self, unique_keys: UniqueKeys | None = None) -> None:
        self.unique_keys: UniqueKeys = dict(unique_keys or {})

    def unique_keys_for(self, container: str) -> Sequence[tuple[str, ...]]:
        return self.unique_keys.get(container, ())

    # --- Lecture ---

    @abstractmethod
    async def read(
        self, container: str, document_id: str, partition_key: str
    ) -> StoredDocument | None:
        """Lit un document et son jeton de concurrence.

        Returns:
            Le document, ou ``None`` s'il n'existe pas.
        """
        ...

    @abstractmethod
    async def query_page(
        self,
        container: str,
        filters: Iterable[QueryFilter] = (),
        *,
        partition_key: str | None = None,
        order_by: str = "id",
        page_size: int = DEFAULT_PAGE_SIZE,
        continuation: Any = None,
    ) -> QueryPage:
        """Retourne une page de résultats triés par ``order_by``.

        Args:
            container: Nom du conteneur.
            filters: Conditions combinées par ET logique.
            partition_key: Restreint la requête à une partition (sinon transverse).
            order_by: Champ de tri (départage par ``id``).
            page_size: Nombre maximal de documents par page.
            continuation: Curseur renvoyé par la page précédente.
        """
        ...

    async def query(
        self,
        container: str,
        filters: Iterable[QueryFilter] = (),
        *,
        partition_key: str | None = None,
        order_by: str = "id",
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> AsyncIterator[StoredDocument]:
        """Parcourt paresseusement tous les résultats, page par page.

        FR: Flux à passage unique : le relancer réexécute la requête.
        EN: Single-pass stream; restarting it re-runs the query.
        """
        filters = list(filters)
        continuation: Any = None
        while True:
            page = await self.query_page(
                container,
                filters,
                partition_key=partition_key,
                order_by=order_by,
                page_size=page_size,
                continuation=continuation,
            )
            for document in page.documents:
                yield document
            if page.continuation is None:
                return
            continuation = page.continuation

    async def query_first(
        self,
        container: str,
        filters: Iterable[QueryFilter] = (),
        *,
        partition_key: str | None = None,
    ) -> StoredDocument | None:
        page = await self.query_page(
            container, filters, partition_key=partition_key, page_size=1
        )
        return page.documents[0] if page.documents else None

    # --- Écriture ---

    @abstractmethod
    async def execute_batch(
        self,
        container: str,
        partition_key: str,
        operations: Sequence[BatchOperation],
    ) -> list[StoredDocument]:
        """Exécute un lot d'opérations de manière atomique (tout ou rien).

        Returns:
            Les documents écrits, dans l'ordre des opérations.

        Raises:
            DocumentConflictError: Si une création heurte un identifiant ou
                une clé d'unicité existante.
            PreconditionFailedError: Si un remplacement porte un jeton périmé.
            DocumentNotFoundError: Si un remplacement vise un document absent.
        """
        ...

    async def create(
        self, container: str, partition_key: str, document: dict[str, Any]
    ) -> StoredDocument:
        results = await self.execute_batch(
            container, partition_key, [BatchOperation.create(document)]
        )
        return results[0]

    async def replace(
        self,
        container: str,
        partition_key: str,
        document: dict[str, Any],
        if_match: Any,
    ) -> StoredDocument:
        results = await self.execute_batch(
            container, partition_key, [BatchOperation.replace(document, if_match)]
        )
        return results[0]

    async def upsert(
        self, container: str, partition_key: str, document: dict[str, Any]
    ) -> StoredDocument:
        results = await self.execute_batch(
            container, partition_key, [BatchOperation.upsert(document)]
        )
        return results[0]

    async def close(self) -> None:
        """Libère les connexions éventuelles."""
        return None
