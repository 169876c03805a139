"""Compteurs séquentiels à concurrence optimiste.

FR: Un compteur par partition (exercice pour les tickets, partition fixe pour
    les rapports). États : ABSENT -> EXISTE(0) -> EXISTE(1) -> ... La création
    concurrente d'un même compteur est une course bénigne : le perdant relit
    le compteur créé par le gagnant.
EN: One counter per partition; a concurrent create is a benign race resolved
    by re-reading the winner's document.
"""

from __future__ import annotations

import logging

from shopify_tickets.models.ticket import CounterDocument
from shopify_tickets.store.base import BaseDocumentStore
from shopify_tickets.store.errors import DocumentConflictError, DocumentNotFoundError
from shopify_tickets.store.models import BatchOperation, StoredDocument

logger = logging.getLogger(__name__)


def year_counter_id(partition_key: str) -> str:
    """Identifiant du compteur d'un exercice (``counter-2025``)."""
    return f"counter-{partition_key}"


class CounterStore:
    """Lecture et création des documents compteurs d'un conteneur.

    FR: L'incrément lui-même n'est jamais fait ici : il est toujours inclus
        dans le lot atomique qui crée le document consommateur
        (voir ``increment_operation``).
    EN: Increments are always part of the consumer's atomic batch.
    """

    def __init__(self, store: BaseDocumentStore, container: str) -> None:
        self.store = store
        self.container = container

    @staticmethod
    def _from_stored(stored: StoredDocument) -> CounterDocument:
        counter = CounterDocument.model_validate(stored.data)
        return counter.model_copy(update={"etag": stored.etag})

    async def read_counter(self, partition_key: str, counter_id: str) -> CounterDocument | None:
        stored = await self.store.read(self.container, counter_id, partition_key)
        if stored is None:
            return None
        return self._from_stored(stored)

    async def get_or_create_counter(
        self, partition_key: str, counter_id: str | None = None
    ) -> CounterDocument:
        """Lit le compteur, ou le crée à 0 s'il n'existe pas.

        Raises:
            DocumentNotFoundError: Si le compteur reste illisible après un
                conflit de création.
        """
        counter_id = counter_id or year_counter_id(partition_key)
        counter = await self.read_counter(partition_key, counter_id)
        if counter is not None:
            return counter

        initial = CounterDocument(id=counter_id, partition_key=partition_key, current_value=0)
        try:
            stored = await self.store.create(self.container, partition_key, initial.to_document())
        except DocumentConflictError:
            logger.debug("Compteur %s créé en parallèle, relecture", counter_id)
            counter = await self.read_counter(partition_key, counter_id)
            if counter is None:
                msg = f"Compteur illisible après conflit de création : {counter_id}"
                raise DocumentNotFoundError(msg) from None
            return counter

        logger.info("Compteur %s initialisé dans la partition %s", counter_id, partition_key)
        return self._from_stored(stored)

    @staticmethod
    def increment_operation(counter: CounterDocument) -> tuple[int, BatchOperation]:
        """Valeur suivante et remplacement conditionnel du compteur correspondant."""
        next_value = counter.current_value + 1
        updated = counter.model_copy(update={"current_value": next_value})
        return next_value, BatchOperation.replace(updated.to_document(), if_match=counter.etag)
