"""Stockage documentaire en mémoire pour les tests et le développement.

FR: Reproduit la sémantique du stockage de production : jeton de concurrence
    incrémenté à chaque écriture, lot atomique (tout ou rien), clés d'unicité
    par partition et pagination par curseur. Chaque appel cède la main à la
    boucle d'événements avant d'agir, ce qui permet d'entrelacer des appels
    concurrents dans les tests.
EN: Mirrors the production store semantics (version tokens, atomic batches,
    per-partition unique keys, cursor paging) and yields to the event loop
    on every call so concurrent callers interleave.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from shopify_tickets.store.base import DEFAULT_PAGE_SIZE, BaseDocumentStore, UniqueKeys
from shopify_tickets.store.errors import (
    DocumentConflictError,
    DocumentNotFoundError,
    PreconditionFailedError,
    StoreError,
)
from shopify_tickets.store.models import (
    BatchOperation,
    BatchOperationType,
    QueryFilter,
    QueryPage,
    StoredDocument,
)

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    """Document stocké en mémoire avec sa version."""

    partition_key: str
    data: dict[str, Any]
    version: int


def _sort_key(data: dict[str, Any], order_by: str) -> tuple:
    value = data.get(order_by)
    return (value is None, value if value is not None else "", str(data["id"]))


class MemoryDocumentStore(BaseDocumentStore):
    """Stockage documentaire en mémoire.

    FR: Implémente l'interface BaseDocumentStore complète. Les documents sont
        copiés en profondeur à l'entrée et à la sortie.
    EN: Implements the full BaseDocumentStore interface with deep copies.
    """

    def __init__(self, unique_keys: UniqueKeys | None = None) -> None:
        super().__init__(unique_keys)
        self._containers: dict[str, dict[tuple[str, str], _Entry]] = {}
        self._version = 0
        self.batch_count = 0

    def _container(self, name: str) -> dict[tuple[str, str], _Entry]:
        return self._containers.setdefault(name, {})

    def _next_version(self) -> int:
        self._version += 1
        return self._version

    @staticmethod
    def _to_stored(entry: _Entry) -> StoredDocument:
        return StoredDocument(
            id=str(entry.data["id"]),
            partition_key=entry.partition_key,
            data=copy.deepcopy(entry.data),
            etag=entry.version,
        )

    def documents(self, container: str) -> list[dict[str, Any]]:
        """Copie de tous les documents d'un conteneur (aide aux tests)."""
        return [copy.deepcopy(e.data) for e in self._container(container).values()]

    # --- Lecture ---

    async def read(
        self, container: str, document_id: str, partition_key: str
    ) -> StoredDocument | None:
        await asyncio.sleep(0)
        entry = self._container(container).get((partition_key, document_id))
        if entry is None:
            return None
        return self._to_stored(entry)

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
        await asyncio.sleep(0)
        filters = list(filters)
        matches = [
            entry
            for entry in self._container(container).values()
            if (partition_key is None or entry.partition_key == partition_key)
            and all(f.matches(entry.data) for f in filters)
        ]
        matches.sort(key=lambda entry: _sort_key(entry.data, order_by))
        # Le curseur est la clé de tri du dernier document rendu : la
        # pagination reste stable si des documents sont écrits entre deux pages.
        if continuation is not None:
            matches = [e for e in matches if _sort_key(e.data, order_by) > continuation]
        page = matches[:page_size]
        next_cursor = None
        if len(matches) > page_size and page:
            next_cursor = _sort_key(page[-1].data, order_by)
        return QueryPage(
            documents=[self._to_stored(entry) for entry in page],
            continuation=next_cursor,
        )

    # --- Écriture ---

    def _unique_collision(
        self,
        container: str,
        partition_key: str,
        document: dict[str, Any],
        staged: dict[tuple[str, str], _Entry],
    ) -> tuple[str, ...] | None:
        document_id = str(document["id"])
        for fields in self.unique_keys_for(container):
            key = tuple(document.get(f) for f in fields)
            if all(value is None for value in key):
                continue
            for (pk, other_id), entry in staged.items():
                if pk != partition_key or other_id == document_id:
                    continue
                if tuple(entry.data.get(f) for f in fields) == key:
                    return fields
        return None

    async def execute_batch(
        self,
        container: str,
        partition_key: str,
        operations: Sequence[BatchOperation],
    ) -> list[StoredDocument]:
        await asyncio.sleep(0)
        if not operations:
            return []

        current = self._container(container)
        staged = dict(current)
        written: list[_Entry] = []
        for operation in operations:
            document = copy.deepcopy(operation.document)
            if "id" not in document:
                msg = f"Document sans identifiant dans le conteneur {container}"
                raise StoreError(msg)
            key = (partition_key, str(document["id"]))
            existing = staged.get(key)

            if operation.kind == BatchOperationType.CREATE:
                if existing is not None:
                    msg = f"Document déjà existant : {container}/{key[1]}"
                    raise DocumentConflictError(msg, document_id=key[1])
                fields = self._unique_collision(container, partition_key, document, staged)
                if fields is not None:
                    msg = (
                        f"Clé d'unicité {fields} déjà utilisée dans "
                        f"{container}/{partition_key}"
                    )
                    raise DocumentConflictError(msg, document_id=key[1])
            elif operation.kind == BatchOperationType.REPLACE:
                if existing is None:
                    msg = f"Document introuvable : {container}/{key[1]}"
                    raise DocumentNotFoundError(msg)
                if operation.if_match is not None and existing.version != operation.if_match:
                    msg = f"Jeton de concurrence périmé : {container}/{key[1]}"
                    raise PreconditionFailedError(msg)

            entry = _Entry(
                partition_key=partition_key, data=document, version=self._next_version()
            )
            staged[key] = entry
            written.append(entry)

        # Validation complète : application en une seule fois
        current.clear()
        current.update(staged)
        self.batch_count += 1
        logger.debug(
            "Lot de %d opération(s) appliqué sur %s/%s",
            len(operations),
            container,
            partition_key,
        )
        return [self._to_stored(entry) for entry in written]
