"""Adaptateur Google Cloud Firestore (client asynchrone).

FR: La clé de partition est intégrée à l'identifiant du document
    (``<partition>:<id>``) et recopiée dans le champ ``partitionKey``.
    Le jeton de concurrence est l'``update_time`` du document, repassé via
    l'option d'écriture ``last_update_time``. Le lot atomique est un
    ``WriteBatch`` ; les clés d'unicité sont matérialisées par des documents
    d'index créés dans le même lot (collection ``<conteneur>_unique``).
EN: Partition folded into the document id, ``update_time`` as the concurrency
    token, ``WriteBatch`` for atomicity, unique keys as index documents
    created in the same batch.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from google.api_core import exceptions as gexc
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

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

PARTITION_FIELD = "partitionKey"


def document_key(partition_key: str, document_id: str) -> str:
    return f"{partition_key}:{document_id}".replace("/", "_")


def unique_index_key(partition_key: str, fields: tuple[str, ...], document: dict[str, Any]) -> str:
    values = json.dumps([document.get(f) for f in fields], sort_keys=True, default=str)
    digest = hashlib.sha256(f"{','.join(fields)}|{values}".encode()).hexdigest()
    return f"{partition_key}:{digest}"


class FirestoreDocumentStore(BaseDocumentStore):
    """Stockage documentaire sur Firestore.

    FR: Les requêtes combinant filtres et tri nécessitent les index
        composites correspondants côté Firestore.
    EN: Queries mixing filters and ordering need composite indexes.
    """

    def __init__(
        self,
        client: firestore.AsyncClient | None = None,
        *,
        project: str | None = None,
        database: str | None = None,
        unique_keys: UniqueKeys | None = None,
    ) -> None:
        super().__init__(unique_keys)
        self.client = client or firestore.AsyncClient(project=project, database=database)

    def _ref(self, container: str, partition_key: str, document_id: str):
        return self.client.collection(container).document(
            document_key(partition_key, document_id)
        )

    @staticmethod
    def _to_stored(snapshot: Any) -> StoredDocument:
        data = snapshot.to_dict() or {}
        return StoredDocument(
            id=str(data.get("id", snapshot.id)),
            partition_key=str(data.get(PARTITION_FIELD, "")),
            data=data,
            etag=snapshot.update_time,
        )

    # --- Lecture ---

    async def read(
        self, container: str, document_id: str, partition_key: str
    ) -> StoredDocument | None:
        try:
            snapshot = await self._ref(container, partition_key, document_id).get()
        except gexc.GoogleAPICallError as exc:
            msg = f"Lecture impossible : {container}/{document_id}"
            raise StoreError(msg) from exc
        if not snapshot.exists:
            return None
        return self._to_stored(snapshot)

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
        query = self.client.collection(container)
        for condition in filters:
            query = query.where(filter=FieldFilter(condition.field, condition.op, condition.value))
        if partition_key is not None:
            query = query.where(filter=FieldFilter(PARTITION_FIELD, "==", partition_key))
        query = query.order_by(order_by).limit(page_size)
        if continuation is not None:
            query = query.start_after(continuation)

        try:
            snapshots = [snapshot async for snapshot in query.stream()]
        except gexc.GoogleAPICallError as exc:
            msg = f"Requête impossible sur {container}"
            raise StoreError(msg) from exc

        next_cursor = snapshots[-1] if len(snapshots) == page_size else None
        return QueryPage(
            documents=[self._to_stored(s) for s in snapshots],
            continuation=next_cursor,
        )

    # --- Écriture ---

    async def execute_batch(
        self,
        container: str,
        partition_key: str,
        operations: Sequence[BatchOperation],
    ) -> list[StoredDocument]:
        if not operations:
            return []

        batch = self.client.batch()
        main_positions: list[int] = []
        documents: list[dict[str, Any]] = []
        position = 0
        for operation in operations:
            document = dict(operation.document)
            document.setdefault(PARTITION_FIELD, partition_key)
            ref = self._ref(container, partition_key, operation.document_id)

            if operation.kind == BatchOperationType.CREATE:
                batch.create(ref, document)
            elif operation.kind == BatchOperationType.REPLACE:
                option = None
                if operation.if_match is not None:
                    option = self.client.write_option(last_update_time=operation.if_match)
                batch.update(ref, document, option=option)
            else:
                batch.set(ref, document)
            main_positions.append(position)
            documents.append(document)
            position += 1

            if operation.kind == BatchOperationType.CREATE:
                for fields in self.unique_keys_for(container):
                    if all(document.get(f) is None for f in fields):
                        continue
                    index_ref = self.client.collection(f"{container}_unique").document(
                        unique_index_key(partition_key, fields, document)
                    )
                    batch.create(index_ref, {"documentId": operation.document_id})
                    position += 1

        try:
            results = await batch.commit()
        except gexc.AlreadyExists as exc:
            msg = f"Document ou clé d'unicité déjà existant dans {container}/{partition_key}"
            raise DocumentConflictError(msg) from exc
        except gexc.FailedPrecondition as exc:
            msg = f"Jeton de concurrence périmé dans {container}/{partition_key}"
            raise PreconditionFailedError(msg) from exc
        except gexc.NotFound as exc:
            msg = f"Document introuvable dans {container}/{partition_key}"
            raise DocumentNotFoundError(msg) from exc
        except gexc.GoogleAPICallError as exc:
            msg = f"Échec du lot sur {container}/{partition_key}"
            raise StoreError(msg) from exc

        logger.debug(
            "Lot Firestore de %d opération(s) validé sur %s/%s",
            len(operations),
            container,
            partition_key,
        )
        return [
            StoredDocument(
                id=str(document["id"]),
                partition_key=partition_key,
                data=document,
                etag=results[index].update_time,
            )
            for index, document in zip(main_positions, documents, strict=True)
        ]
