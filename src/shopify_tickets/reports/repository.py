"""Persistance des rapports mensuels et de leur identifiant séquentiel.

FR: Les rapports et leur compteur partagent une partition fixe, ce qui
    permet d'attribuer l'identifiant dans le même lot atomique que la
    création du rapport. L'identifiant est global (non remis à zéro chaque
    année), attribué une seule fois par mois et conservé lors des
    régénérations.
EN: Reports and their counter share one fixed partition so the identifier is
    assigned in the same atomic batch as the report create. Identifiers are
    global, assigned once per month and kept on regeneration.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime

from shopify_tickets.models.enums import ReportStatus
from shopify_tickets.reports.errors import ReportNotFoundError, ReportStatusTransitionError
from shopify_tickets.reports.models import REPORTS_PARTITION, ReportDocument, report_id
from shopify_tickets.reports.status import check_transition
from shopify_tickets.store.base import BaseDocumentStore
from shopify_tickets.store.errors import (
    DocumentConflictError,
    DocumentNotFoundError,
    PreconditionFailedError,
)
from shopify_tickets.store.models import BatchOperation, QueryFilter
from shopify_tickets.store.retry import AttemptResult, RetryPolicy, run_with_retries
from shopify_tickets.tickets.counter import CounterStore
from shopify_tickets.utils.dates import utc_now

logger = logging.getLogger(__name__)

REPORTS_CONTAINER = "reports"
REPORT_COUNTER_ID = "report-counter"


class ReportRepository:
    def __init__(
        self,
        store: BaseDocumentStore,
        *,
        container: str = REPORTS_CONTAINER,
        policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.container = container
        self.policy = policy or RetryPolicy()
        self.counters = CounterStore(store, container)
        self._clock = clock
        self._sleep = sleep

    async def find_by_id(self, document_id: str) -> ReportDocument | None:
        stored = await self.store.read(self.container, document_id, REPORTS_PARTITION)
        if stored is None:
            return None
        return ReportDocument.from_document(stored.data, etag=stored.etag)

    async def find_by_year_and_month(self, year: int, month: int) -> ReportDocument | None:
        return await self.find_by_id(report_id(year, month))

    async def find_by_status(self, status: ReportStatus) -> AsyncIterator[ReportDocument]:
        """Flux des rapports d'un statut, par identifiant de document."""
        documents = self.store.query(
            self.container,
            [
                QueryFilter(field="type", value="report"),
                QueryFilter(field="status", value=str(status)),
            ],
            partition_key=REPORTS_PARTITION,
        )
        async for stored in documents:
            yield ReportDocument.from_document(stored.data, etag=stored.etag)

    async def save_with_counter(self, document: ReportDocument) -> ReportDocument:
        """Enregistre un rapport (re)généré.

        FR: Un rapport déjà enregistré pour le même mois conserve son
            identifiant et sa date de création ; il repasse à ``PENDING``.
            Sinon, l'identifiant suivant est attribué de manière atomique.
        EN: Existing months keep their identifier; new ones draw the next
            value atomically.

        Raises:
            RetryExhaustedError: Si les conflits persistent après 3 tentatives.
        """

        async def attempt(index: int) -> AttemptResult[ReportDocument]:
            existing = await self.find_by_id(document.id)
            now = self._clock()

            if existing is not None and existing.identifier is not None:
                updated = document.model_copy(
                    update={
                        "identifier": existing.identifier,
                        "report": document.report.with_identifier(existing.identifier),
                        "status": ReportStatus.PENDING,
                        "retry_count": existing.retry_count,
                        "last_retry_date": existing.last_retry_date,
                        "error": None,
                        "created_at": existing.created_at,
                        "updated_at": now,
                    }
                )
                try:
                    stored = await self.store.replace(
                        self.container, REPORTS_PARTITION, updated.to_document(), existing.etag
                    )
                except PreconditionFailedError:
                    return AttemptResult.conflict(f"rapport {document.id} modifié")
                logger.info(
                    "Rapport %s régénéré (identifiant %d conservé)", document.id, existing.identifier
                )
                return AttemptResult.success(updated.model_copy(update={"etag": stored.etag}))

            try:
                counter = await self.counters.get_or_create_counter(
                    REPORTS_PARTITION, REPORT_COUNTER_ID
                )
            except DocumentNotFoundError as exc:
                return AttemptResult.failed(exc)

            next_value, counter_operation = CounterStore.increment_operation(counter)
            created = document.model_copy(
                update={
                    "identifier": next_value,
                    "report": document.report.with_identifier(next_value),
                    "status": ReportStatus.PENDING,
                    "updated_at": now,
                }
            )
            report_operation = (
                BatchOperation.create(created.to_document())
                if existing is None
                else BatchOperation.replace(created.to_document(), if_match=existing.etag)
            )
            try:
                results = await self.store.execute_batch(
                    self.container, REPORTS_PARTITION, [counter_operation, report_operation]
                )
            except (PreconditionFailedError, DocumentConflictError):
                return AttemptResult.conflict(f"compteur des rapports ou rapport {document.id}")

            logger.info("Rapport %s enregistré avec l'identifiant %d", document.id, next_value)
            return AttemptResult.success(created.model_copy(update={"etag": results[1].etag}))

        return await run_with_retries(
            attempt,
            self.policy,
            operation=f"l'enregistrement du rapport {document.id}",
            sleep=self._sleep,
        )

    async def update_status(
        self, document_id: str, status: ReportStatus, error: str | None = None
    ) -> ReportDocument:
        """Change le statut d'envoi d'un rapport.

        FR: Un passage en ``FAILURE`` incrémente ``retry_count`` et horodate
            ``last_retry_date``.
        EN: FAILURE increments ``retry_count`` and stamps ``last_retry_date``.

        Raises:
            ReportNotFoundError: Si le rapport n'existe pas.
            ReportStatusTransitionError: Si la transition est interdite.
        """

        async def attempt(index: int) -> AttemptResult[ReportDocument]:
            current = await self.find_by_id(document_id)
            if current is None:
                return AttemptResult.failed(
                    ReportNotFoundError(f"Rapport introuvable : {document_id}")
                )
            try:
                check_transition(document_id, current.status, status)
            except ReportStatusTransitionError as exc:
                return AttemptResult.failed(exc)

            now = self._clock()
            changes: dict = {"status": status, "error": error, "updated_at": now}
            if status == ReportStatus.FAILURE:
                changes["retry_count"] = current.retry_count + 1
                changes["last_retry_date"] = now
            updated = current.model_copy(update=changes)
            try:
                stored = await self.store.replace(
                    self.container, REPORTS_PARTITION, updated.to_document(), current.etag
                )
            except PreconditionFailedError:
                return AttemptResult.conflict(f"rapport {document_id} modifié")
            return AttemptResult.success(updated.model_copy(update={"etag": stored.etag}))

        updated = await run_with_retries(
            attempt,
            self.policy,
            operation=f"la mise à jour du statut du rapport {document_id}",
            sleep=self._sleep,
        )
        logger.info("Rapport %s : statut %s", document_id, status.value)
        return updated
