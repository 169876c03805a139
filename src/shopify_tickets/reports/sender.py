"""Envoi des rapports mensuels à l'ERP.

FR: ``send_report`` passe le rapport à ``SENDING``, le POSTe en JSON avec une
    authentification Basic, puis enregistre ``SUCCESS`` (toute réponse 2xx) ou
    ``FAILURE`` (code et corps de réponse conservés). Aucune exception ne
    franchit cette frontière : erreurs réseau comprises, tout échec est
    capturé dans le ``SendReportResult`` renvoyé et persisté.
EN: SENDING, POST with Basic auth, then SUCCESS on 2xx or FAILURE. Nothing
    raises past this boundary; every failure is captured and persisted.
"""

import logging
from collections.abc import Callable
from datetime import datetime

import httpx
from pydantic import BaseModel, Field

from shopify_tickets.models.enums import ReportStatus
from shopify_tickets.reports.models import ReportDocument
from shopify_tickets.reports.repository import ReportRepository
from shopify_tickets.utils.dates import utc_now

logger = logging.getLogger(__name__)


class SendReportResult(BaseModel):
    """Résultat d'un envoi de rapport."""

    report_id: str
    success: bool
    status_code: int | None = None
    response_text: str | None = None
    error: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)


class ReportSender:
    """Client d'envoi des rapports vers l'API comptable de l'ERP.

    Args:
        repository: Dépôt des rapports (suivi des statuts).
        endpoint: URL de l'API ; vide, chaque envoi échoue proprement.
        username: Identifiant de l'authentification Basic.
        password: Mot de passe de l'authentification Basic.
        timeout: Délai maximal d'un envoi, en secondes.
        transport: Transport httpx (``httpx.MockTransport`` dans les tests).
    """

    def __init__(
        self,
        repository: ReportRepository,
        *,
        endpoint: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.endpoint = endpoint
        self.auth = httpx.BasicAuth(username, password)
        self.timeout = timeout
        self.transport = transport
        self._clock = clock

    async def _post(self, report: ReportDocument) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(
                self.endpoint,
                json=report.report.to_erp_json(),
                auth=self.auth,
                headers={"Content-Type": "application/json"},
            )

    async def _record_failure(self, report_id: str, error: str) -> None:
        try:
            await self.repository.update_status(report_id, ReportStatus.FAILURE, error)
        except Exception:
            logger.exception("Statut FAILURE non enregistré pour le rapport %s", report_id)

    async def send_report(self, report: ReportDocument) -> SendReportResult:
        """Envoie un rapport et enregistre l'issue. Ne lève jamais d'exception."""
        try:
            await self.repository.update_status(report.id, ReportStatus.SENDING)
            if not self.endpoint:
                msg = "Point d'accès de l'ERP non configuré"
                raise ValueError(msg)
            response = await self._post(report)
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            logger.exception("Échec de l'envoi du rapport %s à l'ERP", report.id)
            await self._record_failure(report.id, error)
            return SendReportResult(
                report_id=report.id, success=False, error=error, timestamp=self._clock()
            )

        if not response.is_success:
            error = f"Requête ERP refusée : {response.text}"
            logger.error(
                "Rapport %s refusé par l'ERP (HTTP %d) : %s",
                report.id,
                response.status_code,
                response.text,
            )
            await self._record_failure(report.id, error)
            return SendReportResult(
                report_id=report.id,
                success=False,
                status_code=response.status_code,
                response_text=response.text,
                error=error,
                timestamp=self._clock(),
            )

        try:
            await self.repository.update_status(report.id, ReportStatus.SUCCESS)
        except Exception:
            logger.exception("Statut SUCCESS non enregistré pour le rapport %s", report.id)

        logger.info(
            "Rapport %s (%d-%02d) accepté par l'ERP (HTTP %d)",
            report.id,
            report.year,
            report.month,
            response.status_code,
        )
        return SendReportResult(
            report_id=report.id,
            success=True,
            status_code=response.status_code,
            response_text=response.text,
            timestamp=self._clock(),
        )

    async def retry_failed_reports(self) -> list[SendReportResult]:
        """Renvoie chaque rapport en ``FAILURE``, indépendamment les uns des autres.

        FR: Un échec n'interrompt pas le lot ; tous les résultats sont renvoyés.
        EN: One failure never aborts the batch.
        """
        results: list[SendReportResult] = []
        async for report in self.repository.find_by_status(ReportStatus.FAILURE):
            results.append(await self.send_report(report))
        succeeded = sum(1 for result in results if result.success)
        logger.info(
            "Renvoi des rapports en échec : %d succès sur %d", succeeded, len(results)
        )
        return results
