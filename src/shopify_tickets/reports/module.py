"""Module de reporting mensuel.

FR: API d'administration (génération, envoi, renvoi des échecs) et tâches
    planifiées. Deux tâches fixes sont attendues : le renvoi périodique des
    rapports en échec et l'envoi mensuel du mois précédent. Une passe de
    réconciliation, exécutée au démarrage puis périodiquement, réenregistre
    celles qui manquent.
EN: Admin API plus two fixed scheduled jobs, kept registered by a
    reconciliation pass run at startup and periodically.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from shopify_tickets.models.enums import ReportStatus
from shopify_tickets.reports.errors import EmptyReportPeriodError
from shopify_tickets.reports.generator import MonthlyReportGenerator
from shopify_tickets.reports.models import ReportDocument, report_id
from shopify_tickets.reports.repository import ReportRepository
from shopify_tickets.reports.scheduler import JobTask, TaskScheduler
from shopify_tickets.reports.sender import ReportSender, SendReportResult
from shopify_tickets.utils.dates import previous_month, utc_now

logger = logging.getLogger(__name__)

RETRY_JOB_NAME = "failed-reports-retries"
MONTHLY_JOB_NAME = "monthly-report"
DEFAULT_RETRY_SCHEDULE = "0 */4 * * *"
DEFAULT_MONTHLY_SCHEDULE = "0 1 1 * *"
DEFAULT_RECONCILE_SECONDS = 300.0


class ReportingModule:
    """Point d'entrée du reporting mensuel.

    Args:
        generator: Générateur de la charge utile ERP d'un mois.
        repository: Dépôt des rapports.
        sender: Client d'envoi vers l'ERP.
        scheduler: Planificateur des tâches récurrentes.
        retry_schedule: Expression cron du renvoi des rapports en échec.
        monthly_schedule: Expression cron de l'envoi mensuel.
        reconcile_interval: Période de la passe de réconciliation, en secondes.
    """

    def __init__(
        self,
        generator: MonthlyReportGenerator,
        repository: ReportRepository,
        sender: ReportSender,
        scheduler: TaskScheduler,
        *,
        retry_schedule: str = DEFAULT_RETRY_SCHEDULE,
        monthly_schedule: str = DEFAULT_MONTHLY_SCHEDULE,
        reconcile_interval: float = DEFAULT_RECONCILE_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.generator = generator
        self.repository = repository
        self.sender = sender
        self.scheduler = scheduler
        self.retry_schedule = retry_schedule
        self.monthly_schedule = monthly_schedule
        self.reconcile_interval = reconcile_interval
        self._clock = clock

    # --- API d'administration ---

    async def generate_monthly_report(self, year: int, month: int) -> ReportDocument:
        """Génère et enregistre le rapport d'un mois (identifiant conservé si déjà connu).

        Raises:
            EmptyReportPeriodError: Si aucun ticket n'existe sur la période.
            ReportConsistencyError: Si les totaux divergent.
            RetryExhaustedError: Si l'enregistrement échoue après 3 tentatives.
        """
        payload = await self.generator.generate_report(year, month)
        now = self._clock()
        document = ReportDocument(
            id=report_id(year, month),
            year=year,
            month=month,
            status=ReportStatus.PENDING,
            created_at=now,
            updated_at=now,
            report=payload,
        )
        return await self.repository.save_with_counter(document)

    async def send_report(self, year: int, month: int) -> SendReportResult:
        """Envoie le rapport d'un mois, en le générant s'il n'existe pas encore."""
        report = await self.repository.find_by_year_and_month(year, month)
        if report is None:
            report = await self.generate_monthly_report(year, month)
        return await self.sender.send_report(report)

    async def retry_failed_reports(self) -> list[SendReportResult]:
        return await self.sender.retry_failed_reports()

    # --- Tâches planifiées ---

    async def run_retry_job(self) -> None:
        results = await self.retry_failed_reports()
        logger.info(
            "Renvoi planifié : %s",
            ", ".join(f"{r.report_id}={'OK' if r.success else 'KO'}" for r in results) or "aucun rapport",
        )

    async def run_monthly_job(self) -> SendReportResult | None:
        """Envoie le rapport du mois précédent (fuseau métier)."""
        year, month = previous_month(self._clock(), self.scheduler.tz_name)
        try:
            result = await self.send_report(year, month)
        except EmptyReportPeriodError:
            logger.warning("Aucun ticket pour %d-%02d : pas de rapport mensuel", year, month)
            return None
        logger.info(
            "Envoi mensuel du rapport %s : %s",
            result.report_id,
            "succès" if result.success else f"échec ({result.error})",
        )
        return result

    def desired_jobs(self) -> dict[str, tuple[str, JobTask]]:
        return {
            RETRY_JOB_NAME: (self.retry_schedule, self.run_retry_job),
            MONTHLY_JOB_NAME: (self.monthly_schedule, self.run_monthly_job),
        }

    def ensure_jobs(self) -> list[str]:
        """Réenregistre les tâches attendues absentes du planificateur.

        Returns:
            Les noms des tâches ajoutées.
        """
        added = []
        for name, (expression, task) in self.desired_jobs().items():
            if self.scheduler.get_job(name) is not None:
                continue
            self.scheduler.add_job(name, expression, task)
            added.append(name)
        if added:
            logger.info("Tâches réenregistrées : %s", ", ".join(added))
        return added

    async def run_scheduler(self, stop: asyncio.Event) -> None:
        """Réconcilie les tâches jusqu'au signal d'arrêt, puis arrête proprement."""
        try:
            while not stop.is_set():
                self.ensure_jobs()
                try:
                    await asyncio.wait_for(stop.wait(), timeout=self.reconcile_interval)
                except TimeoutError:
                    continue
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Supprime les tâches (déclenchements futurs) et attend les exécutions en cours."""
        for job in self.scheduler.get_all_jobs():
            self.scheduler.remove_job(job.name)
        await self.scheduler.wait_for_running()
        logger.info("Module de reporting arrêté")
