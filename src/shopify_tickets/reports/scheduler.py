"""Planificateur de tâches récurrentes (expressions cron à 5 champs).

FR: Les expressions sont analysées par ``celery.schedules.crontab`` dans le
    fuseau métier ; chaque tâche est une boucle asyncio qui attend la
    prochaine échéance. Une tâche déjà en cours est ignorée à l'échéance
    suivante plutôt qu'empilée. Arrêter ou supprimer une tâche annule les
    déclenchements futurs sans interrompre une exécution en cours.
EN: Expressions are parsed by celery's ``crontab`` in the business timezone;
    each job is an asyncio loop. A running job is skipped rather than
    stacked; stopping a job never interrupts an in-flight run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from celery import Celery
from celery.schedules import ParseException, crontab

from shopify_tickets.utils.dates import DEFAULT_TIMEZONE, get_timezone

logger = logging.getLogger(__name__)

JobTask = Callable[[], Awaitable[Any]]


@dataclass
class ScheduledJob:
    """Tâche planifiée et son état d'exécution."""

    name: str
    cron_expression: str
    task: JobTask
    schedule: crontab
    is_running: bool = False
    run_count: int = 0
    last_run: datetime | None = None
    next_run: datetime | None = None
    _loop: asyncio.Task | None = field(default=None, repr=False)

    @property
    def is_started(self) -> bool:
        return self._loop is not None and not self._loop.done()


class TaskScheduler:
    """Planificateur asyncio piloté par des expressions cron."""

    def __init__(
        self,
        tz_name: str = DEFAULT_TIMEZONE,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.tz_name = tz_name
        self.timezone = get_timezone(tz_name)
        self._now = now or (lambda: datetime.now(self.timezone))
        self._app = Celery("shopify_tickets", set_as_current=False)
        self._app.conf.timezone = tz_name
        self._jobs: dict[str, ScheduledJob] = {}
        self._runs: set[asyncio.Task] = set()

    def parse(self, expression: str) -> crontab:
        """Analyse une expression ``minute heure jour mois jour_semaine``.

        Raises:
            ValueError: Si l'expression est invalide.
        """
        fields = expression.split()
        if len(fields) != 5:
            msg = f"Expression cron invalide : {expression!r} (5 champs attendus)"
            raise ValueError(msg)
        minute, hour, day_of_month, month_of_year, day_of_week = fields
        try:
            return crontab(
                minute=minute,
                hour=hour,
                day_of_month=day_of_month,
                month_of_year=month_of_year,
                day_of_week=day_of_week,
                app=self._app,
                nowfun=self._now,
            )
        except (ParseException, ValueError) as exc:
            msg = f"Expression cron invalide : {expression!r} ({exc})"
            raise ValueError(msg) from exc

    def next_run_after(self, job: ScheduledJob, moment: datetime) -> datetime:
        remaining: timedelta = job.schedule.remaining_estimate(moment)
        # Addition en temps absolu, jamais en heure locale
        return (moment.astimezone(UTC) + max(remaining, timedelta(0))).astimezone(self.timezone)

    # --- Enregistrement ---

    def add_job(self, name: str, cron_expression: str, task: JobTask, *, start: bool = True) -> ScheduledJob:
        """Enregistre une tâche et la démarre (si une boucle asyncio tourne).

        Raises:
            ValueError: Si le nom existe déjà ou si l'expression est invalide.
        """
        if name in self._jobs:
            msg = f"La tâche {name} existe déjà"
            raise ValueError(msg)
        job = ScheduledJob(
            name=name,
            cron_expression=cron_expression,
            task=task,
            schedule=self.parse(cron_expression),
        )
        job.next_run = self.next_run_after(job, self._now())
        self._jobs[name] = job
        logger.info("Tâche %s planifiée (%s), prochaine exécution %s", name, cron_expression, job.next_run)
        if start:
            self.start_job(name)
        return job

    def remove_job(self, name: str) -> bool:
        job = self._jobs.pop(name, None)
        if job is None:
            return False
        self._cancel_loop(job)
        logger.info("Tâche %s supprimée", name)
        return True

    def get_job(self, name: str) -> ScheduledJob | None:
        return self._jobs.get(name)

    def get_all_jobs(self) -> list[ScheduledJob]:
        return list(self._jobs.values())

    # --- Démarrage / arrêt ---

    def start_job(self, name: str) -> bool:
        job = self._jobs.get(name)
        if job is None:
            return False
        if job.is_started:
            return True
        try:
            job._loop = asyncio.get_running_loop().create_task(
                self._run_loop(job), name=f"scheduler:{name}"
            )
        except RuntimeError:
            logger.debug("Aucune boucle asyncio active : tâche %s enregistrée sans démarrage", name)
            return False
        return True

    def stop_job(self, name: str) -> bool:
        job = self._jobs.get(name)
        if job is None:
            return False
        self._cancel_loop(job)
        logger.info("Tâche %s arrêtée", name)
        return True

    def _cancel_loop(self, job: ScheduledJob) -> None:
        # Seule l'attente de l'échéance est annulée, jamais une exécution en cours
        if job._loop is not None:
            job._loop.cancel()
            job._loop = None

    async def _run_loop(self, job: ScheduledJob) -> None:
        while True:
            now = self._now()
            job.next_run = self.next_run_after(job, now)
            await asyncio.sleep((job.next_run.astimezone(UTC) - now.astimezone(UTC)).total_seconds())
            self.trigger(job.name)
            # Évite un double déclenchement dans la même minute
            await asyncio.sleep(1)

    # --- Exécution ---

    def trigger(self, name: str) -> asyncio.Task | None:
        """Déclenche une exécution en arrière-plan.

        Returns:
            La tâche asyncio de l'exécution, ou ``None`` si la tâche est
            inconnue ou déjà en cours.
        """
        job = self._jobs.get(name)
        if job is None:
            return None
        if job.is_running:
            logger.warning("Tâche %s encore en cours : déclenchement ignoré", name)
            return None
        job.is_running = True
        job.last_run = self._now()
        run = asyncio.get_running_loop().create_task(self._execute(job), name=f"job:{name}")
        self._runs.add(run)
        run.add_done_callback(self._runs.discard)
        return run

    async def _execute(self, job: ScheduledJob) -> None:
        logger.debug("Début de la tâche %s", job.name)
        try:
            await job.task()
            job.run_count += 1
            logger.debug("Tâche %s terminée (%d exécution(s))", job.name, job.run_count)
        except Exception:
            logger.exception("Erreur dans la tâche planifiée %s", job.name)
        finally:
            job.is_running = False
            job.next_run = self.next_run_after(job, self._now())

    async def wait_for_running(self) -> None:
        """Attend la fin des exécutions en cours (arrêt gracieux)."""
        if self._runs:
            await asyncio.gather(*self._runs, return_exceptions=True)
