"""Reporting comptable mensuel.

FR: Agrégation mensuelle des tickets, identifiant séquentiel des rapports,
    envoi à l'ERP avec suivi des statuts et tâches planifiées.
EN: Monthly ticket aggregation, sequential report identifiers, ERP
    submission with status tracking, and scheduled jobs.
"""

from shopify_tickets.reports.errors import (
    EmptyReportPeriodError,
    ReportConsistencyError,
    ReportError,
    ReportNotFoundError,
    ReportStatusTransitionError,
)
from shopify_tickets.reports.generator import ErpConstants, MonthlyReportGenerator
from shopify_tickets.reports.models import MonthlyReportPayload, ReportDocument, report_id
from shopify_tickets.reports.module import (
    MONTHLY_JOB_NAME,
    RETRY_JOB_NAME,
    ReportingModule,
)
from shopify_tickets.reports.repository import REPORTS_CONTAINER, ReportRepository
from shopify_tickets.reports.scheduler import ScheduledJob, TaskScheduler
from shopify_tickets.reports.sender import ReportSender, SendReportResult
from shopify_tickets.reports.status import TRANSITIONS, can_transition
from shopify_tickets.reports.tickets import TicketReader

__all__ = [
    "MONTHLY_JOB_NAME",
    "REPORTS_CONTAINER",
    "RETRY_JOB_NAME",
    "TRANSITIONS",
    "EmptyReportPeriodError",
    "ErpConstants",
    "MonthlyReportGenerator",
    "MonthlyReportPayload",
    "ReportConsistencyError",
    "ReportDocument",
    "ReportError",
    "ReportNotFoundError",
    "ReportRepository",
    "ReportSender",
    "ReportStatusTransitionError",
    "ReportingModule",
    "ScheduledJob",
    "SendReportResult",
    "TaskScheduler",
    "TicketReader",
    "can_transition",
    "report_id",
]
