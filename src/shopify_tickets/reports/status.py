"""Cycle de vie du statut d'envoi des rapports.

FR: ``SENDING`` peut être atteint depuis tout statut (renvoi manuel, reprise
    après arrêt brutal), ``FAILURE`` aussi : un échec survenu avant le passage
    à ``SENDING``, ou pendant une régénération, doit rester reprenable.
    ``SUCCESS`` uniquement depuis ``SENDING``. ``PENDING`` n'est (ré)attribué
    que par la régénération du rapport, jamais par une transition.
EN: SENDING and FAILURE from any status; SUCCESS only from SENDING; PENDING
    only through regeneration.
"""

from shopify_tickets.models.enums import ReportStatus
from shopify_tickets.reports.errors import ReportStatusTransitionError

# ---------------------------------------------------------------------------
# Graphe de transitions autorisées
# ---------------------------------------------------------------------------

TRANSITIONS: dict[ReportStatus, list[ReportStatus]] = {
    ReportStatus.PENDING: [ReportStatus.SENDING, ReportStatus.FAILURE],
    ReportStatus.SENDING: [ReportStatus.SENDING, ReportStatus.SUCCESS, ReportStatus.FAILURE],
    ReportStatus.SUCCESS: [ReportStatus.SENDING, ReportStatus.FAILURE],
    ReportStatus.FAILURE: [ReportStatus.SENDING, ReportStatus.FAILURE],
}


def can_transition(current: ReportStatus, target: ReportStatus) -> bool:
    return target in TRANSITIONS.get(current, [])


def check_transition(report_id: str, current: ReportStatus, target: ReportStatus) -> None:
    """Vérifie une transition.

    Raises:
        ReportStatusTransitionError: Si la transition n'est pas autorisée.
    """
    if not can_transition(current, target):
        allowed = ", ".join(s.value for s in TRANSITIONS.get(current, []))
        msg = (
            f"Transition {current.value} → {target.value} interdite pour le "
            f"rapport {report_id}. Transitions autorisées : {allowed or 'aucune'}"
        )
        raise ReportStatusTransitionError(msg)
