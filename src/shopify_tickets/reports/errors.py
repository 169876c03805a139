"""Hiérarchie d'exceptions du reporting mensuel.

FR: Les défauts de cohérence (période vide, totaux divergents) sont fatals
    pour l'opération et ne sont jamais corrigés silencieusement.
EN: Consistency faults are fatal to the operation and never silently fixed.
"""


class ReportError(Exception):
    """Erreur de base pour le reporting mensuel."""


class EmptyReportPeriodError(ReportError):
    """Aucun ticket sur la période demandée."""

    def __init__(self, message: str, year: int, month: int) -> None:
        super().__init__(message)
        self.year = year
        self.month = month


class ReportConsistencyError(ReportError):
    """Le total des tickets et le détail par taux ne concordent pas.

    FR: Un écart sur un mois entier révèle un problème de données, pas un
        simple bruit d'arrondi.
    EN: A whole-month mismatch is a data problem, not rounding noise.
    """


class ReportNotFoundError(ReportError):
    """Rapport introuvable / Report not found."""


class ReportStatusTransitionError(ReportError, ValueError):
    """Transition de statut interdite."""
