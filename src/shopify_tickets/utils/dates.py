"""Dates dans le fuseau horaire métier.

FR: Bornes de mois calculées dans le fuseau métier (Europe/Madrid par défaut,
    CET/CEST gérés par zoneinfo) et format d'horodatage de stockage, triable
    lexicographiquement.
EN: Month boundaries computed in the business timezone and a lexicographically
    sortable storage timestamp format.
"""

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Europe/Madrid"

_STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def get_timezone(name: str = DEFAULT_TIMEZONE) -> ZoneInfo:
    return ZoneInfo(name)


def _check_month(month: int) -> None:
    if not 1 <= month <= 12:
        msg = f"Mois invalide : {month} (1 à 12 attendu)"
        raise ValueError(msg)


def month_start(year: int, month: int, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Premier instant du mois dans le fuseau métier (datetime conscient)."""
    _check_month(month)
    return datetime(year, month, 1, tzinfo=get_timezone(tz_name))


def month_end(year: int, month: int, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Dernier instant (inclus) du mois dans le fuseau métier.

    FR: Calculé comme le début du mois suivant moins une microseconde, ce qui
        reste correct lors des changements d'heure.
    EN: Start of next month minus one microsecond.
    """
    _check_month(month)
    if month == 12:
        next_start = month_start(year + 1, 1, tz_name)
    else:
        next_start = month_start(year, month + 1, tz_name)
    # Soustraction en UTC : l'arithmétique sur datetime local ignore les transitions
    return (next_start.astimezone(UTC) - timedelta(microseconds=1)).astimezone(
        get_timezone(tz_name)
    )


def previous_month(reference: datetime, tz_name: str = DEFAULT_TIMEZONE) -> tuple[int, int]:
    """(année, mois) précédant la date de référence dans le fuseau métier."""
    local = reference.astimezone(get_timezone(tz_name))
    if local.month == 1:
        return local.year - 1, 12
    return local.year, local.month - 1


def business_year(moment: datetime, tz_name: str = DEFAULT_TIMEZONE) -> int:
    """Exercice (année civile) d'un instant dans le fuseau métier."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(get_timezone(tz_name)).year


def format_yyyymmdd(moment: datetime, tz_name: str = DEFAULT_TIMEZONE) -> str:
    return moment.astimezone(get_timezone(tz_name)).strftime("%Y%m%d")


def to_storage_timestamp(moment: datetime) -> str:
    """Horodatage UTC à largeur fixe, comparable en tant que chaîne.

    Les datetimes naïfs sont considérés comme UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime(_STORAGE_FORMAT)


def utc_now() -> datetime:
    return datetime.now(UTC)
