"""Configuration de l'application.

FR: Paramètres lus dans les variables d'environnement, avec des valeurs par
    défaut. Aucun identifiant de l'ERP n'est fourni par défaut : un point
    d'accès vide fait échouer proprement chaque envoi.
EN: Settings read from environment variables with defaults. No ERP
    credentials are shipped; an empty endpoint makes every send fail cleanly.
"""

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, field_validator

from shopify_tickets.utils.dates import get_timezone

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, object] = {
    "ERP_API_ENDPOINT": "",
    "ERP_API_USERNAME": "",
    "ERP_API_PASSWORD": "",
    "ERP_API_TIMEOUT": 30.0,
    "BUSINESS_TIMEZONE": "Europe/Madrid",
    "TICKET_NUMBER_PADDING": 4,
    "EXCLUDED_ORDER_TAG": "ceco",
    "STORE_CONFIG_CACHE_MINUTES": 5.0,
    "FIRESTORE_PROJECT": None,
    "FIRESTORE_DATABASE": None,
    "SHOPIFY_API_VERSION": "2025-01",
    "RETRY_REPORTS_SCHEDULE": "0 */4 * * *",
    "MONTHLY_REPORT_SCHEDULE": "0 1 1 * *",
    "SCHEDULER_RECONCILE_SECONDS": 300.0,
}


def get_setting(name: str, environ: Mapping[str, str] | None = None) -> object:
    """Retourne la valeur brute d'un paramètre.

    FR: Cherche dans l'environnement, puis dans les défauts.
    EN: Looks up the environment, then falls back to defaults.

    Raises:
        KeyError: Si le paramètre est inconnu.
    """
    if name not in DEFAULTS:
        msg = f"Paramètre inconnu : {name}"
        raise KeyError(msg)
    environ = os.environ if environ is None else environ
    return environ.get(name, DEFAULTS[name])


class Settings(BaseModel):
    """Paramètres validés de l'application."""

    erp_api_endpoint: str = Field(default="", description="URL de l'API ERP / ERP API URL")
    erp_api_username: str = ""
    erp_api_password: str = Field(default="", repr=False)
    erp_api_timeout: float = Field(default=30.0, gt=0)
    business_timezone: str = "Europe/Madrid"
    ticket_number_padding: int = Field(
        default=4, ge=0, description="0 : numéros non complétés / 0: unpadded numbers"
    )
    excluded_order_tag: str = "ceco"
    store_config_cache_minutes: float = Field(default=5.0, ge=0)
    firestore_project: str | None = None
    firestore_database: str | None = None
    shopify_api_version: str = "2025-01"
    retry_reports_schedule: str = "0 */4 * * *"
    monthly_report_schedule: str = "0 1 1 * *"
    scheduler_reconcile_seconds: float = Field(default=300.0, gt=0)

    @field_validator("business_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            get_timezone(value)
        except (KeyError, ValueError) as exc:
            msg = f"Fuseau horaire inconnu : {value}"
            raise ValueError(msg) from exc
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Construit les paramètres depuis l'environnement.

        Raises:
            pydantic.ValidationError: Si une valeur est invalide.
        """
        values = {name.lower(): get_setting(name, environ) for name in DEFAULTS}
        settings = cls.model_validate(values)
        if not settings.erp_api_endpoint:
            logger.warning("ERP_API_ENDPOINT non défini : les envois de rapports échoueront")
        return settings
