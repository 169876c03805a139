"""Modèles du rapport comptable mensuel envoyé à l'ERP.

FR: La charge utile suit le schéma fixe de l'ERP (noms de champs espagnols,
    montants en chaînes à deux décimales) : un en-tête, une position client
    (total TTC, au débit), une position de produit et une position de TVA par
    taux non nul (au crédit, donc négatives).
EN: Fixed ERP export shape (Spanish field names, two-decimal string amounts):
    header, customer position, one income and one tax position per rate.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from shopify_tickets.models.enums import ReportStatus
from shopify_tickets.utils.dates import to_storage_timestamp, utc_now

REPORTS_PARTITION = "reports"


def report_id(year: int, month: int) -> str:
    """Identifiant de document d'un rapport (``2025-03``)."""
    return f"{year}-{month:02d}"


class _ErpModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ReportHeader(_ErpModel):
    """En-tête (``Cabecera``) ; ``Identificador`` est attribué à l'enregistrement."""

    identifier: str | None = Field(default=None, alias="Identificador")
    document_date: str = Field(..., alias="Fecha_documento")
    posting_date: str = Field(..., alias="Fecha_contable")
    fiscal_year: str = Field(..., alias="Ejercicio")
    period: str = Field(..., alias="Periodo")
    company: str = Field(..., alias="Sociedad")
    document_class: str = Field(..., alias="Clase_documento")
    reference: str = Field(..., alias="Referencia")
    header_text: str = Field(..., alias="Texto_cabecera")
    tax_date: str = Field(..., alias="Fecha_IVA")


class CustomerPosition(_ErpModel):
    position: str = Field(..., alias="Posicion")
    customer_account: str = Field(..., alias="Cuenta_cliente")
    account: str = Field(default="", alias="Cuenta")
    amount: str = Field(..., alias="Importe")
    currency: str = Field(..., alias="Moneda")
    assignment: str = Field(..., alias="Num_Asignacion")
    text: str = Field(default="", alias="Texto_explicativo")
    profit_center: str = Field(..., alias="Centro_beneficio")


class IncomePosition(_ErpModel):
    position: str = Field(..., alias="Posicion")
    income_account: str = Field(..., alias="Cuenta_ingreso")
    amount: str = Field(..., alias="Importe")
    currency: str = Field(..., alias="Moneda")
    tax_indicator: str = Field(..., alias="Indicador_IVA")
    profit_center: str = Field(..., alias="Centro_beneficio")
    wbs_element: str = Field(..., alias="Elemento_PEP")
    assignment: str = Field(..., alias="Num_asignacion")
    text: str = Field(default="", alias="Texto_explicativo")


class TaxPosition(_ErpModel):
    position: str = Field(..., alias="Posicion")
    tax_account: str = Field(..., alias="Cuenta_impuestos")
    amount: str = Field(..., alias="Importe")
    currency: str = Field(..., alias="Moneda")
    tax_indicator: str = Field(..., alias="Indicador_IVA")
    assignment: str = Field(..., alias="Num_asignacion")
    text: str = Field(default="", alias="Texto_explicativo")
    profit_center: str = Field(default="", alias="Centro_beneficio")
    taxable_base: str = Field(..., alias="Base_Imponible_IVA")


class Invoice(_ErpModel):
    """Écriture (``Factura``) : en-tête et positions."""

    header: ReportHeader = Field(..., alias="Cabecera")
    customer_position: CustomerPosition = Field(..., alias="Posicion_cliente")
    income_positions: list[IncomePosition] = Field(default_factory=list, alias="Posicion_ingreso")
    tax_positions: list[TaxPosition] = Field(default_factory=list, alias="Posicion_impuestos")


class MonthlyReportPayload(_ErpModel):
    """Corps JSON envoyé à l'ERP."""

    invoice: Invoice = Field(..., alias="Factura")

    def to_erp_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def with_identifier(self, identifier: int) -> "MonthlyReportPayload":
        header = self.invoice.header.model_copy(update={"identifier": str(identifier)})
        invoice = self.invoice.model_copy(update={"header": header})
        return self.model_copy(update={"invoice": invoice})


class ReportDocument(BaseModel):
    """Rapport stocké, avec son statut d'envoi.

    FR: ``identifier`` est attribué une seule fois par le compteur des
        rapports et conservé lors des régénérations du même mois. ``etag``
        est le jeton de concurrence du stockage (jamais sérialisé).
    EN: ``identifier`` is assigned once and kept across regenerations.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    partition_key: str = REPORTS_PARTITION
    type: Literal["report"] = "report"
    year: int
    month: int = Field(..., ge=1, le=12)
    identifier: int | None = None
    status: ReportStatus = ReportStatus.PENDING
    retry_count: int = Field(default=0, ge=0)
    last_retry_date: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    report: MonthlyReportPayload
    error: str | None = None
    etag: Any = Field(default=None, exclude=True)

    @field_serializer("created_at", "updated_at", "last_retry_date")
    def _serialize_dates(self, value: datetime | None) -> str | None:
        return to_storage_timestamp(value) if value is not None else None

    def to_document(self) -> dict[str, Any]:
        document = self.model_dump(mode="json", by_alias=True)
        document["report"] = self.report.to_erp_json()
        return document

    @classmethod
    def from_document(cls, data: dict[str, Any], etag: Any = None) -> "ReportDocument":
        document = cls.model_validate(data)
        return document.model_copy(update={"etag": etag})
