"""Modèles d'échange avec le stockage documentaire.

FR: Document lu avec son jeton de concurrence, filtres de requête et
    opérations d'un lot atomique.
EN: Read document plus concurrency token, query filters and atomic batch
    operations.
"""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

FilterOperator = Literal["==", ">=", "<=", ">", "<"]


class StoredDocument(BaseModel):
    """Document lu depuis le stockage.

    FR: ``etag`` est le jeton de concurrence optimiste à repasser tel quel
        lors d'un remplacement conditionnel. Sa forme dépend de l'adaptateur
        (entier en mémoire, horodatage ``update_time`` sur Firestore).
    EN: ``etag`` is opaque and adapter specific.
    """

    id: str
    partition_key: str
    data: dict[str, Any]
    etag: Any = None


class QueryFilter(BaseModel):
    """Condition ``champ opérateur valeur`` (conjonction implicite)."""

    field: str
    op: FilterOperator = "=="
    value: Any = None

    def matches(self, document: dict[str, Any]) -> bool:
        actual = document.get(self.field)
        if self.op == "==":
            return actual == self.value
        if actual is None or self.value is None:
            return False
        if self.op == ">=":
            return actual >= self.value
        if self.op == "<=":
            return actual <= self.value
        if self.op == ">":
            return actual > self.value
        return actual < self.value


class BatchOperationType(StrEnum):
    CREATE = "create"
    REPLACE = "replace"
    UPSERT = "upsert"


class BatchOperation(BaseModel):
    """Opération d'un lot atomique limité à une partition.

    FR: ``REPLACE`` exige ``if_match`` (jeton lu précédemment) ; ``CREATE``
        échoue si l'identifiant ou une clé d'unicité existe déjà.
    EN: ``REPLACE`` requires ``if_match``; ``CREATE`` fails on any collision.
    """

    kind: BatchOperationType
    document: dict[str, Any]
    if_match: Any = None

    @property
    def document_id(self) -> str:
        return str(self.document["id"])

    @classmethod
    def create(cls, document: dict[str, Any]) -> "BatchOperation":
        return cls(kind=BatchOperationType.CREATE, document=document)

    @classmethod
    def replace(cls, document: dict[str, Any], if_match: Any) -> "BatchOperation":
        return cls(kind=BatchOperationType.REPLACE, document=document, if_match=if_match)

    @classmethod
    def upsert(cls, document: dict[str, Any]) -> "BatchOperation":
        return cls(kind=BatchOperationType.UPSERT, document=document)


class QueryPage(BaseModel):
    """Page de résultats et curseur de continuation (``None`` en fin de flux)."""

    documents: list[StoredDocument] = Field(default_factory=list)
    continuation: Any = None
