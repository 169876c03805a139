"""Stockage documentaire à concurrence optimiste.

FR: Interface abstraite, adaptateurs mémoire et Firestore, et boucle de
    tentatives bornée pour les conflits de concurrence.
EN: Abstract document store, in-memory and Firestore adapters, and a bounded
    retry loop for concurrency conflicts.
"""

from shopify_tickets.store.base import BaseDocumentStore
from shopify_tickets.store.errors import (
    DocumentConflictError,
    DocumentNotFoundError,
    PreconditionFailedError,
    RetryExhaustedError,
    StoreError,
)
from shopify_tickets.store.models import BatchOperation, QueryFilter, QueryPage, StoredDocument
from shopify_tickets.store.retry import AttemptResult, AttemptStatus, RetryPolicy, run_with_retries

__all__ = [
    "AttemptResult",
    "AttemptStatus",
    "BaseDocumentStore",
    "BatchOperation",
    "DocumentConflictError",
    "DocumentNotFoundError",
    "PreconditionFailedError",
    "QueryFilter",
    "QueryPage",
    "RetryExhaustedError",
    "RetryPolicy",
    "StoreError",
    "StoredDocument",
    "run_with_retries",
]
