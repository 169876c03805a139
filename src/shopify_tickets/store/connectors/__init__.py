"""Adaptateurs concrets du stockage documentaire."""

from shopify_tickets.store.connectors.memory import MemoryDocumentStore

__all__ = ["MemoryDocumentStore"]
