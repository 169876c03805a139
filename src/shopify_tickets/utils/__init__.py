"""Utilitaires partagés (montants, dates)."""
