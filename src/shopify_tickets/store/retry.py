"""Boucle de tentatives bornée pour la concurrence optimiste.

FR: Une tentative ne lève pas d'exception pour un conflit récupérable : elle
    retourne un ``AttemptResult`` explicite (succès, conflit, échec). La
    politique de tentatives est une fonction visible et testable.
EN: Attempts return an explicit result (success / conflict / failed) instead
    of raising on recoverable conflicts; the retry policy is a plain,
    testable function.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from shopify_tickets.store.errors import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttemptStatus(StrEnum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptResult(Generic[T]):
    """Issue d'une tentative.

    FR: ``CONFLICT`` est récupérable (nouvelle tentative), ``FAILED`` est
        terminal et porte l'exception à propager.
    EN: ``CONFLICT`` is retryable; ``FAILED`` is terminal.
    """

    status: AttemptStatus
    value: T | None = None
    error: BaseException | None = None
    reason: str = ""

    @classmethod
    def success(cls, value: T) -> "AttemptResult[T]":
        return cls(AttemptStatus.SUCCESS, value=value)

    @classmethod
    def conflict(cls, reason: str = "") -> "AttemptResult[T]":
        return cls(AttemptStatus.CONFLICT, reason=reason)

    @classmethod
    def failed(cls, error: BaseException) -> "AttemptResult[T]":
        return cls(AttemptStatus.FAILED, error=error)


@dataclass(frozen=True)
class RetryPolicy:
    """Politique : ``max_attempts`` essais, attente ``base_delay * 2**n`` entre deux."""

    max_attempts: int = 3
    base_delay: float = 0.1

    def delay_for(self, attempt: int) -> float:
        """Attente après l'échec de la tentative ``attempt`` (indexée à 0)."""
        return self.base_delay * (2**attempt)


async def run_with_retries(
    attempt_fn: Callable[[int], Awaitable[AttemptResult[T]]],
    policy: RetryPolicy | None = None,
    *,
    operation: str = "opération",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Exécute ``attempt_fn`` jusqu'au succès ou à l'épuisement des tentatives.

    Args:
        attempt_fn: Tentative recevant son index (0, 1, 2, ...).
        policy: Politique de tentatives (3 essais, 100 ms de base par défaut).
        operation: Libellé pour les journaux et messages d'erreur.
        sleep: Fonction d'attente (remplaçable dans les tests).

    Returns:
        La valeur portée par le premier succès.

    Raises:
        RetryExhaustedError: Si toutes les tentatives se soldent par un conflit.
        BaseException: L'erreur portée par un résultat ``FAILED``.
    """
    policy = policy or RetryPolicy()
    last_reason = ""
    for attempt in range(policy.max_attempts):
        result = await attempt_fn(attempt)
        if result.status == AttemptStatus.SUCCESS:
            return result.value  # type: ignore[return-value]
        if result.status == AttemptStatus.FAILED:
            assert result.error is not None
            raise result.error

        last_reason = result.reason
        if attempt + 1 < policy.max_attempts:
            delay = policy.delay_for(attempt)
            logger.info(
                "Conflit de concurrence sur %s (tentative %d/%d) : %s, nouvel essai dans %.0f ms",
                operation,
                attempt + 1,
                policy.max_attempts,
                result.reason,
                delay * 1000,
            )
            await sleep(delay)

    msg = f"Échec de {operation} après {policy.max_attempts} tentatives : {last_reason}"
    raise RetryExhaustedError(msg, attempts=policy.max_attempts)
