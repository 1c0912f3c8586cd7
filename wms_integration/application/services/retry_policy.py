"""
Politica de reintentos con backoff exponencial.

Un intento inicial mas hasta max_retries reintentos; antes del reintento n
se espera base_delay_s ** n segundos (2, 4, 8, ... por defecto).
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Se agotaron los intentos (o se cancelaron por la senal de parada)."""

    def __init__(self, description: str, attempts: int, last_error: BaseException, aborted: bool = False):
        self.description = description
        self.attempts = attempts
        self.last_error = last_error
        self.aborted = aborted
        reason = "cancelado" if aborted else "agotado"
        super().__init__(
            f"{description}: {reason} tras {attempts} intento(s). Ultimo error: {last_error}"
        )


class RetryPolicy:
    """
    Politica de reintentos reutilizable y sin estado por llamada, de modo que
    varios watchers del mismo tipo pueden compartirla en paralelo.
    """

    def __init__(
        self,
        max_retries: int,
        *,
        base_delay_s: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries no puede ser negativo")
        self.max_retries = max_retries
        self.base_delay_s = base_delay_s
        self._sleep = sleep

    def delay_for(self, retry_number: int) -> float:
        """Espera antes del reintento retry_number (1-based)."""
        return self.base_delay_s ** retry_number

    async def execute(
        self,
        operation: Callable[[int], Awaitable[T]],
        *,
        description: str = "operacion",
        stop_event: Optional[asyncio.Event] = None,
    ) -> T:
        """
        Ejecuta operation(attempt) hasta que tenga exito.

        Args:
            operation: corutina que recibe el numero de intento (1-based)
            description: texto para los logs
            stop_event: si se activa, no se programan mas reintentos

        Raises:
            RetryExhaustedError: si fallan todos los intentos
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation(attempt)
            except Exception as e:
                retry_number = attempt
                if retry_number > self.max_retries:
                    raise RetryExhaustedError(description, attempt, e) from e
                if stop_event is not None and stop_event.is_set():
                    logger.warning(f"Parada solicitada: no se reintenta {description}")
                    raise RetryExhaustedError(description, attempt, e, aborted=True) from e

                delay = self.delay_for(retry_number)
                logger.warning(
                    f"Reintento {retry_number}/{self.max_retries} de {description} "
                    f"en {delay:.0f}s debido a: {e}"
                )
                await self._sleep(delay)

                if stop_event is not None and stop_event.is_set():
                    logger.warning(f"Parada solicitada durante la espera: no se reintenta {description}")
                    raise RetryExhaustedError(description, attempt, e, aborted=True) from e
