"""
Monitor de disponibilidad del WMS.

Sondea la API cada N segundos hasta el primer exito, momento en el que
dispara scheduler.start_processing() y termina. Nunca se rinde: cada
HEALTH_CHECK_MAX_ATTEMPTS fallos consecutivos registra un error y reinicia
el contador.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from loguru import logger


class ApiHealthMonitor:
    """Habilita el scheduler cuando el WMS responde."""

    def __init__(
        self,
        probe: Callable[[], Awaitable[bool]],
        on_healthy: Callable[[], object],
        *,
        interval_s: float = 5.0,
        max_attempts: int = 5,
        stop_event: Optional[asyncio.Event] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._probe = probe
        self._on_healthy = on_healthy
        self._interval_s = interval_s
        self._max_attempts = max(1, max_attempts)
        self._stop_event = stop_event or asyncio.Event()
        self._sleep = sleep
        self.total_attempts = 0
        self.healthy = False

    async def run(self) -> bool:
        """
        Sondea hasta el primer exito o hasta recibir stop.

        Returns:
            True si el WMS respondio y se disparo on_healthy
        """
        consecutive_failures = 0
        logger.info(f"Health check del WMS iniciado (cada {self._interval_s}s)")

        while not self._stop_event.is_set():
            self.total_attempts += 1
            try:
                ok = await self._probe()
            except Exception as e:
                logger.warning(f"Error en health check del WMS: {e}")
                ok = False

            if ok:
                self.healthy = True
                logger.success(f"WMS disponible tras {self.total_attempts} intento(s)")
                self._on_healthy()
                return True

            consecutive_failures += 1
            logger.warning(f"WMS no disponible (intento {self.total_attempts})")
            if consecutive_failures >= self._max_attempts:
                logger.error(
                    f"WMS sigue sin responder tras {consecutive_failures} intentos consecutivos; "
                    f"se sigue reintentando"
                )
                consecutive_failures = 0

            await self._sleep(self._interval_s)

        logger.info("Health check del WMS detenido")
        return False
