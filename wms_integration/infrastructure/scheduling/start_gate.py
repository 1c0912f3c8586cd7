"""
Compuerta de arranque de un solo disparo.

Ningun watcher ejecuta su primera corrida hasta que la compuerta se abre
(normalmente cuando el WMS responde al health check). Abrirla dos veces no
tiene efecto y nunca se vuelve a cerrar.
"""
import asyncio
from datetime import datetime
from typing import Optional

from loguru import logger

from wms_integration.shared.utils.datetime_utils import utc_now


class StartGate:
    """Senal de arranque one-shot."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.released_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self._event.is_set()

    def release(self) -> bool:
        """
        Abre la compuerta.

        Returns:
            True si esta llamada la abrio, False si ya estaba abierta
        """
        if self._event.is_set():
            return False
        self.released_at = utc_now()
        self._event.set()
        logger.info("Compuerta de arranque abierta: comienza el procesamiento de archivos")
        return True

    async def wait(self) -> None:
        await self._event.wait()
