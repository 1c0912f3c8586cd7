"""
Lock async por clave (tipo de entidad, id).

Serializa el read-modify-write del SyncStatus de una misma entidad dentro
del proceso. La restriccion unica de la tabla cubre el resto.

Caracteristicas:
- Un asyncio.Lock por clave, creado bajo demanda
- Timeout configurable para evitar deadlocks
- La clave se libera cuando nadie tiene ni espera su lock
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable

from loguru import logger


# Timeout por defecto para adquirir un lock (en segundos)
DEFAULT_LOCK_TIMEOUT = 30.0


class KeyLockTimeoutError(Exception):
    """Excepcion lanzada cuando no se puede adquirir el lock dentro del timeout."""
    
    def __init__(self, key: Hashable, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(
            f"Timeout ({timeout}s) adquiriendo lock para la clave: {key}"
        )


class KeyedLockManager:
    """
    Gestor de locks por clave para corutinas del mismo event loop.

    Cada clave lleva la cuenta de corutinas que tienen o esperan su lock;
    cuando la ultima lo suelta, la clave se elimina.
    """

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._users: Dict[Hashable, int] = {}

    def _checkout(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: Hashable) -> None:
        remaining = self._users[key] - 1
        if remaining:
            self._users[key] = remaining
        else:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def lock(
        self,
        key: Hashable,
        timeout: float = DEFAULT_LOCK_TIMEOUT
    ) -> AsyncIterator[None]:
        """
        Context manager async para adquirir el lock de una clave.

        Args:
            key: Clave a serializar, p. ej. ("Customer", "7")
            timeout: Tiempo maximo de espera (segundos). Si es None o <= 0,
                     espera indefinidamente.

        Raises:
            KeyLockTimeoutError: Si no se adquiere el lock a tiempo.
        """
        lock = self._checkout(key)
        try:
            if timeout and timeout > 0:
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=timeout)
                except asyncio.TimeoutError:
                    logger.warning(f"Timeout adquiriendo lock para {key} (timeout: {timeout}s)")
                    raise KeyLockTimeoutError(key, timeout)
            else:
                await lock.acquire()

            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)

    def get_active_locks_count(self) -> int:
        """Retorna el numero de claves con el lock tomado o en espera (para monitoreo)."""
        return len(self._locks)


# Instancia compartida por el ledger de sincronizacion
sync_status_locks = KeyedLockManager()
