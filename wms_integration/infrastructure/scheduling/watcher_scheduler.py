"""
Scheduler de watchers.

Un unico loop asyncio mantiene un min-heap de (proxima_ejecucion, secuencia,
watcher). Los watchers vencidos se lanzan como tareas independientes; al
terminar cada corrida (con exito o error) se calcula la siguiente ejecucion
y el watcher vuelve al heap. Asi nunca se solapan dos corridas del mismo
watcher y el cadence puede derivar bajo carga.

Estados por watcher: WAITING_FOR_GATE -> SCHEDULED -> RUNNING -> SCHEDULED,
y STOPPED al apagar.
"""
import asyncio
import heapq
import itertools
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from croniter import CroniterBadDateError, croniter
from loguru import logger

from wms_integration.application.dto.file_processing_dto import FileProcessingConfig, WatcherConfig
from wms_integration.infrastructure.scheduling.start_gate import StartGate
from wms_integration.shared.utils.datetime_utils import ensure_utc, utc_now


def build_cron(expression: str, now: datetime) -> croniter:
    """
    Construye un iterador croniter (UTC) desde una expresion crontab de 5 campos.

    Con dia del mes y dia de la semana restringidos a la vez basta que
    coincida uno de los dos, como en cron estandar.

    Raises:
        ValueError: si la expresion no es valida
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Se esperaban 5 campos y hay {len(fields)}")
    return croniter(" ".join(fields), now)


def compute_next_run(
    cron_expression: Optional[str],
    now: datetime,
    fallback_interval: timedelta,
    last_run: Optional[datetime] = None,
) -> datetime:
    """
    Calcula la proxima ejecucion, siempre estrictamente posterior a now.

    - Con expresion cron valida: siguiente ocurrencia despues de now.
    - Sin expresion, expresion invalida o sin proxima ocurrencia:
      last_run + fallback_interval (o now + fallback_interval).
    """
    now = ensure_utc(now)
    if cron_expression and cron_expression.strip():
        try:
            schedule = build_cron(cron_expression.strip(), now)
        except ValueError as e:
            logger.warning(f"Expresion cron invalida '{cron_expression}': {e}. Se usa intervalo fijo")
        else:
            try:
                return ensure_utc(schedule.get_next(datetime))
            except CroniterBadDateError:
                logger.warning(
                    f"La expresion cron '{cron_expression}' no tiene proxima ocurrencia. Se usa intervalo fijo"
                )

    base = ensure_utc(last_run) if last_run else now
    candidate = base + fallback_interval
    if candidate <= now:
        candidate = now + fallback_interval
    return candidate


class WatcherPhase(str, Enum):
    WAITING_FOR_GATE = "waiting_for_gate"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class WatcherState:
    """Estado observable de un watcher."""

    watcher: WatcherConfig
    phase: WatcherPhase = WatcherPhase.WAITING_FOR_GATE
    next_run: Optional[datetime] = None
    last_run: Optional[datetime] = None
    last_error: Optional[str] = None
    runs: int = 0


class WatcherScheduler:
    """
    Orquesta las corridas de todos los watchers.

    El processor debe exponer process_files(watcher, stop_event).
    """

    def __init__(
        self,
        config: FileProcessingConfig,
        processor,
        *,
        gate: Optional[StartGate] = None,
        stop_event: Optional[asyncio.Event] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.processor = processor
        self.gate = gate or StartGate()
        self.stop_event = stop_event or asyncio.Event()
        self._clock = clock
        self._fallback_interval = timedelta(minutes=config.processing_interval_minutes)
        self._heap: List[Tuple[datetime, int, str]] = []
        self._sequence = itertools.count()
        self._states: Dict[str, WatcherState] = {
            watcher.name: WatcherState(watcher=watcher) for watcher in config.file_watchers
        }
        self._tasks: Dict[str, asyncio.Task] = {}
        self._wakeup = asyncio.Event()

    # API publica

    def start_processing(self) -> bool:
        """
        Abre la compuerta y programa una primera corrida inmediata de todos
        los watchers.

        Returns:
            False si la compuerta ya estaba abierta (no-op)
        """
        if not self.gate.release():
            return False
        now = self._clock()
        for state in self._states.values():
            self._schedule(state, now)
        self._wakeup.set()
        return True

    async def run(self) -> None:
        """Loop principal: espera la compuerta y despacha hasta recibir stop."""
        if not self._states:
            logger.warning("No hay watchers configurados; el scheduler no tiene trabajo")

        logger.info(f"Scheduler esperando compuerta de arranque ({len(self._states)} watcher(s))")
        await self._wait_for_gate_or_stop()
        if self.stop_event.is_set():
            self._mark_stopped()
            return

        # La compuerta pudo abrirse sin pasar por start_processing
        if not self._heap and not self._tasks:
            now = self._clock()
            for state in self._states.values():
                if state.phase == WatcherPhase.WAITING_FOR_GATE:
                    self._schedule(state, now)

        try:
            while not self.stop_event.is_set():
                delay = self.dispatch_due(self._clock())
                self._wakeup.clear()
                if self.stop_event.is_set():
                    break
                try:
                    await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self._drain()

    async def stop(self) -> None:
        """Deja de lanzar corridas y espera a las que estan en curso."""
        logger.info("Deteniendo scheduler...")
        self.stop_event.set()
        self._wakeup.set()
        await self._drain()

    def dispatch_due(self, now: datetime) -> Optional[float]:
        """
        Lanza los watchers vencidos a la fecha now.

        Returns:
            Segundos hasta el siguiente vencimiento, o None si el heap esta vacio
        """
        now = ensure_utc(now)
        while self._heap and self._heap[0][0] <= now:
            due_at, _, name = heapq.heappop(self._heap)
            state = self._states[name]
            # Entradas obsoletas: el watcher ya corre o fue reprogramado
            if state.phase != WatcherPhase.SCHEDULED or state.next_run != due_at:
                continue
            self._launch(state)

        if not self._heap:
            return None
        return max(0.0, (self._heap[0][0] - now).total_seconds())

    def snapshot(self) -> List[Dict[str, Any]]:
        """Estado de cada watcher (para /health)."""
        return [
            {
                "name": name,
                "file_type": state.watcher.file_type.value,
                "phase": state.phase.value,
                "next_run": state.next_run.isoformat() if state.next_run else None,
                "last_run": state.last_run.isoformat() if state.last_run else None,
                "last_error": state.last_error,
                "runs": state.runs,
            }
            for name, state in self._states.items()
        ]

    def get_state(self, name: str) -> WatcherState:
        return self._states[name]

    # Internos

    def _schedule(self, state: WatcherState, when: datetime) -> None:
        when = ensure_utc(when)
        state.phase = WatcherPhase.SCHEDULED
        state.next_run = when
        heapq.heappush(self._heap, (when, next(self._sequence), state.watcher.name))

    def _launch(self, state: WatcherState) -> None:
        state.phase = WatcherPhase.RUNNING
        state.last_run = ensure_utc(self._clock())
        name = state.watcher.name
        self._tasks[name] = asyncio.create_task(self._run_watcher(state), name=f"watcher:{name}")

    async def _run_watcher(self, state: WatcherState) -> None:
        watcher = state.watcher
        logger.info(f"Ejecutando watcher '{watcher.name}'")
        try:
            await self.processor.process_files(watcher, self.stop_event)
            state.last_error = None
        except Exception as e:
            state.last_error = str(e)
            logger.opt(exception=e).error(f"Error en la corrida del watcher '{watcher.name}': {e}")
        finally:
            state.runs += 1
            self._tasks.pop(watcher.name, None)
            if self.stop_event.is_set():
                state.phase = WatcherPhase.STOPPED
            else:
                now = self._clock()
                next_run = compute_next_run(
                    watcher.cron_schedule, now, self._fallback_interval, last_run=state.last_run
                )
                self._schedule(state, next_run)
                logger.info(f"Watcher '{watcher.name}' reprogramado para {next_run.isoformat()}")
                self._wakeup.set()

    async def _wait_for_gate_or_stop(self) -> None:
        if self.gate.is_open:
            return
        gate_task = asyncio.create_task(self.gate.wait())
        stop_task = asyncio.create_task(self.stop_event.wait())
        try:
            await asyncio.wait({gate_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (gate_task, stop_task):
                if not task.done():
                    task.cancel()

    async def _drain(self) -> None:
        tasks = list(self._tasks.values())
        if tasks:
            logger.info(f"Esperando {len(tasks)} corrida(s) en curso")
            await asyncio.gather(*tasks, return_exceptions=True)
        self._mark_stopped()

    def _mark_stopped(self) -> None:
        if not self.stop_event.is_set():
            return
        for state in self._states.values():
            if state.phase != WatcherPhase.RUNNING:
                state.phase = WatcherPhase.STOPPED
