"""
Planificacion de watchers: compuerta de arranque y loop de ejecucion.
"""
from wms_integration.infrastructure.scheduling.start_gate import StartGate
from wms_integration.infrastructure.scheduling.watcher_scheduler import (
    WatcherScheduler,
    WatcherPhase,
    compute_next_run,
)


__all__ = ["StartGate", "WatcherScheduler", "WatcherPhase", "compute_next_run"]
