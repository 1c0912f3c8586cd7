"""
Ciclo de vida del servicio (lifespan de FastAPI).

Startup: sink de logs, tablas, procesador de archivos, scheduler de watchers
y health check del WMS (que abre la compuerta del scheduler).
Shutdown: detiene el scheduler esperando las corridas en curso, cancela las
tareas de fondo y libera el cliente de sondeo y el pool de conexiones.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable

from fastapi import FastAPI
from loguru import logger

from wms_integration.application.dto.file_processing_dto import FileProcessingConfig
from wms_integration.application.use_cases.file_processing_use_cases import FileProcessingUseCases
from wms_integration.core.config import settings
from wms_integration.infrastructure.database.session import close_db, init_db
from wms_integration.infrastructure.external.health.api_health_monitor import ApiHealthMonitor
from wms_integration.infrastructure.external.wms.wms_client import build_wms_client
from wms_integration.infrastructure.scheduling.watcher_scheduler import WatcherScheduler
from wms_integration.shared.exceptions.integration import ConfigurationError


def _check_wms_settings() -> None:
    """
    Sin URL base no hay cliente posible: el servicio no arranca.

    Raises:
        ConfigurationError: si WMS_API_BASE_URL esta vacia
    """
    if not settings.WMS_API_BASE_URL.strip():
        raise ConfigurationError("WMS_API_BASE_URL es obligatoria", source="WMS_API_BASE_URL")
    if not settings.WMS_API_KEY:
        logger.warning("CONFIG: WMS_API_KEY vacia, el WMS rechazara las peticiones")


def _launch(app: FastAPI, coro: Awaitable, name: str) -> None:
    app.state.background_tasks.append(asyncio.create_task(coro, name=name))


def _open_gate_when_wms_ready(app: FastAPI, scheduler: WatcherScheduler) -> None:
    """Sin health check la compuerta se abre ya; si no, al primer ping exitoso."""
    if not settings.HEALTH_CHECK_ENABLED:
        logger.info("Health check deshabilitado: procesamiento inmediato")
        scheduler.start_processing()
        return

    app.state.probe_client = build_wms_client()
    app.state.health_monitor = ApiHealthMonitor(
        app.state.probe_client.ping,
        scheduler.start_processing,
        interval_s=settings.HEALTH_CHECK_INTERVAL_SECONDS,
        max_attempts=settings.HEALTH_CHECK_MAX_ATTEMPTS,
        stop_event=scheduler.stop_event,
    )
    _launch(app, app.state.health_monitor.run(), "wms-health-check")


async def startup(app: FastAPI) -> None:
    logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")
    logger.add(settings.LOG_FILE, rotation="500 MB", retention="10 days", level=settings.LOG_LEVEL)

    try:
        _check_wms_settings()
        await init_db()

        config = FileProcessingConfig.from_file(settings.FILE_PROCESSING_CONFIG)
        processor = FileProcessingUseCases(config)
        scheduler = WatcherScheduler(config, processor)
    except Exception as e:
        logger.opt(exception=e).error(f"Error durante startup: {e}")
        raise

    app.state.file_processor = processor
    app.state.scheduler = scheduler
    app.state.background_tasks = []
    app.state.probe_client = None

    if not settings.SCHEDULER_ENABLED:
        logger.warning("Scheduler deshabilitado (SCHEDULER_ENABLED=false)")
    else:
        _launch(app, scheduler.run(), "watcher-scheduler")
        _open_gate_when_wms_ready(app, scheduler)

    logger.success(f"Servicio iniciado con {len(config.file_watchers)} watcher(s)")


async def shutdown(app: FastAPI) -> None:
    logger.info("Deteniendo servicio...")

    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        await scheduler.stop()

    pending = [task for task in getattr(app.state, "background_tasks", []) if not task.done()]
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)

    probe_client = getattr(app.state, "probe_client", None)
    if probe_client is not None:
        await probe_client.close()

    await close_db()
    logger.success("Servicio detenido")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup(app)
    try:
        yield
    finally:
        await shutdown(app)
