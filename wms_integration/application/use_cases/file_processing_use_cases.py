"""
Procesamiento de archivos de un watcher.

Flujo por archivo:
1. Lectura y parseo (tolerante: XML invalido => cero registros)
2. Upsert + sincronizacion de cada registro, dentro de la politica de
   reintentos del tipo de entidad
3. Si tuvo exito: archivar ({stem}_{yyyyMMdd_HHmmss}{ext}) o eliminar.
   Si se agotaron los reintentos: el archivo queda en su lugar.

El fallo de un archivo nunca aborta el resto del lote.
"""
import asyncio
import shutil
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wms_integration.application.dto.file_processing_dto import (
    FileOutcome,
    FileProcessingConfig,
    FileStatus,
    WatcherConfig,
)
from wms_integration.application.services.retry_policy import RetryExhaustedError, RetryPolicy
from wms_integration.application.services.xml_parser import XmlParserService
from wms_integration.application.use_cases.record_upsert_use_cases import RecordUpsertUseCases
from wms_integration.infrastructure.database.session import AsyncSessionLocal
from wms_integration.infrastructure.external.wms.wms_client import build_wms_client
from wms_integration.shared.constants.entity_constants import (
    ARCHIVE_TIMESTAMP_FORMAT,
    DEFAULT_MAX_RETRY_ATTEMPTS,
    EntityKind,
)
from wms_integration.shared.exceptions.domain import ValidationException
from wms_integration.shared.exceptions.integration import FileProcessingError


def discover_files(directory: Path, pattern: str) -> List[Path]:
    """Archivos regulares del directorio que cumplen el patron, ordenados por nombre."""
    return sorted(path for path in directory.glob(pattern) if path.is_file())


def archive_file(path: Path, archive_dir: Path, timestamp: datetime) -> Path:
    """
    Mueve el archivo al directorio historico con sufijo de fecha.
    Si el nombre ya existe (dos archivos en el mismo segundo) agrega _1, _2...
    """
    archive_dir.mkdir(parents=True, exist_ok=True)
    base_name = f"{path.stem}_{timestamp.strftime(ARCHIVE_TIMESTAMP_FORMAT)}"
    target = archive_dir / f"{base_name}{path.suffix}"
    counter = 1
    while target.exists():
        target = archive_dir / f"{base_name}_{counter}{path.suffix}"
        counter += 1
    shutil.move(str(path), str(target))
    return target


class FileProcessingUseCases:
    """Procesa los archivos de los watchers configurados."""
    
    def __init__(
        self,
        config: FileProcessingConfig,
        *,
        session_factory: async_sessionmaker = AsyncSessionLocal,
        wms_client_factory: Callable = build_wms_client,
        parser: Optional[XmlParserService] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config
        self._session_factory = session_factory
        self._wms_client_factory = wms_client_factory
        self._parser = parser or XmlParserService()
        self._clock = clock
        self._policies = self._build_policies(config.file_watchers, sleep)
    
    @staticmethod
    def _build_policies(
        watchers: List[WatcherConfig],
        sleep: Callable[[float], Awaitable[None]],
    ) -> Dict[EntityKind, RetryPolicy]:
        """
        Una politica por tipo de entidad. Si dos watchers del mismo tipo
        declaran MaxRetryAttempts distintos, gana el primero.
        """
        policies: Dict[EntityKind, RetryPolicy] = {}
        for watcher in watchers:
            existing = policies.get(watcher.file_type)
            if existing is None:
                policies[watcher.file_type] = RetryPolicy(watcher.max_retry_attempts, sleep=sleep)
            elif existing.max_retries != watcher.max_retry_attempts:
                logger.warning(
                    f"Watcher '{watcher.name}' declara MaxRetryAttempts={watcher.max_retry_attempts} "
                    f"pero {watcher.file_type.value} ya usa {existing.max_retries}; se conserva el primero"
                )
        
        for kind in EntityKind:
            policies.setdefault(kind, RetryPolicy(DEFAULT_MAX_RETRY_ATTEMPTS, sleep=sleep))
        return policies
    
    def policy_for(self, kind: EntityKind) -> RetryPolicy:
        return self._policies[EntityKind(kind)]
    
    async def process_all_files(
        self,
        stop_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, List[FileOutcome]]:
        """
        Ejecuta una vez cada watcher configurado, en orden.
        Un watcher que falla no detiene a los demas.
        """
        results: Dict[str, List[FileOutcome]] = {}
        for watcher in self.config.file_watchers:
            if stop_event is not None and stop_event.is_set():
                logger.info("Parada solicitada: se interrumpe el procesamiento de watchers")
                break
            try:
                results[watcher.name] = await self.process_files(watcher, stop_event)
            except Exception as e:
                logger.opt(exception=e).error(f"Error procesando watcher '{watcher.name}': {e}")
                results[watcher.name] = []
        return results
    
    async def process_files(
        self,
        watcher: WatcherConfig,
        stop_event: Optional[asyncio.Event] = None,
    ) -> List[FileOutcome]:
        """
        Procesa todos los archivos pendientes de un watcher.
        
        Returns:
            Un FileOutcome por archivo procesado (vacio si el directorio no existe)
        """
        directory = Path(watcher.directory_path)
        if not await asyncio.to_thread(directory.is_dir):
            logger.warning(f"Directorio no encontrado para watcher '{watcher.name}': {directory}")
            return []
        
        files = await asyncio.to_thread(discover_files, directory, watcher.file_pattern)
        if not files:
            logger.debug(f"Sin archivos pendientes para '{watcher.name}' en {directory}")
            return []
        
        logger.info(f"Watcher '{watcher.name}': {len(files)} archivo(s) por procesar")
        outcomes: List[FileOutcome] = []
        wms_client = self._wms_client_factory()
        try:
            for path in files:
                if stop_event is not None and stop_event.is_set():
                    logger.info(f"Parada solicitada: quedan archivos sin procesar en '{watcher.name}'")
                    break
                outcomes.append(await self._process_file(watcher, path, wms_client, stop_event))
        finally:
            await wms_client.close()
        
        return outcomes
    
    async def _process_file(
        self,
        watcher: WatcherConfig,
        path: Path,
        wms_client,
        stop_event: Optional[asyncio.Event],
    ) -> FileOutcome:
        progress = {"attempts": 0, "processed": 0, "rejected": 0}
        
        async def attempt(number: int) -> None:
            progress["attempts"] = number
            if number > 1:
                logger.info(f"Intento {number} de {path.name}")
            processed, rejected = await self._apply_file(watcher, path, wms_client)
            progress["processed"], progress["rejected"] = processed, rejected
        
        try:
            await self.policy_for(watcher.file_type).execute(
                attempt,
                description=f"archivo {path.name}",
                stop_event=stop_event,
            )
        except RetryExhaustedError as e:
            logger.error(
                f"No se pudo procesar {path} tras {e.attempts} intento(s): {e.last_error}. "
                f"El archivo queda en su lugar"
            )
            return FileOutcome(
                path=str(path),
                status=FileStatus.FAILED,
                attempts=e.attempts,
                error=str(e.last_error),
            )
        
        status, archive_path, error = await self._dispose(watcher, path)
        logger.success(
            f"Archivo {path.name} procesado: {progress['processed']} registro(s), "
            f"{progress['rejected']} rechazado(s) -> {status.value}"
        )
        return FileOutcome(
            path=str(path),
            status=status,
            attempts=progress["attempts"],
            records_processed=progress["processed"],
            records_rejected=progress["rejected"],
            archive_path=archive_path,
            error=error,
        )
    
    async def _apply_file(self, watcher: WatcherConfig, path: Path, wms_client) -> Tuple[int, int]:
        """
        Lee, parsea y aplica un archivo. Cualquier excepcion que escape hace
        fallar el intento (y dispara la politica de reintentos).
        """
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise FileProcessingError(str(path), f"no se pudo leer: {e}") from e
        parsed = self._parser.parse(content, watcher.file_type, source=path.name)
        if not parsed.records:
            return 0, 0
        
        processed = rejected = 0
        async with self._session_factory() as db:
            upserter = RecordUpsertUseCases(db, wms_client)
            for record in parsed.records:
                try:
                    await upserter.upsert(watcher.file_type, record)
                    processed += 1
                except ValidationException as e:
                    rejected += 1
                    logger.warning(f"Registro rechazado en {path.name}: {e.message}")
        
        return processed, rejected
    
    async def _dispose(self, watcher: WatcherConfig, path: Path) -> Tuple[FileStatus, Optional[str], Optional[str]]:
        """Archiva o elimina un archivo procesado con exito."""
        if watcher.archive_processed_files and watcher.archive_path:
            try:
                target = await asyncio.to_thread(
                    archive_file, path, Path(watcher.archive_path), self._clock()
                )
                logger.info(f"Archivo {path.name} archivado en {target}")
                return FileStatus.ARCHIVED, str(target), None
            except OSError as e:
                logger.error(f"Error archivando {path}: {e}. Se elimina el original")
        
        try:
            await asyncio.to_thread(path.unlink)
            logger.info(f"Archivo {path.name} eliminado")
            return FileStatus.DELETED, None, None
        except OSError as e:
            logger.error(f"No se pudo eliminar {path}: {e}")
            return FileStatus.FAILED, None, f"Procesado pero no se pudo eliminar: {e}"
