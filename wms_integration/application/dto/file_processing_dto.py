"""
DTOs de configuracion y resultado del procesamiento de archivos.

La configuracion de watchers se lee de un JSON con claves PascalCase:

    {
      "FileProcessing": {
        "FileWatchers": [
          {"Name": "Customers", "DirectoryPath": "/data/in/customers",
           "FileType": "Customer", "ArchivePath": "/data/archive/customers"}
        ],
        "ProcessingIntervalMinutes": 5
      }
    }

La seccion "FileProcessing" es opcional: tambien se aceptan las claves en
la raiz del documento.
"""
import json
from enum import Enum
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from wms_integration.shared.constants.entity_constants import (
    EntityKind,
    DEFAULT_FILE_PATTERN,
    DEFAULT_CRON_SCHEDULE,
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_PROCESSING_INTERVAL_MINUTES,
)
from wms_integration.shared.exceptions.integration import ConfigurationError


class WatcherConfig(BaseModel):
    """Configuracion inmutable de un directorio monitoreado."""
    
    name: str = Field(..., alias="Name", description="Nombre del watcher")
    directory_path: str = Field(..., alias="DirectoryPath", description="Directorio a monitorear")
    file_pattern: str = Field(DEFAULT_FILE_PATTERN, alias="FilePattern", description="Patron glob")
    cron_schedule: Optional[str] = Field(
        DEFAULT_CRON_SCHEDULE,
        alias="CronSchedule",
        description="Expresion cron de 5 campos; vacio usa el intervalo fijo"
    )
    file_type: EntityKind = Field(..., alias="FileType", description="Tipo de entidad del archivo")
    archive_processed_files: bool = Field(True, alias="ArchiveProcessedFiles")
    archive_path: Optional[str] = Field(None, alias="ArchivePath")
    max_retry_attempts: int = Field(
        DEFAULT_MAX_RETRY_ATTEMPTS, ge=0, alias="MaxRetryAttempts"
    )

    class Config:
        """Configuracion de Pydantic."""
        frozen = True
        populate_by_name = True


class FileProcessingConfig(BaseModel):
    """Conjunto de watchers mas el intervalo de respaldo."""
    
    file_watchers: List[WatcherConfig] = Field(default_factory=list, alias="FileWatchers")
    processing_interval_minutes: int = Field(
        DEFAULT_PROCESSING_INTERVAL_MINUTES, gt=0, alias="ProcessingIntervalMinutes"
    )

    class Config:
        """Configuracion de Pydantic."""
        frozen = True
        populate_by_name = True

    @classmethod
    def from_file(cls, path: str) -> "FileProcessingConfig":
        """
        Carga la configuracion desde un archivo JSON.
        
        Si el archivo no existe retorna una configuracion vacia (sin watchers)
        y lo registra como advertencia.
        
        Raises:
            ConfigurationError: si el JSON es ilegible o no valida
        """
        config_path = Path(path)
        if not config_path.exists():
            logger.warning(f"Archivo de configuracion no encontrado: {path}. Sin watchers configurados")
            return cls()
        
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"No se pudo leer la configuracion: {e}", source=path) from e
        
        if isinstance(raw, dict) and isinstance(raw.get("FileProcessing"), dict):
            raw = raw["FileProcessing"]
        
        try:
            config = cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Configuracion de watchers invalida: {e}", source=path) from e
        
        logger.info(f"Configuracion cargada: {len(config.file_watchers)} watcher(s) desde {path}")
        return config


class FileStatus(str, Enum):
    """Destino final de un archivo procesado."""
    ARCHIVED = "archived"
    DELETED = "deleted"
    FAILED = "failed"


class FileOutcome(BaseModel):
    """Resultado del procesamiento de un archivo."""
    
    path: str = Field(..., description="Ruta original del archivo")
    status: FileStatus = Field(..., description="Destino final del archivo")
    attempts: int = Field(0, description="Intentos realizados")
    records_processed: int = Field(0, description="Registros aplicados")
    records_rejected: int = Field(0, description="Registros rechazados por validacion")
    archive_path: Optional[str] = Field(None, description="Ruta en el archivo historico")
    error: Optional[str] = Field(None, description="Ultimo error si fallo")
