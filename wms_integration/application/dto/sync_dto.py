"""
DTOs de respuesta de los endpoints de operacion del ledger.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from wms_integration.application.dto.file_processing_dto import FileOutcome
from wms_integration.shared.constants.entity_constants import EntityKind, SyncState


class SyncResultDTO(BaseModel):
    """Un intento de sincronizacion."""
    
    id: Optional[int] = Field(None, description="Identificador del registro")
    entity_type: EntityKind = Field(..., description="Tipo de entidad")
    entity_id: str = Field(..., description="Identificador de la entidad")
    success: bool = Field(..., description="Si el WMS acepto la entidad")
    error_message: Optional[str] = Field(None, description="Error del intento")
    sync_date: datetime = Field(..., description="Fecha del intento (UTC)")

    class Config:
        """Configuracion de Pydantic."""
        from_attributes = True


class SyncStatusDTO(BaseModel):
    """Estado actual de una entidad."""
    
    entity_type: EntityKind = Field(..., description="Tipo de entidad")
    entity_id: str = Field(..., description="Identificador de la entidad")
    status: SyncState = Field(..., description="Pending, Synced o Failed")
    last_sync_date: Optional[datetime] = Field(None, description="Ultimo intento (UTC)")
    retry_count: int = Field(0, description="Fallos consecutivos")
    error_message: Optional[str] = Field(None, description="Ultimo error")

    class Config:
        """Configuracion de Pydantic."""
        from_attributes = True


class SyncStatisticsDTO(BaseModel):
    """Resumen del ledger."""
    
    total_synchronizations: int
    successful_synchronizations: int
    failed_synchronizations: int
    pending_synchronizations: int
    synchronizations_by_entity_type: Dict[str, int]
    last_sync_date: Optional[datetime] = None

    class Config:
        """Configuracion de Pydantic."""
        from_attributes = True


class RetrySummaryDTO(BaseModel):
    """Resultado de un barrido de reintentos."""
    
    total: int = Field(..., description="Entidades en estado Failed al iniciar")
    succeeded: int = Field(..., description="Reintentos exitosos")
    failed: int = Field(..., description="Reintentos fallidos")
    skipped: int = Field(..., description="Entidades que ya no existen o con ID invalido")


class ClearHistoryResponseDTO(BaseModel):
    """Resultado de la depuracion del historial."""
    
    deleted: int = Field(..., description="Registros eliminados")
    older_than: datetime = Field(..., description="Fecha de corte (UTC)")


class WatcherRunDTO(BaseModel):
    """Resumen de la corrida de un watcher."""
    
    watcher: str
    files: List[FileOutcome] = Field(default_factory=list)
