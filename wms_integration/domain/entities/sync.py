"""
Entidades del ledger de sincronizacion.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from wms_integration.shared.constants.entity_constants import EntityKind, SyncState
from wms_integration.shared.utils.datetime_utils import utc_now


@dataclass(frozen=True)
class SyncResult:
    """
    Resultado de un intento de sincronizacion.
    Append-only: nunca se modifica despues de creado.
    """

    entity_type: EntityKind
    entity_id: str
    success: bool
    error_message: Optional[str] = None
    sync_date: datetime = field(default_factory=utc_now)
    id: Optional[int] = None

    @classmethod
    def ok(cls, entity_type: EntityKind, entity_id) -> "SyncResult":
        return cls(entity_type=entity_type, entity_id=str(entity_id), success=True)

    @classmethod
    def failure(cls, entity_type: EntityKind, entity_id, error_message: str) -> "SyncResult":
        return cls(
            entity_type=entity_type,
            entity_id=str(entity_id),
            success=False,
            error_message=error_message,
        )


@dataclass
class SyncStatusSnapshot:
    """Estado actual de sincronizacion de una entidad (tipo, id)."""

    entity_type: EntityKind
    entity_id: str
    status: SyncState = SyncState.PENDING
    last_sync_date: Optional[datetime] = None
    retry_count: int = 0
    error_message: Optional[str] = None


@dataclass
class SyncStatistics:
    """Resumen agregado del ledger."""

    total_synchronizations: int = 0
    successful_synchronizations: int = 0
    failed_synchronizations: int = 0
    pending_synchronizations: int = 0
    synchronizations_by_entity_type: Dict[str, int] = field(default_factory=dict)
    last_sync_date: Optional[datetime] = None
