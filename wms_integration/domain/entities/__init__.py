"""
Entidades de dominio del servicio de integracion.
"""
from wms_integration.domain.entities.lookup import LookupResult, LookupOutcome
from wms_integration.domain.entities.sync import SyncResult, SyncStatusSnapshot, SyncStatistics


__all__ = [
    "LookupResult",
    "LookupOutcome",
    "SyncResult",
    "SyncStatusSnapshot",
    "SyncStatistics",
]
