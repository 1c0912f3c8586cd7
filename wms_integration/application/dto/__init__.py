"""
DTOs de la capa de aplicacion.
"""
from wms_integration.application.dto.record_dto import (
    CustomerRecord,
    ProductRecord,
    OrderLineRecord,
    PurchaseOrderRecord,
    SalesOrderRecord,
)
from wms_integration.application.dto.file_processing_dto import (
    WatcherConfig,
    FileProcessingConfig,
    FileOutcome,
    FileStatus,
)


__all__ = [
    "CustomerRecord",
    "ProductRecord",
    "OrderLineRecord",
    "PurchaseOrderRecord",
    "SalesOrderRecord",
    "WatcherConfig",
    "FileProcessingConfig",
    "FileOutcome",
    "FileStatus",
]
