"""
Constantes del dominio de integracion WMS.
"""
from enum import Enum


class EntityKind(str, Enum):
    """Tipos de entidad que se ingieren y sincronizan con el WMS."""
    CUSTOMER = "Customer"
    PRODUCT = "Product"
    PURCHASE_ORDER = "PurchaseOrder"
    SALES_ORDER = "SalesOrder"


class SyncState(str, Enum):
    """Estado de sincronizacion de una entidad."""
    PENDING = "Pending"
    SYNCED = "Synced"
    FAILED = "Failed"


class OrderStatus(str, Enum):
    """Estados de una orden en el WMS."""
    NEW = "New"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    ON_HOLD = "OnHold"


# Valores por defecto de un watcher
DEFAULT_FILE_PATTERN = "*.xml"
DEFAULT_CRON_SCHEDULE = "*/5 * * * *"
DEFAULT_MAX_RETRY_ATTEMPTS = 3
DEFAULT_PROCESSING_INTERVAL_MINUTES = 5

# Formato del sufijo de archivos archivados: {stem}_{yyyyMMdd_HHmmss}{ext}
ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# Usuario de auditoria para registros creados desde archivos
SYSTEM_USER = "FileProcessor"
