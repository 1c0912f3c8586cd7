"""
Configuracion de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from wms_integration.infrastructure.database.models import (
    CustomerModel,
    ProductModel,
    PurchaseOrderModel,
    PurchaseOrderDetailModel,
    SalesOrderModel,
    SalesOrderDetailModel,
    SyncResultModel,
    SyncStatusModel,
)
