"""
Upsert idempotente de registros leidos de archivos.

Por cada registro: busca la clave natural, actualiza si existe o crea si no,
confirma la transaccion y luego sincroniza la entidad con el WMS.
Reprocesar el mismo archivo produce actualizaciones, nunca duplicados.
"""
from enum import Enum

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.application.use_cases.wms_sync_use_cases import WmsSyncUseCases
from wms_integration.domain.entities.lookup import LookupResult
from wms_integration.shared.constants.entity_constants import EntityKind


class UpsertAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class RecordUpsertUseCases:
    """Despacha registros al caso de uso de su tipo y los sincroniza."""
    
    def __init__(self, db: AsyncSession, wms_client):
        self.db = db
        self.sync = WmsSyncUseCases(db, wms_client)
    
    async def upsert(self, kind: EntityKind, record) -> UpsertAction:
        """
        Crea o actualiza un registro y lo sincroniza con el WMS.
        
        Raises:
            ValidationException: el registro no cumple las reglas minimas
            Exception: errores de persistencia (la transaccion ya fue revertida)
        """
        kind = EntityKind(kind)
        
        if kind == EntityKind.CUSTOMER:
            key = record.customer_id
            lookup = await self.sync.customers.get_customer(key)
            create, update = self.sync.customers.create_customer, self.sync.customers.update_customer
        elif kind == EntityKind.PRODUCT:
            key = record.product_code
            lookup = await self.sync.products.get_product(key)
            create, update = self.sync.products.create_product, self.sync.products.update_product
        elif kind == EntityKind.PURCHASE_ORDER:
            key = record.order_id
            lookup = await self.sync.purchase_orders.get_order(key)
            create, update = self.sync.purchase_orders.create_order, self.sync.purchase_orders.update_order
        else:
            key = record.order_id
            lookup = await self.sync.sales_orders.get_order(key)
            create, update = self.sync.sales_orders.create_order, self.sync.sales_orders.update_order
        
        action = self._decide(lookup)
        entity = await (update(record) if action == UpsertAction.UPDATED else create(record))
        logger.debug(f"{kind.value} {key}: {action.value}")
        
        await self.sync.synchronize(kind, entity)
        return action
    
    @staticmethod
    def _decide(lookup: LookupResult) -> UpsertAction:
        if lookup.is_error:
            raise lookup.error
        return UpsertAction.UPDATED if lookup.is_found else UpsertAction.CREATED
