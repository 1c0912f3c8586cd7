"""
Casos de uso de sincronizacion con el WMS.

Cada llamada de sincronizacion escribe exactamente un SyncResult (y el
upsert de SyncStatus), incluso si el cliente del WMS lanza una excepcion.
Las excepciones de sincronizacion nunca se propagan: quedan en el ledger.
"""
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.application.use_cases.customer_use_cases import CustomerUseCases
from wms_integration.application.use_cases.order_use_cases import (
    PurchaseOrderUseCases,
    SalesOrderUseCases,
)
from wms_integration.application.use_cases.product_use_cases import ProductUseCases
from wms_integration.domain.entities.lookup import LookupResult
from wms_integration.domain.entities.sync import SyncResult, SyncStatusSnapshot, SyncStatistics
from wms_integration.infrastructure.repositories.sync_repository import SyncRepository
from wms_integration.shared.constants.entity_constants import EntityKind, SyncState


class WmsSyncUseCases:
    """Empuja entidades persistidas al WMS y registra el resultado."""
    
    def __init__(self, db: AsyncSession, wms_client):
        self.db = db
        self.wms_client = wms_client
        self.sync_repository = SyncRepository(db)
        self.customers = CustomerUseCases(db)
        self.products = ProductUseCases(db)
        self.purchase_orders = PurchaseOrderUseCases(db)
        self.sales_orders = SalesOrderUseCases(db)
    
    async def _synchronize(
        self,
        kind: EntityKind,
        entity_id: Any,
        send: Callable[[], Awaitable[Any]],
    ) -> bool:
        """Ejecuta el envio y registra un unico resultado en el ledger."""
        try:
            await send()
            result = SyncResult.ok(kind, entity_id)
            logger.info(f"{kind.value} {entity_id} sincronizado con el WMS")
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.error(f"Error sincronizando {kind.value} {entity_id} con el WMS: {message}")
            result = SyncResult.failure(kind, entity_id, message)
        
        await self.sync_repository.record_sync_result(result)
        return result.success
    
    async def _record_missing(self, kind: EntityKind, entity_id: Any, label: str) -> bool:
        message = f"{label} con ID {entity_id} no encontrado"
        logger.warning(message)
        await self.sync_repository.record_sync_result(SyncResult.failure(kind, entity_id, message))
        return False
    
    # Entidades individuales
    
    async def synchronize_customer(self, customer) -> bool:
        return await self._synchronize(
            EntityKind.CUSTOMER,
            customer.customer_id,
            lambda: self.wms_client.send_customer(customer),
        )
    
    async def synchronize_product(self, product) -> bool:
        return await self._synchronize(
            EntityKind.PRODUCT,
            product.product_code,
            lambda: self.wms_client.send_product(product),
        )
    
    async def synchronize_purchase_order(self, order) -> bool:
        await self._synchronize_dependencies(order)
        return await self._synchronize(
            EntityKind.PURCHASE_ORDER,
            order.order_id,
            lambda: self.wms_client.send_purchase_order(order),
        )
    
    async def synchronize_sales_order(self, order) -> bool:
        await self._synchronize_dependencies(order)
        return await self._synchronize(
            EntityKind.SALES_ORDER,
            order.order_id,
            lambda: self.wms_client.send_sales_order(order),
        )
    
    async def _synchronize_dependencies(self, order) -> None:
        """
        Sincroniza (best effort) el cliente y los productos de una orden antes
        que la orden misma. Las referencias faltantes se omiten con warning.
        """
        lookup = await self.customers.get_customer(order.customer_id)
        if lookup.is_found:
            await self.synchronize_customer(lookup.record)
        elif lookup.is_not_found:
            logger.warning(
                f"Cliente {order.customer_id} de la orden {order.order_id} no existe; se omite su sincronizacion"
            )
        else:
            logger.warning(f"No se pudo consultar el cliente {order.customer_id}: {lookup.error}")
        
        seen = set()
        for item in order.items:
            if item.product_code in seen:
                continue
            seen.add(item.product_code)
            
            lookup = await self.products.get_product(item.product_code)
            if lookup.is_found:
                await self.synchronize_product(lookup.record)
            elif lookup.is_not_found:
                logger.warning(
                    f"Producto {item.product_code} de la orden {order.order_id} no existe; se omite su sincronizacion"
                )
            else:
                logger.warning(f"No se pudo consultar el producto {item.product_code}: {lookup.error}")
    
    # Lotes
    
    async def _synchronize_batch(
        self,
        kind: EntityKind,
        ids: Iterable[Any],
        lookup: Callable[[Any], Awaitable[LookupResult]],
        synchronize: Callable[[Any], Awaitable[bool]],
        label: str,
    ) -> Dict[str, bool]:
        results: Dict[str, bool] = {}
        for entity_id in ids:
            found = await lookup(entity_id)
            if found.is_found:
                # los fallos del WMS ya quedan en el ledger; los del ledger se propagan
                results[str(entity_id)] = await synchronize(found.record)
            elif found.is_not_found:
                results[str(entity_id)] = await self._record_missing(kind, entity_id, label)
            else:
                logger.error(f"Error consultando {label.lower()} {entity_id}: {found.error}")
                await self.sync_repository.record_sync_result(SyncResult.failure(kind, entity_id, str(found.error)))
                results[str(entity_id)] = False
        return results
    
    async def synchronize_customers(self, customer_ids: Iterable[int]) -> Dict[str, bool]:
        return await self._synchronize_batch(
            EntityKind.CUSTOMER, customer_ids,
            self.customers.get_customer, self.synchronize_customer, "Cliente",
        )
    
    async def synchronize_products(self, product_codes: Iterable[str]) -> Dict[str, bool]:
        return await self._synchronize_batch(
            EntityKind.PRODUCT, product_codes,
            self.products.get_product, self.synchronize_product, "Producto",
        )
    
    async def synchronize_purchase_orders(self, order_ids: Iterable[int]) -> Dict[str, bool]:
        return await self._synchronize_batch(
            EntityKind.PURCHASE_ORDER, order_ids,
            self.purchase_orders.get_order, self.synchronize_purchase_order, "Orden de compra",
        )
    
    async def synchronize_sales_orders(self, order_ids: Iterable[int]) -> Dict[str, bool]:
        return await self._synchronize_batch(
            EntityKind.SALES_ORDER, order_ids,
            self.sales_orders.get_order, self.synchronize_sales_order, "Orden de venta",
        )
    
    # Reintentos
    
    async def retry_failed_synchronizations(self) -> Dict[str, int]:
        """
        Reintenta todas las entidades en estado Failed, la mas antigua primero.
        
        Returns:
            Contadores {"total", "succeeded", "failed", "skipped"}
        """
        failed = await self.sync_repository.get_failed_synchronizations()
        summary = {"total": len(failed), "succeeded": 0, "failed": 0, "skipped": 0}
        logger.info(f"Reintentando {len(failed)} sincronizacion(es) fallida(s)")
        
        for status in failed:
            record = await self._resolve(status.entity_type, status.entity_id)
            if record is None:
                summary["skipped"] += 1
                continue
            
            if await self._synchronize_record(status.entity_type, record):
                summary["succeeded"] += 1
            else:
                summary["failed"] += 1
        
        logger.info(
            f"Reintento completado: {summary['succeeded']} ok, {summary['failed']} fallidas, "
            f"{summary['skipped']} omitidas"
        )
        return summary
    
    async def _resolve(self, kind: EntityKind, entity_id: str) -> Optional[Any]:
        """Busca la entidad de un SyncStatus; None si no se puede reintentar."""
        if kind == EntityKind.PRODUCT:
            lookup = await self.products.get_product(entity_id)
        else:
            try:
                numeric_id = int(entity_id)
            except (TypeError, ValueError):
                logger.warning(f"ID invalido para {kind.value}: '{entity_id}'; se omite el reintento")
                return None
            
            if kind == EntityKind.CUSTOMER:
                lookup = await self.customers.get_customer(numeric_id)
            elif kind == EntityKind.PURCHASE_ORDER:
                lookup = await self.purchase_orders.get_order(numeric_id)
            elif kind == EntityKind.SALES_ORDER:
                lookup = await self.sales_orders.get_order(numeric_id)
            else:
                logger.warning(f"Tipo de entidad desconocido: {kind}")
                return None
        
        if lookup.is_found:
            return lookup.record
        if lookup.is_not_found:
            logger.warning(f"{kind.value} con ID {entity_id} no encontrado para reintento")
        else:
            logger.warning(f"No se pudo consultar {kind.value} {entity_id} para reintento: {lookup.error}")
        return None
    
    async def _synchronize_record(self, kind: EntityKind, record) -> bool:
        if kind == EntityKind.CUSTOMER:
            return await self.synchronize_customer(record)
        if kind == EntityKind.PRODUCT:
            return await self.synchronize_product(record)
        if kind == EntityKind.PURCHASE_ORDER:
            return await self.synchronize_purchase_order(record)
        return await self.synchronize_sales_order(record)
    
    async def synchronize(self, kind: EntityKind, record) -> bool:
        """Sincroniza un registro persistido segun su tipo."""
        return await self._synchronize_record(EntityKind(kind), record)
    
    # Consultas del ledger
    
    async def get_sync_status(self, kind: EntityKind, entity_id: str) -> SyncStatusSnapshot:
        """Estado almacenado o un Pending sintetico si la entidad nunca se sincronizo."""
        status = await self.sync_repository.get_sync_status(EntityKind(kind), str(entity_id))
        if status is None:
            return SyncStatusSnapshot(
                entity_type=EntityKind(kind),
                entity_id=str(entity_id),
                status=SyncState.PENDING,
            )
        return status
    
    async def get_failed_synchronizations(self) -> List[SyncStatusSnapshot]:
        return await self.sync_repository.get_failed_synchronizations()
    
    async def get_sync_history(self, kind: EntityKind, entity_id: str) -> List[SyncResult]:
        return await self.sync_repository.get_sync_history(EntityKind(kind), str(entity_id))
    
    async def get_recent_sync_results(self, count: int = 100) -> List[SyncResult]:
        return await self.sync_repository.get_recent_sync_results(count)
    
    async def get_sync_statistics(self) -> SyncStatistics:
        return await self.sync_repository.get_sync_statistics()
    
    async def clear_sync_history(self, older_than: datetime) -> int:
        return await self.sync_repository.clear_sync_history(older_than)
