"""
Casos de uso de ordenes de compra y de venta.

El cliente y los productos referenciados no necesitan existir al persistir
la orden: la sincronizacion con el WMS omite las referencias faltantes.
"""
from typing import Any, Dict, List, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.application.dto.record_dto import PurchaseOrderRecord, SalesOrderRecord
from wms_integration.domain.entities.lookup import LookupResult
from wms_integration.infrastructure.database.models import PurchaseOrderModel, SalesOrderModel
from wms_integration.infrastructure.repositories.order_repository import (
    PurchaseOrderRepository,
    SalesOrderRepository,
)
from wms_integration.shared.constants.entity_constants import SYSTEM_USER
from wms_integration.shared.exceptions.domain import (
    EntityAlreadyExistsException,
    EntityNotFoundException,
    ValidationException,
)


def validate_order(record: Union[PurchaseOrderRecord, SalesOrderRecord]) -> None:
    """
    Raises:
        ValidationException: orden sin lineas, linea sin producto o cantidad <= 0
    """
    if not record.items:
        raise ValidationException(f"La orden {record.order_id} no tiene lineas", field="OrderDetails")
    for item in record.items:
        if not item.product_code or not item.product_code.strip():
            raise ValidationException(
                f"La orden {record.order_id} tiene una linea sin producto", field="ProductCode"
            )
        if item.quantity <= 0:
            raise ValidationException(
                f"La orden {record.order_id} tiene cantidad invalida ({item.quantity}) "
                f"para el producto {item.product_code}",
                field="Quantity",
            )


def _items(record) -> List[Dict[str, Any]]:
    return [{"product_code": item.product_code, "quantity": item.quantity} for item in record.items]


class PurchaseOrderUseCases:
    """Alta, modificacion y consulta de ordenes de compra."""
    
    entity_name = "Orden de compra"
    
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = PurchaseOrderRepository(db)
    
    def _header(self, record: PurchaseOrderRecord) -> Dict[str, Any]:
        return {
            "processing_date": record.processing_date,
            "customer_id": record.customer_id,
        }
    
    async def get_order(self, order_id: int) -> LookupResult:
        try:
            order = await self.repository.get_by_id(order_id)
        except SQLAlchemyError as e:
            logger.error(f"Error consultando {self.entity_name.lower()} {order_id}: {e}")
            return LookupResult.failed(e)
        if order is None:
            return LookupResult.not_found()
        return LookupResult.found(order)
    
    async def create_order(self, record: PurchaseOrderRecord):
        validate_order(record)
        if await self.repository.exists(record.order_id):
            raise EntityAlreadyExistsException(self.entity_name, "OrderID", record.order_id)
        
        try:
            order = await self.repository.create(
                {"order_id": record.order_id, "created_by": SYSTEM_USER, **self._header(record)},
                _items(record),
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        logger.info(f"{self.entity_name} creada: {order.order_id} ({len(order.items)} linea(s))")
        return order
    
    async def update_order(self, record: PurchaseOrderRecord):
        """Actualiza la cabecera y reemplaza las lineas."""
        validate_order(record)
        
        try:
            order = await self.repository.update(record.order_id, self._header(record), _items(record))
            if order is None:
                raise EntityNotFoundException(self.entity_name, record.order_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        logger.info(f"{self.entity_name} actualizada: {order.order_id} ({len(order.items)} linea(s))")
        return order


class SalesOrderUseCases(PurchaseOrderUseCases):
    """Ordenes de venta: igual que las de compra mas la direccion de envio."""
    
    entity_name = "Orden de venta"
    
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = SalesOrderRepository(db)
    
    def _header(self, record: SalesOrderRecord) -> Dict[str, Any]:
        header = super()._header(record)
        header["shipment_address"] = record.shipment_address
        return header
