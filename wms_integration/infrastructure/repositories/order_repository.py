"""
Repositorios de ordenes de compra y de venta.

Ambos tipos comparten estructura (cabecera + lineas), asi que la logica
vive en una base parametrizada por modelo.
"""
from typing import Any, Dict, List, Optional, Type
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.infrastructure.database.models import (
    PurchaseOrderModel,
    PurchaseOrderDetailModel,
    SalesOrderModel,
    SalesOrderDetailModel,
)


class _OrderRepository:
    """Operaciones comunes de ordenes con lineas de detalle."""
    
    model: Type = None
    detail_model: Type = None
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, order_id: int):
        result = await self.db.execute(
            select(self.model).where(self.model.order_id == order_id)
        )
        return result.scalars().first()
    
    async def get_all(self) -> List:
        result = await self.db.execute(select(self.model).order_by(self.model.order_id))
        return result.scalars().all()
    
    async def exists(self, order_id: int) -> bool:
        result = await self.db.execute(
            select(self.model.order_id).where(self.model.order_id == order_id)
        )
        return result.scalar() is not None
    
    def _build_items(self, items: List[Dict[str, Any]]) -> List:
        return [
            self.detail_model(product_code=item["product_code"], quantity=item["quantity"])
            for item in items
        ]
    
    async def create(self, data: Dict[str, Any], items: List[Dict[str, Any]]):
        """
        Crea la orden con sus lineas. No hace commit.
        """
        order = self.model(**data)
        order.items = self._build_items(items)
        self.db.add(order)
        await self.db.flush()
        await self.db.refresh(order)
        return order
    
    async def update(self, order_id: int, data: Dict[str, Any], items: List[Dict[str, Any]]):
        """
        Actualiza la cabecera y reemplaza las lineas de la orden.
        
        Returns:
            La orden actualizada o None si no existe
        """
        order = await self.get_by_id(order_id)
        if not order:
            return None
        
        for key, value in data.items():
            if hasattr(order, key):
                setattr(order, key, value)
        
        # delete-orphan elimina las lineas anteriores
        order.items = self._build_items(items)
        
        await self.db.flush()
        await self.db.refresh(order)
        return order


class PurchaseOrderRepository(_OrderRepository):
    """Repositorio de ordenes de compra."""
    
    model = PurchaseOrderModel
    detail_model = PurchaseOrderDetailModel
    
    async def get_by_id(self, order_id: int) -> Optional[PurchaseOrderModel]:
        return await super().get_by_id(order_id)


class SalesOrderRepository(_OrderRepository):
    """Repositorio de ordenes de venta."""
    
    model = SalesOrderModel
    detail_model = SalesOrderDetailModel
    
    async def get_by_id(self, order_id: int) -> Optional[SalesOrderModel]:
        return await super().get_by_id(order_id)
