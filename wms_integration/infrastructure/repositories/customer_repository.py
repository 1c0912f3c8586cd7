"""
Repositorio de clientes.
Maneja las operaciones de base de datos para CustomerModel.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.infrastructure.database.models import CustomerModel


class CustomerRepository:
    """Repositorio para gestionar clientes en la base de datos."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_id(self, customer_id: int) -> Optional[CustomerModel]:
        result = await self.db.execute(
            select(CustomerModel).where(CustomerModel.customer_id == customer_id)
        )
        return result.scalars().first()
    
    async def get_all(self) -> List[CustomerModel]:
        result = await self.db.execute(
            select(CustomerModel).order_by(CustomerModel.customer_id)
        )
        return result.scalars().all()
    
    async def exists(self, customer_id: int) -> bool:
        result = await self.db.execute(
            select(CustomerModel.customer_id).where(CustomerModel.customer_id == customer_id)
        )
        return result.scalar() is not None
    
    async def create(self, data: Dict[str, Any]) -> CustomerModel:
        """
        Crea un cliente. No hace commit: la transaccion la controla el caso de uso.
        """
        customer = CustomerModel(**data)
        self.db.add(customer)
        await self.db.flush()
        await self.db.refresh(customer)
        return customer
    
    async def update(self, customer_id: int, data: Dict[str, Any]) -> Optional[CustomerModel]:
        customer = await self.get_by_id(customer_id)
        if not customer:
            return None
        
        for key, value in data.items():
            if hasattr(customer, key):
                setattr(customer, key, value)
        
        await self.db.flush()
        await self.db.refresh(customer)
        return customer
