"""
Repositorio de productos.
"""
from typing import Any, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.infrastructure.database.models import ProductModel


class ProductRepository:
    """Repositorio para gestionar productos en la base de datos."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
    
    async def get_by_code(self, product_code: str) -> Optional[ProductModel]:
        result = await self.db.execute(
            select(ProductModel).where(ProductModel.product_code == product_code)
        )
        return result.scalars().first()
    
    async def get_all(self) -> List[ProductModel]:
        result = await self.db.execute(
            select(ProductModel).order_by(ProductModel.product_code)
        )
        return result.scalars().all()
    
    async def exists(self, product_code: str) -> bool:
        result = await self.db.execute(
            select(ProductModel.product_code).where(ProductModel.product_code == product_code)
        )
        return result.scalar() is not None
    
    async def create(self, data: Dict[str, Any]) -> ProductModel:
        product = ProductModel(**data)
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product)
        return product
    
    async def update(self, product_code: str, data: Dict[str, Any]) -> Optional[ProductModel]:
        product = await self.get_by_code(product_code)
        if not product:
            return None
        
        for key, value in data.items():
            if hasattr(product, key):
                setattr(product, key, value)
        
        await self.db.flush()
        await self.db.refresh(product)
        return product
