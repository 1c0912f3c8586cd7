"""
Casos de uso de productos.
"""
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.application.dto.record_dto import ProductRecord
from wms_integration.domain.entities.lookup import LookupResult
from wms_integration.infrastructure.database.models import ProductModel
from wms_integration.infrastructure.repositories.product_repository import ProductRepository
from wms_integration.shared.constants.entity_constants import SYSTEM_USER
from wms_integration.shared.exceptions.domain import (
    EntityAlreadyExistsException,
    EntityNotFoundException,
    ValidationException,
)


def validate_product(record: ProductRecord) -> None:
    if not record.product_code or not record.product_code.strip():
        raise ValidationException("El producto no tiene codigo", field="ProductCode")
    if not record.title or not record.title.strip():
        raise ValidationException(f"El producto {record.product_code} no tiene titulo", field="Title")


class ProductUseCases:
    """Alta, modificacion y consulta de productos."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ProductRepository(db)
    
    async def get_product(self, product_code: str) -> LookupResult[ProductModel]:
        try:
            product = await self.repository.get_by_code(product_code)
        except SQLAlchemyError as e:
            logger.error(f"Error consultando producto {product_code}: {e}")
            return LookupResult.failed(e)
        if product is None:
            return LookupResult.not_found()
        return LookupResult.found(product)
    
    async def create_product(self, record: ProductRecord) -> ProductModel:
        validate_product(record)
        if await self.repository.exists(record.product_code):
            raise EntityAlreadyExistsException("Producto", "ProductCode", record.product_code)
        
        try:
            product = await self.repository.create({
                "product_code": record.product_code,
                "title": record.title,
                "description": record.description,
                "dimensions": record.dimensions,
                "created_by": SYSTEM_USER,
                "updated_by": SYSTEM_USER,
            })
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        logger.info(f"Producto creado: {product.product_code}")
        return product
    
    async def update_product(self, record: ProductRecord) -> ProductModel:
        validate_product(record)
        
        try:
            product = await self.repository.update(record.product_code, {
                "title": record.title,
                "description": record.description,
                "dimensions": record.dimensions,
                "updated_by": SYSTEM_USER,
            })
            if product is None:
                raise EntityNotFoundException("Producto", record.product_code)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        logger.info(f"Producto actualizado: {product.product_code}")
        return product
