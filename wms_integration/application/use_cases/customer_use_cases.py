"""
Casos de uso de clientes.
"""
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.application.dto.record_dto import CustomerRecord
from wms_integration.domain.entities.lookup import LookupResult
from wms_integration.infrastructure.database.models import CustomerModel
from wms_integration.infrastructure.repositories.customer_repository import CustomerRepository
from wms_integration.shared.constants.entity_constants import SYSTEM_USER
from wms_integration.shared.exceptions.domain import (
    EntityAlreadyExistsException,
    EntityNotFoundException,
    ValidationException,
)


def validate_customer(record: CustomerRecord) -> None:
    """
    Raises:
        ValidationException: si falta el nombre o la direccion
    """
    if not record.name or not record.name.strip():
        raise ValidationException(f"El cliente {record.customer_id} no tiene nombre", field="Name")
    if not record.address or not record.address.strip():
        raise ValidationException(f"El cliente {record.customer_id} no tiene direccion", field="Address")


class CustomerUseCases:
    """Alta, modificacion y consulta de clientes."""
    
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = CustomerRepository(db)
    
    async def get_customer(self, customer_id: int) -> LookupResult[CustomerModel]:
        try:
            customer = await self.repository.get_by_id(customer_id)
        except SQLAlchemyError as e:
            logger.error(f"Error consultando cliente {customer_id}: {e}")
            return LookupResult.failed(e)
        if customer is None:
            return LookupResult.not_found()
        return LookupResult.found(customer)
    
    async def create_customer(self, record: CustomerRecord) -> CustomerModel:
        validate_customer(record)
        if await self.repository.exists(record.customer_id):
            raise EntityAlreadyExistsException("Cliente", "CustomerID", record.customer_id)
        
        try:
            customer = await self.repository.create({
                "customer_id": record.customer_id,
                "name": record.name,
                "address": record.address,
                "created_by": SYSTEM_USER,
                "updated_by": SYSTEM_USER,
            })
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        logger.info(f"Cliente creado: {customer.customer_id}")
        return customer
    
    async def update_customer(self, record: CustomerRecord) -> CustomerModel:
        validate_customer(record)
        
        try:
            customer = await self.repository.update(record.customer_id, {
                "name": record.name,
                "address": record.address,
                "updated_by": SYSTEM_USER,
            })
            if customer is None:
                raise EntityNotFoundException("Cliente", record.customer_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        logger.info(f"Cliente actualizado: {customer.customer_id}")
        return customer
