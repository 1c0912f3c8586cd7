"""
Excepciones de la logica de dominio (clientes, productos, ordenes).
"""
from typing import Any, Dict, Optional

from wms_integration.shared.exceptions.base import AppException


class DomainException(AppException):
    """Regla de negocio violada por un registro."""

    status_code = 400

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=type(self).status_code, error_code=error_code, details=details)


class EntityNotFoundException(DomainException):
    """La clave natural no existe en el almacen."""

    status_code = 404

    def __init__(self, entity_name: str, entity_id: Any):
        super().__init__(
            f"{entity_name} con ID {entity_id} no encontrado",
            error_code="ENTITY_NOT_FOUND",
            details={"entity": entity_name, "id": str(entity_id)},
        )


class EntityAlreadyExistsException(DomainException):
    """Alta de una clave natural que ya existe."""

    status_code = 409

    def __init__(self, entity_name: str, field: str, value: Any):
        super().__init__(
            f"{entity_name} con {field}={value} ya existe",
            error_code="ENTITY_ALREADY_EXISTS",
            details={"entity": entity_name, "field": field, "value": str(value)},
        )


class ValidationException(DomainException):
    """
    Registro que no cumple la validacion minima. El procesador de archivos lo
    omite sin reintentar: reintentar no lo arregla.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details={"field": field} if field else None)
        self.field = field
