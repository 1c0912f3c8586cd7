"""
Excepciones de infraestructura: WMS, archivos y configuracion.
"""
from typing import Optional

from wms_integration.shared.exceptions.base import AppException


class WmsApiError(AppException):
    """Error de integracion con la API del WMS."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message=message,
            status_code=502,
            error_code="WMS_API_ERROR",
            details={"upstream_status": status_code} if status_code else None
        )
        self.upstream_status = status_code


class FileProcessingError(AppException):
    """Error procesando un archivo de entrada."""

    def __init__(self, file_path: str, message: str):
        super().__init__(
            message=f"Error procesando {file_path}: {message}",
            error_code="FILE_PROCESSING_ERROR",
            details={"file": file_path}
        )
        self.file_path = file_path


class ConfigurationError(AppException):
    """Configuracion de watchers invalida o ilegible."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"source": source} if source else None
        )
