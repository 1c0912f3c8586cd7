"""
Dependencias para inyeccion de casos de uso.
"""
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.application.dto.file_processing_dto import FileProcessingConfig
from wms_integration.application.use_cases.file_processing_use_cases import FileProcessingUseCases
from wms_integration.application.use_cases.wms_sync_use_cases import WmsSyncUseCases
from wms_integration.core.config import settings
from wms_integration.infrastructure.database.session import get_db
from wms_integration.infrastructure.external.wms.wms_client import WmsApiClient, build_wms_client


async def get_wms_client() -> AsyncGenerator[WmsApiClient, None]:
    """Cliente del WMS por request, cerrado al terminar."""
    client = build_wms_client()
    try:
        yield client
    finally:
        await client.close()


async def get_wms_sync_use_cases(
    db: AsyncSession = Depends(get_db),
    wms_client: WmsApiClient = Depends(get_wms_client),
) -> WmsSyncUseCases:
    """
    Dependencia para obtener los casos de uso de sincronizacion.
    
    Args:
        db: Sesion de base de datos
        wms_client: Cliente del WMS
        
    Returns:
        WmsSyncUseCases: Instancia de casos de uso
    """
    return WmsSyncUseCases(db, wms_client)


def get_file_processing_use_cases(request: Request) -> FileProcessingUseCases:
    """
    Procesador de archivos creado en el startup; si no existe (p. ej. en
    tests sin lifespan) se construye desde la configuracion.
    """
    processor = getattr(request.app.state, "file_processor", None)
    if processor is None:
        processor = FileProcessingUseCases(FileProcessingConfig.from_file(settings.FILE_PROCESSING_CONFIG))
        request.app.state.file_processor = processor
    return processor
