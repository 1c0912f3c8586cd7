"""
Endpoint para forzar una pasada de todos los watchers.
"""
from typing import List

from fastapi import APIRouter, Depends
from loguru import logger

from wms_integration.application.dto.sync_dto import WatcherRunDTO
from wms_integration.application.use_cases.file_processing_use_cases import FileProcessingUseCases
from wms_integration.api.v1.dependencies.use_case_deps import get_file_processing_use_cases


router = APIRouter(prefix="/files", tags=["Files"])


@router.post("/process", response_model=List[WatcherRunDTO], summary="Procesar archivos ahora")
async def process_now(
    processor: FileProcessingUseCases = Depends(get_file_processing_use_cases),
) -> List[WatcherRunDTO]:
    """
    Ejecuta una vez cada watcher configurado, fuera del calendario.
    Puede solaparse con una corrida programada: el upsert es idempotente.
    """
    logger.info("Procesamiento manual de archivos solicitado desde API")
    results = await processor.process_all_files()
    return [WatcherRunDTO(watcher=name, files=outcomes) for name, outcomes in results.items()]
