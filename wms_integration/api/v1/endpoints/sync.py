"""
Endpoints de operacion del ledger de sincronizacion con el WMS.
Solo para operadores: estadisticas, fallidos, estado, reintentos y depuracion.
"""
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from wms_integration.application.dto.sync_dto import (
    ClearHistoryResponseDTO,
    RetrySummaryDTO,
    SyncResultDTO,
    SyncStatisticsDTO,
    SyncStatusDTO,
)
from wms_integration.application.use_cases.wms_sync_use_cases import WmsSyncUseCases
from wms_integration.api.v1.dependencies.use_case_deps import get_wms_sync_use_cases
from wms_integration.core.config import settings
from wms_integration.shared.constants.entity_constants import EntityKind
from wms_integration.shared.utils.datetime_utils import utc_now


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.get("/statistics", response_model=SyncStatisticsDTO, summary="Estadisticas del ledger")
async def get_statistics(
    use_cases: WmsSyncUseCases = Depends(get_wms_sync_use_cases),
) -> SyncStatisticsDTO:
    stats = await use_cases.get_sync_statistics()
    return SyncStatisticsDTO.model_validate(stats)


@router.get("/failed", response_model=List[SyncStatusDTO], summary="Entidades con sincronizacion fallida")
async def get_failed(
    use_cases: WmsSyncUseCases = Depends(get_wms_sync_use_cases),
) -> List[SyncStatusDTO]:
    """Entidades en estado Failed, la mas antigua primero."""
    failed = await use_cases.get_failed_synchronizations()
    return [SyncStatusDTO.model_validate(item) for item in failed]


@router.get(
    "/status/{entity_type}/{entity_id}",
    response_model=SyncStatusDTO,
    summary="Estado de sincronizacion de una entidad"
)
async def get_status(
    entity_type: EntityKind,
    entity_id: str,
    use_cases: WmsSyncUseCases = Depends(get_wms_sync_use_cases),
) -> SyncStatusDTO:
    """Si la entidad nunca se sincronizo devuelve Pending."""
    snapshot = await use_cases.get_sync_status(entity_type, entity_id)
    return SyncStatusDTO.model_validate(snapshot)


@router.get(
    "/history/{entity_type}/{entity_id}",
    response_model=List[SyncResultDTO],
    summary="Historial de una entidad"
)
async def get_history(
    entity_type: EntityKind,
    entity_id: str,
    use_cases: WmsSyncUseCases = Depends(get_wms_sync_use_cases),
) -> List[SyncResultDTO]:
    history = await use_cases.get_sync_history(entity_type, entity_id)
    return [SyncResultDTO.model_validate(item) for item in history]


@router.get("/recent", response_model=List[SyncResultDTO], summary="Ultimos intentos de sincronizacion")
async def get_recent(
    count: int = Query(default=100, ge=1, le=1000, description="Numero maximo de resultados"),
    use_cases: WmsSyncUseCases = Depends(get_wms_sync_use_cases),
) -> List[SyncResultDTO]:
    recent = await use_cases.get_recent_sync_results(count)
    return [SyncResultDTO.model_validate(item) for item in recent]


@router.post(
    "/retry",
    response_model=RetrySummaryDTO,
    status_code=status.HTTP_200_OK,
    summary="Reintentar sincronizaciones fallidas"
)
async def retry_failed(
    use_cases: WmsSyncUseCases = Depends(get_wms_sync_use_cases),
) -> RetrySummaryDTO:
    logger.info("Barrido de reintentos solicitado desde API")
    summary = await use_cases.retry_failed_synchronizations()
    return RetrySummaryDTO(**summary)


@router.delete("/history", response_model=ClearHistoryResponseDTO, summary="Depurar historial")
async def clear_history(
    older_than_days: int = Query(
        default=settings.SYNC_HISTORY_RETENTION_DAYS,
        ge=0,
        description="Elimina resultados con mas de N dias (conserva el ultimo de cada entidad)"
    ),
    use_cases: WmsSyncUseCases = Depends(get_wms_sync_use_cases),
) -> ClearHistoryResponseDTO:
    cutoff = utc_now() - timedelta(days=older_than_days)
    deleted = await use_cases.clear_sync_history(cutoff)
    return ClearHistoryResponseDTO(deleted=deleted, older_than=cutoff)
