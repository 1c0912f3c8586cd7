"""
Repositorio del ledger de sincronizacion.

Mantiene dos tablas:
- sync_results: historial append-only de intentos
- sync_status: estado actual por (entity_type, entity_id)

A diferencia de los repositorios de entidades, el ledger confirma su propia
transaccion: cada resultado registrado debe sobrevivir aunque el flujo que
lo origino falle despues.
"""
from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wms_integration.domain.entities.sync import SyncResult, SyncStatusSnapshot, SyncStatistics
from wms_integration.infrastructure.database.models import SyncResultModel, SyncStatusModel
from wms_integration.shared.constants.entity_constants import EntityKind, SyncState
from wms_integration.shared.utils.datetime_utils import ensure_utc
from wms_integration.shared.utils.key_lock import KeyedLockManager, sync_status_locks


def _to_result(row: SyncResultModel) -> SyncResult:
    return SyncResult(
        id=row.id,
        entity_type=EntityKind(row.entity_type),
        entity_id=row.entity_id,
        success=row.success,
        error_message=row.error_message,
        sync_date=ensure_utc(row.sync_date),
    )


def _to_status(row: SyncStatusModel) -> SyncStatusSnapshot:
    return SyncStatusSnapshot(
        entity_type=EntityKind(row.entity_type),
        entity_id=row.entity_id,
        status=SyncState(row.status),
        last_sync_date=ensure_utc(row.last_sync_date),
        retry_count=row.retry_count,
        error_message=row.error_message,
    )


class SyncRepository:
    """Repositorio del historial y estado de sincronizacion con el WMS."""
    
    def __init__(self, db: AsyncSession, locks: KeyedLockManager = sync_status_locks):
        self.db = db
        self._locks = locks
    
    async def record_sync_result(self, result: SyncResult) -> SyncStatusSnapshot:
        """
        Registra un intento y actualiza el estado de la entidad.
        
        - Fallo: status Failed y retry_count + 1 (una fila nueva empieza en 0)
        - Exito: status Synced y retry_count = 0
        
        El read-modify-write se serializa por (tipo, id). Si otra instancia
        inserto el estado primero (violacion de la restriccion unica), se
        reintenta una vez como actualizacion.
        """
        key = (EntityKind(result.entity_type).value, result.entity_id)
        async with self._locks.lock(key):
            try:
                status_row = await self._write(result)
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(f"Conflicto insertando estado de {key[0]} {key[1]}, reintentando como actualizacion")
                status_row = await self._write(result)
                await self.db.commit()
            except Exception:
                await self.db.rollback()
                raise
        
        return _to_status(status_row)
    
    async def _write(self, result: SyncResult) -> SyncStatusModel:
        """Agrega el resultado y hace upsert del estado (sin commit)."""
        entity_type = EntityKind(result.entity_type)
        self.db.add(SyncResultModel(
            entity_type=entity_type,
            entity_id=result.entity_id,
            success=result.success,
            error_message=result.error_message,
            sync_date=result.sync_date,
        ))
        
        status_row = await self._get_status_row(entity_type, result.entity_id)
        new_state = SyncState.SYNCED if result.success else SyncState.FAILED
        
        if status_row is None:
            status_row = SyncStatusModel(
                entity_type=entity_type,
                entity_id=result.entity_id,
                status=new_state,
                last_sync_date=result.sync_date,
                retry_count=0,
                error_message=result.error_message,
            )
            self.db.add(status_row)
        else:
            status_row.status = new_state
            status_row.last_sync_date = result.sync_date
            status_row.error_message = result.error_message
            status_row.retry_count = 0 if result.success else status_row.retry_count + 1
        
        await self.db.flush()
        return status_row
    
    async def _get_status_row(self, entity_type: EntityKind, entity_id: str) -> Optional[SyncStatusModel]:
        result = await self.db.execute(
            select(SyncStatusModel).where(
                SyncStatusModel.entity_type == EntityKind(entity_type),
                SyncStatusModel.entity_id == str(entity_id),
            )
        )
        return result.scalars().first()
    
    async def get_sync_status(self, entity_type: EntityKind, entity_id: str) -> Optional[SyncStatusSnapshot]:
        row = await self._get_status_row(entity_type, entity_id)
        return _to_status(row) if row else None
    
    async def get_failed_synchronizations(self) -> List[SyncStatusSnapshot]:
        """Entidades en estado Failed, la mas antigua primero."""
        result = await self.db.execute(
            select(SyncStatusModel)
            .where(SyncStatusModel.status == SyncState.FAILED)
            .order_by(SyncStatusModel.last_sync_date.asc(), SyncStatusModel.id.asc())
        )
        return [_to_status(row) for row in result.scalars().all()]
    
    async def get_sync_history(self, entity_type: EntityKind, entity_id: str) -> List[SyncResult]:
        """Historial de una entidad, el mas reciente primero."""
        result = await self.db.execute(
            select(SyncResultModel)
            .where(
                SyncResultModel.entity_type == EntityKind(entity_type),
                SyncResultModel.entity_id == str(entity_id),
            )
            .order_by(SyncResultModel.sync_date.desc(), SyncResultModel.id.desc())
        )
        return [_to_result(row) for row in result.scalars().all()]
    
    async def get_recent_sync_results(self, count: int = 100) -> List[SyncResult]:
        result = await self.db.execute(
            select(SyncResultModel)
            .order_by(SyncResultModel.sync_date.desc(), SyncResultModel.id.desc())
            .limit(count)
        )
        return [_to_result(row) for row in result.scalars().all()]
    
    async def get_sync_statistics(self) -> SyncStatistics:
        totals = (await self.db.execute(
            select(
                func.count(SyncResultModel.id),
                func.coalesce(func.sum(case((SyncResultModel.success.is_(True), 1), else_=0)), 0),
                func.max(SyncResultModel.sync_date),
            )
        )).one()
        total, successful, last_sync_date = totals
        
        pending = (await self.db.execute(
            select(func.count(SyncStatusModel.id)).where(SyncStatusModel.status == SyncState.PENDING)
        )).scalar() or 0
        
        by_type_rows = (await self.db.execute(
            select(SyncResultModel.entity_type, func.count(SyncResultModel.id))
            .group_by(SyncResultModel.entity_type)
        )).all()
        
        return SyncStatistics(
            total_synchronizations=total or 0,
            successful_synchronizations=int(successful or 0),
            failed_synchronizations=(total or 0) - int(successful or 0),
            pending_synchronizations=pending,
            synchronizations_by_entity_type={
                EntityKind(entity_type).value: count for entity_type, count in by_type_rows
            },
            last_sync_date=ensure_utc(last_sync_date),
        )
    
    async def clear_sync_history(self, older_than: datetime) -> int:
        """
        Elimina resultados anteriores a older_than, conservando siempre el
        mas reciente de cada (entity_type, entity_id).
        
        Returns:
            Numero de filas eliminadas
        """
        ranked = select(
            SyncResultModel.id.label("id"),
            func.row_number().over(
                partition_by=(SyncResultModel.entity_type, SyncResultModel.entity_id),
                order_by=(SyncResultModel.sync_date.desc(), SyncResultModel.id.desc()),
            ).label("rn"),
        ).subquery()
        latest_ids = select(ranked.c.id).where(ranked.c.rn == 1)
        
        try:
            result = await self.db.execute(
                delete(SyncResultModel)
                .where(
                    SyncResultModel.sync_date < older_than,
                    SyncResultModel.id.not_in(latest_ids),
                )
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        
        deleted = result.rowcount or 0
        logger.info(f"Historial de sincronizacion depurado: {deleted} registro(s) anteriores a {older_than.isoformat()}")
        return deleted
