"""
CLI: una pasada de todos los watchers, sin scheduler ni health check.

Uso recomendado:
  - Cargas manuales o jobs externos (cron/systemd timer).
  - Reintentar sincronizaciones fallidas y depurar el historial.

Variables de entorno (o .env):
  - DATABASE_URL
  - FILE_PROCESSING_CONFIG
  - WMS_API_BASE_URL, WMS_API_KEY

Ejecucion:
  python scripts/process_files_once.py
  python scripts/process_files_once.py --retry-failed
  python scripts/process_files_once.py --skip-files --clear-history-days 30
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import timedelta
from pathlib import Path

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin instalar el paquete.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

# settings lee el entorno al importarse: cargar .env antes
load_dotenv(_PROJECT_ROOT / ".env", override=False)

from wms_integration.application.dto.file_processing_dto import FileProcessingConfig
from wms_integration.application.use_cases.file_processing_use_cases import FileProcessingUseCases
from wms_integration.application.use_cases.wms_sync_use_cases import WmsSyncUseCases
from wms_integration.core.config import settings
from wms_integration.infrastructure.database.session import AsyncSessionLocal, close_db, init_db
from wms_integration.infrastructure.external.wms.wms_client import build_wms_client
from wms_integration.shared.utils.datetime_utils import utc_now


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Procesa una vez los archivos de todos los watchers.")
    parser.add_argument(
        "--config",
        default=settings.FILE_PROCESSING_CONFIG,
        help="Ruta al JSON de watchers (default: FILE_PROCESSING_CONFIG).",
    )
    parser.add_argument(
        "--skip-files",
        action="store_true",
        help="No procesa archivos (util junto con --retry-failed o --clear-history-days).",
    )
    parser.add_argument(
        "--retry-failed",
        action="store_true",
        help="Despues de procesar, reintenta las sincronizaciones en estado Failed.",
    )
    parser.add_argument(
        "--clear-history-days",
        type=int,
        default=None,
        help="Elimina resultados con mas de N dias (conserva el ultimo por entidad).",
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    await init_db()
    exit_code = 0
    try:
        if not args.skip_files:
            config = FileProcessingConfig.from_file(args.config)
            processor = FileProcessingUseCases(config)
            results = await processor.process_all_files()
            for watcher_name, outcomes in results.items():
                failed = [o for o in outcomes if o.status.value == "failed"]
                logger.info(f"{watcher_name}: {len(outcomes)} archivo(s), {len(failed)} con error")
                if failed:
                    exit_code = 1

        if args.retry_failed or args.clear_history_days is not None:
            async with AsyncSessionLocal() as db:
                async with build_wms_client() as wms_client:
                    use_cases = WmsSyncUseCases(db, wms_client)
                    if args.retry_failed:
                        summary = await use_cases.retry_failed_synchronizations()
                        logger.info(f"Reintentos: {summary}")
                    if args.clear_history_days is not None:
                        cutoff = utc_now() - timedelta(days=args.clear_history_days)
                        deleted = await use_cases.clear_sync_history(cutoff)
                        logger.info(f"Historial depurado: {deleted} registro(s)")
    finally:
        await close_db()
    return exit_code


def main(argv=None) -> int:
    args = _parse_args(argv)
    logger.info("Iniciando procesamiento de archivos (pasada unica)...")
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
