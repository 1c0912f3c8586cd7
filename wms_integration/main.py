"""
Aplicacion FastAPI del servicio de integracion con el WMS.

Expone solo la superficie de operacion: /health y /api/v1 (ledger de
sincronizacion y procesamiento manual). El trabajo real ocurre en el
scheduler que se lanza en el startup.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wms_integration.api.middlewares.error_handler import ErrorHandlerMiddleware
from wms_integration.api.v1.router import api_router
from wms_integration.core.config import settings
from wms_integration.core.events import lifespan
from wms_integration.shared.exceptions.base import AppException


async def _app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error_code, "message": exc.message, "details": exc.details},
    )


async def _health(request: Request) -> dict:
    """Estado del servicio, de la compuerta de arranque y de cada watcher."""
    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "healthy",
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "processing_started": bool(scheduler and scheduler.gate.is_open),
        "watchers": scheduler.snapshot() if scheduler else [],
    }


def create_application() -> FastAPI:
    """Construye la aplicacion con middlewares, rutas y ciclo de vida."""
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Integracion por archivos con el WMS: ingesta XML, upsert y sincronizacion",
        lifespan=lifespan,
    )

    application.add_middleware(ErrorHandlerMiddleware)
    application.add_exception_handler(AppException, _app_exception_handler)

    application.include_router(api_router, prefix="/api")
    application.add_api_route("/health", _health, methods=["GET"], tags=["Health"])

    return application


app = create_application()


if __name__ == "__main__":
    import uvicorn
    from loguru import logger

    host = "localhost" if settings.HOST == "0.0.0.0" else settings.HOST
    logger.info(f"Docs en http://{host}:{settings.PORT}/docs, health en http://{host}:{settings.PORT}/health")

    uvicorn.run(
        "wms_integration.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
