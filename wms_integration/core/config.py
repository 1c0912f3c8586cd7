"""
Configuracion central del servicio.
Gestiona variables de entorno (.env) y la configuracion de watchers.
"""
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.
    
    - DATABASE_URL: por defecto SQLite local (aiosqlite); en produccion
      postgresql+asyncpg://...
    - FILE_PROCESSING_CONFIG: ruta al JSON con la seccion FileWatchers
    - WMS_*: conexion con la API del WMS
    - HEALTH_CHECK_*: sondeo de disponibilidad que habilita el scheduler
    """
    
    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="WMS Integration Service")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")
    
    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)
    
    # Base de datos
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./wms_integration.db")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)
    
    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")
    
    # Procesamiento de archivos
    FILE_PROCESSING_CONFIG: str = Field(default="file_processing.json")
    SCHEDULER_ENABLED: bool = Field(default=True)
    SYNC_HISTORY_RETENTION_DAYS: int = Field(default=30)
    
    # API del WMS
    WMS_API_BASE_URL: str = Field(default="http://localhost:5000/")
    WMS_API_KEY: str = Field(default="")
    WMS_TIMEOUT_SECONDS: float = Field(default=30.0)
    WMS_MAX_RETRIES: int = Field(default=3)
    
    # Health check del WMS (libera el arranque del scheduler)
    HEALTH_CHECK_ENABLED: bool = Field(default=True)
    HEALTH_CHECK_INTERVAL_SECONDS: float = Field(default=5.0)
    HEALTH_CHECK_MAX_ATTEMPTS: int = Field(default=5)
    
    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"
    
    @computed_field
    @property
    def is_sqlite(self) -> bool:
        """Indica si la base de datos configurada es SQLite."""
        return self.DATABASE_URL.startswith("sqlite")
    
    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


# Instancia global de configuracion
settings = Settings()
