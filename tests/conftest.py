"""
Configuracion de fixtures para pytest.
"""
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from wms_integration.infrastructure.database.session import Base
from wms_integration.infrastructure.database import models  # noqa: F401
from wms_integration.shared.utils.key_lock import sync_status_locks


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory sobre una base SQLite temporal por test.
    Se usa archivo (no :memory:) para que varias sesiones vean los mismos datos.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sesion de base de datos para tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def wms_client() -> AsyncMock:
    """Cliente del WMS falso: todas las llamadas tienen exito salvo que se configure side_effect."""
    client = AsyncMock()
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture(autouse=True)
def reset_sync_locks():
    """Los locks del ledger se crean por event loop; se limpian entre tests."""
    sync_status_locks._locks.clear()
    sync_status_locks._users.clear()
    yield
    sync_status_locks._locks.clear()
    sync_status_locks._users.clear()
