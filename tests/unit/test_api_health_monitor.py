"""
Tests del monitor de disponibilidad del WMS.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from loguru import logger

from wms_integration.infrastructure.external.health.api_health_monitor import ApiHealthMonitor


@pytest.fixture
def error_logs():
    """Captura los mensajes ERROR de loguru."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="ERROR")
    yield messages
    logger.remove(handler_id)


class TestApiHealthMonitor:
    """Sondeo hasta el primer exito."""

    @pytest.mark.asyncio
    async def test_first_success_opens_gate(self) -> None:
        probe = AsyncMock(side_effect=[False, False, True])
        on_healthy = MagicMock()
        sleep = AsyncMock()
        monitor = ApiHealthMonitor(probe, on_healthy, interval_s=5, sleep=sleep)

        assert await monitor.run() is True

        on_healthy.assert_called_once()
        assert monitor.healthy is True
        assert monitor.total_attempts == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(5)

    @pytest.mark.asyncio
    async def test_probe_exceptions_count_as_failures(self) -> None:
        probe = AsyncMock(side_effect=[ConnectionError("rechazado"), True])
        on_healthy = MagicMock()
        monitor = ApiHealthMonitor(probe, on_healthy, sleep=AsyncMock())

        assert await monitor.run() is True
        assert monitor.total_attempts == 2

    @pytest.mark.asyncio
    async def test_error_logged_every_max_attempts(self, error_logs) -> None:
        probe = AsyncMock(side_effect=[False] * 7 + [True])
        monitor = ApiHealthMonitor(probe, MagicMock(), max_attempts=3, sleep=AsyncMock())

        await monitor.run()

        assert len(error_logs) == 2
        assert monitor.total_attempts == 8

    @pytest.mark.asyncio
    async def test_stop_event_ends_polling(self) -> None:
        stop_event = asyncio.Event()
        on_healthy = MagicMock()

        async def sleep(_):
            stop_event.set()

        monitor = ApiHealthMonitor(AsyncMock(return_value=False), on_healthy, stop_event=stop_event, sleep=sleep)

        assert await monitor.run() is False
        on_healthy.assert_not_called()
        assert monitor.total_attempts == 1
