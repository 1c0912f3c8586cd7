"""
Tests de los endpoints de operacion (ledger y procesamiento manual).
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wms_integration.api.v1.dependencies.use_case_deps import (
    get_file_processing_use_cases,
    get_wms_sync_use_cases,
)
from wms_integration.application.dto.file_processing_dto import FileOutcome, FileStatus
from wms_integration.domain.entities.sync import SyncResult, SyncStatistics, SyncStatusSnapshot
from wms_integration.main import create_application
from wms_integration.shared.constants.entity_constants import EntityKind, SyncState
from wms_integration.shared.exceptions.integration import WmsApiError


T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sync_use_cases() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def file_processor() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def app(sync_use_cases, file_processor):
    application = create_application()
    application.dependency_overrides[get_wms_sync_use_cases] = lambda: sync_use_cases
    application.dependency_overrides[get_file_processing_use_cases] = lambda: file_processor
    return application


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


class TestSyncEndpoints:
    """Consultas y operaciones del ledger."""

    @pytest.mark.asyncio
    async def test_statistics(self, client, sync_use_cases) -> None:
        sync_use_cases.get_sync_statistics.return_value = SyncStatistics(
            total_synchronizations=3,
            successful_synchronizations=2,
            failed_synchronizations=1,
            synchronizations_by_entity_type={"Customer": 3},
            last_sync_date=T0,
        )

        response = await client.get("/api/v1/sync/statistics")

        assert response.status_code == 200
        body = response.json()
        assert body["total_synchronizations"] == 3
        assert body["synchronizations_by_entity_type"] == {"Customer": 3}

    @pytest.mark.asyncio
    async def test_status_defaults_to_pending(self, client, sync_use_cases) -> None:
        sync_use_cases.get_sync_status.return_value = SyncStatusSnapshot(
            entity_type=EntityKind.CUSTOMER, entity_id="7", status=SyncState.PENDING
        )

        response = await client.get("/api/v1/sync/status/Customer/7")

        assert response.status_code == 200
        assert response.json()["status"] == "Pending"
        sync_use_cases.get_sync_status.assert_awaited_once_with(EntityKind.CUSTOMER, "7")

    @pytest.mark.asyncio
    async def test_unknown_entity_type_is_rejected(self, client) -> None:
        response = await client.get("/api/v1/sync/status/Invoice/7")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_failed_and_history(self, client, sync_use_cases) -> None:
        sync_use_cases.get_failed_synchronizations.return_value = [
            SyncStatusSnapshot(
                entity_type=EntityKind.PRODUCT, entity_id="P-1", status=SyncState.FAILED,
                last_sync_date=T0, retry_count=2, error_message="WMS 503",
            )
        ]
        sync_use_cases.get_sync_history.return_value = [
            SyncResult(entity_type=EntityKind.PRODUCT, entity_id="P-1", success=False,
                       error_message="WMS 503", sync_date=T0, id=10)
        ]

        failed = await client.get("/api/v1/sync/failed")
        history = await client.get("/api/v1/sync/history/Product/P-1")

        assert failed.json()[0]["retry_count"] == 2
        assert history.json()[0]["id"] == 10
        assert history.json()[0]["success"] is False

    @pytest.mark.asyncio
    async def test_recent_count_is_forwarded(self, client, sync_use_cases) -> None:
        sync_use_cases.get_recent_sync_results.return_value = []

        response = await client.get("/api/v1/sync/recent", params={"count": 5})

        assert response.status_code == 200
        sync_use_cases.get_recent_sync_results.assert_awaited_once_with(5)

    @pytest.mark.asyncio
    async def test_retry(self, client, sync_use_cases) -> None:
        sync_use_cases.retry_failed_synchronizations.return_value = {
            "total": 3, "succeeded": 1, "failed": 1, "skipped": 1,
        }

        response = await client.post("/api/v1/sync/retry")

        assert response.status_code == 200
        assert response.json() == {"total": 3, "succeeded": 1, "failed": 1, "skipped": 1}

    @pytest.mark.asyncio
    async def test_clear_history(self, client, sync_use_cases) -> None:
        sync_use_cases.clear_sync_history.return_value = 12

        response = await client.delete("/api/v1/sync/history", params={"older_than_days": 7})

        assert response.status_code == 200
        assert response.json()["deleted"] == 12
        cutoff = sync_use_cases.clear_sync_history.await_args.args[0]
        assert cutoff.tzinfo is not None

    @pytest.mark.asyncio
    async def test_app_exception_is_mapped(self, client, sync_use_cases) -> None:
        sync_use_cases.get_sync_statistics.side_effect = WmsApiError("WMS caido", status_code=503)

        response = await client.get("/api/v1/sync/statistics")

        assert response.status_code == 502
        assert response.json() == {
            "error": "WMS_API_ERROR",
            "message": "WMS caido",
            "details": {"upstream_status": 503},
        }

    @pytest.mark.asyncio
    async def test_unhandled_exception_is_500(self, client, sync_use_cases) -> None:
        sync_use_cases.get_sync_statistics.side_effect = RuntimeError("boom {x}")

        response = await client.get("/api/v1/sync/statistics")

        assert response.status_code == 500
        assert response.json()["error"] == "INTERNAL_SERVER_ERROR"


class TestFilesAndHealth:
    """Procesamiento manual y health."""

    @pytest.mark.asyncio
    async def test_process_now(self, client, file_processor) -> None:
        file_processor.process_all_files.return_value = {
            "CustomerWatcher": [
                FileOutcome(path="/in/customers.xml", status=FileStatus.ARCHIVED, attempts=1, records_processed=1)
            ],
            "ProductWatcher": [],
        }

        response = await client.post("/api/v1/files/process")

        assert response.status_code == 200
        body = response.json()
        assert [run["watcher"] for run in body] == ["CustomerWatcher", "ProductWatcher"]
        assert body[0]["files"][0]["status"] == "archived"

    @pytest.mark.asyncio
    async def test_health_without_scheduler(self, client) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["processing_started"] is False
        assert response.json()["watchers"] == []
