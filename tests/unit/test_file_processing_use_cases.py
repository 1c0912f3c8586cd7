"""
Tests del procesamiento de archivos de un watcher.

Verifica:
- Archivado con sufijo de fecha o eliminacion tras el exito.
- Politica de reintentos: N+1 intentos con esperas 2, 4, ..., 2^N.
- Idempotencia: reprocesar un archivo actualiza, no duplica.
- Tolerancia: XML invalido no genera llamadas y el archivo se descarta igual.
"""
from __future__ import annotations

import asyncio
import re
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, call

import pytest
from sqlalchemy import func, select

from wms_integration.application.dto.file_processing_dto import (
    FileProcessingConfig,
    FileStatus,
    WatcherConfig,
)
from wms_integration.application.services.xml_parser import XmlParserService
from wms_integration.application.use_cases.customer_use_cases import CustomerUseCases
from wms_integration.application.use_cases.file_processing_use_cases import (
    FileProcessingUseCases,
    archive_file,
)
from wms_integration.application.use_cases.order_use_cases import PurchaseOrderUseCases
from wms_integration.infrastructure.database.models import CustomerModel, SyncResultModel
from wms_integration.shared.constants.entity_constants import EntityKind, SyncState
from wms_integration.infrastructure.repositories.sync_repository import SyncRepository


FIXED_NOW = datetime(2026, 3, 1, 10, 15, 30)

CUSTOMER_7 = b"""<Customers>
  <Customer><CustomerID>7</CustomerID><Name>Acme</Name><Address>1 Main St</Address></Customer>
</Customers>"""

ORDER_WITH_UNKNOWN_PRODUCT = b"""<PurchaseOrders>
  <PurchaseOrder>
    <OrderID>100</OrderID>
    <ProcessingDate>2026-03-01T08:00:00Z</ProcessingDate>
    <CustomerID>7</CustomerID>
    <OrderDetails>
      <OrderDetail><ProductCode>GHOST-1</ProductCode><Quantity>3</Quantity></OrderDetail>
    </OrderDetails>
  </PurchaseOrder>
</PurchaseOrders>"""


class LockedFileParser(XmlParserService):
    """Parser que simula un archivo bloqueado para nombres que empiezan por 'locked'."""

    def parse(self, content, kind, source="<memoria>"):
        if source.startswith("locked"):
            raise OSError(f"{source} esta bloqueado por otro proceso")
        return super().parse(content, kind, source)


def _watcher(tmp_path: Path, kind: EntityKind = EntityKind.CUSTOMER, **overrides) -> WatcherConfig:
    values = {
        "name": f"{kind.value}Watcher",
        "directory_path": str(tmp_path / "inbox"),
        "file_pattern": "*.xml",
        "file_type": kind,
        "archive_processed_files": True,
        "archive_path": str(tmp_path / "archive"),
        "max_retry_attempts": 3,
    }
    values.update(overrides)
    return WatcherConfig(**values)


@pytest.fixture
def inbox(tmp_path) -> Path:
    directory = tmp_path / "inbox"
    directory.mkdir()
    return directory


@pytest.fixture
def make_processor(session_factory, wms_client):
    """Construye el caso de uso con base temporal, cliente falso y reloj fijo."""
    def _make(*watchers, parser=None, sleep=None) -> FileProcessingUseCases:
        return FileProcessingUseCases(
            FileProcessingConfig(file_watchers=list(watchers)),
            session_factory=session_factory,
            wms_client_factory=lambda: wms_client,
            parser=parser,
            sleep=sleep or AsyncMock(),
            clock=lambda: FIXED_NOW,
        )
    return _make


class TestArchiveFile:
    """Nombre y colisiones del archivo historico."""

    def test_timestamp_suffix(self, tmp_path) -> None:
        source = tmp_path / "orders.xml"
        source.write_text("<PurchaseOrders/>")

        target = archive_file(source, tmp_path / "archive", FIXED_NOW)

        assert re.match(r"^orders_\d{8}_\d{6}\.xml$", target.name)
        assert target.name == "orders_20260301_101530.xml"
        assert target.exists()
        assert not source.exists()

    def test_collision_gets_counter(self, tmp_path) -> None:
        archive_dir = tmp_path / "archive"
        for _ in range(2):
            source = tmp_path / "orders.xml"
            source.write_text("x")
            target = archive_file(source, archive_dir, FIXED_NOW)

        assert target.name == "orders_20260301_101530_1.xml"
        assert len(list(archive_dir.iterdir())) == 2


class TestProcessFiles:
    """Ciclo de vida de los archivos de un watcher."""

    @pytest.mark.asyncio
    async def test_new_customer_is_created_and_archived(self, tmp_path, inbox, make_processor, session_factory, wms_client) -> None:
        (inbox / "customers.xml").write_bytes(CUSTOMER_7)
        watcher = _watcher(tmp_path)

        outcomes = await make_processor(watcher).process_files(watcher)

        assert len(outcomes) == 1
        assert outcomes[0].status == FileStatus.ARCHIVED
        assert outcomes[0].attempts == 1
        assert outcomes[0].records_processed == 1
        assert Path(outcomes[0].archive_path).name == "customers_20260301_101530.xml"
        assert not (inbox / "customers.xml").exists()
        wms_client.send_customer.assert_awaited_once()
        wms_client.close.assert_awaited_once()
        async with session_factory() as db:
            assert (await CustomerUseCases(db).get_customer(7)).unwrap().name == "Acme"
            status = await SyncRepository(db).get_sync_status(EntityKind.CUSTOMER, "7")
        assert status.status == SyncState.SYNCED

    @pytest.mark.asyncio
    async def test_deleted_when_archiving_disabled(self, tmp_path, inbox, make_processor) -> None:
        (inbox / "customers.xml").write_bytes(CUSTOMER_7)
        watcher = _watcher(tmp_path, archive_processed_files=False)

        outcomes = await make_processor(watcher).process_files(watcher)

        assert outcomes[0].status == FileStatus.DELETED
        assert not (inbox / "customers.xml").exists()
        assert not (tmp_path / "archive").exists()

    @pytest.mark.asyncio
    async def test_deleted_when_archive_path_missing(self, tmp_path, inbox, make_processor) -> None:
        (inbox / "customers.xml").write_bytes(CUSTOMER_7)
        watcher = _watcher(tmp_path, archive_path=None)

        outcomes = await make_processor(watcher).process_files(watcher)

        assert outcomes[0].status == FileStatus.DELETED

    @pytest.mark.asyncio
    async def test_reprocessing_updates_instead_of_creating(self, tmp_path, inbox, make_processor, session_factory, monkeypatch) -> None:
        created = []
        original_create = CustomerUseCases.create_customer

        async def counting_create(self, record):
            created.append(record.customer_id)
            return await original_create(self, record)

        monkeypatch.setattr(CustomerUseCases, "create_customer", counting_create)
        watcher = _watcher(tmp_path)
        processor = make_processor(watcher)

        (inbox / "customers.xml").write_bytes(CUSTOMER_7)
        await processor.process_files(watcher)
        (inbox / "customers.xml").write_bytes(CUSTOMER_7.replace(b"Acme", b"Acme Corp"))
        await processor.process_files(watcher)

        assert created == [7]
        async with session_factory() as db:
            count = (await db.execute(select(func.count()).select_from(CustomerModel))).scalar()
            customer = (await CustomerUseCases(db).get_customer(7)).unwrap()
        assert count == 1
        assert customer.name == "Acme Corp"

    @pytest.mark.asyncio
    async def test_permanent_failure_retries_then_leaves_file(self, tmp_path, inbox, make_processor) -> None:
        """MaxRetryAttempts=3: 4 intentos con esperas 2, 4, 8 y el archivo queda."""
        (inbox / "locked_customers.xml").write_bytes(CUSTOMER_7)
        sleep = AsyncMock()
        watcher = _watcher(tmp_path, max_retry_attempts=3)

        outcomes = await make_processor(watcher, parser=LockedFileParser(), sleep=sleep).process_files(watcher)

        assert outcomes[0].status == FileStatus.FAILED
        assert outcomes[0].attempts == 4
        assert "bloqueado" in outcomes[0].error
        assert sleep.await_args_list == [call(2.0), call(4.0), call(8.0)]
        assert (inbox / "locked_customers.xml").exists()
        assert not (tmp_path / "archive").exists()

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self, tmp_path, inbox, make_processor) -> None:
        (inbox / "locked_customers.xml").write_bytes(CUSTOMER_7)
        sleep = AsyncMock()
        watcher = _watcher(tmp_path, max_retry_attempts=0)

        outcomes = await make_processor(watcher, parser=LockedFileParser(), sleep=sleep).process_files(watcher)

        assert outcomes[0].attempts == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_batch(self, tmp_path, inbox, make_processor) -> None:
        (inbox / "a_customers.xml").write_bytes(CUSTOMER_7)
        (inbox / "locked_customers.xml").write_bytes(CUSTOMER_7)
        (inbox / "z_customers.xml").write_bytes(CUSTOMER_7.replace(b">7<", b">8<"))
        watcher = _watcher(tmp_path, max_retry_attempts=1)

        outcomes = await make_processor(watcher, parser=LockedFileParser()).process_files(watcher)

        assert [Path(o.path).name for o in outcomes] == [
            "a_customers.xml", "locked_customers.xml", "z_customers.xml",
        ]
        assert [o.status for o in outcomes] == [FileStatus.ARCHIVED, FileStatus.FAILED, FileStatus.ARCHIVED]
        assert [p.name for p in inbox.iterdir()] == ["locked_customers.xml"]

    @pytest.mark.asyncio
    async def test_malformed_xml_is_disposed_without_calls(self, tmp_path, inbox, make_processor, session_factory, wms_client) -> None:
        (inbox / "broken.xml").write_bytes(b"<Customers><Customer><CustomerID>7</Cust")
        watcher = _watcher(tmp_path)

        outcomes = await make_processor(watcher).process_files(watcher)

        assert outcomes[0].status == FileStatus.ARCHIVED
        assert outcomes[0].records_processed == 0
        wms_client.send_customer.assert_not_awaited()
        async with session_factory() as db:
            assert (await db.execute(select(func.count()).select_from(SyncResultModel))).scalar() == 0

    @pytest.mark.asyncio
    async def test_invalid_record_is_rejected_not_retried(self, tmp_path, inbox, make_processor, wms_client) -> None:
        (inbox / "customers.xml").write_bytes(CUSTOMER_7.replace(b"<Name>Acme</Name>", b"<Name></Name>"))
        sleep = AsyncMock()
        watcher = _watcher(tmp_path)

        outcomes = await make_processor(watcher, sleep=sleep).process_files(watcher)

        assert outcomes[0].status == FileStatus.ARCHIVED
        assert outcomes[0].records_rejected == 1
        assert outcomes[0].records_processed == 0
        sleep.assert_not_awaited()
        wms_client.send_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_order_with_unknown_product_persists(self, tmp_path, inbox, make_processor, session_factory, wms_client) -> None:
        (inbox / "orders.xml").write_bytes(ORDER_WITH_UNKNOWN_PRODUCT)
        watcher = _watcher(tmp_path, EntityKind.PURCHASE_ORDER)

        outcomes = await make_processor(watcher).process_files(watcher)

        assert outcomes[0].status == FileStatus.ARCHIVED
        wms_client.send_product.assert_not_awaited()
        wms_client.send_purchase_order.assert_awaited_once()
        async with session_factory() as db:
            order = (await PurchaseOrderUseCases(db).get_order(100)).unwrap()
        assert [(i.product_code, i.quantity) for i in order.items] == [("GHOST-1", 3)]

    @pytest.mark.asyncio
    async def test_missing_directory_returns_empty(self, tmp_path, make_processor, wms_client) -> None:
        watcher = _watcher(tmp_path, directory_path=str(tmp_path / "does-not-exist"))

        assert await make_processor(watcher).process_files(watcher) == []
        wms_client.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pattern_filters_files(self, tmp_path, inbox, make_processor) -> None:
        (inbox / "customers.xml").write_bytes(CUSTOMER_7)
        (inbox / "notes.txt").write_text("no procesar")
        watcher = _watcher(tmp_path)

        outcomes = await make_processor(watcher).process_files(watcher)

        assert len(outcomes) == 1
        assert (inbox / "notes.txt").exists()


class TestProcessAllFiles:
    """Ejecucion de todos los watchers y politicas por tipo."""

    @pytest.mark.asyncio
    async def test_runs_every_watcher(self, tmp_path, inbox, make_processor) -> None:
        (inbox / "customers.xml").write_bytes(CUSTOMER_7)
        customers = _watcher(tmp_path)
        products = _watcher(tmp_path, EntityKind.PRODUCT, directory_path=str(tmp_path / "missing"))

        results = await make_processor(customers, products).process_all_files()

        assert set(results) == {"CustomerWatcher", "ProductWatcher"}
        assert len(results["CustomerWatcher"]) == 1
        assert results["ProductWatcher"] == []

    @pytest.mark.asyncio
    async def test_stop_event_skips_remaining_watchers(self, tmp_path, inbox, make_processor) -> None:
        stop_event = asyncio.Event()
        stop_event.set()
        (inbox / "customers.xml").write_bytes(CUSTOMER_7)

        results = await make_processor(_watcher(tmp_path)).process_all_files(stop_event)

        assert results == {}
        assert (inbox / "customers.xml").exists()

    @pytest.mark.asyncio
    async def test_first_policy_wins_on_conflict(self, tmp_path, make_processor) -> None:
        processor = make_processor(
            _watcher(tmp_path, name="A", max_retry_attempts=5),
            _watcher(tmp_path, name="B", max_retry_attempts=1),
        )

        assert processor.policy_for(EntityKind.CUSTOMER).max_retries == 5
        assert processor.policy_for(EntityKind.PRODUCT).max_retries == 3


class TestUnreadableFiles:
    """Errores de lectura disparan la politica de reintentos."""

    @pytest.mark.asyncio
    async def test_read_error_is_retried_and_reported(self, tmp_path, inbox, make_processor, monkeypatch) -> None:
        (inbox / "customers.xml").write_bytes(CUSTOMER_7)

        def locked(self):
            raise PermissionError(f"[Errno 13] Permission denied: '{self}'")

        monkeypatch.setattr(Path, "read_bytes", locked)
        watcher = _watcher(tmp_path, max_retry_attempts=2)

        outcomes = await make_processor(watcher).process_files(watcher)

        assert outcomes[0].status == FileStatus.FAILED
        assert outcomes[0].attempts == 3
        assert "no se pudo leer" in outcomes[0].error
        assert (inbox / "customers.xml").exists()
