"""
Tests de la sincronizacion con el WMS y del ledger resultante.
"""
from unittest.mock import AsyncMock

import pytest

from wms_integration.application.dto.record_dto import (
    CustomerRecord,
    OrderLineRecord,
    ProductRecord,
    PurchaseOrderRecord,
    SalesOrderRecord,
)
from wms_integration.application.use_cases.customer_use_cases import CustomerUseCases
from wms_integration.application.use_cases.order_use_cases import PurchaseOrderUseCases, SalesOrderUseCases
from wms_integration.application.use_cases.product_use_cases import ProductUseCases
from wms_integration.application.use_cases.wms_sync_use_cases import WmsSyncUseCases
from wms_integration.domain.entities.lookup import LookupResult
from wms_integration.shared.constants.entity_constants import EntityKind, SyncState
from wms_integration.shared.exceptions.integration import WmsApiError


async def _seed_customer(db, customer_id: int = 7):
    return await CustomerUseCases(db).create_customer(
        CustomerRecord(customer_id=customer_id, name="Acme", address="1 Main St")
    )


async def _seed_product(db, code: str):
    return await ProductUseCases(db).create_product(ProductRecord(product_code=code, title=f"Producto {code}"))


def _lines(*codes):
    return [OrderLineRecord(product_code=code, quantity=1) for code in codes]


class TestSynchronizeEntity:
    """Cada llamada escribe exactamente un resultado."""

    @pytest.mark.asyncio
    async def test_success_records_synced(self, db_session, wms_client) -> None:
        customer = await _seed_customer(db_session)
        use_cases = WmsSyncUseCases(db_session, wms_client)

        assert await use_cases.synchronize_customer(customer) is True

        wms_client.send_customer.assert_awaited_once_with(customer)
        status = await use_cases.get_sync_status(EntityKind.CUSTOMER, "7")
        assert status.status == SyncState.SYNCED
        assert len(await use_cases.get_sync_history(EntityKind.CUSTOMER, "7")) == 1

    @pytest.mark.asyncio
    async def test_client_exception_is_recorded_not_raised(self, db_session, wms_client) -> None:
        product = await _seed_product(db_session, "P-1")
        wms_client.send_product.side_effect = WmsApiError("WMS respondio 503", status_code=503)
        use_cases = WmsSyncUseCases(db_session, wms_client)

        assert await use_cases.synchronize_product(product) is False

        history = await use_cases.get_sync_history(EntityKind.PRODUCT, "P-1")
        assert len(history) == 1
        assert history[0].success is False
        assert "503" in history[0].error_message
        status = await use_cases.get_sync_status(EntityKind.PRODUCT, "P-1")
        assert status.status == SyncState.FAILED
        assert status.retry_count == 0

    @pytest.mark.asyncio
    async def test_unsynced_entity_reports_pending(self, db_session, wms_client) -> None:
        status = await WmsSyncUseCases(db_session, wms_client).get_sync_status(EntityKind.SALES_ORDER, 404)

        assert status.status == SyncState.PENDING
        assert status.entity_id == "404"
        assert status.retry_count == 0

    @pytest.mark.asyncio
    async def test_fail_twice_then_succeed(self, db_session, wms_client) -> None:
        """Dos fallos y un exito: tres resultados, estado final Synced con RetryCount 0."""
        customer = await _seed_customer(db_session)
        wms_client.send_customer.side_effect = [
            WmsApiError("caido", status_code=503),
            WmsApiError("caido", status_code=503),
            None,
        ]
        use_cases = WmsSyncUseCases(db_session, wms_client)

        outcomes = [await use_cases.synchronize_customer(customer) for _ in range(3)]

        assert outcomes == [False, False, True]
        history = await use_cases.get_sync_history(EntityKind.CUSTOMER, 7)
        assert [h.success for h in history] == [True, False, False]
        status = await use_cases.get_sync_status(EntityKind.CUSTOMER, 7)
        assert status.status == SyncState.SYNCED
        assert status.retry_count == 0


class TestOrderDependencies:
    """Las ordenes sincronizan primero su cliente y productos."""

    @pytest.mark.asyncio
    async def test_dependencies_pushed_before_order(self, db_session, wms_client) -> None:
        await _seed_customer(db_session)
        await _seed_product(db_session, "P-1")
        await _seed_product(db_session, "P-2")
        order = await PurchaseOrderUseCases(db_session).create_order(
            PurchaseOrderRecord(order_id=100, customer_id=7, items=_lines("P-1", "P-2", "P-1"))
        )
        calls = []
        wms_client.send_customer.side_effect = lambda c: calls.append(("customer", c.customer_id))
        wms_client.send_product.side_effect = lambda p: calls.append(("product", p.product_code))
        wms_client.send_purchase_order.side_effect = lambda o: calls.append(("order", o.order_id))

        assert await WmsSyncUseCases(db_session, wms_client).synchronize_purchase_order(order) is True

        assert calls == [("customer", 7), ("product", "P-1"), ("product", "P-2"), ("order", 100)]

    @pytest.mark.asyncio
    async def test_missing_product_is_skipped(self, db_session, wms_client) -> None:
        await _seed_customer(db_session)
        order = await SalesOrderUseCases(db_session).create_order(
            SalesOrderRecord(order_id=50, customer_id=7, items=_lines("UNKNOWN"), shipment_address="Dock 4")
        )
        use_cases = WmsSyncUseCases(db_session, wms_client)

        assert await use_cases.synchronize_sales_order(order) is True

        wms_client.send_product.assert_not_awaited()
        wms_client.send_sales_order.assert_awaited_once()
        status = await use_cases.get_sync_status(EntityKind.PRODUCT, "UNKNOWN")
        assert status.status == SyncState.PENDING

    @pytest.mark.asyncio
    async def test_dependency_failure_does_not_block_order(self, db_session, wms_client) -> None:
        await _seed_customer(db_session)
        order = await PurchaseOrderUseCases(db_session).create_order(
            PurchaseOrderRecord(order_id=101, customer_id=7, items=_lines("P-9"))
        )
        wms_client.send_customer.side_effect = WmsApiError("rechazado", status_code=400)
        use_cases = WmsSyncUseCases(db_session, wms_client)

        assert await use_cases.synchronize_purchase_order(order) is True

        assert (await use_cases.get_sync_status(EntityKind.CUSTOMER, 7)).status == SyncState.FAILED
        assert (await use_cases.get_sync_status(EntityKind.PURCHASE_ORDER, 101)).status == SyncState.SYNCED


class TestBatchAndRetry:
    """Lotes por ID y barrido de reintentos."""

    @pytest.mark.asyncio
    async def test_batch_records_missing_entities(self, db_session, wms_client) -> None:
        await _seed_customer(db_session, 1)
        use_cases = WmsSyncUseCases(db_session, wms_client)

        results = await use_cases.synchronize_customers([1, 2])

        assert results == {"1": True, "2": False}
        history = await use_cases.get_sync_history(EntityKind.CUSTOMER, 2)
        assert history[0].error_message == "Cliente con ID 2 no encontrado"

    @pytest.mark.asyncio
    async def test_retry_sweep(self, db_session, wms_client) -> None:
        await _seed_customer(db_session, 1)
        await _seed_product(db_session, "P-1")
        use_cases = WmsSyncUseCases(db_session, wms_client)

        wms_client.send_customer.side_effect = WmsApiError("caido", status_code=503)
        wms_client.send_product.side_effect = WmsApiError("caido", status_code=503)
        await use_cases.synchronize_customers([1])
        await use_cases.synchronize_products(["P-1", "P-404"])

        # Recupera el cliente, el producto sigue fallando
        wms_client.send_customer.side_effect = None
        summary = await use_cases.retry_failed_synchronizations()

        assert summary == {"total": 3, "succeeded": 1, "failed": 1, "skipped": 1}
        assert (await use_cases.get_sync_status(EntityKind.CUSTOMER, 1)).status == SyncState.SYNCED
        product_status = await use_cases.get_sync_status(EntityKind.PRODUCT, "P-1")
        assert product_status.status == SyncState.FAILED
        assert product_status.retry_count == 1

    @pytest.mark.asyncio
    async def test_synchronize_dispatches_by_kind(self, db_session, wms_client) -> None:
        product = await _seed_product(db_session, "P-1")
        use_cases = WmsSyncUseCases(db_session, wms_client)

        assert await use_cases.synchronize("Product", product) is True

        wms_client.send_product.assert_awaited_once_with(product)
        wms_client.send_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_batch_lookup_error_recorded_once(self, db_session, wms_client) -> None:
        use_cases = WmsSyncUseCases(db_session, wms_client)
        use_cases.customers.get_customer = AsyncMock(return_value=LookupResult.failed(RuntimeError("db caida")))

        results = await use_cases.synchronize_customers([5])

        assert results == {"5": False}
        history = await use_cases.get_sync_history(EntityKind.CUSTOMER, 5)
        assert [entry.error_message for entry in history] == ["db caida"]
        wms_client.send_customer.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_batch_ledger_write_failure_propagates(self, db_session, wms_client) -> None:
        await _seed_customer(db_session, 1)
        use_cases = WmsSyncUseCases(db_session, wms_client)
        use_cases.sync_repository.record_sync_result = AsyncMock(side_effect=RuntimeError("ledger caido"))

        with pytest.raises(RuntimeError, match="ledger caido"):
            await use_cases.synchronize_customers([1])

        use_cases.sync_repository.record_sync_result.assert_awaited_once()
