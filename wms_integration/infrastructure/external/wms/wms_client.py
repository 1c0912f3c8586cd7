"""
Cliente de la API REST del WMS (httpx, async).

Requisitos cubiertos:
- autenticacion por cabecera X-API-Key
- cuerpos JSON con claves PascalCase
- rate-limit/backoff (429, 5xx, errores de transporte)
- ping que nunca lanza (lo usa el health check de arranque)
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from loguru import logger

from wms_integration.core.config import settings
from wms_integration.shared.exceptions.integration import WmsApiError
from wms_integration.shared.utils.datetime_utils import ensure_utc


def _isoformat(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def customer_payload(customer) -> Dict[str, Any]:
    return {
        "CustomerID": customer.customer_id,
        "Name": customer.name,
        "Address": customer.address,
    }


def product_payload(product) -> Dict[str, Any]:
    return {
        "ProductCode": product.product_code,
        "Title": product.title,
        "Description": product.description or "",
        "Dimensions": product.dimensions or "",
    }


def order_payload(order) -> Dict[str, Any]:
    """Payload comun de ordenes de compra y de venta."""
    payload = {
        "OrderID": order.order_id,
        "ProcessingDate": _isoformat(order.processing_date),
        "CustomerID": order.customer_id,
        "Items": [
            {"ProductCode": item.product_code, "Quantity": item.quantity}
            for item in order.items
        ],
    }
    shipment_address = getattr(order, "shipment_address", None)
    if shipment_address is not None:
        payload["ShipmentAddress"] = shipment_address
    return payload


class WmsApiClient:
    """
    Cliente HTTP del WMS.

    Se puede inyectar un httpx.AsyncClient (p. ej. con MockTransport en tests);
    si no, crea el suyo y lo cierra en close().
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = 30.0,
        max_retries: int = 3,
        min_backoff_s: float = 0.5,
        max_backoff_s: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not base_url:
            raise ValueError("La URL base del WMS no esta configurada")
        self._base_url = base_url.rstrip("/") + "/"
        self._max_retries = max_retries
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._sleep = sleep
        self._owns_client = client is None
        headers = {"X-API-Key": api_key, "Accept": "application/json"}
        if client is None:
            client = httpx.AsyncClient(base_url=self._base_url, headers=headers, timeout=timeout_s)
        else:
            client.headers.update(headers)
        self._client = client

    async def __aenter__(self) -> "WmsApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # Clientes

    async def send_customer(self, customer) -> Any:
        logger.info(f"Enviando cliente al WMS: {customer.customer_id}")
        return await self._request_json("POST", "api/customers", json=customer_payload(customer))

    async def update_customer(self, customer) -> Any:
        logger.info(f"Actualizando cliente en el WMS: {customer.customer_id}")
        return await self._request_json(
            "PUT", f"api/customers/{customer.customer_id}", json=customer_payload(customer)
        )

    # Productos

    async def send_product(self, product) -> Any:
        logger.info(f"Enviando producto al WMS: {product.product_code}")
        return await self._request_json("POST", "api/products", json=product_payload(product))

    async def update_product(self, product) -> Any:
        logger.info(f"Actualizando producto en el WMS: {product.product_code}")
        return await self._request_json(
            "PUT", f"api/products/{product.product_code}", json=product_payload(product)
        )

    # Ordenes

    async def send_purchase_order(self, order) -> Any:
        logger.info(f"Enviando orden de compra al WMS: {order.order_id}")
        return await self._request_json("POST", "api/purchaseorders", json=order_payload(order))

    async def update_purchase_order_status(self, order_id: int, status: str) -> Any:
        logger.info(f"Actualizando estado de orden de compra {order_id} en el WMS: {status}")
        return await self._request_json(
            "PUT", f"api/purchaseorders/{order_id}/status", json={"Status": str(status)}
        )

    async def send_sales_order(self, order) -> Any:
        logger.info(f"Enviando orden de venta al WMS: {order.order_id}")
        return await self._request_json("POST", "api/salesorders", json=order_payload(order))

    async def update_sales_order_status(self, order_id: int, status: str) -> Any:
        logger.info(f"Actualizando estado de orden de venta {order_id} en el WMS: {status}")
        return await self._request_json(
            "PUT", f"api/salesorders/{order_id}/status", json={"Status": str(status)}
        )

    # Sistema

    async def ping(self) -> bool:
        """
        Verifica la disponibilidad del WMS. Nunca lanza: cualquier error es False.
        """
        try:
            resp = await self._client.get(self._base_url + "api/system/ping")
            return resp.is_success
        except httpx.HTTPError as e:
            logger.debug(f"Ping al WMS fallo: {e}")
            return False

    async def get_version(self) -> str:
        payload = await self._request_json("GET", "api/system/version")
        if isinstance(payload, dict):
            return str(payload.get("version") or payload.get("Version") or "")
        return str(payload or "")

    async def _request_json(self, method: str, url: str, *, json: Any = None) -> Any:
        """
        Request HTTP con backoff.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial.
        - 5xx y errores de transporte: exponencial.
        - 4xx (no 429): error inmediato.
        """
        for attempt in range(self._max_retries + 1):
            try:
                resp = await self._client.request(method, self._base_url + url, json=json)
            except httpx.TransportError as e:
                if attempt >= self._max_retries:
                    raise WmsApiError(
                        f"WMS no disponible tras {attempt} reintentos ({method} {url}): {e}"
                    ) from e
                sleep_s = self._backoff(attempt)
                logger.warning(f"Error de red con el WMS ({e}). Reintento {attempt + 1} en {sleep_s:.1f}s")
                await self._sleep(sleep_s)
                continue

            if resp.is_success:
                if not resp.content:
                    return None
                try:
                    return resp.json()
                except ValueError:
                    return resp.text

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise WmsApiError(
                        f"WMS error {resp.status_code} tras {attempt} reintentos ({method} {url}): {resp.text}",
                        status_code=resp.status_code,
                    )

                retry_after = resp.headers.get("Retry-After")
                if retry_after:
                    try:
                        sleep_s = float(retry_after)
                    except ValueError:
                        sleep_s = self._min_backoff_s
                else:
                    sleep_s = self._backoff(attempt)

                logger.warning(
                    f"WMS respondio {resp.status_code} en {method} {url}. "
                    f"Reintento {attempt + 1} en {sleep_s:.1f}s"
                )
                await self._sleep(sleep_s)
                continue

            # Errores no recuperables
            raise WmsApiError(
                f"WMS request fallo {resp.status_code} ({method} {url}): {resp.text}",
                status_code=resp.status_code,
            )

        raise WmsApiError(f"WMS request agoto reintentos ({method} {url})")

    def _backoff(self, attempt: int) -> float:
        return min(self._max_backoff_s, self._min_backoff_s * (2 ** attempt))


def build_wms_client() -> WmsApiClient:
    """Construye el cliente desde settings."""
    return WmsApiClient(
        settings.WMS_API_BASE_URL,
        settings.WMS_API_KEY,
        timeout_s=settings.WMS_TIMEOUT_SECONDS,
        max_retries=settings.WMS_MAX_RETRIES,
    )
