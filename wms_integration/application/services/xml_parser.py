"""
Parser de archivos XML de entrada.

Convierte el contenido de un archivo en registros planos de un unico tipo de
entidad. Es tolerante: nunca lanza. Un documento ilegible, con raiz
incorrecta o sin elementos produce una lista vacia con estado tipado.

Formato (nombres de elemento exactos):

    <Customers><Customer><CustomerID/><Name/><Address/></Customer></Customers>
    <Products><Product><ProductCode/><Title/><Description/><Dimensions/></Product></Products>
    <PurchaseOrders><PurchaseOrder>
        <OrderID/><ProcessingDate/><CustomerID/>
        <OrderDetails><OrderDetail><ProductCode/><Quantity/></OrderDetail></OrderDetails>
    </PurchaseOrder></PurchaseOrders>
    <SalesOrders><SalesOrder> ... mas <ShipmentAddress/> </SalesOrder></SalesOrders>
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from loguru import logger
from pydantic import ValidationError

from wms_integration.application.dto.record_dto import (
    CustomerRecord,
    ProductRecord,
    OrderLineRecord,
    PurchaseOrderRecord,
    SalesOrderRecord,
)
from wms_integration.shared.constants.entity_constants import EntityKind
from wms_integration.shared.utils.datetime_utils import parse_iso_datetime


class ParseStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    INVALID = "invalid"


@dataclass(frozen=True)
class ParseResult:
    """Registros leidos mas el estado del documento."""

    status: ParseStatus
    records: List = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ParseStatus.OK


def _text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _int(element: ET.Element, tag: str) -> int:
    value = _text(element, tag)
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{tag} no es numerico: '{value}'")


def _order_lines(element: ET.Element) -> List[OrderLineRecord]:
    details = element.find("OrderDetails")
    if details is None:
        return []
    return [
        OrderLineRecord(
            product_code=_text(detail, "ProductCode"),
            quantity=_int(detail, "Quantity"),
        )
        for detail in details.findall("OrderDetail")
    ]


def _customer(element: ET.Element) -> CustomerRecord:
    return CustomerRecord(
        customer_id=_int(element, "CustomerID"),
        name=_text(element, "Name"),
        address=_text(element, "Address"),
    )


def _product(element: ET.Element) -> ProductRecord:
    return ProductRecord(
        product_code=_text(element, "ProductCode"),
        title=_text(element, "Title"),
        description=_text(element, "Description"),
        dimensions=_text(element, "Dimensions"),
    )


def _purchase_order(element: ET.Element) -> PurchaseOrderRecord:
    return PurchaseOrderRecord(
        order_id=_int(element, "OrderID"),
        processing_date=parse_iso_datetime(_text(element, "ProcessingDate")),
        customer_id=_int(element, "CustomerID"),
        items=_order_lines(element),
    )


def _sales_order(element: ET.Element) -> SalesOrderRecord:
    return SalesOrderRecord(
        order_id=_int(element, "OrderID"),
        processing_date=parse_iso_datetime(_text(element, "ProcessingDate")),
        customer_id=_int(element, "CustomerID"),
        shipment_address=_text(element, "ShipmentAddress"),
        items=_order_lines(element),
    )


# tipo de entidad -> (raiz, elemento, mapper)
_LAYOUTS: Dict[EntityKind, Tuple[str, str, Callable[[ET.Element], object]]] = {
    EntityKind.CUSTOMER: ("Customers", "Customer", _customer),
    EntityKind.PRODUCT: ("Products", "Product", _product),
    EntityKind.PURCHASE_ORDER: ("PurchaseOrders", "PurchaseOrder", _purchase_order),
    EntityKind.SALES_ORDER: ("SalesOrders", "SalesOrder", _sales_order),
}


class XmlParserService:
    """Parser tolerante de documentos XML por tipo de entidad."""

    def parse(self, content: Union[bytes, str], kind: EntityKind, source: str = "<memoria>") -> ParseResult:
        """
        Parsea un documento completo.

        Args:
            content: bytes o texto del archivo
            kind: tipo de entidad esperado
            source: nombre del archivo, solo para logs

        Returns:
            ParseResult con status OK, EMPTY o INVALID
        """
        kind = EntityKind(kind)
        root_tag, item_tag, mapper = _LAYOUTS[kind]

        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            logger.warning(f"XML invalido en {source}: {e}")
            return ParseResult(status=ParseStatus.INVALID, error=str(e))

        if root.tag != root_tag:
            logger.warning(f"Raiz inesperada en {source}: '{root.tag}' (se esperaba '{root_tag}')")
            return ParseResult(
                status=ParseStatus.INVALID,
                error=f"Raiz '{root.tag}' no coincide con '{root_tag}'",
            )

        elements = root.findall(item_tag)
        if not elements:
            logger.warning(f"Documento sin elementos <{item_tag}> en {source}")
            return ParseResult(status=ParseStatus.EMPTY)

        try:
            records = [mapper(element) for element in elements]
        except (ValueError, ValidationError) as e:
            logger.warning(f"No se pudo convertir {source} a {kind.value}: {e}")
            return ParseResult(status=ParseStatus.INVALID, error=str(e))

        logger.debug(f"{len(records)} registro(s) de {kind.value} leidos de {source}")
        return ParseResult(status=ParseStatus.OK, records=records)

    def parse_customers(self, content: Union[bytes, str]) -> List[CustomerRecord]:
        return self.parse(content, EntityKind.CUSTOMER).records

    def parse_products(self, content: Union[bytes, str]) -> List[ProductRecord]:
        return self.parse(content, EntityKind.PRODUCT).records

    def parse_purchase_orders(self, content: Union[bytes, str]) -> List[PurchaseOrderRecord]:
        return self.parse(content, EntityKind.PURCHASE_ORDER).records

    def parse_sales_orders(self, content: Union[bytes, str]) -> List[SalesOrderRecord]:
        return self.parse(content, EntityKind.SALES_ORDER).records
