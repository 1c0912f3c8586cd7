"""
DTOs de los registros de dominio leidos desde XML.
Son registros planos: la validacion de negocio ocurre en los casos de uso.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class CustomerRecord(BaseModel):
    """Cliente (CustomerMaster)."""
    
    customer_id: int = Field(..., description="Identificador del cliente")
    name: str = Field("", description="Nombre del cliente")
    address: str = Field("", description="Direccion del cliente")


class ProductRecord(BaseModel):
    """Producto (ProductMaster)."""
    
    product_code: str = Field(..., description="Codigo unico del producto")
    title: str = Field("", description="Titulo del producto")
    description: str = Field("", description="Descripcion del producto")
    dimensions: str = Field("", description="Dimensiones del producto")


class OrderLineRecord(BaseModel):
    """Linea de detalle de una orden."""
    
    product_code: str = Field("", description="Codigo del producto")
    quantity: int = Field(0, description="Cantidad solicitada")


class PurchaseOrderRecord(BaseModel):
    """Orden de compra."""
    
    order_id: int = Field(..., description="Identificador de la orden")
    processing_date: Optional[datetime] = Field(None, description="Fecha de procesamiento")
    customer_id: int = Field(0, description="Cliente de la orden")
    items: List[OrderLineRecord] = Field(default_factory=list, description="Lineas de la orden")


class SalesOrderRecord(PurchaseOrderRecord):
    """Orden de venta: orden de compra mas direccion de envio."""
    
    shipment_address: str = Field("", description="Direccion de envio")
