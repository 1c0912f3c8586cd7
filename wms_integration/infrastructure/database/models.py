"""
Modelos de base de datos (ORM).
"""
from sqlalchemy import (
    Column, String, Integer, DateTime, Text, Boolean, ForeignKey, UniqueConstraint, Index,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from wms_integration.infrastructure.database.session import Base
from wms_integration.shared.constants.entity_constants import EntityKind, SyncState
from wms_integration.shared.utils.datetime_utils import utc_now


def _enum_column(enum_cls):
    """Enum persistido por valor ("Customer", "Synced") como VARCHAR."""
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=50,
        values_callable=lambda members: [m.value for m in members],
    )


class CustomerModel(Base):
    """Maestro de clientes."""
    
    __tablename__ = "customer_master"
    
    customer_id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    created_by = Column(String(100), nullable=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    updated_by = Column(String(100), nullable=True)
    
    def __repr__(self):
        return f"<Customer(id={self.customer_id}, name={self.name})>"


class ProductModel(Base):
    """Maestro de productos."""
    
    __tablename__ = "product_master"
    
    product_code = Column(String(100), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    dimensions = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    created_by = Column(String(100), nullable=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    updated_by = Column(String(100), nullable=True)
    
    def __repr__(self):
        return f"<Product(code={self.product_code}, title={self.title})>"


class PurchaseOrderModel(Base):
    """
    Orden de compra.
    customer_id no tiene FK: la orden se persiste aunque el cliente aun no
    haya llegado; la sincronizacion con el WMS omite referencias faltantes.
    """
    
    __tablename__ = "purchase_orders"
    
    order_id = Column(Integer, primary_key=True, autoincrement=False)
    processing_date = Column(DateTime(timezone=True), nullable=True)
    customer_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    created_by = Column(String(100), nullable=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    items = relationship(
        "PurchaseOrderDetailModel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseOrderDetailModel.order_detail_id",
    )
    
    def __repr__(self):
        return f"<PurchaseOrder(id={self.order_id}, customer={self.customer_id})>"


class PurchaseOrderDetailModel(Base):
    """Linea de una orden de compra."""
    
    __tablename__ = "purchase_order_details"
    
    order_detail_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("purchase_orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    product_code = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SalesOrderModel(Base):
    """Orden de venta."""
    
    __tablename__ = "sales_orders"
    
    order_id = Column(Integer, primary_key=True, autoincrement=False)
    processing_date = Column(DateTime(timezone=True), nullable=True)
    customer_id = Column(Integer, nullable=False, index=True)
    shipment_address = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    created_by = Column(String(100), nullable=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    items = relationship(
        "SalesOrderDetailModel",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SalesOrderDetailModel.order_detail_id",
    )
    
    def __repr__(self):
        return f"<SalesOrder(id={self.order_id}, customer={self.customer_id})>"


class SalesOrderDetailModel(Base):
    """Linea de una orden de venta."""
    
    __tablename__ = "sales_order_details"
    
    order_detail_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("sales_orders.order_id", ondelete="CASCADE"), nullable=False, index=True)
    product_code = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class SyncResultModel(Base):
    """
    Historial append-only de intentos de sincronizacion con el WMS.
    """
    
    __tablename__ = "sync_results"
    __table_args__ = (
        Index("ix_sync_results_entity", "entity_type", "entity_id"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(_enum_column(EntityKind), nullable=False)
    entity_id = Column(String(100), nullable=False)
    success = Column(Boolean, nullable=False)
    error_message = Column(Text, nullable=True)
    sync_date = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    
    def __repr__(self):
        return f"<SyncResult(type={self.entity_type}, id={self.entity_id}, success={self.success})>"


class SyncStatusModel(Base):
    """
    Estado actual de sincronizacion, una fila por (entity_type, entity_id).
    """
    
    __tablename__ = "sync_status"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", name="uq_sync_status_entity"),
    )
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(_enum_column(EntityKind), nullable=False)
    entity_id = Column(String(100), nullable=False)
    status = Column(_enum_column(SyncState), nullable=False, default=SyncState.PENDING, index=True)
    last_sync_date = Column(DateTime(timezone=True), nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    
    def __repr__(self):
        return f"<SyncStatus(type={self.entity_type}, id={self.entity_id}, status={self.status})>"
